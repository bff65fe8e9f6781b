from __future__ import annotations

import re
import sys
from pathlib import Path

import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

import sheetkit  # noqa: E402
from sheetkit._optional_deps import import_optional_module  # noqa: E402


def test_optional_import_error_contains_install_hint() -> None:
    with pytest.raises(ModuleNotFoundError) as exc_info:
        import_optional_module(
            module_name=".missing_feature_module",
            package="sheetkit",
            feature="sheetkit.xlsx",
            extras=("xlsx",),
            required_modules=("missing_feature_module",),
        )

    message = str(exc_info.value)
    assert "sheetkit.xlsx is unavailable" in message
    assert "Missing optional dependency" in message
    assert re.search(r'pip install "sheetkit\[xlsx\]"', message)


def test_unrelated_missing_module_is_reraised_unchanged() -> None:
    with pytest.raises(ModuleNotFoundError) as exc_info:
        import_optional_module(
            module_name=".missing_feature_module",
            package="sheetkit",
            feature="sheetkit.xlsx",
            extras=("xlsx",),
            required_modules=("xlsxwriter",),
        )

    assert "is unavailable" not in str(exc_info.value)


def test_lazy_package_aliases() -> None:
    assert sheetkit.xlsx.SpecField.__name__ == "SpecField"
    assert callable(sheetkit.xlsx.generate_workbook)
    assert "xlsx" in dir(sheetkit)

    with pytest.raises(AttributeError):
        _ = sheetkit.xlsx.not_an_export
