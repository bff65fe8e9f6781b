from __future__ import annotations

from collections.abc import Sequence
from importlib import import_module
from types import ModuleType
from typing import Any


def _derive_module_name_parts(name: str) -> set[str]:
    parts = [_p for _p in name.split(".") if _p]
    return set(parts)


def build_optional_dependency_error(
    *,
    feature: str,
    extras: Sequence[str],
    missing_module: str | None,
) -> ModuleNotFoundError:
    extras_text = ",".join(dict.fromkeys(extras))
    missing_text = (
        f"Missing optional dependency `{missing_module}`."
        if missing_module
        else "Missing optional dependency."
    )
    return ModuleNotFoundError(
        f"{feature} is unavailable. {missing_text} "
        f'Install extras with `pip install "sheetkit[{extras_text}]"`.'
    )


def import_optional_module(
    *,
    module_name: str,
    package: str,
    feature: str,
    extras: Sequence[str],
    required_modules: Sequence[str],
) -> ModuleType:
    """Import ``module_name`` and turn a missing third-party module into a hint.

    Only modules listed in ``required_modules`` are reported with the install
    hint. Any other ``ModuleNotFoundError`` is a bug in this package and is
    re-raised unchanged.
    """
    try:
        return import_module(module_name, package=package)
    except ModuleNotFoundError as exc:
        set_missing = _derive_module_name_parts(exc.name or "")
        set_required: set[str] = set()
        for _name in required_modules:
            set_required |= _derive_module_name_parts(_name)

        if not required_modules or set_missing & set_required:
            raise build_optional_dependency_error(
                feature=feature,
                extras=extras,
                missing_module=exc.name,
            ) from exc
        raise


def import_optional_attr(
    *,
    module_name: str,
    attr_name: str,
    package: str,
    feature: str,
    extras: Sequence[str],
    required_modules: Sequence[str],
) -> Any:
    module = import_optional_module(
        module_name=module_name,
        package=package,
        feature=feature,
        extras=extras,
        required_modules=required_modules,
    )
    return getattr(module, attr_name)
