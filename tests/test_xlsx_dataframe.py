from __future__ import annotations

import sys
from pathlib import Path

import polars as pl
import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sheetkit.xlsx import create_sheet_definition_from_polars  # noqa: E402
from sheetkit.xlsx.builder import build_sheet_grid  # noqa: E402
from sheetkit.xlsx.dataframe import validate_unique_columns  # noqa: E402
from sheetkit.xlsx.spec import (  # noqa: E402
    EnumStyleRole,
    SpecDecimalNumberField,
    SpecRowLeaf,
)
from sheetkit.xlsx.styles import index_of  # noqa: E402


def test_definition_from_polars_frame() -> None:
    df = pl.DataFrame(
        {"customer": ["Ada", "Bob"], "amount": [1.5, 2.25], "rate": [0.1, 0.2]}
    )
    definition = create_sheet_definition_from_polars(
        df,
        "Orders",
        title="Orders",
        if_include_totals=True,
        titles={"customer": "Customer"},
        decimal_places={"rate": 5},
        cols_ignore_from_totals=["rate"],
    )

    assert [_f.title for _f in definition.fields] == ["Customer", "amount", "rate"]
    field_rate = definition.fields[2]
    assert isinstance(field_rate, SpecDecimalNumberField)
    assert field_rate.decimal_places == 5
    assert field_rate.if_ignore_from_totals
    assert all(isinstance(_node, SpecRowLeaf) for _node in definition.rows)
    assert definition.rows[1].record == {"customer": "Bob", "amount": 2.25, "rate": 0.2}

    grid = build_sheet_grid(definition)
    assert grid.row_idx_header == 2
    row_totals = grid.rows[-1]
    assert row_totals.find_cells("B")[0].value == "SUM(B3:B4)"
    assert row_totals.find_cells("C")[0].value == ""
    assert grid.rows[2].find_cells("C")[0].style == index_of(
        EnumStyleRole.DEFAULT_NUMBER_5DP
    )


def test_definition_from_plain_mapping() -> None:
    definition = create_sheet_definition_from_polars({"x": [1, None]}, "S")

    assert [_f.key for _f in definition.fields] == ["x"]
    assert len(definition.rows) == 2
    assert definition.rows[1].record == {"x": None}


def test_unknown_column_in_options_raises() -> None:
    with pytest.raises(KeyError, match="missing"):
        create_sheet_definition_from_polars(
            pl.DataFrame({"x": [1]}), "S", titles={"missing": "M"}
        )


def test_duplicate_columns_are_reported() -> None:
    class _FrameStub:
        columns = ["a", "b", "a"]

    with pytest.raises(ValueError, match="'a' x2 at indices \\[0, 2\\]"):
        validate_unique_columns(_FrameStub())  # type: ignore[arg-type]
