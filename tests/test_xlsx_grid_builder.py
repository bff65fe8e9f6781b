from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

# Ensure src-layout imports work when running tests from repo checkout.
SRC_DIR = Path(__file__).resolve().parents[1] / "src"
sys.path.insert(0, str(SRC_DIR))

from sheetkit.xlsx.accessor import (  # noqa: E402
    AttributeRowAccessor,
    MappingRowAccessor,
    build_row_nodes,
    select_row_accessor,
)
from sheetkit.xlsx.builder import build_sheet_grid, measure_outline_depth  # noqa: E402
from sheetkit.xlsx.spec import (  # noqa: E402
    EnumCellType,
    EnumStyleRole,
    SheetDefinitionError,
    SpecDecimalNumberField,
    SpecField,
    SpecHyperlinkField,
    SpecRowGroup,
    SpecRowLeaf,
    SpecSheetDefinition,
)
from sheetkit.xlsx.styles import index_of  # noqa: E402

L_FIELDS_ORDERS = [
    SpecField("Customer", "customer"),
    SpecDecimalNumberField("Amount", "amount"),
]
L_RECORDS_ORDERS = [
    {"customer": "Ada", "amount": 10.5},
    {"customer": "Bob", "amount": 3.25},
    {"customer": "Cy", "amount": 7.0},
]


@dataclass
class Order:
    customer: str
    amount: float


def _cell_values(row) -> dict[str, object]:
    return {_cell.col_letter: _cell.value for _cell in row.cells}


def test_flat_sheet_with_totals_layout() -> None:
    definition = SpecSheetDefinition(
        name="Orders",
        fields=L_FIELDS_ORDERS,
        rows=build_row_nodes(L_RECORDS_ORDERS),
        if_include_totals=True,
    )
    grid = build_sheet_grid(definition)

    assert [_row.row_idx for _row in grid.rows] == [1, 2, 3, 4, 5]
    assert grid.row_idx_header == 1
    assert grid.row_idx_first_table == 2
    assert grid.row_idx_last_data == 4
    assert grid.row_idx_totals == 5

    row_header = grid.rows[0]
    assert _cell_values(row_header) == {"A": "Customer", "B": "Amount"}
    assert all(
        _cell.style == index_of(EnumStyleRole.HEADER_TEXT) for _cell in row_header.cells
    )

    assert _cell_values(grid.rows[1]) == {"A": "Ada", "B": 10.5}

    row_totals = grid.rows[4]
    cell_label, cell_sum = row_totals.cells
    assert cell_label.ref == "A5"
    assert cell_label.value == "Total"
    assert cell_label.style == index_of(EnumStyleRole.TOTALS_TEXT)
    assert cell_sum.ref == "B5"
    assert cell_sum.cell_type == EnumCellType.FORMULA
    assert cell_sum.value == "SUM(B2:B4)"
    assert cell_sum.style == index_of(EnumStyleRole.TOTALS_NUMBER_2DP)


def test_title_and_subtitle_shift_table_rows() -> None:
    definition = SpecSheetDefinition(
        name="Orders",
        fields=L_FIELDS_ORDERS,
        rows=build_row_nodes(L_RECORDS_ORDERS[:1]),
        title="Monthly orders",
        subtitle="March",
        if_include_totals=True,
    )
    grid = build_sheet_grid(definition)

    row_title, row_subtitle = grid.rows[:2]
    assert row_title.cells[0].value == "Monthly orders"
    assert row_title.cells[0].style == index_of(EnumStyleRole.TITLE_TEXT)
    assert row_title.height == 40
    assert row_subtitle.cells[0].style == index_of(EnumStyleRole.SUBTITLE_TEXT)
    assert row_subtitle.height == 28

    assert grid.n_rows_title == 2
    assert grid.row_idx_header == 3
    assert grid.row_idx_first_table == 4
    assert grid.row_idx_totals == 5
    assert grid.rows[-1].find_cells("B")[0].value == "SUM(B4:B4)"


def test_only_subtitle_takes_first_row() -> None:
    definition = SpecSheetDefinition(
        name="Orders", fields=L_FIELDS_ORDERS, subtitle="March"
    )
    grid = build_sheet_grid(definition)

    assert grid.rows[0].cells[0].style == index_of(EnumStyleRole.SUBTITLE_TEXT)
    assert grid.row_idx_header == 2


def test_empty_collection_has_header_only() -> None:
    definition = SpecSheetDefinition(
        name="Orders", fields=L_FIELDS_ORDERS, if_include_totals=True
    )
    grid = build_sheet_grid(definition)

    assert len(grid.rows) == 1
    assert grid.row_idx_first_table is None
    assert grid.row_idx_totals is None
    assert not grid.has_data


def test_nested_groups_are_outlined_and_hidden() -> None:
    rows = build_row_nodes(
        [
            {"customer": "Ada", "amount": 1.0},
            [
                {"customer": "Ada / 1", "amount": 0.5},
                [{"customer": "Ada / 1 / a", "amount": 0.25}],
            ],
            {"customer": "Bob", "amount": 2.0},
        ]
    )
    assert measure_outline_depth(rows) == 2

    grid = build_sheet_grid(
        SpecSheetDefinition(name="Orders", fields=L_FIELDS_ORDERS, rows=rows)
    )
    l_rows_data = grid.rows[1:]

    assert [_row.level_outline for _row in l_rows_data] == [0, 1, 2, 0]
    assert [_row.if_hidden for _row in l_rows_data] == [False, True, True, False]
    assert [_row.is_collapsible for _row in l_rows_data] == [False, True, True, False]
    assert [_cell_values(_row)["A"] for _row in l_rows_data] == [
        "Ada",
        "Ada / 1",
        "Ada / 1 / a",
        "Bob",
    ]


def test_group_totals_cover_every_leaf() -> None:
    rows = (
        SpecRowLeaf({"customer": "Ada", "amount": 1.0}),
        SpecRowGroup(nodes=(SpecRowLeaf({"customer": "Ada / 1", "amount": 0.5}),)),
    )
    grid = build_sheet_grid(
        SpecSheetDefinition(
            name="Orders", fields=L_FIELDS_ORDERS, rows=rows, if_include_totals=True
        )
    )

    assert grid.rows[-1].find_cells("B")[0].value == "SUM(B2:B3)"


def test_missing_values_leave_gaps() -> None:
    grid = build_sheet_grid(
        SpecSheetDefinition(
            name="Orders",
            fields=L_FIELDS_ORDERS,
            rows=build_row_nodes([{"customer": "Ada"}]),
        )
    )

    assert _cell_values(grid.rows[1]) == {"A": "Ada"}


def test_attribute_records_use_attribute_accessor() -> None:
    l_records = [Order("Ada", 1.5), Order("Bob", 2.5)]
    nodes = build_row_nodes(l_records)

    assert isinstance(select_row_accessor(nodes), AttributeRowAccessor)
    assert isinstance(
        select_row_accessor(build_row_nodes(L_RECORDS_ORDERS)), MappingRowAccessor
    )

    grid = build_sheet_grid(
        SpecSheetDefinition(name="Orders", fields=L_FIELDS_ORDERS, rows=nodes)
    )
    assert _cell_values(grid.rows[2]) == {"A": "Bob", "B": 2.5}


def test_named_tuple_records_are_leaves() -> None:
    from collections import namedtuple

    Item = namedtuple("Item", ["customer", "amount"])
    nodes = build_row_nodes([Item("Ada", 1.0)])

    assert isinstance(nodes[0], SpecRowLeaf)


def test_hyperlink_field_reads_display_key() -> None:
    definition = SpecSheetDefinition(
        name="Links",
        fields=[SpecHyperlinkField("Site", "url", display_key="label")],
        rows=build_row_nodes([{"url": "http://x", "label": "X"}]),
    )
    grid = build_sheet_grid(definition)

    assert grid.rows[1].cells[0].value == 'HYPERLINK("http://x", "X")'


@pytest.mark.parametrize(
    ("definition", "pattern"),
    [
        (SpecSheetDefinition(name="Empty", fields=[]), "expected 1..26"),
        (
            SpecSheetDefinition(
                name="Wide", fields=[SpecField(f"F{i}", f"f{i}") for i in range(27)]
            ),
            "27 fields",
        ),
        (SpecSheetDefinition(name="  ", fields=L_FIELDS_ORDERS), "name must not"),
        (
            SpecSheetDefinition(
                name="Link",
                fields=[SpecHyperlinkField("Site", "url", display_key="")],
            ),
            "display_key",
        ),
        (
            SpecSheetDefinition(
                name="Neg",
                fields=[SpecDecimalNumberField("A", "a", decimal_places=-1)],
            ),
            "decimal_places",
        ),
    ],
)
def test_invalid_definitions_raise(definition, pattern: str) -> None:
    with pytest.raises(SheetDefinitionError, match=pattern):
        build_sheet_grid(definition)


def test_outline_deeper_than_excel_supports_raises() -> None:
    nested: list = [{"customer": "deep", "amount": 1.0}]
    for _ in range(8):
        nested = [nested]

    definition = SpecSheetDefinition(
        name="Deep", fields=L_FIELDS_ORDERS, rows=build_row_nodes(nested)
    )
    with pytest.raises(SheetDefinitionError, match="8 levels deep"):
        build_sheet_grid(definition)


def test_twenty_six_fields_are_accepted() -> None:
    definition = SpecSheetDefinition(
        name="Wide",
        fields=[SpecField(f"F{i}", f"f{i}") for i in range(26)],
        rows=build_row_nodes([{"f25": "last"}]),
    )
    grid = build_sheet_grid(definition)

    assert grid.rows[1].cells[0].ref == "Z2"


def test_mixed_record_kinds_raise_before_layout() -> None:
    definition = SpecSheetDefinition(
        name="Orders",
        fields=L_FIELDS_ORDERS,
        rows=build_row_nodes(
            [{"customer": "Ada", "amount": 1.0}, [Order("Bob", 2.0)]]
        ),
    )
    with pytest.raises(SheetDefinitionError, match="mixes mapping and attribute"):
        build_sheet_grid(definition)
