from collections.abc import Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Any

from .accessor import RowAccessor
from .classify import classify_value_kind, parse_int64
from .conf import DEFAULT_XLSX_WRITE_OPTIONS
from .spec import (
    EnumCellType,
    EnumStyleRole,
    EnumValueKind,
    SpecCell,
    SpecField,
    SpecRow,
    SpecSheetGrid,
    SpecXlsxLayoutPolicy,
)
from .styles import index_of
from .util import create_column_range_formula, derive_column_letter

# value kind of the representative record -> style of the SUM cell
_TOTALS_ROLE_BY_KIND: Mapping[EnumValueKind, EnumStyleRole] = MappingProxyType(
    {
        EnumValueKind.DECIMAL: EnumStyleRole.TOTALS_NUMBER_2DP,
        EnumValueKind.DURATION: EnumStyleRole.TOTALS_DURATION,
        EnumValueKind.INTEGER: EnumStyleRole.TOTALS_NUMBER,
    }
)


def probe_field_kind(
    field: SpecField, records: Iterable[Any], accessor: RowAccessor
) -> EnumValueKind:
    """Return the kind of the first non-missing value of ``field``.

    Only one representative value is inspected; later records are assumed to
    hold the same kind. Text holding a 64-bit integer counts as ``INTEGER``
    here, so such a column is summed even though its cells stay text.
    """
    for _record in records:
        value = accessor.get(_record, field.key)
        kind = classify_value_kind(value)
        if kind == EnumValueKind.TEXT and parse_int64(value) is not None:
            return EnumValueKind.INTEGER
        if kind != EnumValueKind.MISSING:
            return kind
    return EnumValueKind.MISSING


def _create_blank_totals_cell(col_letter: str, row_idx: int) -> SpecCell:
    return SpecCell(
        EnumCellType.TEXT,
        col_letter,
        row_idx,
        "",
        index_of(EnumStyleRole.TOTALS_TEXT),
    )


def _create_range_formula_cell(
    func_name: str,
    col_letter: str,
    *,
    row_idx: int,
    row_idx_first_table: int,
    role: EnumStyleRole,
) -> SpecCell:
    return SpecCell(
        EnumCellType.FORMULA,
        col_letter,
        row_idx,
        create_column_range_formula(
            func_name, col_letter, row_idx_first_table, row_idx - 1
        ),
        index_of(role),
    )


def append_totals_row(
    grid: SpecSheetGrid,
    *,
    fields: Sequence[SpecField],
    records: Sequence[Any],
    accessor: RowAccessor,
    layout_policy: SpecXlsxLayoutPolicy | None = None,
) -> SpecRow:
    """
    Append the totals row right after the last data row of ``grid``.

    Per field, in column order:

    - ignored fields get a blank totals cell;
    - fields counting non-null rows first get a ``COUNTA`` cell, except in
      column A;
    - column A gets the totals label;
    - other columns get a ``SUM`` styled after the first non-missing value
      (decimal, duration, integer) or a blank totals cell.

    Every formula covers ``row_idx_first_table`` through the row just above
    the totals row.

    Raises:
        ValueError: ``grid`` has no data rows.
    """
    if grid.row_idx_first_table is None:
        raise ValueError("Cannot append a totals row to a grid without data rows.")
    layout_policy = (
        DEFAULT_XLSX_WRITE_OPTIONS.layout_policy
        if layout_policy is None
        else layout_policy
    )

    n_row_idx_totals = grid.row_idx_last + 1
    row_totals = SpecRow(row_idx=n_row_idx_totals)
    for _col_idx, _field in enumerate(fields):
        c_col_letter = derive_column_letter(_col_idx)
        if _field.if_ignore_from_totals:
            row_totals.cells.append(
                _create_blank_totals_cell(c_col_letter, n_row_idx_totals)
            )
            continue

        # column A keeps the label only
        if _field.if_count_non_null_rows_for_total and _col_idx != 0:
            row_totals.cells.append(
                _create_range_formula_cell(
                    "COUNTA",
                    c_col_letter,
                    row_idx=n_row_idx_totals,
                    row_idx_first_table=grid.row_idx_first_table,
                    role=EnumStyleRole.TOTALS_NUMBER,
                )
            )

        if _col_idx == 0:
            row_totals.cells.append(
                SpecCell(
                    EnumCellType.TEXT,
                    c_col_letter,
                    n_row_idx_totals,
                    layout_policy.totals_label,
                    index_of(EnumStyleRole.TOTALS_TEXT),
                )
            )
            continue

        role = _TOTALS_ROLE_BY_KIND.get(probe_field_kind(_field, records, accessor))
        if role is None:
            row_totals.cells.append(
                _create_blank_totals_cell(c_col_letter, n_row_idx_totals)
            )
            continue
        row_totals.cells.append(
            _create_range_formula_cell(
                "SUM",
                c_col_letter,
                row_idx=n_row_idx_totals,
                row_idx_first_table=grid.row_idx_first_table,
                role=role,
            )
        )

    grid.rows.append(row_totals)
    grid.row_idx_totals = n_row_idx_totals
    return row_totals
