from .conf import DEFAULT_XLSX_WRITE_OPTIONS
from .spec import EnumCellType, SpecCell, SpecSheetGrid, SpecXlsxWidthPolicy
from .util import derive_column_letter


def _is_measured(cell: SpecCell, policy: SpecXlsxWidthPolicy) -> bool:
    if policy.rule_cells == "all":
        return True
    return cell.cell_type == EnumCellType.FORMULA


def calculate_column_widths(
    grid: SpecSheetGrid, *, policy: SpecXlsxWidthPolicy | None = None
) -> list[float]:
    """
    Estimate a best-fit width for every column of ``grid``.

    ``width = longest text * width_char_factor + width_padding``, where the
    longest text defaults to 0. With the default ``rule_cells="formula"`` only
    formula cells are measured (their expression text). Column A skips the
    title and subtitle rows, which span the whole sheet.

    Examples:
        A column whose only formula is ``SUM(B2:B4)`` (10 characters) gets
        ``10 * 0.9 + 5 = 14.0``; a column without formulas gets ``5.0``.
    """
    policy = DEFAULT_XLSX_WRITE_OPTIONS.width_policy if policy is None else policy

    l_widths: list[float] = []
    for _col_idx in range(grid.n_cols):
        c_col_letter = derive_column_letter(_col_idx)
        l_rows_scan = grid.rows[grid.n_rows_title :] if _col_idx == 0 else grid.rows

        n_len_max = max(
            (
                len(_cell.derive_text())
                for _row in l_rows_scan
                for _cell in _row.find_cells(c_col_letter)
                if _is_measured(_cell, policy)
            ),
            default=0,
        )
        l_widths.append(n_len_max * policy.width_char_factor + policy.width_padding)
    return l_widths
