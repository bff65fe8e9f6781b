import os
import tempfile
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from types import TracebackType
from typing import Self

import xlsxwriter
import xlsxwriter.format
import xlsxwriter.worksheet
from loguru import logger

from .builder import build_sheet_grid
from .conf import DEFAULT_XLSX_WRITE_OPTIONS
from .spec import (
    EnumCellType,
    EnumStyleRole,
    SheetDefinitionError,
    SpecCell,
    SpecCellFormat,
    SpecRow,
    SpecSheetDefinition,
    SpecSheetGrid,
    SpecSheetReport,
    SpecXlsxReport,
    SpecXlsxWriteOptions,
)
from .styles import StyleCatalog
from .util import (
    create_range_ref,
    create_unique_sheet_name,
    derive_column_letter,
    sanitize_sheet_name,
)
from .widths import calculate_column_widths


class XlsxWriter:
    """
    Write sheet definitions to an XLSX workbook using ``xlsxwriter``.

    Each sheet definition is laid out as a grid (title, header, data rows,
    optional totals) and replayed cell by cell into a worksheet. The style
    catalog is registered once per workbook, in catalog order, so the style
    index carried by each grid cell selects the matching workbook format.

    The workbook is written to a temporary file next to ``file_out`` and only
    moved into place by :meth:`close`. Leaving a ``with`` block through an
    exception discards the temporary file instead, so a failed export never
    leaves a partial workbook behind::

        from sheetkit.xlsx import XlsxWriter

        with XlsxWriter("report.xlsx") as xf:
            xf.write_sheet(definition_orders)
            xf.write_sheet(definition_refunds)

    Parameters
    ----------
    file_out:
        Path to the output ``.xlsx`` file.
    style_overrides:
        Per-role patches applied on top of the default catalog formats.
    write_options:
        Layout and column width policies.
    """

    def __init__(
        self,
        file_out: os.PathLike[str] | str,
        *,
        style_overrides: Mapping[EnumStyleRole, SpecCellFormat] | None = None,
        write_options: SpecXlsxWriteOptions | None = None,
    ):
        self.file_out = Path(file_out)
        self.catalog = StyleCatalog(style_overrides)
        self.write_options = (
            DEFAULT_XLSX_WRITE_OPTIONS if write_options is None else write_options
        )
        n_fd, c_file_tmp = tempfile.mkstemp(
            prefix=f".{self.file_out.stem}.",
            suffix=".xlsx.tmp",
            dir=self.file_out.parent,
        )
        os.close(n_fd)
        self._file_tmp = Path(c_file_tmp)
        self._is_closed = False

        self._format_cache: dict[SpecCellFormat, xlsxwriter.format.Format] = {}
        try:
            self.wb = xlsxwriter.Workbook(self._file_tmp.as_posix())
            # position == style index
            self._formats_by_style: list[xlsxwriter.format.Format] = [
                self._create_format_cached(_fmt) for _fmt in self.catalog.formats()
            ]
        except BaseException:
            self._file_tmp.unlink(missing_ok=True)
            raise
        self._existing_sheet_names: set[str] = set()
        self._report = SpecXlsxReport(sheets=[], warnings=[])

    def __enter__(self) -> "XlsxWriter":
        return self

    def __exit__(
        self, exc_type: type | None, exc: BaseException | None, tb: TracebackType | None
    ) -> None:
        if exc_type is None:
            self.close()
        else:
            self.discard()

    def close(self) -> None:
        if self._is_closed:
            return
        self._is_closed = True
        try:
            self.wb.close()
            os.replace(self._file_tmp, self.file_out)
        finally:
            self._file_tmp.unlink(missing_ok=True)
        logger.success(
            f"Workbook written: {self.file_out} ({len(self._report.sheets)} sheets)"
        )

    def discard(self) -> None:
        if self._is_closed:
            return
        self._is_closed = True
        logger.warning(f"Discarding unfinished workbook for {self.file_out}")
        try:
            # xlsxwriter would otherwise flush the workbook when collected
            self.wb.close()
        finally:
            self._file_tmp.unlink(missing_ok=True)

    def report(self) -> SpecXlsxReport:
        return self._report

    def _create_format_cached(self, spec: SpecCellFormat) -> xlsxwriter.format.Format:
        fmt = self._format_cache.get(spec)
        if fmt is None:
            fmt = self.wb.add_format(spec.to_xlsxwriter())
            self._format_cache[spec] = fmt
        return fmt

    def _resolve_sheet_name(self, name: str) -> str:
        c_name_sanitized = sanitize_sheet_name(name)
        if c_name_sanitized != name:
            self._report.warn(f"Sheet name {name!r} sanitized to {c_name_sanitized!r}.")
        c_name_unique = create_unique_sheet_name(
            c_name_sanitized, self._existing_sheet_names
        )
        if c_name_unique != c_name_sanitized:
            self._report.warn(
                f"Sheet name {c_name_sanitized!r} already used; "
                f"renamed to {c_name_unique!r}."
            )
        if c_name_unique != name:
            logger.warning(f"Sheet [{name}] written as [{c_name_unique}]")
        return c_name_unique

    @staticmethod
    def _check_row_options_required(row: SpecRow) -> bool:
        return (
            row.height is not None
            or row.level_outline > 0
            or row.if_hidden
            or row.if_collapsed
        )

    def _write_row_options(
        self, ws: xlsxwriter.worksheet.Worksheet, row: SpecRow
    ) -> None:
        if not self._check_row_options_required(row):
            return
        ws.set_row(
            row.row_idx - 1,
            row.height,
            None,
            {
                "level": row.level_outline,
                "hidden": row.if_hidden,
                "collapsed": row.if_collapsed,
            },
        )

    def _write_cell(self, ws: xlsxwriter.worksheet.Worksheet, cell: SpecCell) -> None:
        # unstyled cells use the catalog default text format
        n_style = (
            self.catalog.index_of(EnumStyleRole.DEFAULT_TEXT)
            if cell.style is None
            else cell.style
        )
        cfg_cell_format = self._formats_by_style[n_style]
        n_row = cell.row_idx - 1
        n_col = cell.col_idx

        if cell.cell_type == EnumCellType.FORMULA:
            ws.write_formula(n_row, n_col, f"={cell.value}", cfg_cell_format)
            return
        if cell.cell_type == EnumCellType.DATE:
            ws.write_datetime(n_row, n_col, cell.value, cfg_cell_format)
            return
        if cell.cell_type == EnumCellType.NUMBER:
            ws.write_number(n_row, n_col, cell.value, cfg_cell_format)
            return
        if cell.value == "":
            ws.write_blank(n_row, n_col, None, cfg_cell_format)
            return
        ws.write_string(n_row, n_col, cell.value, cfg_cell_format)

    def write_grid(self, sheet_name: str, grid: SpecSheetGrid) -> Self:
        """Replay an already built grid into a new worksheet."""
        c_sheet_name = self._resolve_sheet_name(sheet_name)
        cfg_worksheet = self.wb.add_worksheet(c_sheet_name)

        l_widths = calculate_column_widths(
            grid, policy=self.write_options.width_policy
        )
        for _col_idx, _width in enumerate(l_widths):
            cfg_worksheet.set_column(_col_idx, _col_idx, _width)

        for _row in grid.rows:
            self._write_row_options(cfg_worksheet, _row)
            # one cell per position; the first cell emitted for a column wins
            set_cols_written: set[str] = set()
            for _cell in _row.cells:
                if _cell.col_letter in set_cols_written:
                    continue
                set_cols_written.add(_cell.col_letter)
                self._write_cell(cfg_worksheet, _cell)

        c_range_autofilter: str | None = None
        if self.write_options.layout_policy.if_autofilter:
            n_row_idx_last = (
                grid.row_idx_last_data
                if grid.row_idx_last_data is not None
                else grid.row_idx_header
            )
            c_range_autofilter = create_range_ref(
                derive_column_letter(0),
                grid.row_idx_header,
                derive_column_letter(grid.n_cols - 1),
                n_row_idx_last,
            )
            cfg_worksheet.autofilter(c_range_autofilter)

        report_sheet = SpecSheetReport(
            sheet_id=len(self._report.sheets) + 1,
            sheet_name=c_sheet_name,
            n_rows=len(grid.rows),
            n_cols=grid.n_cols,
            row_idx_header=grid.row_idx_header,
            row_idx_first_table=grid.row_idx_first_table,
            row_idx_totals=grid.row_idx_totals,
            widths=tuple(l_widths),
            range_autofilter=c_range_autofilter,
        )
        self._report.sheets.append(report_sheet)
        logger.debug(
            f"Sheet [{c_sheet_name}] #{report_sheet.sheet_id}: "
            f"rows={report_sheet.n_rows}, cols={report_sheet.n_cols}, "
            f"totals={report_sheet.row_idx_totals}"
        )
        return self

    def write_sheet(self, definition: SpecSheetDefinition) -> Self:
        grid = build_sheet_grid(definition, options=self.write_options)
        return self.write_grid(definition.name, grid)

    def write_sheets(self, definitions: Iterable[SpecSheetDefinition]) -> Self:
        for _definition in definitions:
            self.write_sheet(_definition)
        return self


def generate_workbook(
    file_out: os.PathLike[str] | str,
    definitions: SpecSheetDefinition | Sequence[SpecSheetDefinition],
    *,
    style_overrides: Mapping[EnumStyleRole, SpecCellFormat] | None = None,
    write_options: SpecXlsxWriteOptions | None = None,
) -> tuple[SpecSheetReport, ...]:
    """
    Write one sheet definition, or several in the given order, to ``file_out``.

    Every grid is built (and so validated) before the workbook is opened:
    an invalid definition raises without touching ``file_out``. I/O errors from
    ``xlsxwriter`` or the file system propagate unchanged.

    Returns:
        tuple[SpecSheetReport, ...]: One report per written sheet.

    Raises:
        SheetDefinitionError: No definition given, or one cannot be laid out.
    """
    l_definitions: list[SpecSheetDefinition] = (
        [definitions]
        if isinstance(definitions, SpecSheetDefinition)
        else list(definitions)
    )
    if not l_definitions:
        raise SheetDefinitionError("At least one sheet definition is required.")

    options = DEFAULT_XLSX_WRITE_OPTIONS if write_options is None else write_options
    l_grids: list[tuple[str, SpecSheetGrid]] = [
        (_definition.name, build_sheet_grid(_definition, options=options))
        for _definition in l_definitions
    ]

    with XlsxWriter(
        file_out, style_overrides=style_overrides, write_options=options
    ) as writer:
        for _sheet_name, _grid in l_grids:
            writer.write_grid(_sheet_name, _grid)
        report = writer.report()
    return tuple(report.sheets)
