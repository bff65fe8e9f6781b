# "Facts/Results/Plans" generated while turning records into XLSX sheets.

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any, Literal, TypeAlias


class SheetDefinitionError(ValueError):
    """A sheet definition cannot be laid out (too many fields, too deep, ...)."""


################################################################################
# #region Enums
class EnumCellType(StrEnum):
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    FORMULA = "formula"


class EnumStyleRole(StrEnum):
    DEFAULT_TEXT = "default_text"
    DEFAULT_DATE = "default_date"
    DEFAULT_NUMBER_2DP = "default_number_2dp"
    DEFAULT_NUMBER_5DP = "default_number_5dp"
    DEFAULT_DATETIME = "default_datetime"
    HEADER_TEXT = "header_text"
    TOTALS_NUMBER = "totals_number"
    TOTALS_NUMBER_2DP = "totals_number_2dp"
    TOTALS_TEXT = "totals_text"
    TITLE_TEXT = "title_text"
    SUBTITLE_TEXT = "subtitle_text"
    DURATION = "duration"
    TOTALS_DURATION = "totals_duration"
    HYPERLINK = "hyperlink"


class EnumValueKind(StrEnum):
    MISSING = "missing"
    TEXT = "text"
    BOOLEAN = "boolean"
    DATE = "date"
    DURATION = "duration"
    DECIMAL = "decimal"
    INTEGER = "integer"
    OTHER = "other"


# #endregion
################################################################################
# #region CellFormatSpecification
@dataclass(frozen=True, slots=True)
class SpecCellFormat:
    # field names follow XlsxWriter format property keys
    font_name: str | None = None
    font_size: int | None = None
    bold: bool | None = None
    italic: bool | None = None

    align: str | None = None
    valign: str | None = None
    border: int | None = None
    text_wrap: bool | None = None

    top: int | None = None
    bottom: int | None = None
    left: int | None = None
    right: int | None = None

    num_format: str | None = None
    bg_color: str | None = None
    font_color: str | None = None

    def with_(self, **kwargs: Any) -> "SpecCellFormat":
        return replace(self, **kwargs)

    def merge(self, other: "SpecCellFormat") -> "SpecCellFormat":
        # non-None fields on the right win
        data = {
            k: (
                getattr(other, k) if getattr(other, k) is not None else getattr(self, k)
            )
            for k in self.__dataclass_fields__
        }
        return SpecCellFormat(**data)

    def to_xlsxwriter(self) -> dict[str, Any]:
        return {
            k: getattr(self, k)
            for k in self.__dataclass_fields__
            if getattr(self, k) is not None
        }


# #endregion
################################################################################
# #region FieldSpecification
@dataclass(frozen=True, slots=True)
class SpecField:
    """One column of a sheet: header title plus the record key it reads."""

    title: str
    key: str
    if_ignore_from_totals: bool = False
    if_count_non_null_rows_for_total: bool = False


@dataclass(frozen=True, slots=True, kw_only=True)
class SpecHyperlinkField(SpecField):
    # `key` holds the link target, `display_key` the visible text
    display_key: str


@dataclass(frozen=True, slots=True, kw_only=True)
class SpecDecimalNumberField(SpecField):
    decimal_places: int = 2


# #endregion
################################################################################
# #region RowNodeSpecification
@dataclass(frozen=True, slots=True)
class SpecRowLeaf:
    record: Any


@dataclass(frozen=True, slots=True)
class SpecRowGroup:
    nodes: Sequence["SpecRowNode"]


SpecRowNode: TypeAlias = SpecRowLeaf | SpecRowGroup


# #endregion
################################################################################
# #region GridSpecification
@dataclass(frozen=True, slots=True)
class SpecCell:
    cell_type: EnumCellType
    col_letter: str
    row_idx: int  # 1-based, as shown in Excel
    value: Any
    style: int | None = None

    @property
    def ref(self) -> str:
        return f"{self.col_letter}{self.row_idx}"

    @property
    def col_idx(self) -> int:
        return ord(self.col_letter) - ord("A")

    def derive_text(self) -> str:
        if self.value is None:
            return ""
        return str(self.value)


@dataclass(slots=True)
class SpecRow:
    row_idx: int
    cells: list[SpecCell] = field(default_factory=list)
    level_outline: int = 0
    if_hidden: bool = False
    if_collapsed: bool = False
    height: float | None = None

    @property
    def is_collapsible(self) -> bool:
        return self.level_outline > 0

    def find_cells(self, col_letter: str) -> list[SpecCell]:
        return [_cell for _cell in self.cells if _cell.col_letter == col_letter]


@dataclass(slots=True)
class SpecSheetGrid:
    rows: list[SpecRow]
    n_cols: int
    n_rows_title: int
    row_idx_header: int
    row_idx_first_table: int | None = None
    row_idx_last_data: int | None = None
    row_idx_totals: int | None = None

    @property
    def row_idx_last(self) -> int:
        return self.rows[-1].row_idx if self.rows else 0

    @property
    def has_data(self) -> bool:
        return self.row_idx_first_table is not None


# #endregion
################################################################################
# #region SheetDefinition
@dataclass(frozen=True, slots=True)
class SpecSheetDefinition:
    name: str
    fields: Sequence[SpecField]
    rows: Sequence[SpecRowNode] = ()
    title: str | None = None
    subtitle: str | None = None
    if_include_totals: bool = False


# #endregion
################################################################################
# #region WriteOptions
@dataclass(frozen=True, slots=True)
class SpecXlsxLayoutPolicy:
    height_title_row: float = 40
    height_subtitle_row: float = 28
    totals_label: str = "Total"
    true_str: str = "Yes"
    false_str: str = "No"
    if_autofilter: bool = True


@dataclass(frozen=True, slots=True)
class SpecXlsxWidthPolicy:
    # "formula": only formula cells are measured; "all": every cell
    rule_cells: Literal["formula", "all"] = "formula"
    width_char_factor: float = 0.9
    width_padding: float = 5


@dataclass(frozen=True, slots=True)
class SpecXlsxWriteOptions:
    layout_policy: SpecXlsxLayoutPolicy = field(default_factory=SpecXlsxLayoutPolicy)
    width_policy: SpecXlsxWidthPolicy = field(default_factory=SpecXlsxWidthPolicy)


# #endregion
################################################################################
# #region ReportSpecification
@dataclass(frozen=True, slots=True)
class SpecSheetReport:
    sheet_id: int  # 1-based, workbook order
    sheet_name: str
    n_rows: int
    n_cols: int
    row_idx_header: int
    row_idx_first_table: int | None
    row_idx_totals: int | None
    widths: tuple[float, ...]
    range_autofilter: str | None


@dataclass(slots=True)
class SpecXlsxReport:
    sheets: list[SpecSheetReport]
    warnings: list[str]

    def warn(self, msg: str) -> None:
        self.warnings.append(str(msg))


# #endregion
################################################################################
