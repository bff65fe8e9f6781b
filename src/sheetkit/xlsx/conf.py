import string
from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal

from .spec import SpecCellFormat, SpecXlsxWriteOptions

# Hard limits of the sheet layout.
N_NCOLS_SHEET_MAX = 26  # one single-letter column per field
N_LEVEL_OUTLINE_MAX = 7  # deepest row outline level Excel can show
N_LEN_EXCEL_SHEET_NAME_MAX = 31
TUP_EXCEL_ILLEGAL = ("*", ":", "?", "/", "\\", "[", "]")
TUP_COLUMN_LETTERS: tuple[str, ...] = tuple(string.ascii_uppercase)

N_INT64_MIN = -(2**63)
N_INT64_MAX = 2**63 - 1

# Strategy/Preference/Adjustable Parameters for XLSX output.

LIT_COLOR_KEYS = Literal["header_fill", "totals_fill", "hyperlink_font"]
DEFAULT_XLSX_COLORS: Mapping[LIT_COLOR_KEYS, str] = MappingProxyType(
    {
        "header_fill": "#87CEFA",  # light sky blue
        "totals_fill": "#FFA500",  # orange
        "hyperlink_font": "#0000CD",  # medium blue
    }
)

FMT_BASE = SpecCellFormat(font_name="Arial", font_size=11)
FMT_TOTALS_BASE = FMT_BASE.with_(
    bg_color=DEFAULT_XLSX_COLORS["totals_fill"], top=1, bottom=1
)

DEFAULT_XLSX_WRITE_OPTIONS = SpecXlsxWriteOptions()
