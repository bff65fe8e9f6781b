"""Style catalog shared by every sheet of a workbook.

The catalog is an ordered tuple: the position of a role in
``TUP_STYLE_CATALOG`` is its style index. Cells only carry that integer, and
the writer registers the workbook formats in the same order, so the two can
never drift apart.
"""

from collections.abc import Generator, Mapping
from types import MappingProxyType

from .conf import DEFAULT_XLSX_COLORS, FMT_BASE, FMT_TOTALS_BASE
from .spec import EnumStyleRole, SpecCellFormat

TUP_STYLE_CATALOG: tuple[tuple[EnumStyleRole, SpecCellFormat], ...] = (
    (EnumStyleRole.DEFAULT_TEXT, FMT_BASE),
    (EnumStyleRole.DEFAULT_DATE, FMT_BASE.with_(num_format="mm-dd-yy")),
    (EnumStyleRole.DEFAULT_NUMBER_2DP, FMT_BASE.with_(num_format="#,##0.00")),
    (EnumStyleRole.DEFAULT_NUMBER_5DP, FMT_BASE.with_(num_format="#,##0.00000")),
    (
        EnumStyleRole.DEFAULT_DATETIME,
        FMT_BASE.with_(num_format="dd/mm/yyyy hh:mm:ss"),
    ),
    (
        EnumStyleRole.HEADER_TEXT,
        FMT_BASE.with_(
            font_size=12, bold=True, bg_color=DEFAULT_XLSX_COLORS["header_fill"]
        ),
    ),
    (EnumStyleRole.TOTALS_NUMBER, FMT_TOTALS_BASE),
    (EnumStyleRole.TOTALS_NUMBER_2DP, FMT_TOTALS_BASE.with_(num_format="#,##0.00")),
    (EnumStyleRole.TOTALS_TEXT, FMT_TOTALS_BASE.with_(num_format="@")),
    (EnumStyleRole.TITLE_TEXT, FMT_BASE.with_(font_size=18, bold=True, valign="bottom")),
    (EnumStyleRole.SUBTITLE_TEXT, FMT_BASE.with_(font_size=14, valign="top")),
    (EnumStyleRole.DURATION, FMT_BASE.with_(num_format="[h]:mm", align="right")),
    (
        EnumStyleRole.TOTALS_DURATION,
        FMT_TOTALS_BASE.with_(num_format="d:h:mm", align="right"),
    ),
    (
        EnumStyleRole.HYPERLINK,
        FMT_BASE.with_(font_color=DEFAULT_XLSX_COLORS["hyperlink_font"]),
    ),
)

_STYLE_INDEX_BY_ROLE: Mapping[EnumStyleRole, int] = MappingProxyType(
    {_role: _idx for _idx, (_role, _) in enumerate(TUP_STYLE_CATALOG)}
)


def index_of(role: EnumStyleRole) -> int:
    """Return the stable style index of ``role``.

    Raises:
        KeyError: ``role`` is not part of the catalog.
    """
    return _STYLE_INDEX_BY_ROLE[role]


class StyleCatalog:
    """Per-workbook view of ``TUP_STYLE_CATALOG``.

    ``overrides`` patch the presentation of individual roles (non-None fields
    win) without touching the index order.
    """

    def __init__(
        self, overrides: Mapping[EnumStyleRole, SpecCellFormat] | None = None
    ):
        dict_overrides = dict(overrides or {})
        set_unknown = set(dict_overrides) - set(_STYLE_INDEX_BY_ROLE)
        if set_unknown:
            raise KeyError(f"Unknown style roles: {sorted(set_unknown)}")

        self._formats: tuple[SpecCellFormat, ...] = tuple(
            _fmt.merge(dict_overrides[_role]) if _role in dict_overrides else _fmt
            for _role, _fmt in TUP_STYLE_CATALOG
        )

    def __len__(self) -> int:
        return len(self._formats)

    def index_of(self, role: EnumStyleRole) -> int:
        return index_of(role)

    def format_of(self, role: EnumStyleRole) -> SpecCellFormat:
        return self._formats[index_of(role)]

    def formats(self) -> tuple[SpecCellFormat, ...]:
        return self._formats

    def iter_entries(
        self,
    ) -> Generator[tuple[int, EnumStyleRole, SpecCellFormat], None, None]:
        for _idx, (_role, _) in enumerate(TUP_STYLE_CATALOG):
            yield _idx, _role, self._formats[_idx]
