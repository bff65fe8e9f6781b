import datetime as dt
import math
import numbers
import re
from decimal import Decimal
from typing import Any

from .conf import DEFAULT_XLSX_WRITE_OPTIONS, N_INT64_MAX, N_INT64_MIN
from .spec import (
    EnumCellType,
    EnumStyleRole,
    EnumValueKind,
    SpecCell,
    SpecDecimalNumberField,
    SpecField,
    SpecHyperlinkField,
    SpecXlsxLayoutPolicy,
)
from .styles import index_of

_RE_INT64_TEXT = re.compile(r"^\s*[+-]?[0-9]+\s*$")


################################################################################
# #region ValueKind


def parse_int64(text: str) -> int | None:
    """Parse ``text`` as a signed 64-bit integer; ``None`` when it is not one."""
    if not _RE_INT64_TEXT.match(text):
        return None
    n_value = int(text)
    if not N_INT64_MIN <= n_value <= N_INT64_MAX:
        return None
    return n_value


def _is_decimal_like(value: Any) -> bool:
    if isinstance(value, Decimal):
        return True
    return isinstance(value, numbers.Real) and not isinstance(value, numbers.Integral)


def classify_value_kind(value: Any) -> EnumValueKind:
    if value is None:
        return EnumValueKind.MISSING
    if isinstance(value, str):
        return EnumValueKind.TEXT
    if isinstance(value, bool):
        return EnumValueKind.BOOLEAN
    if isinstance(value, dt.date):
        return EnumValueKind.DATE
    if isinstance(value, dt.timedelta):
        return EnumValueKind.DURATION
    if _is_decimal_like(value):
        if isinstance(value, Decimal):
            b_is_finite = value.is_finite()
        else:
            b_is_finite = math.isfinite(float(value))
        return EnumValueKind.DECIMAL if b_is_finite else EnumValueKind.MISSING
    if parse_int64(str(value)) is not None:
        return EnumValueKind.INTEGER
    return EnumValueKind.OTHER


# #endregion
################################################################################
# #region CellClassification


def _convert_to_number(value: Any, kind: EnumValueKind) -> int | float | None:
    if kind == EnumValueKind.INTEGER:
        return parse_int64(str(value))
    if kind == EnumValueKind.DECIMAL:
        return float(value)
    if kind != EnumValueKind.TEXT:
        return None
    try:
        n_value = float(value.strip())
    except ValueError:
        return None
    return n_value if math.isfinite(n_value) else None


def _quote_formula_text(value: Any) -> str:
    c_text = "" if value is None else str(value)
    return '"' + c_text.replace('"', '""') + '"'


def create_hyperlink_formula(target: Any, display: Any) -> str:
    return f"HYPERLINK({_quote_formula_text(target)}, {_quote_formula_text(display)})"


def classify_cell_value(
    *,
    field: SpecField,
    value: Any,
    col_letter: str,
    row_idx: int,
    value_display: Any = None,
    layout_policy: SpecXlsxLayoutPolicy | None = None,
) -> SpecCell | None:
    """
    Map one field value to a grid cell.

    Rules, first match wins:

    1. missing value (``None``, NaN, +/-Inf) -> no cell;
    2. hyperlink field -> ``HYPERLINK(target, display)`` formula;
    3. decimal number field -> number with 2 or 5 decimal places;
    4. by value type: text, Yes/No, date, duration (fraction of a day),
       decimal, 64-bit integer, and text for everything else.

    Args:
        field: Column the value belongs to.
        value: Raw value read from the record.
        col_letter: Column letter of the cell.
        row_idx: 1-based row number of the cell.
        value_display: Display text, only read for hyperlink fields.
        layout_policy: Supplies the boolean labels.

    Returns:
        SpecCell | None: The classified cell, or ``None`` when the value is
        missing.
    """
    layout_policy = (
        DEFAULT_XLSX_WRITE_OPTIONS.layout_policy
        if layout_policy is None
        else layout_policy
    )
    kind = classify_value_kind(value)
    if kind == EnumValueKind.MISSING:
        return None

    if isinstance(field, SpecHyperlinkField):
        return SpecCell(
            cell_type=EnumCellType.FORMULA,
            col_letter=col_letter,
            row_idx=row_idx,
            value=create_hyperlink_formula(value, value_display),
            style=index_of(EnumStyleRole.HYPERLINK),
        )

    if isinstance(field, SpecDecimalNumberField):
        n_number = _convert_to_number(value, kind)
        if n_number is None:
            return SpecCell(EnumCellType.TEXT, col_letter, row_idx, str(value))
        role = (
            EnumStyleRole.DEFAULT_NUMBER_5DP
            if field.decimal_places == 5
            else EnumStyleRole.DEFAULT_NUMBER_2DP
        )
        return SpecCell(
            EnumCellType.NUMBER, col_letter, row_idx, n_number, index_of(role)
        )

    if kind == EnumValueKind.TEXT:
        return SpecCell(EnumCellType.TEXT, col_letter, row_idx, value)
    if kind == EnumValueKind.BOOLEAN:
        c_label = layout_policy.true_str if value else layout_policy.false_str
        return SpecCell(EnumCellType.TEXT, col_letter, row_idx, c_label)
    if kind == EnumValueKind.DATE:
        # time of day is dropped
        return SpecCell(
            EnumCellType.DATE,
            col_letter,
            row_idx,
            dt.date(value.year, value.month, value.day),
            index_of(EnumStyleRole.DEFAULT_DATE),
        )
    if kind == EnumValueKind.DURATION:
        # Excel stores durations as a fraction of a day
        return SpecCell(
            EnumCellType.NUMBER,
            col_letter,
            row_idx,
            value.total_seconds() / 3600 / 24,
            index_of(EnumStyleRole.DURATION),
        )
    if kind == EnumValueKind.DECIMAL:
        return SpecCell(
            EnumCellType.NUMBER,
            col_letter,
            row_idx,
            float(value),
            index_of(EnumStyleRole.DEFAULT_NUMBER_2DP),
        )
    if kind == EnumValueKind.INTEGER:
        return SpecCell(
            EnumCellType.NUMBER, col_letter, row_idx, parse_int64(str(value))
        )
    return SpecCell(EnumCellType.TEXT, col_letter, row_idx, str(value))


# #endregion
################################################################################
