from collections import defaultdict
from collections.abc import Mapping, Sequence
from typing import Any

import polars as pl

from .spec import (
    SpecDecimalNumberField,
    SpecField,
    SpecRowLeaf,
    SpecSheetDefinition,
)


def convert_to_polars(df: Any) -> pl.DataFrame:
    return df if isinstance(df, pl.DataFrame) else pl.DataFrame(df)


def validate_unique_columns(df: pl.DataFrame) -> None:
    l_cols = df.columns

    # fast path: no duplicates
    if len(l_cols) == len(set(l_cols)):
        return

    dict_pos: dict[str, list[int]] = defaultdict(list)
    for _idx, _val in enumerate(l_cols):
        dict_pos[_val].append(_idx)

    c_msg = "; ".join(
        f"{c_name!r} x{len(l_pos)} at indices {l_pos}"
        for c_name, l_pos in dict_pos.items()
        if len(l_pos) > 1
    )
    raise ValueError(f"Duplicate column names detected: {c_msg}")


def create_fields_from_polars(
    df: pl.DataFrame,
    *,
    titles: Mapping[str, str] | None = None,
    decimal_places: Mapping[str, int] | None = None,
    cols_ignore_from_totals: Sequence[str] = (),
) -> list[SpecField]:
    """
    Derive one field per column of ``df``, in column order.

    Args:
        df: Source frame.
        titles: Header text per column name; defaults to the column name.
        decimal_places: Columns rendered as fixed decimal numbers.
        cols_ignore_from_totals: Columns left blank in the totals row.

    Raises:
        KeyError: A column named in an argument does not exist.
    """
    titles = titles or {}
    decimal_places = decimal_places or {}
    set_cols = set(df.columns)
    set_unknown = (
        set(titles) | set(decimal_places) | set(cols_ignore_from_totals)
    ) - set_cols
    if set_unknown:
        raise KeyError(f"Column not found: {sorted(set_unknown)!r}")

    l_fields: list[SpecField] = []
    for _col in df.columns:
        c_title = titles.get(_col, _col)
        b_ignore = _col in cols_ignore_from_totals
        if _col in decimal_places:
            l_fields.append(
                SpecDecimalNumberField(
                    c_title,
                    _col,
                    if_ignore_from_totals=b_ignore,
                    decimal_places=decimal_places[_col],
                )
            )
        else:
            l_fields.append(SpecField(c_title, _col, if_ignore_from_totals=b_ignore))
    return l_fields


def create_sheet_definition_from_polars(
    df: Any,
    name: str,
    *,
    title: str | None = None,
    subtitle: str | None = None,
    if_include_totals: bool = False,
    titles: Mapping[str, str] | None = None,
    decimal_places: Mapping[str, int] | None = None,
    cols_ignore_from_totals: Sequence[str] = (),
) -> SpecSheetDefinition:
    """Build a flat (ungrouped) sheet definition from a frame-like object."""
    df_custom = convert_to_polars(df)
    validate_unique_columns(df_custom)
    return SpecSheetDefinition(
        name=name,
        fields=create_fields_from_polars(
            df_custom,
            titles=titles,
            decimal_places=decimal_places,
            cols_ignore_from_totals=cols_ignore_from_totals,
        ),
        rows=tuple(
            SpecRowLeaf(record=_row) for _row in df_custom.iter_rows(named=True)
        ),
        title=title,
        subtitle=subtitle,
        if_include_totals=if_include_totals,
    )
