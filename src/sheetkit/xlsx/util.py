from .conf import (
    N_LEN_EXCEL_SHEET_NAME_MAX,
    N_NCOLS_SHEET_MAX,
    TUP_COLUMN_LETTERS,
    TUP_EXCEL_ILLEGAL,
)

################################################################################
# #region ColumnReference


def derive_column_letter(col_idx: int) -> str:
    """
    Return the single-letter column name of a 0-based column index.

    Examples:
        >>> derive_column_letter(0)
        'A'
        >>> derive_column_letter(25)
        'Z'
    """
    if not 0 <= col_idx < N_NCOLS_SHEET_MAX:
        raise ValueError(
            f"Column index {col_idx} is outside A..Z (0..{N_NCOLS_SHEET_MAX - 1})."
        )
    return TUP_COLUMN_LETTERS[col_idx]


def create_range_ref(
    col_letter_start: str, row_idx_start: int, col_letter_end: str, row_idx_end: int
) -> str:
    return f"{col_letter_start}{row_idx_start}:{col_letter_end}{row_idx_end}"


def create_column_range_formula(
    func_name: str, col_letter: str, row_idx_start: int, row_idx_end: int
) -> str:
    """
    Examples:
        >>> create_column_range_formula("SUM", "B", 2, 4)
        'SUM(B2:B4)'
    """
    c_range = create_range_ref(col_letter, row_idx_start, col_letter, row_idx_end)
    return f"{func_name}({c_range})"


# #endregion
################################################################################
# #region SheetNormalization


def sanitize_sheet_name(name: str, *, replace_to: str = "_") -> str:
    for ch in TUP_EXCEL_ILLEGAL:
        name = name.replace(ch, replace_to)
    name = name.strip() or "Sheet"
    return name[:N_LEN_EXCEL_SHEET_NAME_MAX]


def create_unique_sheet_name(name: str, existing: set[str]) -> str:
    """Return ``name`` or a ``name__2``-style variant not yet in ``existing``.

    Excel compares sheet names case-insensitively; ``existing`` holds
    lower-cased names and is updated in place.
    """
    if name.lower() not in existing:
        existing.add(name.lower())
        return name

    c_base_name = name[: max(1, N_LEN_EXCEL_SHEET_NAME_MAX - 4)]
    i = 2
    c_candidate_name = f"{c_base_name}__{i}"[:N_LEN_EXCEL_SHEET_NAME_MAX]
    while c_candidate_name.lower() in existing:
        i += 1
        c_candidate_name = f"{c_base_name}__{i}"[:N_LEN_EXCEL_SHEET_NAME_MAX]
    existing.add(c_candidate_name.lower())
    return c_candidate_name


# #endregion
################################################################################
