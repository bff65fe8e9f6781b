from collections.abc import Mapping, Sequence

from .accessor import RowAccessor, generate_leaf_records, select_row_accessor
from .classify import classify_cell_value
from .conf import (
    DEFAULT_XLSX_WRITE_OPTIONS,
    N_LEVEL_OUTLINE_MAX,
    N_NCOLS_SHEET_MAX,
)
from .spec import (
    EnumCellType,
    EnumStyleRole,
    SheetDefinitionError,
    SpecCell,
    SpecDecimalNumberField,
    SpecField,
    SpecHyperlinkField,
    SpecRow,
    SpecRowGroup,
    SpecRowNode,
    SpecSheetDefinition,
    SpecSheetGrid,
    SpecXlsxLayoutPolicy,
    SpecXlsxWriteOptions,
)
from .styles import index_of
from .totals import append_totals_row
from .util import derive_column_letter

################################################################################
# #region Validation


def measure_outline_depth(nodes: Sequence[SpecRowNode]) -> int:
    """Deepest group nesting below ``nodes`` (0 when there are no groups)."""
    n_depth_max = 0
    for _node in nodes:
        if isinstance(_node, SpecRowGroup):
            n_depth_max = max(n_depth_max, 1 + measure_outline_depth(_node.nodes))
    return n_depth_max


def validate_sheet_definition(definition: SpecSheetDefinition) -> None:
    """
    Check that ``definition`` can be laid out on a single sheet.

    Raises:
        SheetDefinitionError: Lists every problem found, e.g. an empty name,
            no fields or more than 26 fields, groups nested deeper than the
            outline levels Excel supports, mapping and attribute records in
            one collection.
    """
    errors: list[str] = []
    if not definition.name.strip():
        errors.append("Sheet name must not be empty.")

    n_fields = len(definition.fields)
    if not 1 <= n_fields <= N_NCOLS_SHEET_MAX:
        errors.append(
            f"Sheet {definition.name!r} has {n_fields} fields; "
            f"expected 1..{N_NCOLS_SHEET_MAX}."
        )

    for _field in definition.fields:
        if isinstance(_field, SpecHyperlinkField) and not _field.display_key:
            errors.append(f"Hyperlink field {_field.title!r} needs a `display_key`.")
        if isinstance(_field, SpecDecimalNumberField) and _field.decimal_places < 0:
            errors.append(
                f"Field {_field.title!r} has negative decimal_places "
                f"{_field.decimal_places}."
            )

    if (n_depth := measure_outline_depth(definition.rows)) > N_LEVEL_OUTLINE_MAX:
        errors.append(
            f"Sheet {definition.name!r} nests row groups {n_depth} levels deep; "
            f"at most {N_LEVEL_OUTLINE_MAX} are supported."
        )

    # one accessor serves the whole collection
    set_record_kinds = {
        "mapping" if isinstance(_record, Mapping) else "attribute"
        for _record in generate_leaf_records(definition.rows)
    }
    if len(set_record_kinds) > 1:
        errors.append(
            f"Sheet {definition.name!r} mixes mapping and attribute records; "
            "use one record kind per sheet."
        )

    if errors:
        raise SheetDefinitionError(" ".join(errors))


# #endregion
################################################################################
# #region GridBuilding


def _create_label_row(
    row_idx: int, text: str, role: EnumStyleRole, height: float
) -> SpecRow:
    return SpecRow(
        row_idx=row_idx,
        cells=[
            SpecCell(
                EnumCellType.TEXT,
                derive_column_letter(0),
                row_idx,
                text,
                index_of(role),
            )
        ],
        height=height,
    )


def _create_header_row(row_idx: int, fields: Sequence[SpecField]) -> SpecRow:
    n_style_header = index_of(EnumStyleRole.HEADER_TEXT)
    return SpecRow(
        row_idx=row_idx,
        cells=[
            SpecCell(
                EnumCellType.TEXT,
                derive_column_letter(_col_idx),
                row_idx,
                _field.title,
                n_style_header,
            )
            for _col_idx, _field in enumerate(fields)
        ],
    )


def _append_table_rows(
    grid: SpecSheetGrid,
    nodes: Sequence[SpecRowNode],
    *,
    fields: Sequence[SpecField],
    accessor: RowAccessor,
    layout_policy: SpecXlsxLayoutPolicy,
    level_outline: int,
    if_hidden: bool,
) -> None:
    for _node in nodes:
        if isinstance(_node, SpecRowGroup):
            # a group has no row of its own; its leaves sit one level deeper
            _append_table_rows(
                grid,
                _node.nodes,
                fields=fields,
                accessor=accessor,
                layout_policy=layout_policy,
                level_outline=level_outline + 1,
                if_hidden=True,
            )
            continue

        n_row_idx = grid.row_idx_last + 1
        row = SpecRow(
            row_idx=n_row_idx,
            level_outline=level_outline,
            if_hidden=if_hidden,
        )
        for _col_idx, _field in enumerate(fields):
            value_display = (
                accessor.get(_node.record, _field.display_key)
                if isinstance(_field, SpecHyperlinkField)
                else None
            )
            cell = classify_cell_value(
                field=_field,
                value=accessor.get(_node.record, _field.key),
                value_display=value_display,
                col_letter=derive_column_letter(_col_idx),
                row_idx=n_row_idx,
                layout_policy=layout_policy,
            )
            if cell is not None:
                row.cells.append(cell)
        grid.rows.append(row)


def build_sheet_grid(
    definition: SpecSheetDefinition,
    *,
    accessor: RowAccessor | None = None,
    options: SpecXlsxWriteOptions | None = None,
) -> SpecSheetGrid:
    """
    Lay out one sheet definition as a grid of rows and cells.

    Rows are numbered from 1: optional title, optional subtitle, header, one
    row per leaf record (groups depth-first), then the optional totals row.
    Without any leaf record only the header part is emitted and no totals row
    is added, whatever ``if_include_totals`` says.

    Args:
        definition: Sheet to lay out.
        accessor: Field lookup strategy. Chosen from the first leaf record when
            omitted.
        options: Layout options; defaults to ``DEFAULT_XLSX_WRITE_OPTIONS``.

    Returns:
        SpecSheetGrid: The rows plus the header/data/totals row markers.

    Raises:
        SheetDefinitionError: ``definition`` cannot be laid out.
    """
    validate_sheet_definition(definition)
    options = DEFAULT_XLSX_WRITE_OPTIONS if options is None else options
    layout_policy = options.layout_policy

    l_rows: list[SpecRow] = []
    n_row_idx = 0
    if definition.title is not None:
        n_row_idx += 1
        l_rows.append(
            _create_label_row(
                n_row_idx,
                definition.title,
                EnumStyleRole.TITLE_TEXT,
                layout_policy.height_title_row,
            )
        )
    if definition.subtitle is not None:
        n_row_idx += 1
        l_rows.append(
            _create_label_row(
                n_row_idx,
                definition.subtitle,
                EnumStyleRole.SUBTITLE_TEXT,
                layout_policy.height_subtitle_row,
            )
        )
    n_rows_title = n_row_idx

    n_row_idx += 1
    l_rows.append(_create_header_row(n_row_idx, definition.fields))

    grid = SpecSheetGrid(
        rows=l_rows,
        n_cols=len(definition.fields),
        n_rows_title=n_rows_title,
        row_idx_header=n_row_idx,
    )

    l_records = list(generate_leaf_records(definition.rows))
    if not l_records:
        return grid

    accessor = select_row_accessor(definition.rows) if accessor is None else accessor
    grid.row_idx_first_table = n_row_idx + 1
    _append_table_rows(
        grid,
        definition.rows,
        fields=definition.fields,
        accessor=accessor,
        layout_policy=layout_policy,
        level_outline=0,
        if_hidden=False,
    )
    grid.row_idx_last_data = grid.row_idx_last

    if definition.if_include_totals:
        append_totals_row(
            grid,
            fields=definition.fields,
            records=l_records,
            accessor=accessor,
            layout_policy=layout_policy,
        )
    return grid


# #endregion
################################################################################
