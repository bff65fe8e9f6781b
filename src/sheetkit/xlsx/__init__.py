from __future__ import annotations

from typing import TYPE_CHECKING, Any

from sheetkit._optional_deps import import_optional_attr

__all__ = [
    "XlsxWriter",
    "generate_workbook",
    "build_sheet_grid",
    "build_row_nodes",
    "create_sheet_definition_from_polars",
    "SheetDefinitionError",
    "EnumStyleRole",
    "SpecCellFormat",
    "SpecField",
    "SpecHyperlinkField",
    "SpecDecimalNumberField",
    "SpecRowLeaf",
    "SpecRowGroup",
    "SpecSheetDefinition",
    "SpecSheetReport",
    "SpecXlsxLayoutPolicy",
    "SpecXlsxWidthPolicy",
    "SpecXlsxWriteOptions",
]

if TYPE_CHECKING:
    from .accessor import build_row_nodes
    from .builder import build_sheet_grid
    from .dataframe import create_sheet_definition_from_polars
    from .spec import (
        EnumStyleRole,
        SheetDefinitionError,
        SpecCellFormat,
        SpecDecimalNumberField,
        SpecField,
        SpecHyperlinkField,
        SpecRowGroup,
        SpecRowLeaf,
        SpecSheetDefinition,
        SpecSheetReport,
        SpecXlsxLayoutPolicy,
        SpecXlsxWidthPolicy,
        SpecXlsxWriteOptions,
    )
    from .writer import XlsxWriter, generate_workbook

_SPEC_NAMES = frozenset(
    {
        "SheetDefinitionError",
        "EnumStyleRole",
        "SpecCellFormat",
        "SpecField",
        "SpecHyperlinkField",
        "SpecDecimalNumberField",
        "SpecRowLeaf",
        "SpecRowGroup",
        "SpecSheetDefinition",
        "SpecSheetReport",
        "SpecXlsxLayoutPolicy",
        "SpecXlsxWidthPolicy",
        "SpecXlsxWriteOptions",
    }
)


def __getattr__(name: str) -> Any:
    if name in _SPEC_NAMES:
        return import_optional_attr(
            module_name=".spec",
            attr_name=name,
            package=__name__,
            feature="sheetkit.xlsx",
            extras=("xlsx",),
            required_modules=(),
        )
    if name == "build_row_nodes":
        return import_optional_attr(
            module_name=".accessor",
            attr_name=name,
            package=__name__,
            feature="sheetkit.xlsx",
            extras=("xlsx",),
            required_modules=(),
        )
    if name == "build_sheet_grid":
        return import_optional_attr(
            module_name=".builder",
            attr_name=name,
            package=__name__,
            feature="sheetkit.xlsx",
            extras=("xlsx",),
            required_modules=(),
        )
    if name in {"XlsxWriter", "generate_workbook"}:
        return import_optional_attr(
            module_name=".writer",
            attr_name=name,
            package=__name__,
            feature="sheetkit.xlsx",
            extras=("xlsx",),
            required_modules=("xlsxwriter", "loguru"),
        )
    if name == "create_sheet_definition_from_polars":
        return import_optional_attr(
            module_name=".dataframe",
            attr_name=name,
            package=__name__,
            feature="sheetkit.xlsx.dataframe",
            extras=("xlsx",),
            required_modules=("polars",),
        )
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
