"""ingestkit-sheets -- Schema-driven record extraction from spreadsheets.

Public API re-exports for convenient access.
"""

from ingestkit_sheets.config import (
    BlankRowPolicy,
    CellErrorPolicy,
    ExtractionOptions,
    ReadOptions,
    WorkbookConfig,
)
from ingestkit_sheets.converters import (
    convert_cell,
    to_boolean,
    to_integer,
    to_number,
    to_text,
)
from ingestkit_sheets.dates import excel_datetime
from ingestkit_sheets.errors import (
    ErrorCode,
    IngestError,
    SheetSchemaException,
    WarningCode,
    WorkbookExtractionException,
)
from ingestkit_sheets.extractor import (
    CompiledSheet,
    compile_sheets,
    extract_rows,
    extract_sheet,
    extract_workbook,
)
from ingestkit_sheets.header import bind_columns, locate_header
from ingestkit_sheets.matcher import resolve_matcher
from ingestkit_sheets.models import (
    CellContext,
    ExtractionResult,
    ExtractionWarning,
    FieldKind,
    FieldSpec,
    HeaderRange,
    Matcher,
    MatcherKind,
    SheetSpec,
    WarningSink,
    WorkbookData,
)
from ingestkit_sheets.reader import read_workbook
from ingestkit_sheets.references import (
    cell_reference,
    column_letter,
    quote_sheet_name,
    row_reference,
)
from ingestkit_sheets.router import SheetSchemaExtractor, sheet_to_schema
from ingestkit_sheets.values import cell_text, is_blank, is_contentful, trim_grid

__all__ = [
    # Entry points
    "sheet_to_schema",
    "SheetSchemaExtractor",
    "read_workbook",
    "extract_workbook",
    "extract_sheet",
    "extract_rows",
    "compile_sheets",
    "CompiledSheet",
    # Config
    "WorkbookConfig",
    "ExtractionOptions",
    "ReadOptions",
    "BlankRowPolicy",
    "CellErrorPolicy",
    # Models
    "Matcher",
    "MatcherKind",
    "FieldKind",
    "FieldSpec",
    "HeaderRange",
    "SheetSpec",
    "CellContext",
    "ExtractionWarning",
    "WarningSink",
    "WorkbookData",
    "ExtractionResult",
    # Errors
    "ErrorCode",
    "WarningCode",
    "IngestError",
    "SheetSchemaException",
    "WorkbookExtractionException",
    # Building blocks
    "is_blank",
    "is_contentful",
    "cell_text",
    "trim_grid",
    "resolve_matcher",
    "locate_header",
    "bind_columns",
    "convert_cell",
    "to_text",
    "to_boolean",
    "to_number",
    "to_integer",
    "excel_datetime",
    "column_letter",
    "quote_sheet_name",
    "cell_reference",
    "row_reference",
]
