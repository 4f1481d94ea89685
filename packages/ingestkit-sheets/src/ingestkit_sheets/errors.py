"""Error codes, warning codes and structured error models for ingestkit-sheets.

``ErrorCode`` contains every fatal code raised while reading a workbook or
extracting a sheet.  ``WarningCode`` lists the recoverable codes the
extraction core writes to the warning log; their values are part of the
public contract and must never change.  ``IngestError`` is the structured
(pydantic) error record and ``SheetSchemaException`` is the raisable wrapper
around it.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel

if TYPE_CHECKING:
    from ingestkit_sheets.models import ExtractionResult


class ErrorCode(str, Enum):
    """Fatal error codes for workbook reading and schema extraction.

    Values equal their names so they are stable strings suitable for
    metrics and alerting.
    """

    # Read
    E_PARSE_EMPTY = "E_PARSE_EMPTY"
    E_PARSE_CORRUPT = "E_PARSE_CORRUPT"
    E_PARSE_PASSWORD = "E_PARSE_PASSWORD"
    E_SECURITY_TOO_LARGE = "E_SECURITY_TOO_LARGE"
    E_SHEETS_XLRD_UNAVAILABLE = "E_SHEETS_XLRD_UNAVAILABLE"

    # Extraction
    E_SHEET_NOT_FOUND = "E_SHEET_NOT_FOUND"
    E_SHEET_MATCHER = "E_SHEET_MATCHER"
    E_SHEET_HEADER_NOT_FOUND = "E_SHEET_HEADER_NOT_FOUND"
    E_SHEET_COLUMN_UNBOUND = "E_SHEET_COLUMN_UNBOUND"
    E_SHEET_BLANK_ROW = "E_SHEET_BLANK_ROW"
    E_SHEET_CELL_CONVERSION = "E_SHEET_CELL_CONVERSION"


class WarningCode(str, Enum):
    """Codes attached to recoverable events in the warning log.

    Converters may add their own free-form codes next to these.
    """

    ROW_EXCLUDED_DUE_TO_BLANKS = "row_excluded_due_to_blanks"
    ROWS_TRUNCATED_DUE_TO_BLANKS = "rows_truncated_due_to_blanks"
    ROW_EXCLUDED_DUE_TO_CELL_ERROR = "row_excluded_due_to_cell_error"
    CELL_DEFAULTED_DUE_TO_ERROR = "cell_defaulted_due_to_error"


class IngestError(BaseModel):
    """Structured error with code, message, and sheet location context.

    ``sheet_key`` is the key of the sheet in the workbook configuration,
    ``sheet_name`` the name of the worksheet it was matched against (when
    one was found) and ``reference`` a spreadsheet-style locator such as
    ``'Orders'!B5``.  ``recoverable`` is set when a configuration policy
    (``handle_blank_row``, ``handle_uncaught_cell_error`` or a field's
    ``if_error``) could have turned the failure into a warning.
    """

    code: ErrorCode
    message: str
    sheet_key: str | None = None
    sheet_name: str | None = None
    reference: str | None = None
    stage: str | None = None
    recoverable: bool = False


class SheetSchemaException(Exception):
    """Raisable exception wrapping an :class:`IngestError` data model.

    Carries the structured error as the ``.error`` attribute; the
    convenience properties delegate to it.
    """

    def __init__(self, **kwargs: object) -> None:
        self.error = IngestError(**kwargs)  # type: ignore[arg-type]
        super().__init__(self.error.message)

    @property
    def code(self) -> ErrorCode:
        return self.error.code

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def stage(self) -> str | None:
        return self.error.stage

    @property
    def reference(self) -> str | None:
        return self.error.reference


class WorkbookExtractionException(Exception):
    """Raised once every configured sheet was attempted and some failed.

    ``errors`` holds one :class:`IngestError` per failed sheet and
    ``result`` the partial :class:`ExtractionResult` with the sheets that
    succeeded and the full warning log.
    """

    def __init__(self, errors: list[IngestError], result: ExtractionResult) -> None:
        self.errors = errors
        self.result = result
        failed = ", ".join(e.sheet_key or "?" for e in errors)
        super().__init__(
            f"{len(errors)} sheet(s) failed to extract ({failed}): {errors[0].message}"
        )
