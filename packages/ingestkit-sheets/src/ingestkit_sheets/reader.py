"""Workbook reader -- turn a spreadsheet binary into sheet names and grids.

``.xlsx`` / ``.xlsm`` files are read with openpyxl (read-only streaming mode
by default).  Legacy ``.xls`` files are recognised by their OLE2 magic bytes
and read with xlrd, an optional dependency.  The extraction core only ever
sees the resulting :class:`~ingestkit_sheets.models.WorkbookData`.
"""

from __future__ import annotations

import io
import logging
import os
import pathlib
from typing import Any, Union

import openpyxl

from ingestkit_sheets.config import ReadOptions
from ingestkit_sheets.errors import ErrorCode, SheetSchemaException
from ingestkit_sheets.models import WorkbookData
from ingestkit_sheets.values import CellValue

logger = logging.getLogger("ingestkit_sheets")

# Import guard: xlrd is an optional dependency
try:
    import xlrd  # type: ignore[import-untyped]
except ImportError:
    xlrd = None  # type: ignore[assignment]

# OLE2 magic bytes used by .xls files
_OLE2_MAGIC = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1"

WorkbookSource = Union[bytes, bytearray, memoryview, str, os.PathLike]


def _load_bytes(source: WorkbookSource) -> bytes:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return bytes(source)
    return pathlib.Path(source).read_bytes()


def _is_password_error(exc: Exception) -> bool:
    exc_str = str(exc).lower()
    return "password" in exc_str or "encrypted" in exc_str


def read_workbook(
    source: WorkbookSource, read_options: ReadOptions | None = None
) -> WorkbookData:
    """Read every worksheet of a workbook into memory.

    Parameters
    ----------
    source:
        The workbook binary, or a filesystem path to it.
    read_options:
        Reader options.  Uses defaults when *None*.

    Returns
    -------
    WorkbookData
        Sheet names in workbook order and one grid per sheet.  Chart sheets
        are skipped.

    Raises
    ------
    SheetSchemaException
        ``E_PARSE_EMPTY`` for empty input, ``E_SECURITY_TOO_LARGE`` for
        input above ``max_file_size_mb``, ``E_PARSE_PASSWORD`` /
        ``E_PARSE_CORRUPT`` when the workbook cannot be opened and
        ``E_SHEETS_XLRD_UNAVAILABLE`` for ``.xls`` input without xlrd.
    """
    options = read_options or ReadOptions()
    data = _load_bytes(source)

    if not data:
        raise SheetSchemaException(
            code=ErrorCode.E_PARSE_EMPTY,
            message="Workbook is empty (0 bytes).",
            stage="read",
        )

    max_bytes = options.max_file_size_mb * 1024 * 1024
    if len(data) > max_bytes:
        raise SheetSchemaException(
            code=ErrorCode.E_SECURITY_TOO_LARGE,
            message=(
                f"Workbook is {len(data)} bytes, exceeding max_file_size_mb "
                f"({options.max_file_size_mb})."
            ),
            stage="read",
        )

    if data.startswith(_OLE2_MAGIC):
        return _read_xls(data)
    return _read_xlsx(data, options)


# ---------------------------------------------------------------------------
# .xlsx via openpyxl
# ---------------------------------------------------------------------------


def _read_xlsx(data: bytes, options: ReadOptions) -> WorkbookData:
    try:
        wb = openpyxl.load_workbook(
            io.BytesIO(data),
            read_only=options.read_only,
            data_only=options.data_only,
            keep_links=options.keep_links,
        )
    except Exception as exc:
        raise _open_failure(exc) from exc

    try:
        grids: dict[str, list[list[Any]]] = {}
        for ws in wb.worksheets:
            grids[ws.title] = [list(row) for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()

    logger.debug("ingestkit_sheets | reader=openpyxl | sheets=%d", len(grids))
    return WorkbookData(sheet_names=list(grids), grids=grids)


# ---------------------------------------------------------------------------
# .xls via xlrd
# ---------------------------------------------------------------------------


def _xls_cell_value(cell: Any, workbook: Any) -> CellValue:
    """Convert an xlrd cell to the value openpyxl would have produced."""
    if cell.ctype == xlrd.XL_CELL_EMPTY or cell.ctype == xlrd.XL_CELL_BLANK:
        return None
    elif cell.ctype == xlrd.XL_CELL_DATE:
        try:
            return xlrd.xldate_as_datetime(cell.value, workbook.datemode)
        except Exception as exc:
            logger.warning(
                "ingestkit_sheets | date conversion failed: %s | keeping serial number",
                exc,
            )
            return cell.value
    elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    elif cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value, "#ERROR")
    elif cell.ctype == xlrd.XL_CELL_NUMBER:
        value = cell.value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        return value
    return cell.value


def _read_xls(data: bytes) -> WorkbookData:
    if xlrd is None:
        raise SheetSchemaException(
            code=ErrorCode.E_SHEETS_XLRD_UNAVAILABLE,
            message=(
                "xlrd is required to read .xls workbooks. "
                "Install it with: pip install xlrd"
            ),
            stage="read",
        )

    try:
        workbook = xlrd.open_workbook(file_contents=data)
    except Exception as exc:
        raise _open_failure(exc) from exc

    grids: dict[str, list[list[Any]]] = {}
    for sheet in workbook.sheets():
        grids[sheet.name] = [
            [_xls_cell_value(sheet.cell(r, c), workbook) for c in range(sheet.ncols)]
            for r in range(sheet.nrows)
        ]

    logger.debug("ingestkit_sheets | reader=xlrd | sheets=%d", len(grids))
    return WorkbookData(sheet_names=list(grids), grids=grids)


def _open_failure(exc: Exception) -> SheetSchemaException:
    if _is_password_error(exc):
        return SheetSchemaException(
            code=ErrorCode.E_PARSE_PASSWORD,
            message=f"Workbook appears to be password-protected: {exc}",
            stage="read",
        )
    return SheetSchemaException(
        code=ErrorCode.E_PARSE_CORRUPT,
        message=f"Workbook could not be opened: {exc}",
        stage="read",
    )
