"""Tests for ingestkit_sheets.reader."""

from __future__ import annotations

from datetime import datetime
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from ingestkit_sheets.config import ReadOptions
from ingestkit_sheets.errors import ErrorCode, SheetSchemaException
from ingestkit_sheets.reader import read_workbook


# xlrd cell type constants
XL_CELL_EMPTY = 0
XL_CELL_TEXT = 1
XL_CELL_NUMBER = 2
XL_CELL_DATE = 3
XL_CELL_BOOLEAN = 4
XL_CELL_ERROR = 5
XL_CELL_BLANK = 6


def _make_cell(ctype: int, value):
    """Create a mock xlrd cell."""
    return SimpleNamespace(ctype=ctype, value=value)


def _make_sheet(name: str, rows: list[list]):
    """Create a mock xlrd sheet from rows of (ctype, value) tuples."""
    sheet = MagicMock()
    sheet.name = name
    sheet.nrows = len(rows)
    sheet.ncols = len(rows[0]) if rows else 0

    def cell_func(row_idx, col_idx):
        ctype, value = rows[row_idx][col_idx]
        return _make_cell(ctype, value)

    sheet.cell = cell_func
    return sheet


def _make_workbook(sheets: list, datemode: int = 0):
    """Create a mock xlrd workbook."""
    wb = MagicMock()
    wb.sheets.return_value = sheets
    wb.datemode = datemode
    return wb


def _configure_xlrd(mock_xlrd: MagicMock) -> None:
    mock_xlrd.XL_CELL_EMPTY = XL_CELL_EMPTY
    mock_xlrd.XL_CELL_TEXT = XL_CELL_TEXT
    mock_xlrd.XL_CELL_NUMBER = XL_CELL_NUMBER
    mock_xlrd.XL_CELL_DATE = XL_CELL_DATE
    mock_xlrd.XL_CELL_BOOLEAN = XL_CELL_BOOLEAN
    mock_xlrd.XL_CELL_ERROR = XL_CELL_ERROR
    mock_xlrd.XL_CELL_BLANK = XL_CELL_BLANK
    mock_xlrd.error_text_from_code = {0x07: "#DIV/0!"}


# OLE2 magic bytes used by .xls files
XLS_DATA = b"\xd0\xcf\x11\xe0\xa1\xb1\x1a\xe1" + b"\x00" * 64


class TestReadXlsx:
    """.xlsx binaries read through openpyxl."""

    def test_sheet_names_and_grids(self, make_xlsx):
        data = make_xlsx(
            {
                "Orders": [["ID", "Name"], [1, "Ann"], [2.5, None]],
                "Notes": [["hello"]],
            }
        )

        workbook = read_workbook(data)

        assert workbook.sheet_names == ["Orders", "Notes"]
        assert workbook.grids["Orders"] == [["ID", "Name"], [1, "Ann"], [2.5, None]]
        assert workbook.grids["Notes"] == [["hello"]]

    def test_booleans_and_dates(self, make_xlsx):
        data = make_xlsx({"Sheet": [["Done", "Due"], [True, datetime(2023, 11, 17, 12, 0)]]})

        workbook = read_workbook(data)

        assert workbook.grids["Sheet"][1] == [True, datetime(2023, 11, 17, 12, 0)]

    def test_gap_rows_are_padded(self, make_xlsx):
        data = make_xlsx({"Sheet": [["ID", "Name"], [], [3, "Cal"]]})

        grid = read_workbook(data).grids["Sheet"]

        assert len(grid) == 3
        assert all(v is None for v in grid[1])

    def test_path_source(self, make_xlsx, tmp_path):
        path = tmp_path / "book.xlsx"
        path.write_bytes(make_xlsx({"Sheet": [["ID"], [1]]}))

        assert read_workbook(str(path)).grids["Sheet"] == [["ID"], [1]]
        assert read_workbook(path).sheet_names == ["Sheet"]

    def test_bytearray_source(self, make_xlsx):
        data = bytearray(make_xlsx({"Sheet": [["ID"]]}))
        assert read_workbook(data).sheet_names == ["Sheet"]

    def test_read_options_passed_to_openpyxl(self):
        with patch("ingestkit_sheets.reader.openpyxl") as mock_openpyxl:
            wb = MagicMock()
            wb.worksheets = []
            mock_openpyxl.load_workbook.return_value = wb

            read_workbook(b"PK\x03\x04", ReadOptions(read_only=False, data_only=False))

        kwargs = mock_openpyxl.load_workbook.call_args.kwargs
        assert kwargs["read_only"] is False
        assert kwargs["data_only"] is False
        assert kwargs["keep_links"] is False
        wb.close.assert_called_once()


class TestReadFailures:
    def test_empty_input(self):
        with pytest.raises(SheetSchemaException) as exc_info:
            read_workbook(b"")
        assert exc_info.value.code is ErrorCode.E_PARSE_EMPTY

    def test_too_large(self):
        with pytest.raises(SheetSchemaException) as exc_info:
            read_workbook(b"x" * 10, ReadOptions(max_file_size_mb=0))
        assert exc_info.value.code is ErrorCode.E_SECURITY_TOO_LARGE

    def test_corrupt_input(self):
        with pytest.raises(SheetSchemaException) as exc_info:
            read_workbook(b"this is not a workbook")
        assert exc_info.value.code is ErrorCode.E_PARSE_CORRUPT
        assert exc_info.value.stage == "read"
        assert exc_info.value.__cause__ is not None

    def test_password_protected(self):
        with patch("ingestkit_sheets.reader.openpyxl") as mock_openpyxl:
            mock_openpyxl.load_workbook.side_effect = Exception("File is password-protected")
            with pytest.raises(SheetSchemaException) as exc_info:
                read_workbook(b"PK\x03\x04")
        assert exc_info.value.code is ErrorCode.E_PARSE_PASSWORD

    def test_missing_path(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_workbook(tmp_path / "missing.xlsx")


class TestReadXls:
    """.xls binaries (OLE2) read through mocked xlrd."""

    def test_cell_types(self):
        due = datetime(2024, 3, 1, 9, 30)
        sheet = _make_sheet(
            "Legacy",
            [
                [(XL_CELL_TEXT, "ID"), (XL_CELL_TEXT, "Score"), (XL_CELL_TEXT, "Due")],
                [(XL_CELL_NUMBER, 30.0), (XL_CELL_NUMBER, 2.5), (XL_CELL_DATE, 45352.4)],
                [(XL_CELL_BOOLEAN, 1), (XL_CELL_ERROR, 0x07), (XL_CELL_EMPTY, "")],
                [(XL_CELL_BLANK, ""), (XL_CELL_ERROR, 0x2A), (XL_CELL_TEXT, "x")],
            ],
        )

        with patch("ingestkit_sheets.reader.xlrd") as mock_xlrd:
            _configure_xlrd(mock_xlrd)
            mock_xlrd.open_workbook.return_value = _make_workbook([sheet])
            mock_xlrd.xldate_as_datetime.return_value = due

            workbook = read_workbook(XLS_DATA)

        assert workbook.sheet_names == ["Legacy"]
        assert workbook.grids["Legacy"] == [
            ["ID", "Score", "Due"],
            [30, 2.5, due],
            [True, "#DIV/0!", None],
            [None, "#ERROR", "x"],
        ]
        mock_xlrd.open_workbook.assert_called_once_with(file_contents=XLS_DATA)

    def test_bad_date_keeps_serial(self):
        sheet = _make_sheet("S", [[(XL_CELL_DATE, -1.0)]])

        with patch("ingestkit_sheets.reader.xlrd") as mock_xlrd:
            _configure_xlrd(mock_xlrd)
            mock_xlrd.open_workbook.return_value = _make_workbook([sheet])
            mock_xlrd.xldate_as_datetime.side_effect = ValueError("negative date")

            workbook = read_workbook(XLS_DATA)

        assert workbook.grids["S"] == [[-1.0]]

    def test_xlrd_unavailable(self):
        with patch("ingestkit_sheets.reader.xlrd", None):
            with pytest.raises(SheetSchemaException) as exc_info:
                read_workbook(XLS_DATA)
        assert exc_info.value.code is ErrorCode.E_SHEETS_XLRD_UNAVAILABLE

    def test_corrupt_xls(self):
        with patch("ingestkit_sheets.reader.xlrd") as mock_xlrd:
            _configure_xlrd(mock_xlrd)
            mock_xlrd.open_workbook.side_effect = Exception("Unsupported format")
            with pytest.raises(SheetSchemaException) as exc_info:
                read_workbook(XLS_DATA)
        assert exc_info.value.code is ErrorCode.E_PARSE_CORRUPT

    def test_encrypted_xls(self):
        with patch("ingestkit_sheets.reader.xlrd") as mock_xlrd:
            _configure_xlrd(mock_xlrd)
            mock_xlrd.open_workbook.side_effect = Exception("Workbook is encrypted")
            with pytest.raises(SheetSchemaException) as exc_info:
                read_workbook(XLS_DATA)
        assert exc_info.value.code is ErrorCode.E_PARSE_PASSWORD
