"""Shared test fixtures for ingestkit-sheets tests."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any

import openpyxl
import pytest

from ingestkit_sheets.config import ExtractionOptions, ReadOptions
from ingestkit_sheets.models import CellContext, WarningSink


@pytest.fixture
def default_options() -> ExtractionOptions:
    """Return a default ExtractionOptions."""
    return ExtractionOptions()


@pytest.fixture
def default_read_options() -> ReadOptions:
    """Return a default ReadOptions."""
    return ReadOptions()


@pytest.fixture
def sink() -> WarningSink:
    return WarningSink()


@pytest.fixture
def make_context(sink: WarningSink):
    """Factory fixture building a CellContext bound to the shared ``sink``."""

    def _make(reference: str = "'Sheet'!B5", field_key: str = "value") -> CellContext:
        return CellContext(
            reference=reference,
            warnings=sink,
            sheet_name="Sheet",
            field_key=field_key,
            row_number=5,
            column_index=1,
        )

    return _make


@pytest.fixture
def make_xlsx():
    """Factory fixture returning .xlsx bytes built with openpyxl.

    Sheets are created in the order of the mapping; each row is appended
    as-is, so ``None`` leaves a cell empty.
    """

    def _make(sheets: dict[str, list[list[Any]]]) -> bytes:
        wb = openpyxl.Workbook()
        wb.remove(wb.active)
        for name, rows in sheets.items():
            ws = wb.create_sheet(title=name)
            for row in rows:
                ws.append(row)
        buffer = io.BytesIO()
        wb.save(buffer)
        return buffer.getvalue()

    return _make


@pytest.fixture
def tmp_config_file(tmp_path: Path):
    """Factory fixture to write text content to a config file and return the path."""

    def _write(content: str, filename: str = "schema.yaml") -> str:
        file_path = tmp_path / filename
        file_path.write_text(content)
        return str(file_path)

    return _write
