"""Header row search and column binding.

The header row is the earliest row, within a bounded search range, in which
every field matcher is satisfied by at least one cell.  Decorative or
partially matching rows above the real header are skipped; when no row
matches every field, the error names the fields missing from the best
partial match so the schema (or the sheet) can be fixed.
"""

from __future__ import annotations

import json
import logging

from ingestkit_sheets.errors import ErrorCode, SheetSchemaException
from ingestkit_sheets.matcher import first_match
from ingestkit_sheets.models import MatchPredicate
from ingestkit_sheets.values import Grid, row_text

logger = logging.getLogger("ingestkit_sheets")


def format_list(items: list[str]) -> str:
    """Join *items* as an English list: ``a``, ``a and b``, ``a, b, and c``."""
    if len(items) <= 1:
        return "".join(items)
    if len(items) == 2:
        return f"{items[0]} and {items[1]}"
    return ", ".join(items[:-1]) + f", and {items[-1]}"


def locate_header(
    grid: Grid,
    fields: dict[str, MatchPredicate],
    min_index: int,
    max_index: int,
    sheet_key: str,
) -> int:
    """Find the header row of a trimmed grid.

    Args:
        grid: The trimmed sheet grid.
        fields: Resolved matcher per field key, in schema order.
        min_index: First row index searched (inclusive).
        max_index: Last row index searched (exclusive).
        sheet_key: Sheet key used in the error message.

    Returns:
        The absolute index of the earliest row satisfying every field.

    Raises:
        SheetSchemaException: ``E_SHEET_HEADER_NOT_FOUND`` when no row in
            range matches every field.
    """
    best_count = 0
    best_keys: list[str] = []

    for index in range(min_index, min(max_index, len(grid))):
        texts = row_text(grid[index])
        found = [
            key for key, predicate in fields.items() if first_match(predicate, texts) != -1
        ]

        if len(found) > best_count:
            best_count = len(found)
            best_keys = found

        if len(found) == len(fields):
            logger.debug(
                "ingestkit_sheets | sheet=%s | header_row=%d", sheet_key, index
            )
            return index

    missing = [key for key in fields if key not in best_keys]
    raise SheetSchemaException(
        code=ErrorCode.E_SHEET_HEADER_NOT_FOUND,
        message=(
            f"Headers {format_list([json.dumps(k) for k in missing])} "
            f"missing for sheet {json.dumps(sheet_key)}"
        ),
        sheet_key=sheet_key,
        stage="header",
    )


def bind_columns(
    header_row: list[str],
    fields: dict[str, MatchPredicate],
    sheet_key: str,
) -> dict[str, int]:
    """Map every field key to the first header column its matcher accepts.

    The header locator guarantees each field has a matching column; a field
    without one is an internal error rather than a silent ``-1`` binding.
    """
    columns: dict[str, int] = {}
    for key, predicate in fields.items():
        index = first_match(predicate, header_row)
        if index == -1:
            raise SheetSchemaException(
                code=ErrorCode.E_SHEET_COLUMN_UNBOUND,
                message=f"Header {json.dumps(key)} has no column in sheet {json.dumps(sheet_key)}",
                sheet_key=sheet_key,
                stage="header",
            )
        columns[key] = index
    return columns
