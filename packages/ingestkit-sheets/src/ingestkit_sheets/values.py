"""Cell value classification and grid trimming.

A cell is *blank* when it is absent (``None``), the empty string, or a
numeric zero.  The same definition is used for header detection, blank-row
detection and blank-default dispatch, so it lives in exactly one place.
"""

from __future__ import annotations

from datetime import datetime
from typing import Union

CellValue = Union[str, int, float, bool, datetime, None]
Row = list[CellValue]
Grid = list[Row]


def is_blank(value: CellValue) -> bool:
    """Return True if *value* is ``None``, ``""`` or numeric zero.

    ``False`` is not blank: booleans are not numbers here even though
    ``False == 0`` in Python.
    """
    if value is None or value == "":
        return True
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float)) and value == 0


def is_contentful(value: CellValue) -> bool:
    return not is_blank(value)


def cell_text(value: CellValue) -> str:
    """Stringify a cell for comparison against header matchers."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    # Strip .0 from float values that are integers
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def row_text(row: Row) -> list[str]:
    return [cell_text(v) for v in row]


def trim_grid(grid: Grid) -> Grid:
    """Drop trailing rows that contain no contentful cell.

    Returns the rows up to and including the last row holding at least one
    contentful cell.  A grid without any contentful cell trims to ``[]``.
    """
    last = -1
    for index, row in enumerate(grid):
        if any(is_contentful(v) for v in row):
            last = index
    return grid[: last + 1]
