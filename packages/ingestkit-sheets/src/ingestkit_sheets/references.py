"""Spreadsheet-style references used in warnings and errors.

References follow the A1 notation consumers already match on, e.g.
``'Orders'!B5`` for a cell and ``'Orders'!5:5`` for a whole row.
"""

from __future__ import annotations

from string import ascii_uppercase


def _divmod_excel(n: int) -> tuple[int, int]:
    # Bijective base 26 has no zero digit: a remainder of 0 is a 'Z'
    # borrowed from the quotient.
    quotient, remainder = divmod(n, 26)
    if remainder == 0:
        return quotient - 1, 26
    return quotient, remainder


def column_letter(n: int) -> str:
    """Convert a 1-based column number to its letters (1 -> A, 27 -> AA)."""
    if n < 1:
        raise ValueError(f"Column number must be >= 1, got {n}")
    letters: list[str] = []
    while n > 0:
        n, digit = _divmod_excel(n)
        letters.append(ascii_uppercase[digit - 1])
    return "".join(reversed(letters))


def quote_sheet_name(sheet_name: str) -> str:
    """Wrap *sheet_name* in single quotes, doubling embedded quotes."""
    return "'" + sheet_name.replace("'", "''") + "'"


def cell_reference(sheet_name: str, column_index: int, row_number: int) -> str:
    """Reference a single cell.

    Args:
        sheet_name: Name of the worksheet.
        column_index: 0-based column index in the grid.
        row_number: 1-based spreadsheet row number.
    """
    return f"{quote_sheet_name(sheet_name)}!{column_letter(column_index + 1)}{row_number}"


def row_reference(sheet_name: str, row_number: int) -> str:
    """Reference a whole 1-based spreadsheet row."""
    return f"{quote_sheet_name(sheet_name)}!{row_number}:{row_number}"
