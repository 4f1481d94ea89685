"""Excel serial date decoding.

Excel stores datetimes as the number of days since its epoch, with the
fractional part giving the time of day.  The values carry no time zone, so
:func:`excel_datetime` returns naive datetimes; attach a zone with
``dt.replace(tzinfo=...)`` when the source zone is known.
"""

from __future__ import annotations

import json
from datetime import date, datetime, time
from typing import Any

from openpyxl.utils.datetime import from_excel


def excel_datetime(value: Any, context: Any = None) -> datetime:
    """Convert an Excel serial number to a naive :class:`datetime`.

    Accepts the ``(value, context)`` converter signature so it can be used
    directly as a field converter.  Readers that already decoded a
    date-formatted cell hand over a ``datetime`` (or ``date``), which is
    passed through.

    Raises:
        TypeError: If *value* is not a number, date or datetime.

    Example::

        >>> excel_datetime(45247.5)
        datetime.datetime(2023, 11, 17, 12, 0)
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time())
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(
            f"Cannot convert {json.dumps(value, default=str)} to a datetime: expected number"
        )
    result = from_excel(value)
    if isinstance(result, datetime):
        return result
    # from_excel returns a bare time for values below one day
    return datetime.combine(date(1899, 12, 30), result)
