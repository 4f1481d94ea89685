"""Per-cell conversion with blank and error fallback policy.

:func:`convert_cell` applies a field's converter to one raw cell value:

1. blank cell with ``if_blank`` set -> ``if_blank``, converter never called;
2. blank cell of a primitive kind -> that kind's empty value;
3. otherwise the converter's result;
4. converter failure with ``if_error`` set -> ``if_error`` plus one
   ``cell_defaulted_due_to_error`` warning;
5. converter failure without ``if_error`` -> :class:`SheetSchemaException`.

Converters receive ``(value, context)`` and may write their own warnings to
``context.warnings`` without failing.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable

from ingestkit_sheets.dates import excel_datetime
from ingestkit_sheets.errors import ErrorCode, SheetSchemaException, WarningCode
from ingestkit_sheets.models import CellContext, FieldKind, FieldSpec
from ingestkit_sheets.values import CellValue, cell_text, is_blank

logger = logging.getLogger("ingestkit_sheets")

_TRUE_TOKENS = frozenset({"true", "yes", "y", "1"})
_FALSE_TOKENS = frozenset({"false", "no", "n", "0"})


# ---------------------------------------------------------------------------
# Primitive converters
# ---------------------------------------------------------------------------


def to_text(value: CellValue, context: CellContext | None = None) -> str:
    return cell_text(value)


def to_boolean(value: CellValue, context: CellContext | None = None) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        token = value.strip().lower()
        if token in _TRUE_TOKENS:
            return True
        if token in _FALSE_TOKENS:
            return False
    raise ValueError(f"Cannot convert {value!r} to a boolean")


def to_number(value: CellValue, context: CellContext | None = None) -> float:
    if value is None or isinstance(value, date):
        raise TypeError(f"Cannot convert {value!r} to a number")
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Cannot convert {value!r} to a number") from None


def to_integer(value: CellValue, context: CellContext | None = None) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f"Expected a whole number, got {value!r}")
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            return to_integer(float(text))
        except ValueError:
            raise ValueError(f"Cannot convert {value!r} to an integer") from None
    raise TypeError(f"Cannot convert {value!r} to an integer")


KIND_CONVERTERS: dict[FieldKind, Callable[[Any, Any], Any]] = {
    FieldKind.TEXT: to_text,
    FieldKind.BOOLEAN: to_boolean,
    FieldKind.NUMBER: to_number,
    FieldKind.INTEGER: to_integer,
    FieldKind.DATETIME: excel_datetime,
}

# Empty values returned for blank cells of primitive kinds.
BLANK_VALUES: dict[FieldKind, Any] = {
    FieldKind.TEXT: "",
    FieldKind.BOOLEAN: False,
    FieldKind.NUMBER: 0.0,
    FieldKind.INTEGER: 0,
}


def resolve_converter(field: FieldSpec) -> Callable[..., Any]:
    """Return the callable applied to non-blank cells of *field*."""
    if field.convert is not None:
        return field.convert
    return KIND_CONVERTERS[field.kind]  # type: ignore[index]


# ---------------------------------------------------------------------------
# Cell conversion
# ---------------------------------------------------------------------------


def convert_cell(
    value: CellValue,
    field: FieldSpec,
    context: CellContext,
    converter: Callable[..., Any] | None = None,
) -> Any:
    """Convert one raw cell value according to *field*.

    Parameters
    ----------
    value:
        The raw cell value (``None`` when the row is shorter than the
        bound column).
    field:
        The field specification carrying the fallback defaults.
    context:
        Reference string and shared warning sink for this cell.
    converter:
        Pre-resolved converter; resolved from *field* when omitted.

    Raises
    ------
    SheetSchemaException
        With ``E_SHEET_CELL_CONVERSION`` when the converter fails and the
        field has no ``if_error``.  The original exception is chained.
    """
    if is_blank(value):
        if field.has_blank_default:
            return field.if_blank
        if field.kind in BLANK_VALUES:
            return BLANK_VALUES[field.kind]

    if converter is None:
        converter = resolve_converter(field)

    try:
        return converter(value, context)
    except Exception as exc:
        message = str(exc) or type(exc).__name__
        if field.has_error_default:
            context.warnings.warn(
                message,
                code=WarningCode.CELL_DEFAULTED_DUE_TO_ERROR,
                reference=context.reference,
            )
            logger.debug(
                "ingestkit_sheets | ref=%s | code=%s | error_type=%s",
                context.reference,
                WarningCode.CELL_DEFAULTED_DUE_TO_ERROR.value,
                type(exc).__name__,
            )
            return field.if_error
        raise SheetSchemaException(
            code=ErrorCode.E_SHEET_CELL_CONVERSION,
            message=f"Cell {context.reference} could not be converted: {message}",
            sheet_name=context.sheet_name,
            reference=context.reference,
            stage="convert",
            recoverable=True,
        ) from exc
