"""SheetSchemaExtractor -- public API for schema-driven workbook extraction.

Routes a workbook binary through the pipeline:

1. Read sheet names and grids via :func:`read_workbook`.
2. Extract every configured sheet via :func:`extract_workbook`.
3. Return the :class:`ExtractionResult` (records plus warning log).

:func:`sheet_to_schema` offers the two call shapes: configuration first,
returning a reusable function of the binary, or binary and configuration
together, returning the result directly.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Mapping, Union, overload

from ingestkit_sheets.config import WorkbookConfig
from ingestkit_sheets.extractor import compile_sheets, extract_workbook
from ingestkit_sheets.models import ExtractionResult
from ingestkit_sheets.reader import WorkbookSource, read_workbook

logger = logging.getLogger("ingestkit_sheets")

_SUPPORTED_EXTENSIONS = (".xlsx", ".xlsm", ".xls")

ConfigLike = Union[WorkbookConfig, Mapping[str, Any]]


def _coerce_config(config: ConfigLike) -> WorkbookConfig:
    if isinstance(config, WorkbookConfig):
        return config
    return WorkbookConfig.model_validate(config)


class SheetSchemaExtractor:
    """Reusable extractor bound to one workbook configuration.

    Matchers and converters are resolved once, in the constructor, and
    reused for every workbook passed to :meth:`extract`.

    Parameters
    ----------
    config:
        A :class:`WorkbookConfig`, or a mapping validated into one.
    """

    def __init__(self, config: ConfigLike) -> None:
        self._config = _coerce_config(config)
        self._sheets = compile_sheets(self._config)

    @property
    def config(self) -> WorkbookConfig:
        return self._config

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def can_handle(self, file_path: str) -> bool:
        """Return True if *file_path* has a spreadsheet extension (case-insensitive)."""
        return file_path.lower().endswith(_SUPPORTED_EXTENSIONS)

    def extract(self, source: WorkbookSource) -> ExtractionResult:
        """Read *source* and extract every configured sheet.

        Raises:
            SheetSchemaException: If the workbook cannot be read.
            WorkbookExtractionException: If any sheet fails and
                ``raise_on_sheet_error`` is set.
        """
        start = time.monotonic()
        workbook = read_workbook(source, self._config.read_options)
        result = extract_workbook(workbook, self._config, self._sheets)
        logger.info(
            "ingestkit_sheets | sheets=%d | records=%d | warnings=%d | errors=%d | elapsed=%.3fs",
            len(result.results),
            sum(len(records) for records in result.results.values()),
            len(result.warnings),
            len(result.errors),
            time.monotonic() - start,
        )
        return result

    __call__ = extract


@overload
def sheet_to_schema(config: ConfigLike, /) -> Callable[[WorkbookSource], ExtractionResult]: ...


@overload
def sheet_to_schema(source: WorkbookSource, config: ConfigLike, /) -> ExtractionResult: ...


def sheet_to_schema(*args: Any) -> Any:
    """Extract typed records from a workbook according to a schema.

    ``sheet_to_schema(config)`` returns a function of the workbook binary,
    so one schema can be applied to many workbooks.
    ``sheet_to_schema(source, config)`` extracts immediately.

    Raises:
        TypeError: When called with any other number of arguments.
    """
    if len(args) == 1:
        return SheetSchemaExtractor(args[0])
    if len(args) == 2:
        source, config = args
        return SheetSchemaExtractor(config).extract(source)
    raise TypeError(f"Wrong number of arguments: {len(args)}")
