"""Schema-driven record extraction over already-read workbook data.

For every configured sheet: select the worksheet by its matcher, trim
trailing blank rows, locate the header, bind columns, then walk the data
rows applying the blank-row policy and converting each cell.  Sheets are
independent: a failing sheet never prevents its siblings from being
extracted.  All sheets of one call share a single :class:`WarningSink`.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable

from ingestkit_sheets.config import (
    BlankRowPolicy,
    CellErrorPolicy,
    ExtractionOptions,
    WorkbookConfig,
)
from ingestkit_sheets.converters import convert_cell, resolve_converter
from ingestkit_sheets.errors import (
    ErrorCode,
    IngestError,
    SheetSchemaException,
    WarningCode,
    WorkbookExtractionException,
)
from ingestkit_sheets.header import bind_columns, locate_header
from ingestkit_sheets.matcher import first_match, resolve_matcher
from ingestkit_sheets.models import (
    CellContext,
    ExtractionResult,
    FieldSpec,
    HeaderRange,
    MatchPredicate,
    SheetSpec,
    WarningSink,
    WorkbookData,
)
from ingestkit_sheets.references import cell_reference, row_reference
from ingestkit_sheets.values import Grid, is_blank, row_text, trim_grid

logger = logging.getLogger("ingestkit_sheets")


class CompiledSheet:
    """A :class:`SheetSpec` with its matchers and converters resolved.

    Built once per configuration so that extracting many workbooks with the
    same schema never re-resolves matchers.
    """

    def __init__(self, key: str, spec: SheetSpec, options: ExtractionOptions) -> None:
        self.key = key
        self.fields: dict[str, FieldSpec] = spec.fields
        self.sheet_predicate: MatchPredicate = resolve_matcher(spec.match, key)
        self.header_range = spec.header_row or HeaderRange(
            min_index=options.header_min_index,
            max_index=options.header_max_index,
        )
        self.predicates: dict[str, MatchPredicate] = {
            field_key: resolve_matcher(field.match, field_key)
            for field_key, field in spec.fields.items()
        }
        self.converters: dict[str, Callable[..., Any]] = {
            field_key: resolve_converter(field) for field_key, field in spec.fields.items()
        }


def compile_sheets(config: WorkbookConfig) -> list[CompiledSheet]:
    return [CompiledSheet(key, spec, config.options) for key, spec in config.sheets.items()]


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


def extract_rows(
    grid: Grid,
    header_index: int,
    columns: dict[str, int],
    sheet: CompiledSheet,
    sheet_name: str,
    options: ExtractionOptions,
    warnings: WarningSink,
) -> list[dict[str, Any]]:
    """Build one record per retained data row below the header.

    Parameters
    ----------
    grid:
        The trimmed sheet grid.
    header_index:
        Index of the header row in *grid*.
    columns:
        Column index per field key, in schema order.
    sheet:
        The compiled sheet supplying field specs and converters.
    sheet_name:
        Worksheet name used in references.
    options:
        Blank-row and uncaught-cell-error policies.
    warnings:
        Shared warning sink.

    Returns
    -------
    list[dict[str, Any]]
        Records keyed by field key.

    Raises
    ------
    SheetSchemaException
        On a blank row under the ``throw`` policy, or on an unrecovered cell
        conversion failure under the ``throw`` cell error policy.
    """
    records: list[dict[str, Any]] = []

    for position, row in enumerate(grid[header_index + 1 :]):
        row_number = position + header_index + 2

        if all(is_blank(v) for v in row):
            reference = row_reference(sheet_name, row_number)
            if options.handle_blank_row is BlankRowPolicy.EXCLUDE_ROW:
                warnings.warn(
                    f"Row {row_number} is blank and was excluded from results",
                    code=WarningCode.ROW_EXCLUDED_DUE_TO_BLANKS,
                    reference=reference,
                )
                logger.warning(
                    "ingestkit_sheets | ref=%s | code=%s",
                    reference,
                    WarningCode.ROW_EXCLUDED_DUE_TO_BLANKS.value,
                )
                continue
            if options.handle_blank_row is BlankRowPolicy.TRUNCATE:
                warnings.warn(
                    f"Row {row_number} is blank, and results were truncated "
                    "starting from this row",
                    code=WarningCode.ROWS_TRUNCATED_DUE_TO_BLANKS,
                    reference=reference,
                )
                logger.warning(
                    "ingestkit_sheets | ref=%s | code=%s",
                    reference,
                    WarningCode.ROWS_TRUNCATED_DUE_TO_BLANKS.value,
                )
                break
            raise SheetSchemaException(
                code=ErrorCode.E_SHEET_BLANK_ROW,
                message=f"Row {row_number} is blank",
                sheet_key=sheet.key,
                sheet_name=sheet_name,
                reference=reference,
                stage="rows",
                recoverable=True,
            )

        try:
            record = {
                key: convert_cell(
                    row[column] if column < len(row) else None,
                    sheet.fields[key],
                    CellContext(
                        reference=cell_reference(sheet_name, column, row_number),
                        warnings=warnings,
                        sheet_name=sheet_name,
                        field_key=key,
                        row_number=row_number,
                        column_index=column,
                    ),
                    sheet.converters[key],
                )
                for key, column in columns.items()
            }
        except SheetSchemaException as exc:
            if (
                exc.code is not ErrorCode.E_SHEET_CELL_CONVERSION
                or options.handle_uncaught_cell_error is CellErrorPolicy.THROW
            ):
                raise
            reference = row_reference(sheet_name, row_number)
            warnings.warn(
                f"Row {row_number} was excluded from results: {exc.message}",
                code=WarningCode.ROW_EXCLUDED_DUE_TO_CELL_ERROR,
                reference=reference,
            )
            if options.log_sample_data:
                logger.warning(
                    "ingestkit_sheets | ref=%s | code=%s | detail=%s",
                    reference,
                    WarningCode.ROW_EXCLUDED_DUE_TO_CELL_ERROR.value,
                    exc.message,
                )
            else:
                logger.warning(
                    "ingestkit_sheets | ref=%s | code=%s | cell=%s",
                    reference,
                    WarningCode.ROW_EXCLUDED_DUE_TO_CELL_ERROR.value,
                    exc.reference,
                )
            continue

        records.append(record)

    return records


# ---------------------------------------------------------------------------
# Sheets
# ---------------------------------------------------------------------------


def _matcher_failure(sheet: CompiledSheet, stage: str, exc: Exception) -> SheetSchemaException:
    return SheetSchemaException(
        code=ErrorCode.E_SHEET_MATCHER,
        message=(
            f"Matcher for sheet {json.dumps(sheet.key)} failed during {stage}: "
            f"{str(exc) or type(exc).__name__}"
        ),
        sheet_key=sheet.key,
        stage=stage,
    )


def extract_sheet(
    workbook: WorkbookData,
    sheet: CompiledSheet,
    options: ExtractionOptions,
    warnings: WarningSink,
) -> list[dict[str, Any]]:
    """Extract the records of one configured sheet.

    Raises:
        SheetSchemaException: When no worksheet matches, a predicate matcher
            raises, the header cannot be located, or a row/cell failure is
            not recovered by policy.  The error always carries the sheet key.
    """
    sheet_name: str | None = None
    try:
        try:
            index = first_match(sheet.sheet_predicate, workbook.sheet_names)
        except Exception as exc:
            raise _matcher_failure(sheet, "select", exc) from exc
        if index == -1:
            raise SheetSchemaException(
                code=ErrorCode.E_SHEET_NOT_FOUND,
                message=f"No matching sheet found for {json.dumps(sheet.key)}",
                stage="select",
            )
        sheet_name = workbook.sheet_names[index]

        grid = trim_grid(workbook.grids.get(sheet_name, []))
        try:
            header_index = locate_header(
                grid,
                sheet.predicates,
                sheet.header_range.min_index,
                sheet.header_range.max_index,
                sheet.key,
            )
            columns = bind_columns(row_text(grid[header_index]), sheet.predicates, sheet.key)
        except SheetSchemaException:
            raise
        except Exception as exc:
            raise _matcher_failure(sheet, "header", exc) from exc
        records = extract_rows(
            grid, header_index, columns, sheet, sheet_name, options, warnings
        )
    except SheetSchemaException as exc:
        if exc.error.sheet_key is None:
            exc.error.sheet_key = sheet.key
        if exc.error.sheet_name is None:
            exc.error.sheet_name = sheet_name
        raise

    logger.info(
        "ingestkit_sheets | sheet=%s | name=%s | header_row=%d | records=%d",
        sheet.key,
        sheet_name,
        header_index,
        len(records),
    )
    return records


def extract_workbook(
    workbook: WorkbookData,
    config: WorkbookConfig,
    sheets: list[CompiledSheet] | None = None,
) -> ExtractionResult:
    """Extract every configured sheet of *workbook*.

    Parameters
    ----------
    workbook:
        Sheet names and grids from the workbook reader.
    config:
        Options and per-sheet schemas.
    sheets:
        Pre-compiled sheets; compiled from *config* when omitted.

    Returns
    -------
    ExtractionResult
        Records per sheet key in configuration order, the shared warning
        log, and (with ``raise_on_sheet_error=False``) one error per
        failed sheet.

    Raises
    ------
    WorkbookExtractionException
        After every sheet was attempted, if any failed and
        ``raise_on_sheet_error`` is set.  Chained from the first failure.
    """
    if sheets is None:
        sheets = compile_sheets(config)

    warnings = WarningSink()
    results: dict[str, list[dict[str, Any]]] = {}
    errors: list[IngestError] = []
    first_failure: SheetSchemaException | None = None

    for sheet in sheets:
        mark = len(warnings)
        try:
            results[sheet.key] = extract_sheet(workbook, sheet, config.options, warnings)
        except SheetSchemaException as exc:
            # Drop warnings recorded by the failed sheet
            warnings.rollback(mark)
            # Conversion messages may quote cell values
            if (
                config.options.log_sample_data
                or exc.code is not ErrorCode.E_SHEET_CELL_CONVERSION
            ):
                logger.error(
                    "ingestkit_sheets | sheet=%s | code=%s | detail=%s",
                    sheet.key,
                    exc.code.value,
                    exc.message,
                )
            else:
                logger.error(
                    "ingestkit_sheets | sheet=%s | code=%s | ref=%s",
                    sheet.key,
                    exc.code.value,
                    exc.reference,
                )
            errors.append(exc.error)
            if first_failure is None:
                first_failure = exc

    result = ExtractionResult(results=results, warnings=warnings.to_list(), errors=errors)

    if errors and config.options.raise_on_sheet_error:
        raise WorkbookExtractionException(errors, result) from first_failure

    return result
