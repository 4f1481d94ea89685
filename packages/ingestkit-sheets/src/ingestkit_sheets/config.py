"""Configuration models for the ingestkit-sheets extractor.

Provides ``ExtractionOptions`` (row/cell failure policies and header search
defaults), ``ReadOptions`` (how binaries are opened) and ``WorkbookConfig``,
which ties them to the per-sheet schemas.  ``WorkbookConfig.from_file()``
loads a declarative configuration from YAML or JSON.
"""

from __future__ import annotations

import json
import pathlib
from enum import Enum
from typing import Any, Callable

from pydantic import BaseModel, Field

from ingestkit_sheets.models import SheetSpec


class BlankRowPolicy(str, Enum):
    """What to do with a data row in which every cell is blank."""

    THROW = "throw"
    EXCLUDE_ROW = "excludeRow"
    TRUNCATE = "truncate"


class CellErrorPolicy(str, Enum):
    """What to do when a converter fails on a field without ``if_error``."""

    THROW = "throw"
    EXCLUDE_ROW = "excludeRow"


class ExtractionOptions(BaseModel):
    """All tunable extraction parameters with sensible defaults."""

    # --- Failure policies ---
    handle_blank_row: BlankRowPolicy = BlankRowPolicy.THROW
    handle_uncaught_cell_error: CellErrorPolicy = CellErrorPolicy.THROW
    raise_on_sheet_error: bool = True

    # --- Header search (used when a sheet sets no header_row) ---
    header_min_index: int = Field(default=0, ge=0)
    header_max_index: int = Field(default=100, ge=0)

    # --- Logging / PII safety ---
    log_sample_data: bool = False


class ReadOptions(BaseModel):
    """Options passed through to the workbook reader.

    The defaults open ``.xlsx`` files in openpyxl's read-only streaming
    mode with cached formula results instead of formulas.
    """

    read_only: bool = True
    data_only: bool = True
    keep_links: bool = False

    # --- Security / Resource Limits ---
    max_file_size_mb: int = 100


class WorkbookConfig(BaseModel):
    """Options plus the schema of every sheet to extract.

    Sheet order in ``sheets`` is the order of keys in
    :attr:`ExtractionResult.results`.
    """

    options: ExtractionOptions = ExtractionOptions()
    read_options: ReadOptions = ReadOptions()
    sheets: dict[str, SheetSpec]

    @classmethod
    def from_file(
        cls,
        path: str,
        converters: dict[str, Callable[..., Any]] | None = None,
    ) -> WorkbookConfig:
        """Load a workbook configuration from a YAML or JSON file.

        File format is detected by extension: ``.yaml`` / ``.yml`` for YAML,
        ``.json`` for JSON.  Fields name their converter either through
        ``kind`` or through ``convert``, which must be a registered
        converter name (``excel_datetime``) or a key of *converters*.

        Args:
            path: Filesystem path to the configuration file.
            converters: Extra named converters, keyed by the name used in
                the file.

        Returns:
            A validated ``WorkbookConfig`` instance.

        Raises:
            FileNotFoundError: If *path* does not exist.
            ValueError: If the file extension is not recognized.
            ImportError: If a YAML file is provided but ``pyyaml`` is not
                installed.
        """
        file_path = pathlib.Path(path)
        if not file_path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        suffix = file_path.suffix.lower()

        if suffix in (".yaml", ".yml"):
            try:
                import yaml  # type: ignore[import-untyped]
            except ImportError as exc:
                raise ImportError(
                    "pyyaml is required to load YAML config files. "
                    "Install it with: pip install pyyaml"
                ) from exc
            with open(file_path) as fh:
                data = yaml.safe_load(fh)
        elif suffix == ".json":
            with open(file_path) as fh:
                data = json.load(fh)
        else:
            raise ValueError(
                f"Unsupported config file extension '{suffix}'. "
                "Use .yaml, .yml, or .json."
            )

        if data is None:
            data = {}

        return cls.model_validate(data, context={"converters": converters or {}})
