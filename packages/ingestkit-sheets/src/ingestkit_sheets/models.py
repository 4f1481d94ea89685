"""Pydantic data models and enumerations for ingestkit-sheets.

Defines the schema vocabulary (matchers, field and sheet specs), the warning
channel threaded through every converter call, the context handed to
converters, the reader output, and the final extraction result.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any, Callable, Iterator

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)

from ingestkit_sheets.dates import excel_datetime
from ingestkit_sheets.errors import IngestError

MatchPredicate = Callable[[str, int, list[str]], bool]

# Converters that can be referenced by name from configuration files.
NAMED_CONVERTERS: dict[str, Callable[..., Any]] = {
    "excel_datetime": excel_datetime,
}


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class MatcherKind(str, Enum):
    """How a matcher compares a candidate string."""

    EXACT = "exact"
    PATTERN = "pattern"
    PREDICATE = "predicate"


class FieldKind(str, Enum):
    """What a field converts to.

    The primitive kinds (``text``, ``boolean``, ``number``, ``integer``)
    map a blank cell to their empty value without calling any converter.
    ``datetime`` decodes Excel serial numbers; ``custom`` requires an
    explicit ``convert`` callable.
    """

    TEXT = "text"
    BOOLEAN = "boolean"
    NUMBER = "number"
    INTEGER = "integer"
    DATETIME = "datetime"
    CUSTOM = "custom"


# ---------------------------------------------------------------------------
# Matchers
# ---------------------------------------------------------------------------


class Matcher(BaseModel):
    """Identifies a header cell or a sheet name.

    Build one with :meth:`exact`, :meth:`pattern` or :meth:`predicate`, or
    let :meth:`coerce` pick the kind from a plain ``str``, compiled
    ``re.Pattern`` or callable.  Mappings such as
    ``{"pattern": "due", "ignore_case": true}`` are accepted for
    file-based configuration.
    """

    model_config = ConfigDict(frozen=True)

    kind: MatcherKind
    text: str | None = None
    pattern: re.Pattern[str] | None = None
    predicate: Callable[[str, int, list[str]], Any] | None = None

    @model_validator(mode="before")
    @classmethod
    def _infer_kind(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        ignore_case = data.pop("ignore_case", False)
        if "kind" not in data:
            if data.get("pattern") is not None:
                data["kind"] = MatcherKind.PATTERN
            elif data.get("predicate") is not None:
                data["kind"] = MatcherKind.PREDICATE
            else:
                data["kind"] = MatcherKind.EXACT
        if isinstance(data.get("pattern"), str):
            data["pattern"] = re.compile(data["pattern"], re.IGNORECASE if ignore_case else 0)
        return data

    @model_validator(mode="after")
    def _check_payload(self) -> Matcher:
        required = {
            MatcherKind.EXACT: self.text,
            MatcherKind.PATTERN: self.pattern,
            MatcherKind.PREDICATE: self.predicate,
        }[self.kind]
        if required is None:
            raise ValueError(f"{self.kind.value} matcher is missing its {self.kind.value} value")
        return self

    @classmethod
    def exact(cls, text: str) -> Matcher:
        return cls(kind=MatcherKind.EXACT, text=text)

    @classmethod
    def regex(cls, pattern: str | re.Pattern[str], ignore_case: bool = False) -> Matcher:
        if isinstance(pattern, str):
            pattern = re.compile(pattern, re.IGNORECASE if ignore_case else 0)
        return cls(kind=MatcherKind.PATTERN, pattern=pattern)

    @classmethod
    def function(cls, predicate: Callable[[str, int, list[str]], Any]) -> Matcher:
        return cls(kind=MatcherKind.PREDICATE, predicate=predicate)

    @classmethod
    def coerce(cls, spec: Any) -> Any:
        """Turn a loose matcher specification into a :class:`Matcher`.

        ``None`` and mappings are returned unchanged (``None`` means "match
        the key", mappings are validated by pydantic).
        """
        if spec is None or isinstance(spec, (Matcher, dict)):
            return spec
        if isinstance(spec, str):
            return cls.exact(spec)
        if isinstance(spec, re.Pattern):
            return cls.regex(spec)
        if callable(spec):
            return cls.function(spec)
        raise TypeError(f"Unsupported matcher specification: {spec!r}")


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class FieldSpec(BaseModel):
    """How one output field is found and converted.

    ``if_blank`` and ``if_error`` only apply when explicitly set -- an
    explicit ``None`` is a valid default -- which is tracked through
    pydantic's ``model_fields_set``.
    """

    match: Matcher | None = None
    kind: FieldKind | None = None
    convert: Callable[..., Any] | None = None
    if_blank: Any = None
    if_error: Any = None

    @field_validator("match", mode="before")
    @classmethod
    def _coerce_match(cls, value: Any) -> Any:
        return Matcher.coerce(value)

    @field_validator("convert", mode="before")
    @classmethod
    def _resolve_named_converter(cls, value: Any, info: ValidationInfo) -> Any:
        if not isinstance(value, str):
            return value
        registry = dict(NAMED_CONVERTERS)
        if info.context:
            registry.update(info.context.get("converters", {}))
        if value not in registry:
            raise ValueError(f"Unknown converter {value!r}; known converters: {sorted(registry)}")
        return registry[value]

    @model_validator(mode="after")
    def _default_kind(self) -> FieldSpec:
        if self.kind is None:
            self.kind = FieldKind.CUSTOM if self.convert is not None else FieldKind.TEXT
        elif self.kind is FieldKind.CUSTOM and self.convert is None:
            raise ValueError("custom fields require a convert callable")
        return self

    @property
    def has_blank_default(self) -> bool:
        return "if_blank" in self.model_fields_set

    @property
    def has_error_default(self) -> bool:
        return "if_error" in self.model_fields_set


class HeaderRange(BaseModel):
    """Rows searched for the header: ``min_index`` inclusive, ``max_index`` exclusive."""

    min_index: int = Field(default=0, ge=0)
    max_index: int = Field(default=100, ge=0)


class SheetSpec(BaseModel):
    """Selects one worksheet and describes the records it holds.

    Field order in ``fields`` (given as ``schema``) is the order of keys in
    every emitted record.
    """

    model_config = ConfigDict(populate_by_name=True)

    match: Matcher | None = None
    header_row: HeaderRange | None = None
    fields: dict[str, FieldSpec] = Field(alias="schema")

    @field_validator("match", mode="before")
    @classmethod
    def _coerce_match(cls, value: Any) -> Any:
        return Matcher.coerce(value)


# ---------------------------------------------------------------------------
# Warnings
# ---------------------------------------------------------------------------


class ExtractionWarning(BaseModel):
    """A recoverable event recorded during extraction."""

    reference: str | None = None
    code: str | None = None
    message: str


class WarningSink:
    """Warning log shared by every converter in one extraction call."""

    def __init__(self) -> None:
        self._warnings: list[ExtractionWarning] = []

    def warn(
        self,
        message: str,
        *,
        code: str | Enum | None = None,
        reference: str | None = None,
    ) -> ExtractionWarning:
        if isinstance(code, Enum):
            code = code.value
        warning = ExtractionWarning(reference=reference, code=code, message=message)
        self._warnings.append(warning)
        return warning

    def rollback(self, mark: int) -> None:
        """Discard every warning recorded after the first *mark* entries."""
        del self._warnings[mark:]

    def to_list(self) -> list[ExtractionWarning]:
        return list(self._warnings)

    def __iter__(self) -> Iterator[ExtractionWarning]:
        return iter(self._warnings)

    def __len__(self) -> int:
        return len(self._warnings)

    def __repr__(self) -> str:
        return f"WarningSink({len(self._warnings)} warnings)"


class CellContext(BaseModel):
    """Passed to every converter alongside the raw cell value."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    reference: str
    warnings: WarningSink
    sheet_name: str
    field_key: str
    row_number: int
    column_index: int


# ---------------------------------------------------------------------------
# Reader output / result
# ---------------------------------------------------------------------------


class WorkbookData(BaseModel):
    """Sheet names and their raw grids, as produced by the workbook reader."""

    sheet_names: list[str]
    grids: dict[str, list[list[Any]]]

    @classmethod
    def from_grids(cls, grids: dict[str, list[list[Any]]]) -> WorkbookData:
        return cls(sheet_names=list(grids), grids=grids)


class ExtractionResult(BaseModel):
    """Records per sheet key plus the shared warning log."""

    results: dict[str, list[dict[str, Any]]] = {}
    warnings: list[ExtractionWarning] = []
    errors: list[IngestError] = []
