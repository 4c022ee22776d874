"""Data contracts for mdpipe.

Frozen dataclasses that flow between the pipeline components:
  text → Document → (stages) → str | CompiledResult

Every fallible operation returns a :data:`Result`: either ``Ok(value)`` or
``Err(error)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Generic, Literal, TypeAlias, TypeVar, Union

__all__ = [
    "PARAMETER_TYPES",
    "CompiledResult",
    "Diagnostic",
    "Document",
    "Err",
    "InteractivePayload",
    "JSONValue",
    "KnownConfigFields",
    "Metadata",
    "Ok",
    "ParameterDefinition",
    "ParameterType",
    "ParsedDocument",
    "Result",
]

_T = TypeVar("_T")
_E = TypeVar("_E", bound=BaseException)

JSONValue: TypeAlias = Union[
    None, bool, int, float, str, list["JSONValue"], dict[str, "JSONValue"]
]
Metadata: TypeAlias = dict[str, Any]

ParameterType = Literal["string", "number", "boolean", "array", "object"]
PARAMETER_TYPES: frozenset[str] = frozenset({"string", "number", "boolean", "array", "object"})


# ── Result ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Ok(Generic[_T]):
    """Successful outcome carrying a value."""

    value: _T

    @property
    def ok(self) -> bool:
        return True

    @property
    def error(self) -> None:
        return None

    def unwrap(self) -> _T:
        return self.value


@dataclass(frozen=True)
class Err(Generic[_E]):
    """Failed outcome carrying the error instead of raising it."""

    error: _E

    @property
    def ok(self) -> bool:
        return False

    @property
    def value(self) -> None:
        return None

    def unwrap(self) -> Any:
        """Raise the carried error."""
        raise self.error


Result: TypeAlias = Union[Ok[_T], Err[_E]]


# ── Documents ───────────────────────────────────────────────────────


@dataclass(frozen=True)
class Document:
    """A document split into its front-matter metadata and body.

    ``full_text`` is the raw input exactly as supplied.
    """

    full_text: str
    metadata: Metadata = field(default_factory=dict)
    body: str = ""

    @property
    def expected_output(self) -> str | None:
        value = self.metadata.get("expectedOutput")
        return value if isinstance(value, str) else None

    @property
    def expected_error(self) -> str | None:
        value = self.metadata.get("expectedError")
        return value if isinstance(value, str) else None

    @property
    def needs_review(self) -> bool:
        return self.metadata.get("needsReview") is True


@dataclass(frozen=True)
class ParsedDocument:
    """Public shape of a parsed document: attributes plus body."""

    attributes: Metadata
    body: str


@dataclass(frozen=True)
class ParameterDefinition:
    """A typed template parameter declared under ``parameters`` in the metadata."""

    type: ParameterType
    description: str | None = None
    required: bool | None = None
    default: Any = None


@dataclass(frozen=True)
class KnownConfigFields:
    """Well-known configuration fields projected out of the metadata."""

    provider: str | None = None
    model: str | None = None
    parameters: dict[str, JSONValue] | None = None


# ── Outputs ─────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal message produced while compiling a program."""

    message: str
    level: Literal["info", "warning"] = "info"
    source: str = "mdpipe"


@dataclass(frozen=True)
class CompiledResult:
    """Output of program compilation."""

    code: str
    metadata: dict[str, JSONValue] = field(default_factory=dict)
    diagnostics: tuple[Diagnostic, ...] = ()
    source_map: tuple[tuple[int, int], ...] | None = None


@dataclass(frozen=True)
class InteractivePayload:
    """Unrendered body plus sanitized metadata for interactive previews."""

    raw_body: str
    metadata: dict[str, JSONValue]
    marker: dict[str, bool] = field(default_factory=lambda: {"interactiveMode": True})
