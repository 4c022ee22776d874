"""Custom exception hierarchy for mdpipe.

Per-document failures (:class:`MalformedHeaderError`, :class:`CompileError`)
are returned inside ``Err`` results rather than raised. ``ConfigError`` and
``PluginError`` are raised at construction time.
"""

from __future__ import annotations

__all__ = [
    "CompileError",
    "ConfigError",
    "DocumentError",
    "MalformedHeaderError",
    "MdpipeError",
    "PluginError",
]


class MdpipeError(Exception):
    """Base exception for all mdpipe errors."""


class DocumentError(MdpipeError):
    """A recoverable failure while processing a single document.

    Attributes:
        reason: Human-readable description of the failure.
        cause: The collaborator exception that triggered it, if any.
    """

    def __init__(self, reason: str, cause: BaseException | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        return f"{type(self).__name__}(reason={self.reason!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentError):
            return NotImplemented
        return type(self) is type(other) and self.reason == other.reason

    def __hash__(self) -> int:
        return hash((type(self).__name__, self.reason))


class MalformedHeaderError(DocumentError):
    """Raised when the front-matter header fails validation or decoding."""


class CompileError(DocumentError):
    """Raised when a transform stage or renderer fails."""


class ConfigError(MdpipeError):
    """Raised when configuration loading or validation fails."""


class PluginError(MdpipeError):
    """Raised when a stage is invalid or stage registration fails."""
