"""Metadata codec — YAML front-matter parsing and serialization.

A front-matter header starts with a ``---`` line on the very first line of
the document and ends at the next ``---`` line. Everything after the
closing fence is the body.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any

import yaml

from mdpipe.sanitize import sanitize_metadata

__all__ = ["FENCE", "BaseCodec", "FrontMatterSyntaxError", "YamlFrontMatterCodec", "find_header"]

logger = logging.getLogger(__name__)

FENCE = "---"


class FrontMatterSyntaxError(ValueError):
    """Raised by the YAML codec when the header is structurally invalid."""


class BaseCodec(ABC):
    """Base class for metadata codecs.

    Subclasses must implement ``parse`` and ``serialize``. ``parse`` raises
    on malformed input; callers are expected to wrap whatever it raises.
    """

    @abstractmethod
    def parse(self, text: str) -> tuple[dict[str, Any], str]:
        """Split ``text`` into ``(metadata, body)``.

        Text without a header yields ``({}, text)``.
        """

    @abstractmethod
    def serialize(self, body: str, metadata: dict[str, Any]) -> str:
        """Render ``metadata`` as a header placed in front of ``body``."""


def find_header(text: str) -> tuple[str, str] | None:
    """Locate the front-matter region of ``text``.

    Returns:
        ``None`` when the first line is not exactly ``---``. Otherwise
        ``(header, rest)`` where ``rest`` starts at the closing fence line.
        When no closing fence exists, ``header`` is everything after the
        opening line and ``rest`` is empty.
    """
    lines = text.splitlines(keepends=True)
    if not lines or lines[0].rstrip("\r\n") != FENCE:
        return None

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r\n") == FENCE:
            return "".join(lines[1:idx]), "".join(lines[idx:])
    return "".join(lines[1:]), ""


class YamlFrontMatterCodec(BaseCodec):
    """PyYAML-backed front-matter codec.

    Uses ``yaml.safe_load`` so headers can never construct arbitrary
    Python objects. Key order is preserved on both read and write.
    """

    def parse(self, text: str) -> tuple[dict[str, Any], str]:
        found = find_header(text)
        if found is None:
            return {}, text

        header, rest = found
        if not rest:
            msg = "Front-matter opening fence is never closed"
            raise FrontMatterSyntaxError(msg)

        # Drop the closing fence line itself
        newline = rest.find("\n")
        body = "" if newline == -1 else rest[newline + 1 :]

        data = yaml.safe_load(header)
        if data is None:
            return {}, body
        if not isinstance(data, dict):
            msg = f"Front-matter must be a mapping, got {type(data).__name__}"
            raise FrontMatterSyntaxError(msg)

        logger.debug("Decoded front-matter with %d keys", len(data))
        return {str(k): v for k, v in data.items()}, body

    def serialize(self, body: str, metadata: dict[str, Any]) -> str:
        if not metadata:
            return body

        try:
            header = _dump(metadata)
        except yaml.representer.RepresenterError:
            logger.debug("Metadata holds non-YAML values, dumping sanitized copy")
            header = _dump(sanitize_metadata(metadata))
        return f"{FENCE}\n{header}{FENCE}\n{body}"


def _dump(metadata: dict[str, Any]) -> str:
    return yaml.safe_dump(
        dict(metadata),
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
    )
