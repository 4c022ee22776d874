"""Cheap pre-check of the front-matter fence before the codec runs.

An unterminated quoted scalar is the most common authoring mistake in a
header, and YAML libraries report it in inconsistent ways. Counting double
quotes in the header region catches it early with one stable error. Only
odd quote counts are detected; everything else is left to the codec.
"""

from __future__ import annotations

import logging

from mdpipe.codec import find_header
from mdpipe.exceptions import MalformedHeaderError
from mdpipe.types import Err, Ok, Result

__all__ = ["UNBALANCED_QUOTES", "validate_fence"]

logger = logging.getLogger(__name__)

UNBALANCED_QUOTES = "unbalanced quotes"


def validate_fence(text: str) -> Result[None, MalformedHeaderError]:
    """Check the header region of ``text`` for unbalanced double quotes.

    Text that does not open with a ``---`` line has no header and passes.
    """
    found = find_header(text)
    if found is None:
        return Ok(None)

    header, _ = found
    quotes = header.count('"')
    if quotes % 2 == 1:
        logger.debug("Rejecting header with %d double quotes", quotes)
        return Err(MalformedHeaderError(UNBALANCED_QUOTES))
    return Ok(None)
