"""Document splitter — fence validation plus metadata decoding.

Combines :func:`mdpipe.fence.validate_fence` and a :class:`BaseCodec` into
``text → Document``. Codec exceptions never escape; they come back as
:class:`MalformedHeaderError` results.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mdpipe.codec import find_header
from mdpipe.exceptions import MalformedHeaderError
from mdpipe.fence import validate_fence
from mdpipe.types import Document, Err, Ok, Result

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mdpipe.codec import BaseCodec

__all__ = ["reconstruct", "split"]

logger = logging.getLogger(__name__)

_BOM = "\ufeff"


def split(text: str, codec: BaseCodec) -> Result[Document, MalformedHeaderError]:
    """Split ``text`` into metadata and body.

    Args:
        text: Raw document text.
        codec: Metadata codec used to decode the header.

    Returns:
        ``Ok(Document)`` on success (text without a header yields empty
        metadata and the full text as body), otherwise
        ``Err(MalformedHeaderError)``.
    """
    # A BOM is dropped only in front of a header; headerless text is kept whole
    source = text
    if text.startswith(_BOM) and find_header(text[1:]) is not None:
        source = text[1:]

    checked = validate_fence(source)
    if not checked.ok:
        return checked

    try:
        metadata, body = codec.parse(source)
    except Exception as e:
        logger.debug("Codec rejected header: %s", e)
        return Err(MalformedHeaderError(f"Failed to parse front-matter: {e}", cause=e))

    return Ok(Document(full_text=text, metadata=dict(metadata), body=body))


def reconstruct(
    original_full_text: str,
    new_metadata: Mapping[str, Any],
    codec: BaseCodec,
) -> str:
    """Replace the header of ``original_full_text`` with ``new_metadata``.

    The original must already be accepted by :func:`split`; a rejected
    original raises :class:`MalformedHeaderError`.
    """
    result = split(original_full_text, codec)
    document = result.unwrap()
    return codec.serialize(document.body, dict(new_metadata))
