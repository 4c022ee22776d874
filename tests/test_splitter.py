"""Tests for mdpipe.splitter module — split and reconstruct."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
import yaml

from mdpipe.exceptions import MalformedHeaderError
from mdpipe.splitter import reconstruct, split
from mdpipe.types import Document

if TYPE_CHECKING:
    from conftest import SpyCodec

    from mdpipe.codec import YamlFrontMatterCodec

SIMPLE_DOC = "---\ntitle: Old\n---\n# Title\n\nBody."


class TestSplit:
    def test_returns_document(self, codec: YamlFrontMatterCodec):
        result = split(SIMPLE_DOC, codec)
        assert result.ok
        assert result.value == Document(
            full_text=SIMPLE_DOC, metadata={"title": "Old"}, body="# Title\n\nBody."
        )

    def test_no_header_is_success(self, codec: YamlFrontMatterCodec):
        text = "# No FM\n\nJust text."
        result = split(text, codec)
        assert result.ok
        assert result.value.metadata == {}
        assert result.value.body == text

    def test_idempotent(self, codec: YamlFrontMatterCodec):
        assert split(SIMPLE_DOC, codec) == split(SIMPLE_DOC, codec)

    def test_bom_is_ignored(self, codec: YamlFrontMatterCodec):
        text = "\ufeff" + SIMPLE_DOC
        result = split(text, codec)
        assert result.value.metadata == {"title": "Old"}
        assert result.value.full_text == text

    def test_leading_bom_kept_without_header(self, codec: YamlFrontMatterCodec):
        text = "\ufeff# No FM\n\nJust text."
        result = split(text, codec)
        assert result.value.metadata == {}
        assert result.value.body == text

    def test_unbalanced_quotes_fail_before_codec(self, spy_codec: SpyCodec):
        result = split('---\nkey: "a\n---\nbody', spy_codec)
        assert not result.ok
        assert isinstance(result.error, MalformedHeaderError)
        assert result.error.reason == "unbalanced quotes"
        assert spy_codec.parse_calls == 0

    def test_balanced_quotes_reach_codec(self, spy_codec: SpyCodec):
        result = split('---\nkey: "a"\n---\nbody', spy_codec)
        assert result.value.metadata == {"key": "a"}
        assert spy_codec.parse_calls == 1

    def test_codec_error_is_wrapped(self, codec: YamlFrontMatterCodec):
        result = split("---\ninvalid: [unclosed array\n---\n# Hello", codec)
        assert not result.ok
        assert isinstance(result.error, MalformedHeaderError)
        assert isinstance(result.error.cause, yaml.YAMLError)
        assert result.error.__cause__ is result.error.cause

    def test_any_codec_exception_is_wrapped(self):
        class ExplodingCodec:
            def parse(self, text: str) -> tuple[dict[str, object], str]:
                raise KeyError("internal")

            def serialize(self, body: str, metadata: dict[str, object]) -> str:
                return body

        result = split("---\na: 1\n---\n", ExplodingCodec())  # type: ignore[arg-type]
        assert isinstance(result.error, MalformedHeaderError)
        assert isinstance(result.error.cause, KeyError)


class TestReconstruct:
    def test_replaces_header(self, codec: YamlFrontMatterCodec):
        text = reconstruct(SIMPLE_DOC, {"title": "New", "provider": "openai"}, codec)
        assert "title: New" in text
        assert "provider: openai" in text
        assert "# Title" in text
        assert "Body." in text
        assert "Old" not in text
        assert split(text, codec).value.metadata["title"] == "New"

    def test_round_trip_preserves_body_and_metadata(self, codec: YamlFrontMatterCodec):
        text = "---\nb: [1, 2]\na:\n  nested: true\n---\nline one\n\nline two\n"
        doc = split(text, codec).value
        again = split(reconstruct(doc.full_text, doc.metadata, codec), codec).value
        assert again.body == doc.body
        assert again.metadata == doc.metadata

    def test_adds_header_to_plain_document(self, codec: YamlFrontMatterCodec):
        text = reconstruct("# Plain\n", {"needsReview": True}, codec)
        assert text == "---\nneedsReview: true\n---\n# Plain\n"

    def test_empty_metadata_drops_header(self, codec: YamlFrontMatterCodec):
        assert reconstruct(SIMPLE_DOC, {}, codec) == "# Title\n\nBody."

    def test_rejected_original_raises(self, codec: YamlFrontMatterCodec):
        with pytest.raises(MalformedHeaderError):
            reconstruct('---\nkey: "a\n---\nbody', {"a": 1}, codec)
