"""Tests for mdpipe.codec module — YAML front-matter codec."""

from __future__ import annotations

import pytest
import yaml

from mdpipe.codec import FrontMatterSyntaxError, YamlFrontMatterCodec, find_header


class TestFindHeader:
    def test_no_fence(self):
        assert find_header("# Title\n") is None

    def test_fence_must_be_first_line(self):
        assert find_header("\n---\na: 1\n---\n") is None

    def test_fence_must_be_exact(self):
        assert find_header("----\na: 1\n----\n") is None
        assert find_header("--- \na: 1\n---\n") is None

    def test_closed_header(self):
        assert find_header("---\na: 1\n---\nbody") == ("a: 1\n", "---\nbody")

    def test_unclosed_header_takes_rest(self):
        assert find_header("---\na: 1\nb: 2") == ("a: 1\nb: 2", "")

    def test_crlf_fences(self):
        assert find_header("---\r\na: 1\r\n---\r\nbody") == ("a: 1\r\n", "---\r\nbody")


class TestParse:
    def test_simple_header(self, codec: YamlFrontMatterCodec):
        metadata, body = codec.parse("---\ntitle: Old\n---\n# Title\n\nBody.")
        assert metadata == {"title": "Old"}
        assert body == "# Title\n\nBody."

    def test_no_header(self, codec: YamlFrontMatterCodec):
        text = "# No FM\n\nJust text."
        assert codec.parse(text) == ({}, text)

    def test_empty_header(self, codec: YamlFrontMatterCodec):
        assert codec.parse("---\n---\nbody") == ({}, "body")

    def test_key_order_preserved(self, codec: YamlFrontMatterCodec):
        metadata, _ = codec.parse("---\nz: 1\na: 2\nm: 3\n---\n")
        assert list(metadata) == ["z", "a", "m"]

    def test_nested_values(self, codec: YamlFrontMatterCodec):
        metadata, _ = codec.parse("---\nparams:\n  a:\n    type: string\ntags: [x, y]\n---\n")
        assert metadata == {"params": {"a": {"type": "string"}}, "tags": ["x", "y"]}

    def test_non_string_keys_stringified(self, codec: YamlFrontMatterCodec):
        metadata, _ = codec.parse("---\n1: one\n---\n")
        assert metadata == {"1": "one"}

    def test_body_without_trailing_newline_after_fence(self, codec: YamlFrontMatterCodec):
        assert codec.parse("---\na: 1\n---") == ({"a": 1}, "")

    def test_invalid_yaml_raises_yaml_error(self, codec: YamlFrontMatterCodec):
        with pytest.raises(yaml.YAMLError):
            codec.parse("---\ninvalid: [unclosed array\n---\n# Hello")

    def test_scalar_header_rejected(self, codec: YamlFrontMatterCodec):
        with pytest.raises(FrontMatterSyntaxError, match="must be a mapping"):
            codec.parse("---\njust a string\n---\nbody")

    def test_unclosed_fence_rejected(self, codec: YamlFrontMatterCodec):
        with pytest.raises(FrontMatterSyntaxError, match="never closed"):
            codec.parse("---\ntitle: x\n# Body")

    def test_does_not_construct_python_objects(self, codec: YamlFrontMatterCodec):
        with pytest.raises(yaml.YAMLError):
            codec.parse("---\nx: !!python/object/apply:os.system ['true']\n---\n")


class TestSerialize:
    def test_writes_fenced_header(self, codec: YamlFrontMatterCodec):
        text = codec.serialize("# Body\n", {"title": "New", "provider": "openai"})
        assert text == "---\ntitle: New\nprovider: openai\n---\n# Body\n"

    def test_empty_metadata_writes_body_only(self, codec: YamlFrontMatterCodec):
        assert codec.serialize("# Body\n", {}) == "# Body\n"

    def test_unicode_kept_readable(self, codec: YamlFrontMatterCodec):
        assert "Zürich" in codec.serialize("", {"city": "Zürich"})

    def test_unrepresentable_values_are_sanitized(self, codec: YamlFrontMatterCodec):
        text = codec.serialize("body", {"obj": object(), "n": 1})
        metadata, body = codec.parse(text)
        assert isinstance(metadata["obj"], str)
        assert metadata["n"] == 1
        assert body == "body"

    def test_round_trip(self, codec: YamlFrontMatterCodec):
        original = {"title": "T", "nested": {"list": [1, 2.5, True, None]}}
        assert codec.parse(codec.serialize("text", original)) == (original, "text")
