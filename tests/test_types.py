"""Tests for mdpipe.types module — data contracts and results."""

from __future__ import annotations

import dataclasses

import pytest

from mdpipe.exceptions import CompileError, MalformedHeaderError
from mdpipe.types import (
    CompiledResult,
    Document,
    Err,
    InteractivePayload,
    Ok,
    ParameterDefinition,
)


class TestResult:
    def test_ok_carries_value(self):
        result = Ok(42)
        assert result.ok is True
        assert result.value == 42
        assert result.error is None
        assert result.unwrap() == 42

    def test_err_carries_error(self):
        error = MalformedHeaderError("bad header")
        result = Err(error)
        assert result.ok is False
        assert result.value is None
        assert result.error is error

    def test_err_unwrap_raises_carried_error(self):
        result = Err(CompileError("stage exploded"))
        with pytest.raises(CompileError, match="stage exploded"):
            result.unwrap()

    def test_results_compare_by_value(self):
        assert Ok("x") == Ok("x")
        assert Err(MalformedHeaderError("a")) == Err(MalformedHeaderError("a"))
        assert Err(MalformedHeaderError("a")) != Err(CompileError("a"))

    def test_frozen(self):
        result = Ok(1)
        with pytest.raises(dataclasses.FrozenInstanceError):
            result.value = 2  # type: ignore[misc]


class TestDocument:
    def test_frozen(self):
        doc = Document(full_text="x", body="x")
        with pytest.raises(dataclasses.FrozenInstanceError):
            doc.body = "y"  # type: ignore[misc]

    def test_defaults(self):
        doc = Document(full_text="")
        assert doc.metadata == {}
        assert doc.body == ""

    def test_reserved_fields(self):
        doc = Document(
            full_text="",
            metadata={"expectedOutput": "42", "expectedError": "boom", "needsReview": True},
        )
        assert doc.expected_output == "42"
        assert doc.expected_error == "boom"
        assert doc.needs_review is True

    def test_reserved_fields_absent(self):
        doc = Document(full_text="", metadata={"expectedOutput": 42, "needsReview": "yes"})
        assert doc.expected_output is None
        assert doc.expected_error is None
        assert doc.needs_review is False


class TestOutputs:
    def test_parameter_definition_defaults(self):
        param = ParameterDefinition(type="string")
        assert param.description is None
        assert param.required is None
        assert param.default is None

    def test_compiled_result_defaults(self):
        result = CompiledResult(code="pass")
        assert result.metadata == {}
        assert result.diagnostics == ()
        assert result.source_map is None

    def test_interactive_payload_marker(self):
        payload = InteractivePayload(raw_body="body", metadata={})
        assert payload.marker == {"interactiveMode": True}
