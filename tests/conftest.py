"""Shared fixtures for mdpipe tests."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from mdpipe.codec import YamlFrontMatterCodec
from mdpipe.service import DocumentService
from mdpipe.stages.base import BaseStage

FIXTURE_DIR = Path(__file__).parent / "fixtures"

SIMPLE_DOC = "---\ntitle: Old\n---\n# Title\n\nBody."


class RecordingStage(BaseStage):
    """Pass-through stage that records every call."""

    def __init__(self, name: str = "recording") -> None:
        self.name = name
        self.calls: list[tuple[Any, dict[str, Any]]] = []

    def apply(self, value: Any, **options: Any) -> Any:
        self.calls.append((value, options))
        return value


class SpyCodec(YamlFrontMatterCodec):
    """YAML codec that counts parse invocations."""

    def __init__(self) -> None:
        self.parse_calls = 0

    def parse(self, text: str) -> tuple[dict[str, Any], str]:
        self.parse_calls += 1
        return super().parse(text)


@pytest.fixture
def codec() -> YamlFrontMatterCodec:
    return YamlFrontMatterCodec()


@pytest.fixture
def spy_codec() -> SpyCodec:
    return SpyCodec()


@pytest.fixture
def service() -> DocumentService:
    """A service with the default no-op pipeline configuration."""
    return DocumentService()


@pytest.fixture
def prompt_path() -> Path:
    return FIXTURE_DIR / "prompt.md"


@pytest.fixture
def plain_path() -> Path:
    return FIXTURE_DIR / "plain.md"


@pytest.fixture
def malformed_path() -> Path:
    return FIXTURE_DIR / "malformed.md"


@pytest.fixture
def make_recorder() -> type[RecordingStage]:
    """Factory for pass-through stages that record their calls."""
    return RecordingStage
