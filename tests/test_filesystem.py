"""Tests for mdpipe.filesystem module — local file reading."""

from __future__ import annotations

import errno
from typing import TYPE_CHECKING

import pytest

import mdpipe.filesystem as fs_mod
from mdpipe.filesystem import LocalFileSystem

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def filesystem() -> LocalFileSystem:
    return LocalFileSystem()


class TestLocalFileSystem:
    @pytest.mark.asyncio
    async def test_reads_utf8(self, filesystem: LocalFileSystem, tmp_path: Path):
        f = tmp_path / "doc.md"
        f.write_text("# Héllo µs\n", encoding="utf-8")
        assert await filesystem.read_text(f) == "# Héllo µs\n"

    @pytest.mark.asyncio
    async def test_accepts_string_path(self, filesystem: LocalFileSystem, tmp_path: Path):
        f = tmp_path / "doc.md"
        f.write_text("text", encoding="utf-8")
        assert await filesystem.read_text(str(f)) == "text"

    @pytest.mark.asyncio
    async def test_invalid_utf8_replaced(self, filesystem: LocalFileSystem, tmp_path: Path):
        f = tmp_path / "latin1.md"
        f.write_bytes(b"caf\xe9")
        assert await filesystem.read_text(f) == "caf�"

    @pytest.mark.asyncio
    async def test_missing_file(self, filesystem: LocalFileSystem, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            await filesystem.read_text(tmp_path / "missing.md")

    @pytest.mark.asyncio
    async def test_directory(self, filesystem: LocalFileSystem, tmp_path: Path):
        with pytest.raises(OSError):
            await filesystem.read_text(tmp_path)

    @pytest.mark.asyncio
    async def test_oversized_file(
        self,
        filesystem: LocalFileSystem,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ):
        monkeypatch.setattr(fs_mod, "MAX_FILE_SIZE", 10)
        f = tmp_path / "big.md"
        f.write_text("x" * 20, encoding="utf-8")
        with pytest.raises(OSError, match="exceeds maximum size") as exc_info:
            await filesystem.read_text(f)
        assert exc_info.value.errno == errno.EFBIG
