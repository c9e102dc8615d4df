"""Filesystem capability used by the reader and the artifact writer.

The pipeline never touches :mod:`pathlib` directly; it receives an object
implementing :class:`FileSystem`. :class:`LocalFileSystem` is the real
implementation, and tests can pass an in-memory one.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol


class FileSystem(Protocol):
    """The filesystem operations the pipeline depends on."""

    def exists(self, path: str) -> bool: ...

    def is_dir(self, path: str) -> bool: ...

    def read_text(self, path: str) -> str: ...

    def write_text(self, path: str, content: str) -> None: ...

    def make_dirs(self, path: str) -> None: ...


class LocalFileSystem:
    """:class:`FileSystem` backed by the local disk (UTF-8 text)."""

    def exists(self, path: str) -> bool:
        return Path(path).exists()

    def is_dir(self, path: str) -> bool:
        return Path(path).is_dir()

    def read_text(self, path: str) -> str:
        return Path(path).read_text(encoding="utf-8")

    def write_text(self, path: str, content: str) -> None:
        Path(path).write_text(content, encoding="utf-8")

    def make_dirs(self, path: str) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)
