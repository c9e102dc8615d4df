"""Shared test fixtures for httpapigen.

Provides reusable fixtures for loading document fixtures, writing ad-hoc
documents to disk, an in-memory filesystem, isolated config environments,
output state management, and a CLI runner. These fixtures are automatically
discovered by pytest and available to all test modules without explicit
imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable

import pytest
import yaml

from httpapigen.output import reset_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


class MemoryFileSystem:
    """In-memory :class:`~httpapigen.filesystem.FileSystem` for tests.

    Directories are tracked explicitly; files map path to text. Paths listed
    in ``fail_writes`` raise :class:`OSError` on write.
    """

    def __init__(self, files: dict[str, str] | None = None):
        self.files: dict[str, str] = dict(files or {})
        self.dirs: set[str] = set()
        self.fail_writes: set[str] = set()

    def exists(self, path: str) -> bool:
        return path in self.files or path in self.dirs

    def is_dir(self, path: str) -> bool:
        return path in self.dirs

    def read_text(self, path: str) -> str:
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    def write_text(self, path: str, content: str) -> None:
        if path in self.fail_writes:
            raise PermissionError(f"read-only: {path}")
        self.files[path] = content

    def make_dirs(self, path: str) -> None:
        self.dirs.add(path)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale. The
    package logger configured by the CLI callback is reset for the same
    reason.
    """
    logger = logging.getLogger("httpapigen")
    level = logger.level
    yield
    reset_output()
    logger.handlers.clear()
    logger.setLevel(level)


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def petstore_path() -> str:
    """Path to the YAML petstore fixture (OpenAPI 3.0.3, two tags)."""
    return str(FIXTURES_DIR / "petstore.yaml")


@pytest.fixture
def petstore_raw() -> dict[str, Any]:
    """The YAML petstore fixture as plain data."""
    with open(FIXTURES_DIR / "petstore.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def recursive_raw() -> dict[str, Any]:
    """A document whose TreeNode schema references itself."""
    with open(FIXTURES_DIR / "recursive.yaml", encoding="utf-8") as f:
        return yaml.safe_load(f)


@pytest.fixture
def minimal_doc() -> dict[str, Any]:
    """Smallest valid document: one GET operation and one component schema."""
    return {
        "openapi": "3.0.3",
        "info": {"title": "Minimal", "version": "1.0.0"},
        "paths": {
            "/ping": {
                "get": {
                    "operationId": "ping",
                    "responses": {
                        "200": {
                            "description": "pong",
                            "content": {
                                "application/json": {
                                    "schema": {"$ref": "#/components/schemas/Pong"}
                                }
                            },
                        }
                    },
                }
            }
        },
        "components": {
            "schemas": {
                "Pong": {
                    "type": "object",
                    "properties": {"ok": {"type": "boolean"}},
                }
            }
        },
    }


@pytest.fixture
def write_doc(tmp_path: Path) -> Callable[..., str]:
    """Write a document to ``tmp_path`` and return its path.

    Usage: ``write_doc(content, "api.yaml")``. Dicts are serialised as JSON
    or YAML according to the extension; strings are written verbatim.
    """

    def _write(content: Any, name: str = "openapi.json") -> str:
        path = tmp_path / name
        if isinstance(content, str):
            text = content
        elif name.endswith(".json"):
            text = json.dumps(content, indent=2)
        else:
            text = yaml.safe_dump(content, sort_keys=False)
        path.write_text(text, encoding="utf-8")
        return str(path)

    return _write


@pytest.fixture
def memory_fs() -> MemoryFileSystem:
    return MemoryFileSystem()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Points XDG_CONFIG_HOME and HOME at subdirectories of tmp_path so tests
    never read real user config, and changes the working directory to a
    clean project directory.

    Returns:
        The project directory (current working directory for the test).
    """
    home = tmp_path / "home"
    project = tmp_path / "project"
    home.mkdir()
    project.mkdir()

    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("NO_COLOR", raising=False)
    monkeypatch.chdir(project)
    return project


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
