"""Read OpenAPI documents from disk and parse them into plain data.

This module is the first stage of the pipeline. It detects the document
format from the file extension (``.json``, ``.yaml`` or ``.yml``), decodes
the bytes, and parses them with a safe deserializer. YAML is loaded with
PyYAML's ``safe_load`` so tags that would construct Python objects
(``!!python/object``, ``!!python/name`` ...) are rejected with a
``SYNTAX_ERROR`` instead of being executed.

The public functions are:

* :func:`read_document` -- existence check through a
  :class:`~httpapigen.filesystem.FileSystem`, then :func:`parse_document`.
* :func:`parse_document` -- pure parsing of a path + bytes pair into a
  :class:`~httpapigen.models.RawDocument`.
* :func:`parse_content` -- parse text in a known format (also used for
  remotely fetched documents).
* :func:`validate_object_structure` -- require a mapping at the top level.
"""

from __future__ import annotations

import json
from pathlib import PurePath
from typing import Any, Union

import yaml

from httpapigen.exceptions import ErrorKind, ReadError
from httpapigen.filesystem import FileSystem
from httpapigen.models import DocumentFormat, RawDocument

_EXTENSION_FORMATS: dict[str, DocumentFormat] = {
    ".json": DocumentFormat.JSON,
    ".yaml": DocumentFormat.YAML,
    ".yml": DocumentFormat.YAML,
}


def detect_format(path: str) -> DocumentFormat:
    """Return the document format implied by *path*'s extension.

    Raises:
        ReadError: ``UNSUPPORTED_FORMAT`` for any other extension.
    """
    suffix = PurePath(path).suffix.lower()
    try:
        return _EXTENSION_FORMATS[suffix]
    except KeyError:
        shown = suffix or "no extension"
        raise ReadError(
            ErrorKind.UNSUPPORTED_FORMAT,
            f"Unsupported file format. Expected .json, .yaml, or .yml, got: {shown}",
            file_path=path,
        ) from None


def read_document(path: str, fs: FileSystem) -> RawDocument:
    """Read and parse the document at *path*.

    Args:
        path: Location of the OpenAPI document.
        fs: Filesystem capability used for the existence check and the read.

    Returns:
        The parsed :class:`~httpapigen.models.RawDocument`.

    Raises:
        ReadError: ``NOT_FOUND`` if the path does not exist,
            ``UNSUPPORTED_FORMAT`` for an unknown extension, or
            ``SYNTAX_ERROR`` if the content cannot be decoded or parsed.
    """
    if not fs.exists(path):
        raise ReadError(
            ErrorKind.NOT_FOUND,
            f"OpenAPI file does not exist: {path}",
            file_path=path,
        )
    detect_format(path)

    try:
        content = fs.read_text(path)
    except UnicodeDecodeError as exc:
        raise ReadError(
            ErrorKind.SYNTAX_ERROR,
            f"File is not valid UTF-8 text: {exc}",
            file_path=path,
            cause=exc,
        ) from exc
    except OSError as exc:
        raise ReadError(
            ErrorKind.NOT_FOUND,
            f"Failed to read {path}: {exc}",
            file_path=path,
            cause=exc,
        ) from exc

    return parse_document(path, content)


def parse_document(path: str, content: Union[bytes, str]) -> RawDocument:
    """Parse *content* according to *path*'s extension.

    Args:
        path: File path; only its extension is used.
        content: Raw bytes (decoded as UTF-8) or already-decoded text.

    Returns:
        A :class:`~httpapigen.models.RawDocument` with plain-data content.
        The content may be any JSON/YAML value; see
        :func:`validate_object_structure`.

    Raises:
        ReadError: ``UNSUPPORTED_FORMAT`` or ``SYNTAX_ERROR``.
    """
    fmt = detect_format(path)

    if isinstance(content, bytes):
        try:
            text = content.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ReadError(
                ErrorKind.SYNTAX_ERROR,
                f"File is not valid UTF-8 text: {exc}",
                file_path=path,
                cause=exc,
            ) from exc
    else:
        text = content

    try:
        parsed = parse_content(text, fmt)
    except ReadError as exc:
        raise exc.with_file(path) from exc.__cause__

    return RawDocument(source_path=path, format=fmt, content=parsed)


def parse_content(text: str, fmt: DocumentFormat) -> Any:
    """Parse *text* as JSON or YAML.

    Raises:
        ReadError: ``SYNTAX_ERROR`` for empty or unparsable input. The error
            carries no file path; callers attach one.
    """
    if not text.strip():
        raise ReadError(ErrorKind.SYNTAX_ERROR, "Document is empty")

    if fmt is DocumentFormat.JSON:
        try:
            return json.loads(text)
        except json.JSONDecodeError as exc:
            raise ReadError(
                ErrorKind.SYNTAX_ERROR, f"Invalid JSON: {exc}", cause=exc
            ) from exc

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ReadError(
            ErrorKind.SYNTAX_ERROR, f"Invalid YAML: {exc}", cause=exc
        ) from exc
    return _stringify_keys(loaded)


def _stringify_keys(value: Any) -> Any:
    """Coerce YAML mapping keys to strings, as JSON would have them.

    Unquoted keys such as ``200:`` load as ints.
    """
    if isinstance(value, dict):
        return {str(key): _stringify_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_stringify_keys(item) for item in value]
    return value


def validate_object_structure(document: RawDocument) -> RawDocument:
    """Require the document's top-level value to be a mapping.

    Returns:
        *document* unchanged.

    Raises:
        ReadError: ``INVALID_STRUCTURE`` when the content is a list, scalar
            or empty.
    """
    if not isinstance(document.content, dict):
        got = (
            "empty document"
            if document.content is None
            else type(document.content).__name__
        )
        raise ReadError(
            ErrorKind.INVALID_STRUCTURE,
            f"Invalid OpenAPI file structure. Expected object, got {got}",
            file_path=document.source_path,
        )
    return document
