"""Validate raw documents as OpenAPI 3.x.

Validation runs in three tiers:

1. **Basic structure** -- the document is a mapping, ``info`` is a mapping
   with string ``title`` and ``version``, and ``paths`` is a mapping. Every
   failing check is reported, not just the first.
2. **Version** -- ``openapi`` must be a string starting with ``"3."``.
3. **Grammar** -- the document is decoded into the Pydantic models of
   :mod:`httpapigen.parser.grammar`. Each Pydantic error becomes one
   ``SCHEMA_VIOLATION`` issue. Skipped when ``skip_grammar`` is set, and
   never attempted when an earlier tier failed.

:func:`validate_document` never raises; it returns a
:class:`~httpapigen.models.ValidationResult`. :func:`accept_validation`
applies the strict/lenient policy and :func:`validate_document_strict`
combines both for callers that just want an exception.
"""

from __future__ import annotations

from typing import Any

import pydantic

from httpapigen.exceptions import DocumentValidationError, ErrorKind
from httpapigen.models import (
    RawDocument,
    ValidatedDocument,
    ValidationIssue,
    ValidationResult,
)
from httpapigen.parser.grammar import OpenApiDocument

_TOLERATED_KINDS = frozenset({ErrorKind.SCHEMA_VIOLATION.value})

_MISSING = object()


def _issue(path: str, message: str, kind: ErrorKind, value: Any = None) -> ValidationIssue:
    return ValidationIssue(path=path, message=message, kind=kind.value, value=value)


def _check_field(
    container: dict[str, Any],
    key: str,
    path: str,
    expected: type,
    type_label: str,
) -> list[ValidationIssue]:
    value = container.get(key, _MISSING)
    if value is _MISSING or value is None:
        return [
            _issue(path, f"Missing required field '{path}'", ErrorKind.MISSING_FIELD)
        ]
    if not isinstance(value, expected):
        return [
            _issue(
                path,
                f"Field '{path}' must be {type_label}, got {type(value).__name__}",
                ErrorKind.WRONG_TYPE,
                value,
            )
        ]
    return []


def validate_basic_structure(content: Any) -> list[ValidationIssue]:
    """Return every basic structural problem in *content*.

    Examples::

        >>> [i.path for i in validate_basic_structure({"info": {"title": "x"}})]
        ['info.version', 'paths']
    """
    if not isinstance(content, dict):
        return [
            _issue(
                "root",
                "OpenAPI document must be an object",
                ErrorKind.WRONG_TYPE,
                content,
            )
        ]

    issues = _check_field(content, "info", "info", dict, "an object")
    info = content.get("info")
    if isinstance(info, dict):
        issues += _check_field(info, "title", "info.title", str, "a string")
        issues += _check_field(info, "version", "info.version", str, "a string")
    issues += _check_field(content, "paths", "paths", dict, "an object")
    return issues


def validate_openapi_version(content: Any) -> list[ValidationIssue]:
    """Check the ``openapi`` field. Returns zero or one issue."""
    version = content.get("openapi") if isinstance(content, dict) else None
    if not isinstance(version, str):
        return [
            _issue(
                "openapi",
                "Missing or invalid 'openapi' version field. "
                "Is this an OpenAPI 3.x document?",
                ErrorKind.UNSUPPORTED_VERSION,
                version,
            )
        ]
    if not version.startswith("3."):
        return [
            _issue(
                "openapi",
                f"Unsupported OpenAPI version: {version}. "
                "Only OpenAPI 3.x is supported.",
                ErrorKind.UNSUPPORTED_VERSION,
                version,
            )
        ]
    return []


def _format_location(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc) or "root"


def _grammar_issues(exc: pydantic.ValidationError) -> list[ValidationIssue]:
    issues = []
    for error in exc.errors(include_url=False):
        raw_input = error.get("input")
        value = raw_input if not isinstance(raw_input, (dict, list)) else None
        issues.append(
            _issue(
                _format_location(error["loc"]),
                error["msg"],
                ErrorKind.SCHEMA_VIOLATION,
                value,
            )
        )
    return issues


def validate_document(raw: RawDocument, skip_grammar: bool = False) -> ValidationResult:
    """Run all validation tiers over *raw* and report the outcome.

    Args:
        raw: Output of the reader.
        skip_grammar: Only run the basic structure and version tiers.

    Returns:
        A :class:`~httpapigen.models.ValidationResult`. ``document`` is the
        decoded :class:`~httpapigen.parser.grammar.OpenApiDocument` when the
        grammar tier ran and passed.
    """
    content = raw.content
    issues = validate_basic_structure(content) + validate_openapi_version(content)
    if issues:
        return ValidationResult(is_valid=False, errors=tuple(issues))

    if skip_grammar:
        return ValidationResult(is_valid=True)

    try:
        document = OpenApiDocument.model_validate(content)
    except pydantic.ValidationError as exc:
        return ValidationResult(is_valid=False, errors=tuple(_grammar_issues(exc)))

    return ValidationResult(is_valid=True, document=document)


def accept_validation(
    raw: RawDocument,
    result: ValidationResult,
    continue_on_error: bool = False,
) -> ValidatedDocument:
    """Turn a validation result into the document handed to the resolver.

    In strict mode any issue is fatal. With *continue_on_error*, grammar
    issues are recorded on the returned document and the raw content
    proceeds; basic structure and version issues stay fatal because the
    later stages cannot work without ``info``, ``paths`` and a 3.x layout.

    Raises:
        DocumentValidationError: Tagged with the first fatal issue's kind
            and carrying every issue as ``details``.
    """
    if result.is_valid:
        return ValidatedDocument(
            source_path=raw.source_path,
            format=raw.format,
            content=raw.content,
            document=result.document,
        )

    fatal = [
        issue
        for issue in result.errors
        if not continue_on_error or issue.kind not in _TOLERATED_KINDS
    ]
    if fatal:
        first = fatal[0]
        raise DocumentValidationError(
            ErrorKind(first.kind),
            f"OpenAPI validation failed at {first.path}: {first.message}",
            file_path=raw.source_path,
            details=[f"{issue.path}: {issue.message}" for issue in result.errors],
        )

    return ValidatedDocument(
        source_path=raw.source_path,
        format=raw.format,
        content=raw.content,
        errors=result.errors,
    )


def validate_document_strict(raw: RawDocument, skip_grammar: bool = False) -> ValidatedDocument:
    """Validate *raw* and raise on the first problem.

    Raises:
        DocumentValidationError: If any tier reports an issue.
    """
    return accept_validation(raw, validate_document(raw, skip_grammar=skip_grammar))
