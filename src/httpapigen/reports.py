"""Plain-text reports over pipeline results and errors.

Every function here is pure: it takes stage outputs (or
:class:`~httpapigen.exceptions.PipelineError` instances) and returns a
string. The CLI prints them through :mod:`httpapigen.output`; the pipeline
stages never call this module.

Error reports dispatch on :attr:`PipelineError.kind` through
:data:`KIND_LABELS` rather than on exception classes.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Any, Sequence

from httpapigen.exceptions import KIND_STAGE, ErrorKind, PipelineError, Stage
from httpapigen.models import ExtractedApiData, ResolvedDocument, ValidationResult
from httpapigen.parser.resolver import extract_reference_paths

OK = "✅"
FAIL = "❌"
WARN = "⚠️"

MAX_LISTED_ISSUES = 3

KIND_LABELS: dict[ErrorKind, str] = {
    ErrorKind.NOT_FOUND: "File not found",
    ErrorKind.UNSUPPORTED_FORMAT: "Unsupported file format",
    ErrorKind.SYNTAX_ERROR: "Syntax error",
    ErrorKind.INVALID_STRUCTURE: "Invalid document structure",
    ErrorKind.MISSING_FIELD: "Missing required field",
    ErrorKind.WRONG_TYPE: "Wrong field type",
    ErrorKind.UNSUPPORTED_VERSION: "Unsupported OpenAPI version",
    ErrorKind.SCHEMA_VIOLATION: "Schema violation",
    ErrorKind.UNSAFE_PROTOCOL: "Unsafe protocol",
    ErrorKind.PRIVATE_ADDRESS: "Private address blocked",
    ErrorKind.DOMAIN_NOT_ALLOWED: "Domain not allowed",
    ErrorKind.NETWORK_TIMEOUT: "Network timeout",
    ErrorKind.FETCH_ERROR: "Fetch failed",
    ErrorKind.RESOLUTION_INCOMPLETE: "Unresolved references",
    ErrorKind.CIRCULAR_UNRESOLVED: "Circular references",
    ErrorKind.MALFORMED_OPERATION: "Malformed operation",
    ErrorKind.EXTRACTION_FAILED: "Extraction failed",
    ErrorKind.OUTPUT_NOT_DIRECTORY: "Output path is not a directory",
    ErrorKind.WRITE_FAILED: "Write failed",
}
"""Human label for each :class:`ErrorKind`. Covers every member of the enum."""

# Kinds whose ``details`` are individual references rather than messages.
_REFERENCE_DETAIL_KINDS = frozenset(
    {ErrorKind.RESOLUTION_INCOMPLETE, ErrorKind.CIRCULAR_UNRESOLVED}
)


def _heading(title: str) -> list[str]:
    return [title, "=" * len(title), ""]


def _plural(count: int, noun: str) -> str:
    return f"{count} {noun}{'' if count == 1 else 's'}"


def create_validation_report(
    results: Sequence[ValidationResult], paths: Sequence[str]
) -> str:
    """Summarise validation results, one block per file.

    *paths* pairs with *results* by position; a missing path is shown as
    ``File <n>``.
    """
    lines = _heading("OpenAPI Validation Report")

    valid = sum(1 for result in results if result.is_valid)
    lines.append(f"Total files: {len(results)}")
    lines.append(f"Valid files: {valid}")
    lines.append(f"Invalid files: {len(results) - valid}")
    lines.append("")

    for index, result in enumerate(results):
        path = paths[index] if index < len(paths) else f"File {index + 1}"
        if result.is_valid:
            lines.append(f"{OK} {path}: Valid")
            continue
        lines.append(f"{FAIL} {path}: Invalid ({_plural(len(result.errors), 'error')})")
        for issue in result.errors:
            lines.append(f"   Path: {issue.path}")
            lines.append(f"   Error: {issue.message}")
            if issue.value is not None:
                lines.append(f"   Value: {json.dumps(issue.value, default=str)}")
            lines.append("")

    return "\n".join(lines)


def create_resolution_report(resolved: ResolvedDocument) -> str:
    """Summarise which references were inlined, linked or left in place."""
    lines = _heading("Reference Resolution Report")

    original = resolved.reference_paths
    remaining = extract_reference_paths(resolved.resolved)
    linked = set(resolved.linked_refs)
    circular = set(resolved.circular_refs)

    lines.append(f"Original references found: {len(original)}")
    lines.append(f"Remaining unresolved references: {len(remaining)}")
    lines.append(f"Successfully resolved: {len(original) - len(remaining)}")
    if linked:
        lines.append(f"Kept as component links: {len(linked)}")
    if circular:
        lines.append(f"Circular references: {len(circular)}")
    lines.append("")

    if original:
        lines.append("Original references:")
        for ref in original:
            if ref in linked:
                status, note = OK, " (linked)"
            elif ref in circular:
                status, note = WARN, " (circular)"
            elif ref in remaining:
                status, note = FAIL, ""
            else:
                status, note = OK, ""
            lines.append(f"  {status} {ref}{note}")
        lines.append("")

    unresolved = [ref for ref in remaining if ref not in linked and ref not in circular]
    if unresolved:
        lines.append("Unresolved references:")
        lines.extend(f"  {FAIL} {ref}" for ref in unresolved)
        lines.append("")

    if resolved.errors:
        lines.append("Errors:")
        lines.extend(f"  - {message}" for message in resolved.errors)
        lines.append("")

    return "\n".join(lines)


def create_extraction_report(data: ExtractedApiData) -> str:
    """Summarise the extracted IR: info, servers, operations and components."""
    lines = _heading("API Data Extraction Report")

    lines.append(f"API: {data.info.title} (v{data.info.version})")
    if data.info.description:
        lines.append(f"Description: {data.info.description}")
    lines.append("")

    if data.servers:
        lines.append(f"Servers: {len(data.servers)}")
        for server in data.servers:
            suffix = f" ({server.description})" if server.description else ""
            lines.append(f"  - {server.url}{suffix}")
        lines.append("")

    operations = data.operations
    lines.append(f"Paths: {len(data.paths)}")
    lines.append(f"Operations: {len(operations)}")
    lines.append("")

    methods = Counter(op.method for op in operations)
    if methods:
        lines.append("HTTP Methods:")
        lines.extend(f"  {method}: {count}" for method, count in methods.items())
        lines.append("")

    components = data.components
    counts = {
        "schemas": len(components.schemas),
        "responses": len(components.responses),
        "parameters": len(components.parameters),
        "requestBodies": len(components.request_bodies),
    }
    if any(counts.values()):
        lines.append("Components:")
        lines.extend(f"  {name}: {count}" for name, count in counts.items() if count)
        lines.append("")

    if data.tags:
        lines.append(f"Tags: {', '.join(tag.name for tag in data.tags)}")
        lines.append("")

    return "\n".join(lines)


def create_parsing_report(
    results: Sequence[Any], errors: Sequence[PipelineError] = ()
) -> str:
    """Summarise a batch: successful :class:`~httpapigen.pipeline.PipelineResult`
    values plus the per-file errors."""
    lines = _heading("OpenAPI Parsing Report")

    tolerated = [result for result in results if result.validated.errors]
    lines.append(f"Total files processed: {len(results) + len(errors)}")
    lines.append(f"Successful parses: {len(results)}")
    lines.append(f"Failed parses: {len(errors)}")
    lines.append(f"Valid specifications: {len(results) - len(tolerated)}")
    lines.append(f"Invalid specifications: {len(tolerated)}")
    lines.append("")

    if results:
        formats = Counter(result.validated.format.value for result in results)
        lines.append("File formats:")
        lines.extend(f"  {fmt.upper()}: {count}" for fmt, count in formats.items())
        lines.append("")

        lines.append(f"{OK} Successfully parsed files:")
        for result in results:
            issues = result.validated.errors
            info = result.data.info
            icon = WARN if issues else OK
            note = f" ({_plural(len(issues), 'validation error')})" if issues else ""
            lines.append(f"  {icon} {result.source_path} - {info.title} v{info.version}{note}")
            for issue in issues[:MAX_LISTED_ISSUES]:
                lines.append(f"    - {issue.path}: {issue.message}")
            if len(issues) > MAX_LISTED_ISSUES:
                lines.append(f"    ... and {len(issues) - MAX_LISTED_ISSUES} more")
        lines.append("")

    if errors:
        lines.append(f"{FAIL} Failed files:")
        for error in errors:
            lines.append(f"  {FAIL} {error.file_path or '<unknown>'}: {format_error(error)}")
        lines.append("")

    return "\n".join(lines)


def format_error(error: PipelineError) -> str:
    """One-line description: ``[stage] Label: message``."""
    return f"[{error.stage.value}] {KIND_LABELS[error.kind]}: {error.message}"


def group_errors_by_stage(
    errors: Sequence[PipelineError],
) -> dict[Stage, list[PipelineError]]:
    """Group *errors* by stage, keeping first-seen stage order."""
    groups: dict[Stage, list[PipelineError]] = {}
    for error in errors:
        groups.setdefault(error.stage, []).append(error)
    return groups


def group_errors_by_file(
    errors: Sequence[PipelineError],
) -> dict[str, list[PipelineError]]:
    """Group *errors* by file path, keeping first-seen file order."""
    groups: dict[str, list[PipelineError]] = {}
    for error in errors:
        groups.setdefault(error.file_path, []).append(error)
    return groups


def create_error_summary(errors: Sequence[PipelineError]) -> str:
    """Count errors per stage.

    Examples::

        >>> create_error_summary([])
        'No errors'
    """
    if not errors:
        return "No errors"
    lines = [f"Total errors: {len(errors)}"]
    for stage, stage_errors in group_errors_by_stage(errors).items():
        lines.append(f"  {stage.value}: {len(stage_errors)}")
    return "\n".join(lines)


def create_error_report(errors: Sequence[PipelineError]) -> str:
    """List every error grouped by file, with its details."""
    if not errors:
        return f"{OK} No errors found"

    lines = _heading(f"{FAIL} Error Report")
    for file_path, file_errors in group_errors_by_file(errors).items():
        lines.append(f"{file_path or '<unknown>'}:")
        for error in file_errors:
            lines.append(f"  - {format_error(error)}")
            prefix = "Unresolved: " if error.kind in _REFERENCE_DETAIL_KINDS else ""
            # The first validation detail repeats the headline message.
            details = (
                error.details[1:]
                if KIND_STAGE[error.kind] is Stage.VALIDATION
                else error.details
            )
            lines.extend(f"      {prefix}{detail}" for detail in details)
        lines.append("")
    return "\n".join(lines)

