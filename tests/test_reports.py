"""Tests for httpapigen.reports."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from httpapigen.exceptions import (
    DocumentValidationError,
    ErrorKind,
    ExtractionError,
    ReadError,
    ResolutionError,
    Stage,
)
from httpapigen.models import ResolutionOptions, ValidationIssue, ValidationResult
from httpapigen.parser.extractor import extract_api_data
from httpapigen.parser.resolver import resolve_references
from httpapigen.pipeline import PipelineOptions, process_file
from httpapigen.reports import (
    FAIL,
    KIND_LABELS,
    OK,
    WARN,
    create_error_report,
    create_error_summary,
    create_extraction_report,
    create_parsing_report,
    create_resolution_report,
    create_validation_report,
    format_error,
    group_errors_by_file,
    group_errors_by_stage,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures"


class NoFetch:
    def fetch(self, url: str) -> str:
        raise AssertionError(f"unexpected fetch of {url}")


def _missing_field(path: str) -> ValidationIssue:
    return ValidationIssue(
        path=path,
        message=f"Missing required field '{path}'",
        kind=ErrorKind.MISSING_FIELD.value,
    )


# ---------------------------------------------------------------------------
# Validation report
# ---------------------------------------------------------------------------


class TestValidationReport:
    def test_mixed_results(self) -> None:
        results = [
            ValidationResult(is_valid=True),
            ValidationResult(
                is_valid=False,
                errors=(
                    _missing_field("info"),
                    ValidationIssue(
                        path="openapi",
                        message="Unsupported OpenAPI version: 4.0.0",
                        kind=ErrorKind.UNSUPPORTED_VERSION.value,
                        value="4.0.0",
                    ),
                ),
            ),
        ]
        lines = create_validation_report(results, ["a.yaml", "b.yaml"]).splitlines()
        assert lines[:3] == ["OpenAPI Validation Report", "=" * 25, ""]
        assert "Total files: 2" in lines
        assert "Valid files: 1" in lines
        assert "Invalid files: 1" in lines
        assert f"{OK} a.yaml: Valid" in lines
        assert f"{FAIL} b.yaml: Invalid (2 errors)" in lines
        assert "   Path: info" in lines
        assert "   Error: Missing required field 'info'" in lines
        assert '   Value: "4.0.0"' in lines

    def test_value_line_omitted_when_none(self) -> None:
        result = ValidationResult(is_valid=False, errors=(_missing_field("paths"),))
        text = create_validation_report([result], ["x.json"])
        assert "Invalid (1 error)" in text
        assert "Value:" not in text

    def test_missing_path_label(self) -> None:
        text = create_validation_report([ValidationResult(is_valid=True)], [])
        assert f"{OK} File 1: Valid" in text


# ---------------------------------------------------------------------------
# Resolution report
# ---------------------------------------------------------------------------


class TestResolutionReport:
    def test_bundle_links(self, petstore_raw: dict[str, Any]) -> None:
        resolved = resolve_references(petstore_raw, ResolutionOptions())
        lines = create_resolution_report(resolved).splitlines()
        assert lines[0] == "Reference Resolution Report"
        assert "Original references found: 3" in lines
        assert "Kept as component links: 3" in lines
        assert f"  {OK} #/components/schemas/Pet (linked)" in lines
        assert "Unresolved references:" not in lines

    def test_full_mode_counts(self, petstore_raw: dict[str, Any]) -> None:
        resolved = resolve_references(
            petstore_raw, ResolutionOptions(resolve_external=True), fetcher=NoFetch()
        )
        lines = create_resolution_report(resolved).splitlines()
        assert "Remaining unresolved references: 0" in lines
        assert "Successfully resolved: 3" in lines
        assert f"  {OK} #/components/schemas/NewPet" in lines

    def test_circular(self, recursive_raw: dict[str, Any]) -> None:
        resolved = resolve_references(
            recursive_raw, ResolutionOptions(resolve_external=True), fetcher=NoFetch()
        )
        text = create_resolution_report(resolved)
        assert "Circular references: 1" in text
        assert f"  {WARN} #/components/schemas/TreeNode (circular)" in text

    def test_unresolved_and_errors(self, minimal_doc: dict[str, Any]) -> None:
        minimal_doc["components"]["schemas"] = {}
        resolved = resolve_references(
            minimal_doc, ResolutionOptions(continue_on_error=True)
        )
        lines = create_resolution_report(resolved).splitlines()
        assert f"  {FAIL} #/components/schemas/Pong" in lines
        assert "Unresolved references:" in lines
        assert "Errors:" in lines


# ---------------------------------------------------------------------------
# Extraction and parsing reports
# ---------------------------------------------------------------------------


class TestExtractionReport:
    def test_petstore(self, petstore_raw: dict[str, Any]) -> None:
        data = extract_api_data(resolve_references(petstore_raw, ResolutionOptions()).resolved)
        lines = create_extraction_report(data).splitlines()
        assert lines[0] == "API Data Extraction Report"
        assert "API: Pet Store (v1.0.0)" in lines
        assert "Description: A sample API for managing pets." in lines
        assert "Servers: 1" in lines
        assert "  - https://petstore.example.com/v1 (Production)" in lines
        assert "Paths: 3" in lines
        assert "Operations: 5" in lines
        assert ["HTTP Methods:", "  GET: 3", "  POST: 1", "  DELETE: 1"] == lines[
            lines.index("HTTP Methods:") : lines.index("HTTP Methods:") + 4
        ]
        assert "  schemas: 3" in lines
        assert "  responses: 0" not in lines
        assert "Tags: pets, store" in lines

    def test_empty_document(self) -> None:
        data = extract_api_data({"info": {"title": "Empty", "version": "0"}, "paths": {}})
        text = create_extraction_report(data)
        assert "Operations: 0" in text
        assert "HTTP Methods:" not in text
        assert "Components:" not in text


class TestParsingReport:
    def test_successes_and_failures(self, petstore_path: str) -> None:
        result = process_file(petstore_path)
        failure = ReadError(ErrorKind.NOT_FOUND, "File not found: gone.yaml", file_path="gone.yaml")
        lines = create_parsing_report([result], [failure]).splitlines()
        assert lines[0] == "OpenAPI Parsing Report"
        assert "Total files processed: 2" in lines
        assert "Successful parses: 1" in lines
        assert "Failed parses: 1" in lines
        assert "Valid specifications: 1" in lines
        assert "  YAML: 1" in lines
        assert f"  {OK} {petstore_path} - Pet Store v1.0.0" in lines
        assert f"{FAIL} Failed files:" in lines
        assert (
            f"  {FAIL} gone.yaml: [reading] File not found: File not found: gone.yaml" in lines
        )

    def test_tolerated_issues_are_flagged(self) -> None:
        path = str(FIXTURES_DIR / "grammar-violation.yaml")
        result = process_file(path, PipelineOptions(continue_on_validation_error=True))
        text = create_parsing_report([result])
        assert "Invalid specifications: 1" in text
        assert f"  {WARN} {path} - Loose Responses" in text
        assert "validation error" in text


# ---------------------------------------------------------------------------
# Error formatting
# ---------------------------------------------------------------------------


class TestErrorReports:
    ERRORS = (
        ReadError(ErrorKind.NOT_FOUND, "File not found: a.yaml", file_path="a.yaml"),
        DocumentValidationError(
            ErrorKind.MISSING_FIELD,
            "OpenAPI validation failed at info: Missing required field 'info'",
            file_path="b.yaml",
            details=[
                "info: Missing required field 'info'",
                "paths: Missing required field 'paths'",
            ],
        ),
        ResolutionError(
            ErrorKind.RESOLUTION_INCOMPLETE,
            "Reference resolution incomplete",
            file_path="b.yaml",
            details=["#/components/schemas/Gone"],
        ),
        ExtractionError(ErrorKind.EXTRACTION_FAILED, "bad shape", file_path="c.yaml"),
    )

    def test_labels_cover_every_kind(self) -> None:
        assert set(KIND_LABELS) == set(ErrorKind)

    def test_format_error(self) -> None:
        assert format_error(self.ERRORS[0]) == "[reading] File not found: File not found: a.yaml"

    def test_group_by_stage(self) -> None:
        groups = group_errors_by_stage(self.ERRORS)
        assert list(groups) == [
            Stage.READING,
            Stage.VALIDATION,
            Stage.RESOLUTION,
            Stage.EXTRACTION,
        ]

    def test_group_by_file(self) -> None:
        groups = group_errors_by_file(self.ERRORS)
        assert list(groups) == ["a.yaml", "b.yaml", "c.yaml"]
        assert len(groups["b.yaml"]) == 2

    def test_summary(self) -> None:
        assert create_error_summary([]) == "No errors"
        assert create_error_summary(self.ERRORS).splitlines() == [
            "Total errors: 4",
            "  reading: 1",
            "  validation: 1",
            "  resolution: 1",
            "  extraction: 1",
        ]

    def test_report(self) -> None:
        assert create_error_report([]) == f"{OK} No errors found"
        lines = create_error_report(self.ERRORS).splitlines()
        assert lines[0] == f"{FAIL} Error Report"
        assert "b.yaml:" in lines
        assert "      paths: Missing required field 'paths'" in lines
        assert "      info: Missing required field 'info'" not in lines
        assert "      Unresolved: #/components/schemas/Gone" in lines
        assert "  - [extraction] Extraction failed: bad shape" in lines
