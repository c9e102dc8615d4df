"""Tests for httpapigen.parser.validator and the grammar models."""

from __future__ import annotations

import copy
from typing import Any

import pytest

from httpapigen.exceptions import DocumentValidationError, ErrorKind, Stage
from httpapigen.models import DocumentFormat, RawDocument
from httpapigen.parser.grammar import OpenApiDocument
from httpapigen.parser.validator import (
    accept_validation,
    validate_basic_structure,
    validate_document,
    validate_document_strict,
    validate_openapi_version,
)


def _raw(content: Any, path: str = "api.yaml") -> RawDocument:
    return RawDocument(source_path=path, format=DocumentFormat.YAML, content=content)


# ---------------------------------------------------------------------------
# Basic structure tier
# ---------------------------------------------------------------------------


class TestBasicStructure:
    def test_valid_minimal_document(self, minimal_doc: dict[str, Any]) -> None:
        assert validate_basic_structure(minimal_doc) == []

    def test_reports_every_missing_field(self) -> None:
        issues = validate_basic_structure({"openapi": "3.0.0"})
        assert [i.path for i in issues] == ["info", "paths"]
        assert all(i.kind == ErrorKind.MISSING_FIELD.value for i in issues)

    def test_missing_info_fields(self) -> None:
        issues = validate_basic_structure({"info": {}, "paths": {}})
        assert [i.path for i in issues] == ["info.title", "info.version"]

    def test_wrong_types_carry_value(self) -> None:
        issues = validate_basic_structure(
            {"info": {"title": 42, "version": "1"}, "paths": []}
        )
        assert [(i.path, i.kind) for i in issues] == [
            ("info.title", ErrorKind.WRONG_TYPE.value),
            ("paths", ErrorKind.WRONG_TYPE.value),
        ]
        assert issues[0].value == 42

    def test_non_mapping_root(self) -> None:
        issues = validate_basic_structure(["not", "a", "dict"])
        assert len(issues) == 1
        assert issues[0].path == "root"


# ---------------------------------------------------------------------------
# Version tier
# ---------------------------------------------------------------------------


class TestOpenApiVersion:
    @pytest.mark.parametrize("version", ["3.0.0", "3.0.3", "3.1.0"])
    def test_accepts_3x(self, version: str) -> None:
        assert validate_openapi_version({"openapi": version}) == []

    def test_rejects_swagger_2(self) -> None:
        issues = validate_openapi_version({"swagger": "2.0"})
        assert len(issues) == 1
        assert issues[0].kind == ErrorKind.UNSUPPORTED_VERSION.value
        assert "Missing or invalid" in issues[0].message

    def test_rejects_other_major(self) -> None:
        issues = validate_openapi_version({"openapi": "4.0.0"})
        assert issues[0].value == "4.0.0"
        assert "Unsupported OpenAPI version: 4.0.0" in issues[0].message

    def test_numeric_version_is_rejected(self) -> None:
        assert validate_openapi_version({"openapi": 3.0})[0].kind == (
            ErrorKind.UNSUPPORTED_VERSION.value
        )


# ---------------------------------------------------------------------------
# validate_document (all tiers)
# ---------------------------------------------------------------------------


class TestValidateDocument:
    def test_valid_document_decodes_grammar(self, petstore_raw: dict[str, Any]) -> None:
        result = validate_document(_raw(petstore_raw))
        assert result.is_valid
        assert result.errors == ()
        assert isinstance(result.document, OpenApiDocument)
        assert result.document.info.title == "Pet Store"

    def test_grammar_skipped_after_basic_failure(self) -> None:
        result = validate_document(_raw({"openapi": "3.0.0", "paths": {}}))
        assert not result.is_valid
        assert [i.kind for i in result.errors] == [ErrorKind.MISSING_FIELD.value]

    def test_basic_and_version_issues_reported_together(self) -> None:
        result = validate_document(_raw({"swagger": "2.0", "info": {"title": "x"}}))
        kinds = [i.kind for i in result.errors]
        assert kinds == [
            ErrorKind.MISSING_FIELD.value,
            ErrorKind.MISSING_FIELD.value,
            ErrorKind.UNSUPPORTED_VERSION.value,
        ]

    def test_grammar_violation_for_bad_parameter_location(
        self, minimal_doc: dict[str, Any]
    ) -> None:
        doc = copy.deepcopy(minimal_doc)
        doc["paths"]["/ping"]["get"]["parameters"] = [
            {"name": "page", "in": "body", "schema": {"type": "integer"}}
        ]
        result = validate_document(_raw(doc))
        assert not result.is_valid
        assert result.errors
        assert all(i.kind == ErrorKind.SCHEMA_VIOLATION.value for i in result.errors)
        assert any(i.path.startswith("paths./ping.get.parameters.0") for i in result.errors)

    def test_operation_without_responses_violates_grammar(
        self, minimal_doc: dict[str, Any]
    ) -> None:
        doc = copy.deepcopy(minimal_doc)
        del doc["paths"]["/ping"]["get"]["responses"]
        result = validate_document(_raw(doc))
        assert any(i.path == "paths./ping.get.responses" for i in result.errors)

    def test_invalid_path_template(self, minimal_doc: dict[str, Any]) -> None:
        doc = copy.deepcopy(minimal_doc)
        doc["paths"]["pets/{id"] = {}
        result = validate_document(_raw(doc))
        assert not result.is_valid
        assert "Invalid path template" in result.errors[0].message

    def test_extension_keys_in_paths_are_ignored(
        self, minimal_doc: dict[str, Any]
    ) -> None:
        doc = copy.deepcopy(minimal_doc)
        doc["paths"]["x-internal"] = {"anything": True}
        assert validate_document(_raw(doc)).is_valid

    def test_skip_grammar(self, minimal_doc: dict[str, Any]) -> None:
        doc = copy.deepcopy(minimal_doc)
        del doc["paths"]["/ping"]["get"]["responses"]
        result = validate_document(_raw(doc), skip_grammar=True)
        assert result.is_valid
        assert result.document is None

    def test_never_raises_on_garbage(self) -> None:
        result = validate_document(_raw("not a mapping"))
        assert not result.is_valid


# ---------------------------------------------------------------------------
# accept_validation / validate_document_strict
# ---------------------------------------------------------------------------


class TestAcceptValidation:
    def test_valid_result_becomes_validated_document(
        self, minimal_doc: dict[str, Any]
    ) -> None:
        raw = _raw(minimal_doc)
        validated = accept_validation(raw, validate_document(raw))
        assert validated.content == minimal_doc
        assert validated.source_path == "api.yaml"
        assert validated.errors == ()

    def test_strict_mode_raises_with_first_issue_kind(self) -> None:
        raw = _raw({"openapi": "2.0", "info": {"title": "t", "version": "1"}, "paths": {}})
        with pytest.raises(DocumentValidationError) as exc_info:
            accept_validation(raw, validate_document(raw))
        err = exc_info.value
        assert err.kind is ErrorKind.UNSUPPORTED_VERSION
        assert err.stage is Stage.VALIDATION
        assert err.file_path == "api.yaml"
        assert err.message.startswith("OpenAPI validation failed at openapi:")

    def test_strict_details_list_every_issue(self) -> None:
        raw = _raw({"openapi": "3.0.0"})
        with pytest.raises(DocumentValidationError) as exc_info:
            validate_document_strict(raw)
        assert exc_info.value.details == (
            "info: Missing required field 'info'",
            "paths: Missing required field 'paths'",
        )

    def test_lenient_mode_tolerates_grammar_issues(
        self, minimal_doc: dict[str, Any]
    ) -> None:
        doc = copy.deepcopy(minimal_doc)
        del doc["paths"]["/ping"]["get"]["responses"]["200"]["description"]
        raw = _raw(doc)
        validated = accept_validation(raw, validate_document(raw), continue_on_error=True)
        assert validated.errors
        assert validated.content == doc
        assert validated.document is None

    def test_lenient_mode_still_fails_on_missing_fields(self) -> None:
        raw = _raw({"openapi": "3.0.0", "info": {"title": "t", "version": "1"}})
        with pytest.raises(DocumentValidationError) as exc_info:
            accept_validation(raw, validate_document(raw), continue_on_error=True)
        assert exc_info.value.kind is ErrorKind.MISSING_FIELD

    def test_lenient_mode_still_fails_on_version(self) -> None:
        raw = _raw({"openapi": "2.0", "info": {"title": "t", "version": "1"}, "paths": {}})
        with pytest.raises(DocumentValidationError):
            accept_validation(raw, validate_document(raw), continue_on_error=True)
