"""OpenAPI parser -- read, validate, resolve ``$ref`` pointers, and extract the IR.

This sub-package is the first half of the httpapigen pipeline: it turns an
OpenAPI 3.x document on disk (JSON or YAML) into an
:class:`~httpapigen.models.ExtractedApiData` that the generator consumes.

Typical usage::

    from httpapigen.filesystem import LocalFileSystem
    from httpapigen.models import ResolutionOptions
    from httpapigen.parser import (
        extract_api_data,
        read_document,
        resolve_references,
        validate_document_strict,
    )

    raw = read_document("petstore.yaml", LocalFileSystem())
    validated = validate_document_strict(raw)
    resolved = resolve_references(validated.content, ResolutionOptions())
    data = extract_api_data(resolved.resolved)

Sub-modules:

* :mod:`~httpapigen.parser.reader` -- format detection and safe parsing.
* :mod:`~httpapigen.parser.validator` -- structure, version and grammar
  checks, backed by the models in :mod:`~httpapigen.parser.grammar`.
* :mod:`~httpapigen.parser.resolver` -- ``$ref`` resolution with cycle
  detection; :mod:`~httpapigen.parser.remote` gates and fetches external
  references.
* :mod:`~httpapigen.parser.extractor` -- builds the IR.
"""

from httpapigen.parser.extractor import extract_api_data, extract_schema
from httpapigen.parser.reader import (
    parse_content,
    parse_document,
    read_document,
    validate_object_structure,
)
from httpapigen.parser.resolver import (
    classify_references,
    extract_reference_paths,
    resolve_references,
    validate_resolution,
)
from httpapigen.parser.validator import (
    accept_validation,
    validate_document,
    validate_document_strict,
)

__all__ = [
    "accept_validation",
    "classify_references",
    "extract_api_data",
    "extract_reference_paths",
    "extract_schema",
    "parse_content",
    "parse_document",
    "read_document",
    "resolve_references",
    "validate_document",
    "validate_document_strict",
    "validate_object_structure",
    "validate_resolution",
]
