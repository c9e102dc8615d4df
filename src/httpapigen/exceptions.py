"""Exception hierarchy for httpapigen.

All exceptions inherit from :class:`HttpApiGenError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`httpapigen.exit_codes`.
The CLI entry point catches ``HttpApiGenError`` and exits with the matching
code.

Pipeline failures form a closed, tagged taxonomy. Every
:class:`PipelineError` carries an explicit :class:`ErrorKind` discriminant,
the :class:`Stage` it belongs to, the originating file path, a message and an
optional cause. Reporting code dispatches on ``kind`` through lookup tables
rather than on the exception class.

Subclass hierarchy::

    HttpApiGenError (exit 1)
    +-- ConfigError              (exit 2)
    +-- BatchError               (exit 1)
    +-- PipelineError
        +-- ReadError                (exit 3)
        +-- DocumentValidationError  (exit 4)
        +-- ResolutionError          (exit 5)
        +-- ExtractionError          (exit 6)
        +-- GenerationError          (exit 7)
"""

from __future__ import annotations

import enum
from typing import Optional, Sequence

from httpapigen.exit_codes import (
    EXIT_EXTRACTION_ERROR,
    EXIT_GENERATION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_READ_ERROR,
    EXIT_RESOLUTION_ERROR,
    EXIT_VALIDATION_ERROR,
)


class Stage(str, enum.Enum):
    """Pipeline stage in which an error originated."""

    READING = "reading"
    VALIDATION = "validation"
    RESOLUTION = "resolution"
    EXTRACTION = "extraction"
    GENERATION = "generation"


class ErrorKind(str, enum.Enum):
    """Closed enumeration of every pipeline failure kind."""

    # reading
    NOT_FOUND = "not_found"
    UNSUPPORTED_FORMAT = "unsupported_format"
    SYNTAX_ERROR = "syntax_error"
    INVALID_STRUCTURE = "invalid_structure"
    # validation
    MISSING_FIELD = "missing_field"
    WRONG_TYPE = "wrong_type"
    UNSUPPORTED_VERSION = "unsupported_version"
    SCHEMA_VIOLATION = "schema_violation"
    # resolution
    UNSAFE_PROTOCOL = "unsafe_protocol"
    PRIVATE_ADDRESS = "private_address"
    DOMAIN_NOT_ALLOWED = "domain_not_allowed"
    NETWORK_TIMEOUT = "network_timeout"
    FETCH_ERROR = "fetch_error"
    RESOLUTION_INCOMPLETE = "resolution_incomplete"
    CIRCULAR_UNRESOLVED = "circular_unresolved"
    # extraction
    MALFORMED_OPERATION = "malformed_operation"
    EXTRACTION_FAILED = "extraction_failed"
    # generation
    OUTPUT_NOT_DIRECTORY = "output_not_directory"
    WRITE_FAILED = "write_failed"


KIND_STAGE: dict[ErrorKind, Stage] = {
    ErrorKind.NOT_FOUND: Stage.READING,
    ErrorKind.UNSUPPORTED_FORMAT: Stage.READING,
    ErrorKind.SYNTAX_ERROR: Stage.READING,
    ErrorKind.INVALID_STRUCTURE: Stage.READING,
    ErrorKind.MISSING_FIELD: Stage.VALIDATION,
    ErrorKind.WRONG_TYPE: Stage.VALIDATION,
    ErrorKind.UNSUPPORTED_VERSION: Stage.VALIDATION,
    ErrorKind.SCHEMA_VIOLATION: Stage.VALIDATION,
    ErrorKind.UNSAFE_PROTOCOL: Stage.RESOLUTION,
    ErrorKind.PRIVATE_ADDRESS: Stage.RESOLUTION,
    ErrorKind.DOMAIN_NOT_ALLOWED: Stage.RESOLUTION,
    ErrorKind.NETWORK_TIMEOUT: Stage.RESOLUTION,
    ErrorKind.FETCH_ERROR: Stage.RESOLUTION,
    ErrorKind.RESOLUTION_INCOMPLETE: Stage.RESOLUTION,
    ErrorKind.CIRCULAR_UNRESOLVED: Stage.RESOLUTION,
    ErrorKind.MALFORMED_OPERATION: Stage.EXTRACTION,
    ErrorKind.EXTRACTION_FAILED: Stage.EXTRACTION,
    ErrorKind.OUTPUT_NOT_DIRECTORY: Stage.GENERATION,
    ErrorKind.WRITE_FAILED: Stage.GENERATION,
}
"""Stage owning each :class:`ErrorKind`. Covers every member of the enum."""


class HttpApiGenError(Exception):
    """Base exception for all httpapigen errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`httpapigen.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.message = message
        if exit_code is not None:
            self.exit_code = exit_code


class ConfigError(HttpApiGenError):
    """Raised for unusable CLI arguments or configuration values."""

    exit_code = EXIT_INVALID_USAGE


class PipelineError(HttpApiGenError):
    """A failure in one stage of a single file's pipeline.

    Args:
        kind: The failure discriminant. Must belong to the subclass's stage.
        message: Human-readable description of the most specific cause.
        file_path: The input file whose pipeline failed.
        cause: The underlying exception, if any.
        details: Additional messages (e.g. every collected validation issue).

    Raises:
        ValueError: If *kind* belongs to a different stage than the class.
    """

    stage: Stage

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        file_path: str = "",
        cause: Optional[BaseException] = None,
        details: Sequence[str] = (),
    ):
        expected = KIND_STAGE[kind]
        if expected is not self.stage:
            raise ValueError(
                f"{type(self).__name__} cannot carry kind {kind.value!r} "
                f"(belongs to stage {expected.value!r})"
            )
        super().__init__(message)
        self.kind = kind
        self.file_path = file_path
        self.cause = cause
        self.details = tuple(details)

    def __str__(self) -> str:
        location = self.file_path or "<unknown>"
        return f"[{self.stage.value}] {location}: {self.message}"

    def with_file(self, file_path: str) -> PipelineError:
        """Return a copy of this error attributed to *file_path*."""
        clone = type(self)(
            self.kind,
            self.message,
            file_path=file_path,
            cause=self.cause,
            details=self.details,
        )
        clone.__cause__ = self.__cause__
        return clone


class ReadError(PipelineError):
    """The document could not be located, recognised or parsed."""

    stage = Stage.READING
    exit_code = EXIT_READ_ERROR


class DocumentValidationError(PipelineError):
    """The document failed structural, version or grammar validation."""

    stage = Stage.VALIDATION
    exit_code = EXIT_VALIDATION_ERROR


class ResolutionError(PipelineError):
    """A reference could not be resolved or was rejected by policy."""

    stage = Stage.RESOLUTION
    exit_code = EXIT_RESOLUTION_ERROR


class ExtractionError(PipelineError):
    """The resolved document does not have the shape the extractor needs."""

    stage = Stage.EXTRACTION
    exit_code = EXIT_EXTRACTION_ERROR


class GenerationError(PipelineError):
    """Artifacts could not be written."""

    stage = Stage.GENERATION
    exit_code = EXIT_GENERATION_ERROR


STAGE_ERRORS: dict[Stage, type[PipelineError]] = {
    Stage.READING: ReadError,
    Stage.VALIDATION: DocumentValidationError,
    Stage.RESOLUTION: ResolutionError,
    Stage.EXTRACTION: ExtractionError,
    Stage.GENERATION: GenerationError,
}


def make_error(
    kind: ErrorKind,
    message: str,
    file_path: str = "",
    cause: Optional[BaseException] = None,
    details: Sequence[str] = (),
) -> PipelineError:
    """Build the :class:`PipelineError` subclass matching *kind*'s stage."""
    error_cls = STAGE_ERRORS[KIND_STAGE[kind]]
    return error_cls(kind, message, file_path=file_path, cause=cause, details=details)


class BatchError(HttpApiGenError):
    """Raised by a fail-fast batch run when at least one file failed.

    Args:
        errors: Every per-file failure, in input order.
    """

    def __init__(self, errors: Sequence[PipelineError]):
        self.errors = tuple(errors)
        count = len(self.errors)
        noun = "file" if count == 1 else "files"
        first = f": {self.errors[0]}" if self.errors else ""
        super().__init__(f"{count} {noun} failed{first}")
        if self.errors:
            self.exit_code = self.errors[0].exit_code
