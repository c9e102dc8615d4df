"""Validate command -- check OpenAPI documents without generating code.

Implements ``httpapigen validate FILES...``. Each document is read and run
through the validator's three tiers; the combined validation report goes to
stdout. Files are processed concurrently under the batch policy chosen with
``--fail-fast`` (default) or ``--collect``.
"""

from __future__ import annotations

from typing import Optional

import typer

from httpapigen.exceptions import BatchError, PipelineError
from httpapigen.exit_codes import EXIT_VALIDATION_ERROR
from httpapigen.filesystem import LocalFileSystem
from httpapigen.models import ValidationResult
from httpapigen.output import error, print_data, success
from httpapigen.reports import create_error_report, create_validation_report


def _validate_one(path: str) -> tuple[str, ValidationResult]:
    from httpapigen.parser.reader import read_document, validate_object_structure
    from httpapigen.parser.validator import validate_document

    raw = validate_object_structure(read_document(path, LocalFileSystem()))
    return path, validate_document(raw)


def validate_command(
    files: list[str] = typer.Argument(..., help="OpenAPI documents to validate."),
    collect: bool = typer.Option(
        False,
        "--collect/--fail-fast",
        help="Check every file and report all failures instead of stopping at the first.",
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", min=1, help="Number of files checked concurrently."
    ),
) -> None:
    """Validate OpenAPI documents and print a report.

    Exits non-zero when any document cannot be read or is invalid.

    Example::

        httpapigen validate petstore.yaml
        httpapigen validate specs/*.yaml --collect
    """
    from httpapigen.pipeline import DEFAULT_MAX_WORKERS, BatchPolicy, process_files

    policy = BatchPolicy.COLLECT if collect else BatchPolicy.FAIL_FAST
    failures: tuple[PipelineError, ...] = ()
    try:
        outcome = process_files(
            files,
            policy=policy,
            max_workers=workers or DEFAULT_MAX_WORKERS,
            runner=_validate_one,
        )
    except BatchError as exc:
        error(exc.message)
        print_data(create_error_report(exc.errors))
        raise typer.Exit(code=exc.exit_code) from None

    if policy is BatchPolicy.COLLECT:
        checked = list(outcome.successes)
        failures = outcome.failures
    else:
        checked = list(outcome)

    paths = [path for path, _ in checked]
    results = [result for _, result in checked]
    print_data(create_validation_report(results, paths))

    if failures:
        print_data(create_error_report(failures))
        raise typer.Exit(code=failures[0].exit_code)
    if not all(result.is_valid for result in results):
        raise typer.Exit(code=EXIT_VALIDATION_ERROR)
    noun = "document" if len(results) == 1 else "documents"
    success(f"{len(results)} {noun} valid")
