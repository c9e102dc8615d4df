"""Run the full read -> validate -> resolve -> extract -> generate pipeline.

:func:`process_file` runs one document's stages in order. Each stage either
returns its value or raises a :class:`~httpapigen.exceptions.PipelineError`,
so a failure at one stage stops the remaining stages for that file. Any
other exception escaping a stage is wrapped in that stage's error type.

:func:`process_files` runs several documents concurrently on a thread pool
under one of two :class:`BatchPolicy` values. Files share no mutable state
and results keep input order.
"""

from __future__ import annotations

import enum
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any, Callable, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field

from httpapigen.exceptions import BatchError, ErrorKind, PipelineError, make_error
from httpapigen.filesystem import FileSystem, LocalFileSystem
from httpapigen.generator.emitter import Artifact, generate_artifacts, write_artifacts
from httpapigen.models import (
    ExtractedApiData,
    ResolutionOptions,
    ResolvedDocument,
    ValidatedDocument,
)
from httpapigen.parser.extractor import extract_api_data
from httpapigen.parser.reader import read_document, validate_object_structure
from httpapigen.parser.remote import Fetcher
from httpapigen.parser.resolver import resolve_references, validate_resolution
from httpapigen.parser.validator import accept_validation, validate_document

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_WORKERS = 4


class BatchPolicy(str, enum.Enum):
    """How a batch reacts to a failing file."""

    FAIL_FAST = "fail_fast"
    COLLECT = "collect"


class PipelineOptions(BaseModel):
    """Settings shared by every file in a run."""

    model_config = ConfigDict(frozen=True)

    output_dir: Optional[str] = Field(
        default=None, description="Write artifacts here; None skips writing"
    )
    skip_validation: bool = False
    continue_on_validation_error: bool = False
    resolution: ResolutionOptions = Field(default_factory=ResolutionOptions)


class PipelineResult(BaseModel):
    """Everything one successful file run produced."""

    model_config = ConfigDict(frozen=True)

    source_path: str
    validated: ValidatedDocument
    resolved: ResolvedDocument
    data: ExtractedApiData
    artifacts: tuple[Artifact, ...] = ()
    written: tuple[str, ...] = ()


class BatchResult(BaseModel):
    """Outcome of a collecting batch, partitioned into successes and failures."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    successes: tuple[Any, ...] = ()
    failures: tuple[PipelineError, ...] = ()

    @property
    def ok(self) -> bool:
        return not self.failures


# Kind used when a stage fails with something other than a PipelineError.
_UNEXPECTED_KINDS: dict[str, ErrorKind] = {
    "reading": ErrorKind.SYNTAX_ERROR,
    "validation": ErrorKind.SCHEMA_VIOLATION,
    "resolution": ErrorKind.FETCH_ERROR,
    "extraction": ErrorKind.EXTRACTION_FAILED,
    "generation": ErrorKind.WRITE_FAILED,
}


def _run_stage(stage: str, path: str, step: Callable[[], T]) -> T:
    try:
        return step()
    except PipelineError as exc:
        if exc.file_path:
            raise
        raise exc.with_file(path) from exc.__cause__
    except Exception as exc:
        raise make_error(
            _UNEXPECTED_KINDS[stage],
            f"Unexpected error during {stage}: {exc}",
            file_path=path,
            cause=exc,
        ) from exc


def process_file(
    path: str,
    options: Optional[PipelineOptions] = None,
    fs: Optional[FileSystem] = None,
    fetcher: Optional[Fetcher] = None,
) -> PipelineResult:
    """Run every stage for the document at *path*.

    Args:
        path: The OpenAPI document to process.
        options: Run settings. Defaults to strict validation, bundle-mode
            resolution and no writing.
        fs: Filesystem capability for reading and writing.
        fetcher: Network capability for full-mode resolution.

    Returns:
        A :class:`PipelineResult`. ``written`` is empty when
        ``options.output_dir`` is ``None``.

    Raises:
        PipelineError: The first stage failure, attributed to *path*.
    """
    options = options or PipelineOptions()
    fs = fs or LocalFileSystem()

    raw = _run_stage(
        "reading", path, lambda: validate_object_structure(read_document(path, fs))
    )
    logger.debug("Read %s (%s)", path, raw.format.value)

    validated = _run_stage(
        "validation",
        path,
        lambda: accept_validation(
            raw,
            validate_document(raw, skip_grammar=options.skip_validation),
            continue_on_error=options.continue_on_validation_error,
        ),
    )
    for issue in validated.errors:
        logger.warning("%s: tolerated validation issue at %s: %s", path, issue.path, issue.message)

    resolution = options.resolution
    resolved = _run_stage(
        "resolution",
        path,
        lambda: resolve_references(
            validated.content, resolution, fetcher=fetcher, source_path=path
        ),
    )
    if resolution.resolve_external and not resolution.continue_on_error:
        _run_stage("resolution", path, lambda: validate_resolution(resolved))
    for message in resolved.errors:
        logger.warning("%s: %s", path, message)

    data = _run_stage(
        "extraction", path, lambda: extract_api_data(resolved.resolved, source_path=path)
    )
    logger.debug("Extracted %d operations from %s", len(data.operations), path)

    artifacts = _run_stage("generation", path, lambda: generate_artifacts(data))
    written: list[str] = []
    if options.output_dir is not None:
        output_dir = options.output_dir
        written = _run_stage(
            "generation", path, lambda: write_artifacts(artifacts, output_dir, fs)
        )
        logger.info("Wrote %d files to %s", len(written), output_dir)

    return PipelineResult(
        source_path=path,
        validated=validated,
        resolved=resolved,
        data=data,
        artifacts=artifacts,
        written=tuple(written),
    )


def process_files(
    paths: Sequence[str],
    options: Optional[PipelineOptions] = None,
    policy: BatchPolicy = BatchPolicy.FAIL_FAST,
    max_workers: int = DEFAULT_MAX_WORKERS,
    fs: Optional[FileSystem] = None,
    fetcher: Optional[Fetcher] = None,
    runner: Optional[Callable[[str], Any]] = None,
) -> Union[BatchResult, list[Any]]:
    """Process several documents concurrently.

    Args:
        paths: Documents to process.
        options: Settings applied to every file.
        policy: :attr:`BatchPolicy.FAIL_FAST` stops scheduling new files
            after the first failure and raises; :attr:`BatchPolicy.COLLECT`
            runs every file and returns a :class:`BatchResult`.
        max_workers: Thread pool size.
        fs: Filesystem capability shared by all files.
        fetcher: Network capability shared by all files.
        runner: Replaces :func:`process_file` for each path, for commands
            that only run some of the stages.

    Returns:
        For ``FAIL_FAST``, the per-file results in input order. For
        ``COLLECT``, a :class:`BatchResult`.

    Raises:
        BatchError: In ``FAIL_FAST`` mode, carrying every failure observed
            before the batch stopped, in input order.
    """
    if runner is None:
        def runner(path: str) -> PipelineResult:
            return process_file(path, options, fs=fs, fetcher=fetcher)

    def attempt(path: str) -> Any:
        try:
            return runner(path)
        except PipelineError as exc:
            return exc

    workers = max(1, min(max_workers, len(paths) or 1))
    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = [pool.submit(attempt, path) for path in paths]
        if policy is BatchPolicy.FAIL_FAST:
            for future in as_completed(futures):
                if isinstance(future.result(), PipelineError):
                    for pending in futures:
                        pending.cancel()
                    break
        outcomes = [future.result() for future in futures if not future.cancelled()]

    successes = [item for item in outcomes if not isinstance(item, PipelineError)]
    failures = [item for item in outcomes if isinstance(item, PipelineError)]

    if policy is BatchPolicy.FAIL_FAST:
        if failures:
            raise BatchError(failures)
        return successes
    return BatchResult(successes=tuple(successes), failures=tuple(failures))
