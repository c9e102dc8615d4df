"""Inspect commands -- examine what the generator sees in a document.

Provides the ``httpapigen inspect`` sub-command group with read-only
commands. Each one runs the document through the pipeline without writing
anything and presents one view of the result: the extraction summary,
operations, component schemas, reference resolution, or the endpoint groups
that would be emitted.
"""

from __future__ import annotations

from typing import Any

import typer

from httpapigen.exceptions import ConfigError, PipelineError
from httpapigen.output import error, get_output, info, print_data, print_json, warning


inspect_app = typer.Typer(no_args_is_help=True)

_MAX_LISTED_PROPERTIES = 5

_FILE_ARGUMENT = typer.Argument(..., help="OpenAPI document to inspect.")
_RESOLVE_OPTION = typer.Option(
    False, "--resolve-external", help="Fetch and inline external $ref targets."
)


def _run(file: str, resolve_external: bool = False) -> Any:
    """Run the pipeline for *file* without writing and return the result.

    Raises:
        typer.Exit: With the failing stage's exit code.
    """
    from httpapigen.config import resolve_config, to_pipeline_options
    from httpapigen.pipeline import process_file

    try:
        config, warnings = resolve_config(
            {"input_path": file, "resolve_external": resolve_external or None}
        )
    except ConfigError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None
    for message in warnings:
        warning(message)

    try:
        return process_file(file, to_pipeline_options(config, write=False))
    except PipelineError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


@inspect_app.command("summary")
def inspect_summary(
    file: str = _FILE_ARGUMENT,
    resolve_external: bool = _RESOLVE_OPTION,
) -> None:
    """Show the extraction report: info, servers, methods and components.

    With the root ``--json`` flag the whole extracted API is dumped instead.

    Example::

        httpapigen inspect summary petstore.yaml
        httpapigen --json inspect summary petstore.yaml
    """
    from httpapigen.output import OutputFormat
    from httpapigen.reports import create_extraction_report

    result = _run(file, resolve_external)
    if get_output().format is OutputFormat.JSON:
        print_json(result.data.model_dump(mode="json", by_alias=True, exclude_none=True))
        return
    print_data(create_extraction_report(result.data))


@inspect_app.command("paths")
def inspect_paths(
    file: str = _FILE_ARGUMENT,
    resolve_external: bool = _RESOLVE_OPTION,
) -> None:
    """List every operation with its method, path, tags and summary."""
    result = _run(file, resolve_external)

    headers = ["Method", "Path", "Operation ID", "Tags", "Summary", "Deprecated"]
    rows: list[list[str]] = []
    for op in result.data.operations:
        rows.append([
            op.method,
            op.path,
            op.operation_id or "-",
            ", ".join(op.tags) or "-",
            op.summary or "-",
            "Yes" if op.deprecated else "",
        ])

    get_output().print_table(
        headers, rows, title=f"{result.data.info.title} -- Paths ({len(rows)})"
    )


@inspect_app.command("schemas")
def inspect_schemas(
    file: str = _FILE_ARGUMENT,
    resolve_external: bool = _RESOLVE_OPTION,
) -> None:
    """List component schemas with their kind and first few properties."""
    result = _run(file, resolve_external)
    schemas = result.data.components.schemas

    if not schemas:
        info("No component schemas defined in this document.")
        return

    headers = ["Schema", "Kind", "Properties"]
    rows: list[list[str]] = []
    for name, node in schemas.items():
        names = list(getattr(node, "properties", {}))
        props = ", ".join(names[:_MAX_LISTED_PROPERTIES])
        if len(names) > _MAX_LISTED_PROPERTIES:
            props += "..."
        rows.append([name, node.kind, props or "-"])

    get_output().print_table(headers, rows, title=f"Schemas ({len(rows)})")


@inspect_app.command("refs")
def inspect_refs(
    file: str = _FILE_ARGUMENT,
    resolve_external: bool = _RESOLVE_OPTION,
) -> None:
    """Show the reference resolution report."""
    from httpapigen.reports import create_resolution_report

    result = _run(file, resolve_external)
    print_data(create_resolution_report(result.resolved))


@inspect_app.command("groups")
def inspect_groups(
    file: str = _FILE_ARGUMENT,
    resolve_external: bool = _RESOLVE_OPTION,
) -> None:
    """List the API groups and endpoints that ``generate`` would emit."""
    from httpapigen.generator.emitter import endpoint_names, group_operations

    result = _run(file, resolve_external)

    headers = ["Group", "File", "Endpoint", "Method", "Path"]
    rows: list[list[str]] = []
    for group in group_operations(result.data):
        for op, name in zip(group.operations, endpoint_names(group.operations)):
            rows.append([group.class_name, group.file_name, name, op.method, op.path])

    get_output().print_table(headers, rows, title=f"Groups ({len(rows)} endpoints)")
