"""Generate command -- turn an OpenAPI document into HttpApi TypeScript.

Implements the ``httpapigen generate`` top-level command. Settings are
merged from the command line, the project ``.httpapigenrc`` and the user
config (see :mod:`httpapigen.config`), then the document runs through the
full pipeline and the artifacts are written to the output directory.
"""

from __future__ import annotations

from typing import Optional

import typer

from httpapigen.exceptions import ConfigError, PipelineError
from httpapigen.exit_codes import EXIT_INVALID_USAGE
from httpapigen.output import debug, error, info, print_data, success, suggest, warning
from httpapigen.reports import create_error_report


def generate_command(
    ctx: typer.Context,
    input_path: Optional[str] = typer.Option(
        None, "--input", "-i", help="OpenAPI document (.json, .yaml or .yml)."
    ),
    output_dir: Optional[str] = typer.Option(
        None, "--output", "-o", help="Directory for generated files [default: generated]."
    ),
    resolve_external: Optional[bool] = typer.Option(
        None,
        "--resolve-external/--no-resolve-external",
        help="Fetch and inline external $ref targets.",
    ),
    allowed_domains: Optional[list[str]] = typer.Option(
        None,
        "--allowed-domain",
        help="Domain external references may be fetched from (repeatable).",
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds to wait for each external fetch."
    ),
    skip_validation: Optional[bool] = typer.Option(
        None, "--skip-validation", help="Skip the OpenAPI grammar check."
    ),
    continue_on_error: Optional[bool] = typer.Option(
        None,
        "--continue-on-error",
        help="Tolerate grammar violations and unresolvable references.",
    ),
) -> None:
    """Generate Effect HttpApi definitions from an OpenAPI document.

    Example::

        httpapigen generate -i petstore.yaml -o src/api
        httpapigen generate -i api.yaml --resolve-external --allowed-domain schemas.example.com
    """
    from httpapigen.config import resolve_config, to_pipeline_options
    from httpapigen.pipeline import process_file

    cli_values = {
        "input_path": input_path,
        "output_dir": output_dir,
        "resolve_external": resolve_external,
        "allowed_domains": allowed_domains or None,
        "timeout": timeout,
        "skip_validation": skip_validation,
        "continue_on_validation_error": continue_on_error,
        "continue_on_resolution_error": continue_on_error,
    }
    if ctx.obj and ctx.obj.get("verbose"):
        cli_values["verbose"] = True

    try:
        config, warnings = resolve_config(cli_values)
    except ConfigError as exc:
        error(exc.message)
        raise typer.Exit(code=exc.exit_code) from None
    for message in warnings:
        warning(message)

    if not config.input_path:
        error("No input document given.")
        suggest("Pass --input PATH or set input_path in .httpapigenrc")
        raise typer.Exit(code=EXIT_INVALID_USAGE)

    info(f"Generating from {config.input_path}")
    try:
        result = process_file(config.input_path, to_pipeline_options(config))
    except PipelineError as exc:
        error(str(exc))
        if exc.details:
            print_data(create_error_report([exc]))
        raise typer.Exit(code=exc.exit_code) from None

    for path in result.written:
        debug(f"wrote {path}")
    operations = len(result.data.operations)
    success(
        f"Generated {len(result.written)} files for {operations} operations in {config.output_dir}"
    )
