"""httpapigen -- Generate Effect platform HttpApi definitions from OpenAPI 3.x.

This package reads an OpenAPI 3.0/3.1 document (JSON or YAML), validates it,
resolves its ``$ref`` references, extracts a language-neutral intermediate
representation, and emits TypeScript source built on ``@effect/platform``'s
``HttpApi``, ``HttpApiGroup`` and ``HttpApiEndpoint`` plus ``effect/Schema``.

Typical workflow::

    httpapigen validate petstore.yaml
    httpapigen generate -i petstore.yaml -o src/api

Modules:
    app: Typer application and CLI entry point.
    pipeline: Stage composition for one file and concurrent batches.
    parser: Reader, validator, reference resolver and extractor.
    generator: Type mapper and TypeScript emitter.
    models: Pydantic models for every stage output and the IR.
    config: rc-file configuration and precedence resolution.
    reports: Plain-text validation, resolution and error reports.
    exceptions: Tagged error taxonomy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
