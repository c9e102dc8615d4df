"""Code generator -- turn the IR into Effect platform ``HttpApi`` source files.

This sub-package is the second half of the httpapigen pipeline: it takes an
:class:`~httpapigen.models.ExtractedApiData` (produced by the parser) and
renders the TypeScript artifacts for it.

Typical usage::

    from httpapigen.filesystem import LocalFileSystem
    from httpapigen.generator import generate_artifacts, write_artifacts

    artifacts = generate_artifacts(data)
    write_artifacts(artifacts, "generated", LocalFileSystem())

Sub-modules:

* :mod:`~httpapigen.generator.type_mapper` -- Map IR schema nodes to Effect
  Schema expressions and annotation suffixes.
* :mod:`~httpapigen.generator.emitter` -- Group operations by tag and render
  ``schemas.ts``, one ``<tag>-api.ts`` per group and ``index.ts`` from the
  Jinja2 templates in ``generator/templates/``.
"""

from httpapigen.generator.emitter import (
    Artifact,
    generate_artifacts,
    group_operations,
    write_artifacts,
)
from httpapigen.generator.type_mapper import map_schema, render_type

__all__ = [
    "Artifact",
    "generate_artifacts",
    "group_operations",
    "map_schema",
    "render_type",
    "write_artifacts",
]
