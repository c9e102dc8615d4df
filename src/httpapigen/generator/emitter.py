"""Emit Effect platform ``HttpApi`` source files from the IR.

Generation is split into a pure part and an I/O part:

* :func:`generate_artifacts` renders every output file in memory from an
  :class:`~httpapigen.models.ExtractedApiData`. The same IR always renders
  to byte-identical artifacts.
* :func:`write_artifacts` writes a finished artifact set to an output
  directory through a :class:`~httpapigen.filesystem.FileSystem`. Nothing is
  written unless every artifact was rendered first.

The artifact set for one document is:

* ``schemas.ts`` -- one exported schema per component schema, plus a
  matching ``export type``.
* ``<kebab-tag>-api.ts`` -- one ``HttpApiGroup`` class per tag group.
* ``index.ts`` -- imports every group, re-exports the schemas and declares
  the top-level ``HttpApi`` class.

Templates live in ``generator/templates/`` and are rendered with Jinja2.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from jinja2 import Environment, FileSystemLoader, select_autoescape

from httpapigen.exceptions import ErrorKind, GenerationError
from httpapigen.filesystem import FileSystem
from httpapigen.generator.type_mapper import (
    annotation_fields,
    format_annotations,
    map_schema,
    render_annotations,
    schema_type,
    to_literal,
)
from httpapigen.models import (
    ExtractedApiData,
    ObjectSchema,
    Operation,
    Parameter,
    ParameterLocation,
    Response,
    SchemaNode,
)
from httpapigen.naming import to_camel_case, to_kebab_case, to_pascal_case

TEMPLATE_DIR = Path(__file__).parent / "templates"
"""Path to the Jinja2 template directory (``generator/templates/``)."""

DEFAULT_TAG = "default"
"""Group name for operations that declare no tags."""

SCHEMAS_FILE = "schemas.ts"
INDEX_FILE = "index.ts"

_METHOD_CONSTRUCTORS: dict[str, str] = {
    "GET": "HttpApiEndpoint.get",
    "POST": "HttpApiEndpoint.post",
    "PUT": "HttpApiEndpoint.put",
    "PATCH": "HttpApiEndpoint.patch",
    "DELETE": "HttpApiEndpoint.del",
    "HEAD": "HttpApiEndpoint.head",
    "OPTIONS": "HttpApiEndpoint.options",
}

_PARAM_SETTERS: tuple[tuple[ParameterLocation, str, str], ...] = (
    (ParameterLocation.PATH, "setPath", "PathParams"),
    (ParameterLocation.QUERY, "setUrlParams", "UrlParams"),
    (ParameterLocation.HEADER, "setHeaders", "Headers"),
)

# URL params and headers arrive as strings.
_STRING_ENCODED: dict[str, str] = {
    "S.Int": "S.NumberFromString.pipe(S.int())",
    "S.Number": "S.NumberFromString",
    "S.Boolean": "S.BooleanFromString",
}

_FALLBACK_GROUP_STEM = "Group"

_IDENTIFIER = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_PATH_PARAM = re.compile(r"\{([^{}]+)\}")


@dataclass(frozen=True)
class Artifact:
    """One generated file: a name relative to the output directory and its text."""

    file_name: str
    content: str


@dataclass(frozen=True)
class ApiGroup:
    """Operations sharing a tag, in declaration order.

    ``name`` is the PascalCase stem of the class and module names; when empty
    it is derived from the tag.
    """

    tag: str
    operations: tuple[Operation, ...]
    name: str = ""

    @property
    def stem(self) -> str:
        return self.name or to_pascal_case(self.tag) or _FALLBACK_GROUP_STEM

    @property
    def class_name(self) -> str:
        return f"{self.stem}Api"

    @property
    def module(self) -> str:
        return f"{to_kebab_case(self.stem)}-api"

    @property
    def file_name(self) -> str:
        return f"{self.module}.ts"


def _create_jinja_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATE_DIR)),
        autoescape=select_autoescape(disabled_extensions=("ts.j2",)),
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )


# --- Naming ---


def _merge_parameters(
    shared: Sequence[Parameter], own: Sequence[Parameter]
) -> tuple[Parameter, ...]:
    """Path-level parameters overlaid by the operation's, keyed on name and location."""
    overrides = {(p.name, p.location): p for p in own}
    merged = [overrides.pop((p.name, p.location), p) for p in shared]
    merged += [p for p in own if (p.name, p.location) in overrides]
    return tuple(merged)


def _unique(stem: str, taken: set[str]) -> str:
    """*stem*, or *stem* plus the first free number from 2, compared as kebab-case."""
    candidate, n = stem, 2
    while to_kebab_case(candidate) in taken:
        candidate = f"{stem}{n}"
        n += 1
    taken.add(to_kebab_case(candidate))
    return candidate


def group_operations(data: ExtractedApiData) -> list[ApiGroup]:
    """Group operations by their first tag.

    Untagged operations go to :data:`DEFAULT_TAG`. Groups for tags declared
    at the document level come first, in declaration order; the rest follow
    in order of first appearance.

    Each operation carries its path item's parameters, overridden by its own.
    Tags that normalise to the same module name (``Users`` and ``users``)
    get numbered stems, and tags with no ASCII letters or digits fall back to
    ``Group``.
    """
    buckets: dict[str, list[Operation]] = {}
    for item in data.paths:
        for operation in item.operations:
            if item.parameters:
                merged = _merge_parameters(item.parameters, operation.parameters)
                operation = operation.model_copy(update={"parameters": merged})
            tag = operation.tags[0] if operation.tags else DEFAULT_TAG
            buckets.setdefault(tag, []).append(operation)

    ordered = [tag.name for tag in data.tags if tag.name in buckets]
    ordered += [tag for tag in buckets if tag not in ordered]

    taken: set[str] = set()
    groups = []
    for tag in ordered:
        stem = _unique(to_pascal_case(tag) or _FALLBACK_GROUP_STEM, taken)
        groups.append(ApiGroup(tag=tag, operations=tuple(buckets[tag]), name=stem))
    return groups


def endpoint_name(operation: Operation) -> str:
    """``operationId``, or the lowercase method plus PascalCase static segments.

    Examples::

        >>> endpoint_name(Operation(method="GET", path="/pets/{petId}/toys"))
        'getPetsToys'
    """
    if operation.operation_id:
        return operation.operation_id
    static = [part for part in operation.path.split("/") if part and not part.startswith("{")]
    return to_camel_case(" ".join([operation.method.lower(), *static]))


def endpoint_names(operations: Sequence[Operation]) -> list[str]:
    """Endpoint names for one group, distinct once converted to PascalCase.

    A clashing name first gains ``By<Param>`` for its path parameters
    (``getPets`` becomes ``getPetsById``), then a numeric suffix.
    """
    names = []
    taken: set[str] = set()
    for operation in operations:
        name = endpoint_name(operation)
        params = _PATH_PARAM.findall(operation.path)
        if to_kebab_case(name) in taken and params:
            name += "By" + "And".join(to_pascal_case(p) for p in params)
        names.append(_unique(name, taken))
    return names


def api_name(data: ExtractedApiData, groups: Sequence[ApiGroup]) -> str:
    """Class name of the top-level API, kept distinct from every group class."""
    name = f"{to_pascal_case(data.info.title)}Api"
    if any(group.class_name == name for group in groups):
        name = f"{to_pascal_case(data.info.title)}HttpApi"
    return name


def to_route(path: str) -> str:
    """Convert an OpenAPI path template to a route (``{id}`` -> ``:id``)."""
    return _PATH_PARAM.sub(r":\1", path)


def property_key(name: str) -> str:
    return name if _IDENTIFIER.match(name) else to_literal(name)


def _comment(text: Optional[str], fallback: str) -> str:
    line = (text or "").strip().splitlines()[0] if (text or "").strip() else fallback
    return line.replace("*/", "* /")


# --- schemas.ts ---


def _struct_expression(node: ObjectSchema, ref_style: str) -> str:
    if not node.properties:
        return "S.Struct({})"
    lines = []
    for name, prop in node.properties.items():
        value = schema_type(prop, ref_style) + render_annotations(prop, indent="\t")
        if name not in node.required:
            value = f"S.optional({value})"
        lines.append(f"\t{property_key(name)}: {value},")
    return "S.Struct({\n" + "\n".join(lines) + "\n})"


def component_expression(node: SchemaNode) -> str:
    """Render the right-hand side of a component schema declaration."""
    if isinstance(node, ObjectSchema) and node.properties:
        text = _struct_expression(node, "local")
        if node.nullable:
            text = f"S.NullOr({text})"
        return text + render_annotations(node)
    return schema_type(node, "local") + render_annotations(node)


def render_schemas(data: ExtractedApiData, env: Optional[Environment] = None) -> str:
    env = env or _create_jinja_env()
    schemas = [
        {
            "name": to_pascal_case(name),
            "comment": _comment(node.description, f"{to_pascal_case(name)} schema"),
            "expression": component_expression(node),
        }
        for name, node in data.components.schemas.items()
    ]
    return env.get_template("schemas.ts.j2").render(schemas=schemas)


# --- <tag>-api.ts ---


def _parameter_type(param: Parameter) -> str:
    if param.schema_ is None:
        return "S.String"
    expr = map_schema(param.schema_)
    if expr.kind == "primitive" and expr.name in _STRING_ENCODED:
        text = _STRING_ENCODED[expr.name]
        return f"S.NullOr({text})" if expr.nullable else text
    return schema_type(param.schema_)


def _parameter_annotations(param: Parameter) -> str:
    fields = []
    if param.description:
        fields.append(("description", to_literal(param.description)))
    if param.example is not None:
        fields.append(("examples", f"[{to_literal(param.example)}]"))
    taken = {key for key, _ in fields}
    fields += [item for item in annotation_fields(param.schema_) if item[0] not in taken]
    return format_annotations(fields, indent="\t")


def _parameters_struct(params: Sequence[Parameter]) -> str:
    lines = []
    for param in params:
        value = _parameter_type(param) + _parameter_annotations(param)
        if not param.required:
            value = f"S.optional({value})"
        lines.append(f"\t{property_key(param.name)}: {value},")
    return "S.Struct({\n" + "\n".join(lines) + "\n})"


def _response_type(response: Response, fallback: str = "S.Void") -> str:
    if response.schema_ is None:
        return fallback
    return schema_type(response.schema_)


def _success_call(responses: Sequence[Response]) -> Optional[str]:
    for response in responses:
        code = response.status_code
        if code is not None and 200 <= code < 300:
            schema = _response_type(response)
            if code == 200:
                return f".addSuccess({schema})"
            return f".addSuccess({schema}, {{ status: {code} }})"
    return None


def _error_calls(responses: Sequence[Response]) -> list[str]:
    calls = []
    seen: set[int] = set()
    for response in responses:
        code = response.status_code
        if code is None or code < 400 or code in seen:
            continue
        seen.add(code)
        schema = _response_type(response, fallback="S.String")
        calls.append(f".addError({schema}, {{ status: {code} }})")
    return calls


def _payload_schema(operation: Operation) -> Optional[SchemaNode]:
    if operation.request_body is None:
        return None
    content = operation.request_body.content
    for entry in content:
        if "json" in entry.media_type and entry.schema_ is not None:
            return entry.schema_
    for entry in content:
        if entry.schema_ is not None:
            return entry.schema_
    return None


def _openapi_annotations(operation: Operation) -> Optional[str]:
    fields = []
    if operation.summary:
        fields.append(f"summary: {to_literal(operation.summary)}")
    if operation.description:
        fields.append(f"description: {to_literal(operation.description)}")
    if operation.deprecated:
        fields.append("deprecated: true")
    if not fields:
        return None
    return f".annotateContext(OpenApi.annotations({{ {', '.join(fields)} }}))"


def _endpoint_constructor(operation: Operation, name: str) -> str:
    factory = _METHOD_CONSTRUCTORS.get(
        operation.method, f"HttpApiEndpoint.make({to_literal(operation.method)})"
    )
    return f"{factory}({to_literal(name)}, {to_literal(to_route(operation.path))})"


def _render_endpoint(operation: Operation, name: str, structs: list[dict[str, str]]) -> dict:
    calls = []

    success = _success_call(operation.responses)
    if success:
        calls.append(success)
    calls.extend(_error_calls(operation.responses))

    for location, setter, suffix in _PARAM_SETTERS:
        params = [p for p in operation.parameters if p.location is location]
        if not params:
            continue
        struct_name = f"{to_pascal_case(name)}{suffix}"
        structs.append(
            {
                "name": struct_name,
                "comment": f"{suffix} for {name}",
                "expression": _parameters_struct(params),
            }
        )
        calls.append(f".{setter}({struct_name})")

    payload = _payload_schema(operation)
    if payload is not None:
        calls.append(f".setPayload({schema_type(payload)})")

    annotations = _openapi_annotations(operation)
    if annotations:
        calls.append(annotations)

    summary = f" - {_comment(operation.summary, '')}" if operation.summary else ""
    return {
        "comment": f"{operation.method} {operation.path}{summary}",
        "constructor": _endpoint_constructor(operation, name),
        "calls": calls,
    }


def render_group(group: ApiGroup, env: Optional[Environment] = None) -> str:
    env = env or _create_jinja_env()
    structs: list[dict[str, str]] = []
    endpoints = [
        _render_endpoint(op, name, structs)
        for op, name in zip(group.operations, endpoint_names(group.operations))
    ]

    rendered = [s["expression"] for s in structs] + [
        call for endpoint in endpoints for call in endpoint["calls"]
    ]
    uses_openapi = any(".annotateContext(OpenApi." in text for text in rendered)
    uses_schemas = any("Schemas." in text for text in rendered)

    platform_imports = ["HttpApiEndpoint", "HttpApiGroup"]
    if uses_openapi:
        platform_imports.append("OpenApi")

    return env.get_template("group.ts.j2").render(
        platform_imports=platform_imports,
        uses_schemas=uses_schemas,
        structs=structs,
        class_name=group.class_name,
        group_id=to_literal(group.tag),
        endpoints=endpoints,
    )


# --- index.ts ---


def render_index(
    data: ExtractedApiData,
    groups: Sequence[ApiGroup],
    env: Optional[Environment] = None,
) -> str:
    env = env or _create_jinja_env()
    return env.get_template("index.ts.j2").render(
        groups=groups,
        api_name=api_name(data, groups),
        api_id=to_literal(data.info.title),
    )


def generate_artifacts(data: ExtractedApiData) -> tuple[Artifact, ...]:
    """Render every artifact for *data*, in write order.

    Returns:
        ``schemas.ts``, then one file per group in group order, then
        ``index.ts``.
    """
    env = _create_jinja_env()
    groups = group_operations(data)
    artifacts = [Artifact(SCHEMAS_FILE, render_schemas(data, env))]
    artifacts += [Artifact(group.file_name, render_group(group, env)) for group in groups]
    artifacts.append(Artifact(INDEX_FILE, render_index(data, groups, env)))
    return tuple(artifacts)


def write_artifacts(
    artifacts: Sequence[Artifact],
    output_dir: str,
    fs: FileSystem,
) -> list[str]:
    """Write *artifacts* into *output_dir*, creating it if needed.

    Returns:
        The written file paths, in artifact order.

    Raises:
        GenerationError: ``OUTPUT_NOT_DIRECTORY`` if *output_dir* exists and
            is not a directory; ``WRITE_FAILED`` if creating the directory or
            writing a file fails.
    """
    if fs.exists(output_dir) and not fs.is_dir(output_dir):
        raise GenerationError(
            ErrorKind.OUTPUT_NOT_DIRECTORY,
            f"Output path exists and is not a directory: {output_dir}",
        )

    written = []
    try:
        fs.make_dirs(output_dir)
        for artifact in artifacts:
            target = os.path.join(output_dir, artifact.file_name)
            fs.write_text(target, artifact.content)
            written.append(target)
    except OSError as exc:
        raise GenerationError(
            ErrorKind.WRITE_FAILED,
            f"Failed to write generated files to {output_dir}: {exc}",
            cause=exc,
        ) from exc
    return written
