"""Extract the intermediate representation from resolved OpenAPI documents.

This module walks a resolved OpenAPI document (see
:mod:`httpapigen.parser.resolver`) and builds an
:class:`~httpapigen.models.ExtractedApiData` containing every path,
operation, parameter, request body, response and component schema declared
in the document.

The single public entry point is :func:`extract_api_data`. Internally it
delegates to private helpers that each handle one section of the OpenAPI
structure:

* ``_extract_info`` / ``_extract_servers`` / ``_extract_tags`` -- top-level
  metadata.
* ``_extract_path`` -- one path item, iterating HTTP methods in the fixed
  order of :data:`HTTP_METHODS`.
* ``_extract_components`` -- ``components.schemas``, ``responses``,
  ``parameters`` and ``requestBodies``.
* :func:`extract_schema` -- converts a JSON Schema dict into a
  :data:`~httpapigen.models.SchemaNode`.

Path-level parameters are kept on the :class:`~httpapigen.models.PathItem`
and are not merged into its operations. Path parameters are always
required, whatever the document says.
"""

from __future__ import annotations

from typing import Any, Optional

from httpapigen.exceptions import ErrorKind, ExtractionError
from httpapigen.models import (
    ApiInfo,
    ArraySchema,
    Components,
    ContentEntry,
    EnumSchema,
    ExtractedApiData,
    HeaderInfo,
    ObjectSchema,
    Operation,
    Parameter,
    ParameterLocation,
    PathItem,
    PrimitiveSchema,
    ReferenceSchema,
    RequestBody,
    Response,
    SchemaNode,
    ServerInfo,
    TagInfo,
)

HTTP_METHODS = ("get", "put", "post", "delete", "options", "head", "patch", "trace")
"""Order in which operations are read from a path item."""

_JSON_MEDIA_TYPE = "application/json"


def extract_api_data(document: dict[str, Any], source_path: str = "") -> ExtractedApiData:
    """Build the IR from a resolved document.

    Args:
        document: The ``resolved`` dict of a
            :class:`~httpapigen.models.ResolvedDocument`.
        source_path: File the document came from, attached to errors.

    Returns:
        A fully populated :class:`~httpapigen.models.ExtractedApiData`.

    Raises:
        ExtractionError: ``MALFORMED_OPERATION`` when an operation or its
            ``responses`` is missing or not a mapping; ``EXTRACTION_FAILED``
            for any other shape the extractor cannot read.

    Example::

        resolved = resolve_references(doc, ResolutionOptions())
        data = extract_api_data(resolved.resolved)
        for op in data.operations:
            print(op.method, op.path)
    """
    try:
        return ExtractedApiData(
            info=_extract_info(document),
            servers=_extract_servers(document),
            paths=tuple(
                _extract_path(path, item)
                for path, item in (document.get("paths") or {}).items()
                if not str(path).startswith("x-")
            ),
            components=_extract_components(document.get("components") or {}),
            security=_extract_security(document.get("security")),
            tags=_extract_tags(document),
        )
    except ExtractionError as exc:
        raise exc.with_file(source_path) from exc.__cause__
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise ExtractionError(
            ErrorKind.EXTRACTION_FAILED,
            f"Failed to extract API data: {exc}",
            file_path=source_path,
            cause=exc,
        ) from exc


def _extract_info(document: dict[str, Any]) -> ApiInfo:
    info = document["info"]
    return ApiInfo(
        title=info["title"],
        version=info["version"],
        description=info.get("description"),
    )


def _extract_servers(document: dict[str, Any]) -> tuple[ServerInfo, ...]:
    return tuple(
        ServerInfo(url=server["url"], description=server.get("description"))
        for server in document.get("servers") or []
    )


def _extract_tags(document: dict[str, Any]) -> tuple[TagInfo, ...]:
    return tuple(
        TagInfo(name=tag["name"], description=tag.get("description"))
        for tag in document.get("tags") or []
    )


def _extract_security(requirements: Any) -> tuple[dict[str, tuple[str, ...]], ...]:
    return tuple(
        {name: tuple(scopes or ()) for name, scopes in requirement.items()}
        for requirement in requirements or []
    )


def _is_reference(value: Any) -> bool:
    return isinstance(value, dict) and isinstance(value.get("$ref"), str)


def _reference_name(ref: str) -> str:
    """Last pointer segment of *ref*, unescaped (``#/a/b~1c`` -> ``b/c``)."""
    segment = ref.rsplit("/", 1)[-1]
    return segment.replace("~1", "/").replace("~0", "~")


# --- Schemas ---


def _schema_metadata(schema: dict[str, Any]) -> dict[str, Any]:
    type_value = schema.get("type")
    nullable = bool(schema.get("nullable")) or (
        isinstance(type_value, list) and "null" in type_value
    )
    return {
        "description": schema.get("description"),
        "example": schema.get("example"),
        "default": schema.get("default"),
        "minimum": schema.get("minimum"),
        "maximum": schema.get("maximum"),
        "min_length": schema.get("minLength"),
        "max_length": schema.get("maxLength"),
        "pattern": schema.get("pattern"),
        "nullable": nullable,
        "deprecated": bool(schema.get("deprecated")),
    }


def _schema_type(schema: dict[str, Any]) -> Optional[str]:
    """Return the declared type, taking the first non-null entry of a 3.1 list."""
    type_value = schema.get("type")
    if isinstance(type_value, list):
        non_null = [item for item in type_value if item != "null"]
        return str(non_null[0]) if non_null else None
    return str(type_value) if type_value is not None else None


def extract_schema(schema: Any) -> Optional[SchemaNode]:
    """Convert a JSON Schema dict into a :data:`~httpapigen.models.SchemaNode`.

    Returns ``None`` when *schema* is absent or not a mapping. References
    (component-schema links, or cycle points left by the resolver) become
    :class:`~httpapigen.models.ReferenceSchema` nodes and are not followed.

    ``allOf`` with a single member is unwrapped; ``allOf`` over inline
    objects is merged into one object. Other compositions have no IR
    variant and extract as an untyped primitive.
    """
    if not isinstance(schema, dict):
        return None

    if _is_reference(schema):
        ref = schema["$ref"]
        return ReferenceSchema(
            ref=ref,
            name=_reference_name(ref),
            description=schema.get("description"),
        )

    all_of = schema.get("allOf")
    if isinstance(all_of, list) and all_of:
        merged = _merge_all_of(schema, all_of)
        if merged is not None:
            return merged

    meta = _schema_metadata(schema)
    schema_type = _schema_type(schema)

    enum_values = schema.get("enum")
    if isinstance(enum_values, list):
        return EnumSchema(values=tuple(enum_values), type=schema_type, **meta)

    if schema_type == "array" or (schema_type is None and "items" in schema):
        return ArraySchema(items=extract_schema(schema.get("items")), **meta)

    if schema_type == "object" or (schema_type is None and "properties" in schema):
        return _extract_object(schema, meta)

    return PrimitiveSchema(type=schema_type, format=schema.get("format"), **meta)


def _extract_object(schema: dict[str, Any], meta: dict[str, Any]) -> ObjectSchema:
    properties = {}
    for name, value in (schema.get("properties") or {}).items():
        node = extract_schema(value)
        if node is not None:
            properties[name] = node

    additional = schema.get("additionalProperties")
    if not isinstance(additional, bool):
        additional = extract_schema(additional)

    return ObjectSchema(
        properties=properties,
        required=tuple(schema.get("required") or ()),
        additional_properties=additional,
        **meta,
    )


def _merge_all_of(schema: dict[str, Any], members: list[Any]) -> Optional[SchemaNode]:
    if len(members) == 1:
        node = extract_schema(members[0])
        if node is None:
            return None
        if schema.get("description") and not node.description:
            node = node.model_copy(update={"description": schema["description"]})
        return node

    if not all(isinstance(m, dict) and not _is_reference(m) for m in members):
        return None

    merged: dict[str, Any] = {"type": "object", "properties": {}, "required": []}
    for member in members:
        if _schema_type(member) not in (None, "object") or "properties" not in member:
            return None
        merged["properties"].update(member["properties"])
        merged["required"].extend(member.get("required") or ())
    for key in ("description", "example", "nullable", "deprecated"):
        if key in schema:
            merged[key] = schema[key]
    return extract_schema(merged)


# --- Parameters, bodies, responses ---


def _parameter_schema(param: dict[str, Any]) -> Any:
    if "schema" in param:
        return param["schema"]
    for media in (param.get("content") or {}).values():
        if isinstance(media, dict) and "schema" in media:
            return media["schema"]
    return None


def _extract_parameter(param: dict[str, Any]) -> Parameter:
    location = ParameterLocation(param["in"])
    return Parameter(
        name=param["name"],
        location=location,
        required=location is ParameterLocation.PATH or bool(param.get("required")),
        description=param.get("description"),
        deprecated=bool(param.get("deprecated")),
        schema=extract_schema(_parameter_schema(param)),
        example=param.get("example"),
    )


def _extract_parameters(params: Any) -> tuple[Parameter, ...]:
    """Extract parameters, skipping any that are still ``$ref`` links."""
    return tuple(
        _extract_parameter(param)
        for param in params or []
        if not _is_reference(param)
    )


def _extract_content(content: Any) -> tuple[ContentEntry, ...]:
    entries = []
    for media_type, media in (content or {}).items():
        media = media if isinstance(media, dict) else {}
        entries.append(
            ContentEntry(
                media_type=media_type,
                schema=extract_schema(media.get("schema")),
                example=media.get("example"),
            )
        )
    return tuple(entries)


def _extract_request_body(body: dict[str, Any]) -> RequestBody:
    return RequestBody(
        required=bool(body.get("required")),
        description=body.get("description"),
        content=_extract_content(body.get("content")),
    )


def parse_status_code(status: str) -> Optional[int]:
    """Return the numeric form of a response key.

    Examples::

        >>> parse_status_code("200"), parse_status_code("4XX"), parse_status_code("default")
        (200, 400, None)
    """
    key = str(status).strip().upper()
    if key.isdigit():
        return int(key)
    if len(key) == 3 and key[0] in "12345" and key[1:] == "XX":
        return int(key[0]) * 100
    return None


def _primary_schema(
    response: dict[str, Any], content: tuple[ContentEntry, ...]
) -> Optional[SchemaNode]:
    for entry in content:
        if entry.media_type.split(";")[0].strip() == _JSON_MEDIA_TYPE and entry.schema_:
            return entry.schema_
    legacy = extract_schema(response.get("schema"))
    if legacy is not None:
        return legacy
    for entry in content:
        if entry.schema_ is not None:
            return entry.schema_
    return None


def _extract_headers(headers: Any) -> tuple[HeaderInfo, ...]:
    result = []
    for name, header in (headers or {}).items():
        if not isinstance(header, dict) or _is_reference(header):
            result.append(HeaderInfo(name=name))
            continue
        result.append(
            HeaderInfo(
                name=name,
                description=header.get("description"),
                schema=extract_schema(header.get("schema")),
            )
        )
    return tuple(result)


def _extract_response(status: str, response: dict[str, Any]) -> Response:
    content = _extract_content(response.get("content"))
    return Response(
        status=str(status),
        status_code=parse_status_code(status),
        description=response.get("description") or "",
        schema=_primary_schema(response, content),
        content=content,
        headers=_extract_headers(response.get("headers")),
    )


# --- Paths and operations ---


def _extract_operation(method: str, path: str, operation: Any) -> Operation:
    label = f"{method.upper()} {path}"
    if not isinstance(operation, dict):
        raise ExtractionError(
            ErrorKind.MALFORMED_OPERATION,
            f"Operation {label} must be an object, got {type(operation).__name__}",
        )
    responses = operation.get("responses")
    if not isinstance(responses, dict):
        problem = "is missing" if responses is None else "must be an object"
        raise ExtractionError(
            ErrorKind.MALFORMED_OPERATION,
            f"Operation {label}: 'responses' {problem}",
        )

    body = operation.get("requestBody")
    return Operation(
        method=method.upper(),
        path=path,
        operation_id=operation.get("operationId"),
        summary=operation.get("summary"),
        description=operation.get("description"),
        tags=tuple(operation.get("tags") or ()),
        parameters=_extract_parameters(operation.get("parameters")),
        request_body=(
            _extract_request_body(body)
            if isinstance(body, dict) and not _is_reference(body)
            else None
        ),
        responses=tuple(
            _extract_response(status, response)
            for status, response in responses.items()
            if isinstance(response, dict) and not _is_reference(response)
        ),
        security=_extract_security(operation.get("security")),
        deprecated=bool(operation.get("deprecated")),
    )


def _extract_path(path: str, item: Any) -> PathItem:
    if not isinstance(item, dict):
        raise ExtractionError(
            ErrorKind.MALFORMED_OPERATION,
            f"Path item {path} must be an object, got {type(item).__name__}",
        )
    return PathItem(
        path=path,
        summary=item.get("summary"),
        description=item.get("description"),
        operations=tuple(
            _extract_operation(method, path, item[method])
            for method in HTTP_METHODS
            if method in item
        ),
        parameters=_extract_parameters(item.get("parameters")),
    )


# --- Components ---


def _extract_components(components: dict[str, Any]) -> Components:
    """Extract component maps, dropping entries that are bare references."""
    schemas = {}
    for name, schema in (components.get("schemas") or {}).items():
        if _is_reference(schema):
            continue
        node = extract_schema(schema)
        if node is not None:
            schemas[name] = node

    return Components(
        schemas=schemas,
        responses={
            name: _extract_response(name, response)
            for name, response in (components.get("responses") or {}).items()
            if isinstance(response, dict) and not _is_reference(response)
        },
        parameters={
            name: _extract_parameter(param)
            for name, param in (components.get("parameters") or {}).items()
            if isinstance(param, dict) and not _is_reference(param)
        },
        request_bodies={
            name: _extract_request_body(body)
            for name, body in (components.get("requestBodies") or {}).items()
            if isinstance(body, dict) and not _is_reference(body)
        },
    )
