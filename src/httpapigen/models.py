"""Canonical Pydantic models shared across all httpapigen modules.

This is the single source of truth for data shapes in the project. Every
stage of the pipeline returns a new, frozen instance of one of these models and
never mutates its input. The models fall into two groups:

**Pipeline documents** -- the value handed from one stage to the next:
    :class:`RawDocument` (Reader), :class:`ValidationIssue`,
    :class:`ValidationResult` and :class:`ValidatedDocument` (Validator),
    :class:`ResolutionOptions` and :class:`ResolvedDocument`
    (ReferenceResolver).

**Intermediate representation (IR)** -- produced by the extractor and
consumed by the code emitter:
    the :data:`SchemaNode` tagged union (:class:`PrimitiveSchema`,
    :class:`ArraySchema`, :class:`ObjectSchema`, :class:`EnumSchema`,
    :class:`ReferenceSchema`), :class:`Parameter`, :class:`ContentEntry`,
    :class:`RequestBody`, :class:`Response`, :class:`Operation`,
    :class:`PathItem`, :class:`Components`, :class:`ApiInfo`,
    :class:`ServerInfo`, :class:`TagInfo` and :class:`ExtractedApiData`.
"""

from __future__ import annotations

import enum
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Frozen(BaseModel):
    """Base for immutable models."""

    model_config = ConfigDict(frozen=True)


# --- Pipeline documents ---


class DocumentFormat(str, enum.Enum):
    """Serialisation format of an input document, detected from its extension."""

    JSON = "json"
    YAML = "yaml"


class RawDocument(_Frozen):
    """Untyped structured value produced by the reader."""

    source_path: str
    format: DocumentFormat
    content: Any = Field(description="Plain data: dict, list or scalar")


class ValidationIssue(_Frozen):
    """One problem found by the validator.

    ``path`` is a dotted pointer into the document (``"info.title"``,
    ``"paths./pets.get.responses"``) or ``"root"`` for the document itself.
    """

    path: str
    message: str
    kind: str = Field(description="An ErrorKind value from the validation stage")
    value: Any = None


class ValidationResult(_Frozen):
    """Outcome of :func:`~httpapigen.parser.validator.validate_document`.

    ``document`` holds the grammar-decoded model and is only present when
    grammar validation ran and succeeded.
    """

    is_valid: bool
    document: Any = None
    errors: tuple[ValidationIssue, ...] = ()


class ValidatedDocument(_Frozen):
    """A raw document that passed validation, or was let through in lenient mode.

    ``content`` is always the plain dict that flows to the resolver.
    ``errors`` lists the non-fatal issues tolerated in lenient mode.
    """

    source_path: str
    format: DocumentFormat
    content: dict[str, Any]
    document: Any = None
    errors: tuple[ValidationIssue, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


class ResolutionOptions(_Frozen):
    """Explicit settings for one :func:`~httpapigen.parser.resolver.resolve_references` call.

    External references are only fetched when ``resolve_external`` is set,
    and then only after passing the security gate in
    :mod:`httpapigen.parser.remote`.
    """

    resolve_external: bool = False
    continue_on_error: bool = False
    allowed_domains: tuple[str, ...] = ()
    max_redirects: int = Field(default=0, ge=0)
    timeout: float = Field(default=5.0, gt=0, description="Seconds per fetch")


class ResolvedDocument(_Frozen):
    """Output of the reference resolver.

    ``reference_paths`` is the ordered, de-duplicated set of ``$ref`` strings
    found in ``original`` before resolution. ``circular_refs`` are references
    left in place to break a cycle, and ``linked_refs`` are component-schema
    references kept as named links in bundle mode.
    """

    source_path: str = ""
    original: dict[str, Any]
    resolved: dict[str, Any]
    reference_paths: tuple[str, ...] = ()
    circular_refs: tuple[str, ...] = ()
    linked_refs: tuple[str, ...] = ()
    errors: tuple[str, ...] = ()


# --- IR schema nodes ---


class _SchemaBase(_Frozen):
    """Metadata shared by every schema node variant."""

    description: Optional[str] = None
    example: Any = None
    default: Any = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    nullable: bool = False
    deprecated: bool = False


class PrimitiveSchema(_SchemaBase):
    """A scalar type. ``type`` is ``None`` when the source declared none."""

    kind: Literal["primitive"] = "primitive"
    type: Optional[str] = None
    format: Optional[str] = None


class ArraySchema(_SchemaBase):
    kind: Literal["array"] = "array"
    items: Optional[SchemaNode] = None


class ObjectSchema(_SchemaBase):
    """An object; ``properties`` keeps declaration order."""

    kind: Literal["object"] = "object"
    properties: dict[str, SchemaNode] = Field(default_factory=dict)
    required: tuple[str, ...] = ()
    additional_properties: Union[bool, SchemaNode, None] = None


class EnumSchema(_SchemaBase):
    kind: Literal["enum"] = "enum"
    values: tuple[Any, ...] = ()
    type: Optional[str] = None


class ReferenceSchema(_SchemaBase):
    """A named link to another schema, resolved lazily on access.

    See :meth:`ExtractedApiData.resolve_reference`.
    """

    kind: Literal["reference"] = "reference"
    ref: str
    name: str


SchemaNode = Annotated[
    Union[PrimitiveSchema, ArraySchema, ObjectSchema, EnumSchema, ReferenceSchema],
    Field(discriminator="kind"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()


# --- IR operations ---


class ParameterLocation(str, enum.Enum):
    """Locations where an API parameter can appear, per OpenAPI ``in`` field."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    COOKIE = "cookie"


class Parameter(_Frozen):
    """A single parameter. Path parameters are always required."""

    name: str
    location: ParameterLocation
    required: bool = False
    description: Optional[str] = None
    deprecated: bool = False
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    example: Any = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class ContentEntry(_Frozen):
    """One media type of a request or response payload."""

    media_type: str
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    example: Any = None

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class HeaderInfo(_Frozen):
    name: str
    description: Optional[str] = None
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RequestBody(_Frozen):
    required: bool = False
    description: Optional[str] = None
    content: tuple[ContentEntry, ...] = ()


class Response(_Frozen):
    """A response for one status key.

    ``status`` is the raw key from the document; ``status_code`` is its
    numeric form (``"4XX"`` becomes 400, ``"default"`` becomes ``None``).
    ``schema_`` is the primary schema, preferring ``application/json``.
    """

    status: str
    status_code: Optional[int] = None
    description: str = ""
    schema_: Optional[SchemaNode] = Field(default=None, alias="schema")
    content: tuple[ContentEntry, ...] = ()
    headers: tuple[HeaderInfo, ...] = ()

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class Operation(_Frozen):
    """One HTTP method on one path.

    ``tags`` is empty when the document declares none; grouping assigns such
    operations to ``"default"``.
    """

    method: str = Field(description="Uppercase HTTP method")
    path: str
    operation_id: Optional[str] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    tags: tuple[str, ...] = ()
    parameters: tuple[Parameter, ...] = ()
    request_body: Optional[RequestBody] = None
    responses: tuple[Response, ...] = ()
    security: tuple[dict[str, tuple[str, ...]], ...] = ()
    deprecated: bool = False


class PathItem(_Frozen):
    """A path template with its operations and path-level parameters.

    Path-level parameters are kept apart from the operations here; the
    emitter merges them when it groups operations.
    """

    path: str
    summary: Optional[str] = None
    description: Optional[str] = None
    operations: tuple[Operation, ...] = ()
    parameters: tuple[Parameter, ...] = ()


class Components(_Frozen):
    schemas: dict[str, SchemaNode] = Field(default_factory=dict)
    responses: dict[str, Response] = Field(default_factory=dict)
    parameters: dict[str, Parameter] = Field(default_factory=dict)
    request_bodies: dict[str, RequestBody] = Field(default_factory=dict)


class ApiInfo(_Frozen):
    title: str = Field(min_length=1)
    version: str = Field(min_length=1)
    description: Optional[str] = None


class ServerInfo(_Frozen):
    url: str
    description: Optional[str] = None


class TagInfo(_Frozen):
    name: str
    description: Optional[str] = None


class ExtractedApiData(_Frozen):
    """The IR: everything the code emitter needs, decoupled from JSON/YAML.

    See Also:
        :func:`~httpapigen.parser.extractor.extract_api_data`
    """

    info: ApiInfo
    servers: tuple[ServerInfo, ...] = ()
    paths: tuple[PathItem, ...] = ()
    components: Components = Field(default_factory=Components)
    security: tuple[dict[str, tuple[str, ...]], ...] = ()
    tags: tuple[TagInfo, ...] = ()

    @property
    def operations(self) -> list[Operation]:
        """All operations in path declaration order."""
        return [op for path in self.paths for op in path.operations]

    def resolve_reference(self, node: ReferenceSchema) -> Optional[SchemaNode]:
        """Return the component schema *node* points to, or ``None``.

        Only ``#/components/schemas/<name>`` references can be resolved here;
        anything else (external or unresolved) yields ``None``.
        """
        if not node.ref.startswith("#/components/schemas/"):
            return None
        return self.components.schemas.get(node.name)
