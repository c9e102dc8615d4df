"""Pydantic models describing the OpenAPI 3.x object graph.

These models are only used for grammar validation: decoding a raw document
with :meth:`OpenApiDocument.model_validate` succeeds exactly when the
document has the shape the rest of the pipeline expects. Schema objects are
recursive, and every position that may hold either an inline object or a
``$ref`` is typed as ``Union[Reference, X]``.

Unknown keys (including ``x-`` extensions) are ignored, matching how the
extractor treats them.
"""

from __future__ import annotations

import re
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PATH_TEMPLATE = re.compile(r"^/(?:[^{}]|\{[^{}/]+\})*$")


class _Node(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class Reference(_Node):
    ref: str = Field(alias="$ref")
    summary: Optional[str] = None
    description: Optional[str] = None


class Contact(_Node):
    name: Optional[str] = None
    url: Optional[str] = None
    email: Optional[str] = None


class License(_Node):
    name: str
    identifier: Optional[str] = None
    url: Optional[str] = None


class Info(_Node):
    title: str
    version: str
    description: Optional[str] = None
    terms_of_service: Optional[str] = Field(default=None, alias="termsOfService")
    contact: Optional[Contact] = None
    license: Optional[License] = None
    summary: Optional[str] = None


class ServerVariable(_Node):
    enum: Optional[list[str]] = None
    default: str
    description: Optional[str] = None


class Server(_Node):
    url: str
    description: Optional[str] = None
    variables: Optional[dict[str, ServerVariable]] = None


class ExternalDocumentation(_Node):
    url: str
    description: Optional[str] = None


class Tag(_Node):
    name: str
    description: Optional[str] = None
    external_docs: Optional[ExternalDocumentation] = Field(
        default=None, alias="externalDocs"
    )


class Discriminator(_Node):
    property_name: str = Field(alias="propertyName")
    mapping: Optional[dict[str, str]] = None


class Xml(_Node):
    name: Optional[str] = None
    namespace: Optional[str] = None
    prefix: Optional[str] = None
    attribute: Optional[bool] = None
    wrapped: Optional[bool] = None


class Schema(_Node):
    """A JSON Schema object as used by OpenAPI 3.0 and 3.1."""

    title: Optional[str] = None
    multiple_of: Optional[float] = Field(default=None, alias="multipleOf")
    maximum: Optional[float] = None
    exclusive_maximum: Union[bool, float, None] = Field(
        default=None, alias="exclusiveMaximum"
    )
    minimum: Optional[float] = None
    exclusive_minimum: Union[bool, float, None] = Field(
        default=None, alias="exclusiveMinimum"
    )
    max_length: Optional[int] = Field(default=None, alias="maxLength")
    min_length: Optional[int] = Field(default=None, alias="minLength")
    pattern: Optional[str] = None
    max_items: Optional[int] = Field(default=None, alias="maxItems")
    min_items: Optional[int] = Field(default=None, alias="minItems")
    unique_items: Optional[bool] = Field(default=None, alias="uniqueItems")
    max_properties: Optional[int] = Field(default=None, alias="maxProperties")
    min_properties: Optional[int] = Field(default=None, alias="minProperties")
    required: Optional[list[str]] = None
    enum: Optional[list[Any]] = None
    type: Union[str, list[str], None] = None
    not_: Optional[SchemaOrRef] = Field(default=None, alias="not")
    all_of: Optional[list[SchemaOrRef]] = Field(default=None, alias="allOf")
    one_of: Optional[list[SchemaOrRef]] = Field(default=None, alias="oneOf")
    any_of: Optional[list[SchemaOrRef]] = Field(default=None, alias="anyOf")
    items: Optional[SchemaOrRef] = None
    properties: Optional[dict[str, SchemaOrRef]] = None
    additional_properties: Union[bool, SchemaOrRef, None] = Field(
        default=None, alias="additionalProperties"
    )
    description: Optional[str] = None
    format: Optional[str] = None
    default: Any = None
    nullable: Optional[bool] = None
    discriminator: Optional[Discriminator] = None
    read_only: Optional[bool] = Field(default=None, alias="readOnly")
    write_only: Optional[bool] = Field(default=None, alias="writeOnly")
    xml: Optional[Xml] = None
    external_docs: Optional[ExternalDocumentation] = Field(
        default=None, alias="externalDocs"
    )
    example: Any = None
    deprecated: Optional[bool] = None


SchemaOrRef = Union[Reference, Schema]


class Example(_Node):
    summary: Optional[str] = None
    description: Optional[str] = None
    value: Any = None
    external_value: Optional[str] = Field(default=None, alias="externalValue")


class MediaType(_Node):
    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")
    example: Any = None
    examples: Optional[dict[str, Union[Reference, Example]]] = None
    encoding: Optional[dict[str, Encoding]] = None


class Header(_Node):
    description: Optional[str] = None
    required: Optional[bool] = None
    deprecated: Optional[bool] = None
    allow_empty_value: Optional[bool] = Field(default=None, alias="allowEmptyValue")
    style: Optional[str] = None
    explode: Optional[bool] = None
    allow_reserved: Optional[bool] = Field(default=None, alias="allowReserved")
    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")
    content: Optional[dict[str, MediaType]] = None
    example: Any = None
    examples: Optional[dict[str, Union[Reference, Example]]] = None


class Encoding(_Node):
    content_type: Optional[str] = Field(default=None, alias="contentType")
    headers: Optional[dict[str, Union[Reference, Header]]] = None
    style: Optional[str] = None
    explode: Optional[bool] = None
    allow_reserved: Optional[bool] = Field(default=None, alias="allowReserved")


class Parameter(_Node):
    name: str
    in_: Literal["query", "header", "path", "cookie"] = Field(alias="in")
    description: Optional[str] = None
    required: Optional[bool] = None
    deprecated: Optional[bool] = None
    allow_empty_value: Optional[bool] = Field(default=None, alias="allowEmptyValue")
    style: Optional[str] = None
    explode: Optional[bool] = None
    allow_reserved: Optional[bool] = Field(default=None, alias="allowReserved")
    schema_: Optional[SchemaOrRef] = Field(default=None, alias="schema")
    content: Optional[dict[str, MediaType]] = None
    example: Any = None
    examples: Optional[dict[str, Union[Reference, Example]]] = None


class RequestBody(_Node):
    description: Optional[str] = None
    content: dict[str, MediaType]
    required: Optional[bool] = None


class Link(_Node):
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    operation_ref: Optional[str] = Field(default=None, alias="operationRef")
    parameters: Optional[dict[str, Any]] = None
    request_body: Any = Field(default=None, alias="requestBody")
    description: Optional[str] = None
    server: Optional[Server] = None


class Response(_Node):
    description: str
    headers: Optional[dict[str, Union[Reference, Header]]] = None
    content: Optional[dict[str, MediaType]] = None
    links: Optional[dict[str, Union[Reference, Link]]] = None


class Operation(_Node):
    tags: Optional[list[str]] = None
    summary: Optional[str] = None
    description: Optional[str] = None
    external_docs: Optional[ExternalDocumentation] = Field(
        default=None, alias="externalDocs"
    )
    operation_id: Optional[str] = Field(default=None, alias="operationId")
    parameters: Optional[list[Union[Reference, Parameter]]] = None
    request_body: Optional[Union[Reference, RequestBody]] = Field(
        default=None, alias="requestBody"
    )
    responses: dict[str, Union[Reference, Response]]
    callbacks: Optional[dict[str, Union[Reference, dict[str, PathItem]]]] = None
    deprecated: Optional[bool] = None
    security: Optional[list[dict[str, list[str]]]] = None
    servers: Optional[list[Server]] = None


class PathItem(_Node):
    ref: Optional[str] = Field(default=None, alias="$ref")
    summary: Optional[str] = None
    description: Optional[str] = None
    get: Optional[Operation] = None
    put: Optional[Operation] = None
    post: Optional[Operation] = None
    delete: Optional[Operation] = None
    options: Optional[Operation] = None
    head: Optional[Operation] = None
    patch: Optional[Operation] = None
    trace: Optional[Operation] = None
    servers: Optional[list[Server]] = None
    parameters: Optional[list[Union[Reference, Parameter]]] = None


class OAuthFlow(_Node):
    authorization_url: Optional[str] = Field(default=None, alias="authorizationUrl")
    token_url: Optional[str] = Field(default=None, alias="tokenUrl")
    refresh_url: Optional[str] = Field(default=None, alias="refreshUrl")
    scopes: dict[str, str]


class OAuthFlows(_Node):
    implicit: Optional[OAuthFlow] = None
    password: Optional[OAuthFlow] = None
    client_credentials: Optional[OAuthFlow] = Field(
        default=None, alias="clientCredentials"
    )
    authorization_code: Optional[OAuthFlow] = Field(
        default=None, alias="authorizationCode"
    )


class ApiKeySecurityScheme(_Node):
    type: Literal["apiKey"]
    description: Optional[str] = None
    name: str
    in_: Literal["query", "header", "cookie"] = Field(alias="in")


class HttpSecurityScheme(_Node):
    type: Literal["http"]
    description: Optional[str] = None
    scheme: str
    bearer_format: Optional[str] = Field(default=None, alias="bearerFormat")


class OAuth2SecurityScheme(_Node):
    type: Literal["oauth2"]
    description: Optional[str] = None
    flows: OAuthFlows


class OpenIdConnectSecurityScheme(_Node):
    type: Literal["openIdConnect"]
    description: Optional[str] = None
    open_id_connect_url: str = Field(alias="openIdConnectUrl")


class MutualTlsSecurityScheme(_Node):
    type: Literal["mutualTLS"]
    description: Optional[str] = None


SecurityScheme = Annotated[
    Union[
        ApiKeySecurityScheme,
        HttpSecurityScheme,
        OAuth2SecurityScheme,
        OpenIdConnectSecurityScheme,
        MutualTlsSecurityScheme,
    ],
    Field(discriminator="type"),
]


class Components(_Node):
    schemas: Optional[dict[str, SchemaOrRef]] = None
    responses: Optional[dict[str, Union[Reference, Response]]] = None
    parameters: Optional[dict[str, Union[Reference, Parameter]]] = None
    examples: Optional[dict[str, Union[Reference, Example]]] = None
    request_bodies: Optional[dict[str, Union[Reference, RequestBody]]] = Field(
        default=None, alias="requestBodies"
    )
    headers: Optional[dict[str, Union[Reference, Header]]] = None
    security_schemes: Optional[dict[str, Union[Reference, SecurityScheme]]] = Field(
        default=None, alias="securitySchemes"
    )
    links: Optional[dict[str, Union[Reference, Link]]] = None
    callbacks: Optional[dict[str, Union[Reference, dict[str, PathItem]]]] = None


class OpenApiDocument(_Node):
    """The root OpenAPI 3.x document."""

    openapi: str
    info: Info
    servers: Optional[list[Server]] = None
    paths: dict[str, PathItem]
    components: Optional[Components] = None
    security: Optional[list[dict[str, list[str]]]] = None
    tags: Optional[list[Tag]] = None
    external_docs: Optional[ExternalDocumentation] = Field(
        default=None, alias="externalDocs"
    )

    @field_validator("openapi")
    @classmethod
    def _check_version(cls, value: str) -> str:
        if not value.startswith("3."):
            raise ValueError(f"Unsupported OpenAPI version: {value}")
        return value

    @field_validator("paths", mode="before")
    @classmethod
    def _check_path_templates(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        for key in value:
            if not isinstance(key, str) or key.startswith("x-"):
                continue
            if not _PATH_TEMPLATE.match(key):
                raise ValueError(
                    f"Invalid path template {key!r}: must start with '/' and "
                    "use balanced {param} segments"
                )
        return {
            key: item
            for key, item in value.items()
            if not (isinstance(key, str) and key.startswith("x-"))
        }


for _model in (
    Schema,
    MediaType,
    Header,
    Encoding,
    Parameter,
    Response,
    Operation,
    PathItem,
    Components,
    OpenApiDocument,
):
    _model.model_rebuild()
