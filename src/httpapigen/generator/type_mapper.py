"""Map IR schema nodes to Effect Schema type expressions.

Mapping happens in two steps so each can be tested on its own:

1. :func:`map_schema` turns a :data:`~httpapigen.models.SchemaNode` into a
   :class:`TypeExpression`, a small language-neutral description of the
   type (named link, primitive, array, record, inline object, literal union
   or unknown).
2. :func:`render_type` turns a :class:`TypeExpression` into Effect Schema
   source text. References render as ``S.suspend(() => Name)`` inside the
   shared schemas module (``ref_style="local"``) so forward and cyclic
   references stay lazy, and as ``Schemas.Name`` everywhere else.

:func:`render_annotations` renders the ``.annotations({...})`` suffix that
carries a node's description, example, default and validation bounds.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, Optional

from httpapigen.models import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
    SchemaNode,
)
from httpapigen.naming import to_pascal_case

RefStyle = Literal["local", "namespaced"]

EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"

_STRING_FORMATS: dict[str, str] = {
    "date-time": "S.DateTimeUtc",
    "date": "S.Date",
    "uuid": "S.UUID",
    "email": f"S.String.pipe(S.pattern(/{EMAIL_PATTERN}/))",
}

_PRIMITIVE_TYPES: dict[str, str] = {
    "string": "S.String",
    "integer": "S.Int",
    "number": "S.Number",
    "boolean": "S.Boolean",
}

INLINE_OBJECT = "S.Struct({ /* inline object: extract to a named component schema */ })"


@dataclass(frozen=True)
class TypeExpression:
    """Language-neutral description of a mapped type.

    ``kind`` is one of ``named``, ``primitive``, ``array``, ``record``,
    ``inline_object``, ``literal_union`` or ``unknown``. ``name`` holds the
    PascalCase schema name for ``named`` and the Effect Schema constructor
    for ``primitive``; ``item`` is the element (array) or value (record)
    type.
    """

    kind: str
    name: str = ""
    item: Optional[TypeExpression] = None
    values: tuple[Any, ...] = ()
    nullable: bool = False


UNKNOWN = TypeExpression(kind="unknown")


def map_schema(node: Optional[SchemaNode]) -> TypeExpression:
    """Describe the Effect Schema type for *node*.

    Examples::

        >>> map_schema(PrimitiveSchema(type="integer")).name
        'S.Int'
        >>> map_schema(ReferenceSchema(ref="#/components/schemas/pet", name="pet")).name
        'Pet'
    """
    if node is None:
        return UNKNOWN
    nullable = node.nullable

    if isinstance(node, ReferenceSchema):
        return TypeExpression(kind="named", name=to_pascal_case(node.name), nullable=nullable)

    if isinstance(node, PrimitiveSchema):
        constructor = None
        if node.type == "string" and node.format in _STRING_FORMATS:
            constructor = _STRING_FORMATS[node.format]
        elif node.type in _PRIMITIVE_TYPES:
            constructor = _PRIMITIVE_TYPES[node.type]
        if constructor is None:
            return TypeExpression(kind="unknown", nullable=nullable)
        return TypeExpression(kind="primitive", name=constructor, nullable=nullable)

    if isinstance(node, ArraySchema):
        return TypeExpression(kind="array", item=map_schema(node.items), nullable=nullable)

    if isinstance(node, ObjectSchema):
        if node.properties:
            return TypeExpression(kind="inline_object", nullable=nullable)
        value = (
            map_schema(node.additional_properties)
            if not isinstance(node.additional_properties, (bool, type(None)))
            else UNKNOWN
        )
        return TypeExpression(kind="record", item=value, nullable=nullable)

    if isinstance(node, EnumSchema):
        return TypeExpression(kind="literal_union", values=node.values, nullable=nullable)

    return TypeExpression(kind="unknown", nullable=nullable)


def to_literal(value: Any) -> str:
    """Render a plain value as a TypeScript literal (JSON text)."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return json.dumps(value, default=str, ensure_ascii=False)


def render_type(expr: TypeExpression, ref_style: RefStyle = "namespaced") -> str:
    """Render *expr* as Effect Schema source text.

    Examples::

        >>> render_type(TypeExpression(kind="array", item=TypeExpression(kind="named", name="Pet")))
        'S.Array(Schemas.Pet)'
        >>> render_type(TypeExpression(kind="named", name="Pet"), ref_style="local")
        'S.suspend(() => Pet)'
    """
    if expr.kind == "named":
        text = (
            f"S.suspend(() => {expr.name})"
            if ref_style == "local"
            else f"Schemas.{expr.name}"
        )
    elif expr.kind == "primitive":
        text = expr.name
    elif expr.kind == "array":
        text = f"S.Array({render_type(expr.item or UNKNOWN, ref_style)})"
    elif expr.kind == "record":
        value = render_type(expr.item or UNKNOWN, ref_style)
        text = f"S.Record({{ key: S.String, value: {value} }})"
    elif expr.kind == "inline_object":
        text = INLINE_OBJECT
    elif expr.kind == "literal_union":
        text = (
            f"S.Literal({', '.join(to_literal(v) for v in expr.values)})"
            if expr.values
            else "S.Never"
        )
    else:
        text = "S.Unknown"

    if expr.nullable:
        return f"S.NullOr({text})"
    return text


def schema_type(node: Optional[SchemaNode], ref_style: RefStyle = "namespaced") -> str:
    """Shortcut for ``render_type(map_schema(node), ref_style)``."""
    return render_type(map_schema(node), ref_style)


def annotation_fields(node: Optional[SchemaNode]) -> list[tuple[str, str]]:
    """Return ``(key, rendered value)`` pairs for *node*'s annotations.

    Validation bounds are grouped under a ``jsonSchema`` annotation so they
    surface in generated OpenAPI output.
    """
    if node is None:
        return []

    fields: list[tuple[str, str]] = []
    if node.description:
        fields.append(("description", to_literal(node.description)))
    if node.example is not None:
        fields.append(("examples", f"[{to_literal(node.example)}]"))
    if node.default is not None:
        fields.append(("default", to_literal(node.default)))

    bounds = [
        (key, value)
        for key, value in (
            ("minimum", node.minimum),
            ("maximum", node.maximum),
            ("minLength", node.min_length),
            ("maxLength", node.max_length),
            ("pattern", node.pattern),
        )
        if value is not None
    ]
    if bounds:
        inner = ", ".join(f"{key}: {to_literal(value)}" for key, value in bounds)
        fields.append(("jsonSchema", f"{{ {inner} }}"))
    return fields


def format_annotations(fields: list[tuple[str, str]], indent: str = "") -> str:
    """Render ``(key, value)`` pairs as an ``.annotations({...})`` suffix."""
    if not fields:
        return ""
    body = "".join(f"{indent}\t{key}: {value},\n" for key, value in fields)
    return f".annotations({{\n{body}{indent}}})"


def render_annotations(node: Optional[SchemaNode], indent: str = "") -> str:
    """Render the ``.annotations({...})`` suffix for *node*, or ``""``."""
    return format_annotations(annotation_fields(node), indent)
