"""Tests for httpapigen.generator.type_mapper."""

from __future__ import annotations

import pytest

from httpapigen.generator.type_mapper import (
    EMAIL_PATTERN,
    INLINE_OBJECT,
    TypeExpression,
    annotation_fields,
    map_schema,
    render_annotations,
    render_type,
    schema_type,
    to_literal,
)
from httpapigen.models import (
    ArraySchema,
    EnumSchema,
    ObjectSchema,
    PrimitiveSchema,
    ReferenceSchema,
)


def _ref(name: str, **kwargs) -> ReferenceSchema:
    return ReferenceSchema(ref=f"#/components/schemas/{name}", name=name, **kwargs)


# ---------------------------------------------------------------------------
# map_schema
# ---------------------------------------------------------------------------


class TestMapSchema:
    def test_none_is_unknown(self) -> None:
        assert map_schema(None).kind == "unknown"

    def test_reference_is_named_pascal_case(self) -> None:
        expr = map_schema(_ref("pet_owner"))
        assert expr == TypeExpression(kind="named", name="PetOwner")

    def test_object_with_properties_is_flagged_inline(self) -> None:
        node = ObjectSchema(properties={"a": PrimitiveSchema(type="string")})
        assert map_schema(node).kind == "inline_object"

    def test_object_without_properties_is_record(self) -> None:
        node = ObjectSchema(additional_properties=PrimitiveSchema(type="integer"))
        expr = map_schema(node)
        assert expr.kind == "record"
        assert expr.item == TypeExpression(kind="primitive", name="S.Int")

    def test_free_form_object_record_of_unknown(self) -> None:
        expr = map_schema(ObjectSchema(additional_properties=True))
        assert expr.item.kind == "unknown"

    def test_enum(self) -> None:
        expr = map_schema(EnumSchema(values=("a", "b"), type="string"))
        assert expr.kind == "literal_union"
        assert expr.values == ("a", "b")

    def test_nullable_carried(self) -> None:
        assert map_schema(PrimitiveSchema(type="string", nullable=True)).nullable

    def test_unknown_primitive_type(self) -> None:
        assert map_schema(PrimitiveSchema(type="file")).kind == "unknown"
        assert map_schema(PrimitiveSchema()).kind == "unknown"


# ---------------------------------------------------------------------------
# render_type / schema_type
# ---------------------------------------------------------------------------


class TestRenderType:
    @pytest.mark.parametrize(
        "node,expected",
        [
            (PrimitiveSchema(type="string"), "S.String"),
            (PrimitiveSchema(type="integer", format="int64"), "S.Int"),
            (PrimitiveSchema(type="number"), "S.Number"),
            (PrimitiveSchema(type="boolean"), "S.Boolean"),
            (PrimitiveSchema(type="string", format="date-time"), "S.DateTimeUtc"),
            (PrimitiveSchema(type="string", format="date"), "S.Date"),
            (PrimitiveSchema(type="string", format="uuid"), "S.UUID"),
            (PrimitiveSchema(type="string", format="binary"), "S.String"),
            (PrimitiveSchema(type="file"), "S.Unknown"),
        ],
    )
    def test_primitives(self, node, expected: str) -> None:
        assert schema_type(node) == expected

    def test_email_renders_pattern(self) -> None:
        rendered = schema_type(PrimitiveSchema(type="string", format="email"))
        assert rendered == f"S.String.pipe(S.pattern(/{EMAIL_PATTERN}/))"

    def test_reference_styles(self) -> None:
        assert schema_type(_ref("Pet")) == "Schemas.Pet"
        assert schema_type(_ref("Pet"), ref_style="local") == "S.suspend(() => Pet)"

    def test_array_of_references(self) -> None:
        node = ArraySchema(items=_ref("Pet"))
        assert schema_type(node) == "S.Array(Schemas.Pet)"
        assert schema_type(node, ref_style="local") == "S.Array(S.suspend(() => Pet))"

    def test_array_without_items(self) -> None:
        assert schema_type(ArraySchema()) == "S.Array(S.Unknown)"

    def test_record(self) -> None:
        node = ObjectSchema(additional_properties=PrimitiveSchema(type="integer"))
        assert schema_type(node) == "S.Record({ key: S.String, value: S.Int })"

    def test_inline_object_placeholder(self) -> None:
        node = ObjectSchema(properties={"a": PrimitiveSchema(type="string")})
        assert schema_type(node) == INLINE_OBJECT

    def test_literal_union(self) -> None:
        node = EnumSchema(values=("available", 2, True, None))
        assert schema_type(node) == 'S.Literal("available", 2, true, null)'

    def test_empty_enum_is_never(self) -> None:
        assert schema_type(EnumSchema(values=())) == "S.Never"

    def test_nullable_wraps(self) -> None:
        assert schema_type(_ref("Pet", nullable=True)) == "S.NullOr(Schemas.Pet)"
        node = ArraySchema(items=PrimitiveSchema(type="string", nullable=True))
        assert schema_type(node) == "S.Array(S.NullOr(S.String))"

    def test_render_unknown_expression(self) -> None:
        assert render_type(TypeExpression(kind="whatever")) == "S.Unknown"


# ---------------------------------------------------------------------------
# Literals and annotations
# ---------------------------------------------------------------------------


class TestAnnotations:
    @pytest.mark.parametrize(
        "value,expected",
        [("a\"b", '"a\\"b"'), (1.0, "1"), (1.5, "1.5"), (False, "false"), ("é", '"é"')],
    )
    def test_to_literal(self, value, expected: str) -> None:
        assert to_literal(value) == expected

    def test_no_fields(self) -> None:
        assert annotation_fields(None) == []
        assert render_annotations(PrimitiveSchema(type="string")) == ""

    def test_fields_in_order(self) -> None:
        node = PrimitiveSchema(
            type="string",
            description="Pet name",
            example="doggie",
            default="rex",
            min_length=1,
            max_length=40,
        )
        assert annotation_fields(node) == [
            ("description", '"Pet name"'),
            ("examples", '["doggie"]'),
            ("default", '"rex"'),
            ("jsonSchema", "{ minLength: 1, maxLength: 40 }"),
        ]

    def test_bounds_keep_integer_form(self) -> None:
        node = PrimitiveSchema(type="integer", minimum=0, maximum=100)
        assert annotation_fields(node) == [("jsonSchema", "{ minimum: 0, maximum: 100 }")]

    def test_render_annotations_block(self) -> None:
        node = PrimitiveSchema(type="string", description="Pet name")
        assert render_annotations(node) == '.annotations({\n\tdescription: "Pet name",\n})'
        assert render_annotations(node, indent="\t") == (
            '.annotations({\n\t\tdescription: "Pet name",\n\t})'
        )
