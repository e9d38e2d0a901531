"""Tests for the entity schema parser.

Covers:
- Property and relationship parsing, order preservation
- Separators, nullability, type aliases, entity references
- Every ParseError variant
- Determinism
"""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cleanforge.errors import (
    DuplicateProperty,
    InvalidIdentifier,
    MalformedProperty,
    ParseError,
    UnknownCardinality,
)
from cleanforge.parser import (
    Cardinality,
    EntitySchema,
    PropertySpec,
    RelationshipSpec,
    parse,
)
from cleanforge.parser.schema_parser import is_identifier, split_segments


pytestmark = pytest.mark.unit


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestParseProperties:
    def test_two_primitive_properties(self):
        schema = parse("Name:string, Price:decimal", "")
        assert schema.name == ""
        assert schema.properties == (
            PropertySpec(name="Name", type="string"),
            PropertySpec(name="Price", type="decimal"),
        )
        assert schema.relationships == ()

    def test_order_is_preserved(self):
        schema = parse("Zeta:int, Alpha:int, Mid:int")
        assert schema.property_names() == ["Zeta", "Alpha", "Mid"]

    def test_semicolon_and_whitespace(self):
        schema = parse("  Name : string ;Stock:int ,  ")
        assert schema.property_names() == ["Name", "Stock"]

    def test_empty_input_gives_empty_schema(self):
        assert parse("") == EntitySchema()

    def test_nullable_marker(self):
        schema = parse("Notes:string?, Due:date ?")
        assert [p.nullable for p in schema.properties] == [True, True]
        assert [p.type for p in schema.properties] == ["string", "date"]

    @pytest.mark.parametrize(
        "token, canonical",
        [
            ("String", "string"),
            ("integer", "int"),
            ("money", "decimal"),
            ("Boolean", "bool"),
            ("DateTime", "date"),
            ("uuid", "guid"),
        ],
    )
    def test_type_aliases(self, token, canonical):
        assert parse(f"Field:{token}").properties[0].type == canonical

    def test_known_entity_as_type(self):
        schema = parse("Owner:customer", known_entities=["Customer"])
        prop = schema.properties[0]
        assert prop.type == "Customer"
        assert not prop.is_primitive
        assert schema.references() == ["Customer"]

    def test_unknown_type_is_malformed(self):
        with pytest.raises(MalformedProperty) as exc_info:
            parse("Owner:Customer")
        assert exc_info.value.token == "Owner:Customer"


class TestParseErrors:
    def test_duplicate_property_cites_name(self):
        with pytest.raises(DuplicateProperty) as exc_info:
            parse("Name:string, Name:int", "")
        assert exc_info.value.token == "Name"
        assert "Name" in str(exc_info.value)

    def test_duplicate_is_case_insensitive(self):
        with pytest.raises(DuplicateProperty):
            parse("Name:string, name:string")

    @pytest.mark.parametrize("raw", ["Name", "Name:string:int", ":string", "Name:"])
    def test_malformed_segments(self, raw):
        with pytest.raises(MalformedProperty):
            parse(raw)

    def test_nested_separator_stays_in_one_segment(self):
        with pytest.raises(MalformedProperty) as exc_info:
            parse("Tags:Map<string,int>")
        assert exc_info.value.token == "Tags:Map<string,int>"

    @pytest.mark.parametrize("raw", ["1st:string", "first-name:string", "_id:guid"])
    def test_invalid_property_identifier(self, raw):
        with pytest.raises(InvalidIdentifier):
            parse(raw)

    def test_invalid_entity_name(self):
        with pytest.raises(InvalidIdentifier) as exc_info:
            parse("Name:string", name="Order Line")
        assert exc_info.value.token == "Order Line"

    def test_invalid_known_entity(self):
        with pytest.raises(InvalidIdentifier) as exc_info:
            parse("Owner:bad name", known_entities=["Bad Name"], name="Pet")
        assert exc_info.value.token == "Bad Name"

    def test_blank_known_entities_are_ignored(self):
        schema = parse("Owner:customer", known_entities=["", "  ", "Customer"])
        assert schema.references() == ["Customer"]

    def test_all_errors_share_base(self):
        for raw in ("Name", "Name:string, Name:string", "9:int"):
            with pytest.raises(ParseError):
                parse(raw)


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


class TestParseRelationships:
    def test_relationships_in_order(self):
        schema = parse("", "OrderLine:one-to-many, Customer:many-to-one")
        assert [(r.target_entity, r.cardinality) for r in schema.relationships] == [
            ("OrderLine", Cardinality.ONE_TO_MANY),
            ("Customer", Cardinality.MANY_TO_ONE),
        ]
        assert schema.relationships[0].is_collection
        assert not schema.relationships[1].is_collection

    def test_cardinality_spelling_is_normalised(self):
        schema = parse("", "Profile:One_To_One")
        assert schema.relationships[0].cardinality is Cardinality.ONE_TO_ONE

    def test_exact_duplicates_collapse(self):
        schema = parse("", "Tag:one-to-many; Tag:one-to-many")
        assert len(schema.relationships) == 1

    def test_unknown_cardinality(self):
        with pytest.raises(UnknownCardinality) as exc_info:
            parse("", "Tag:many-to-many")
        assert exc_info.value.token == "many-to-many"

    def test_invalid_target(self):
        with pytest.raises(InvalidIdentifier):
            parse("", "order line:one-to-many")


# ---------------------------------------------------------------------------
# Schema-level behaviour
# ---------------------------------------------------------------------------


class TestSchema:
    def test_name_is_capitalised(self):
        assert parse("", name="product").name == "Product"

    def test_aggregate_root_flag(self):
        assert parse("", name="Order", aggregate_root=True).is_aggregate_root

    def test_parse_is_deterministic(self):
        args = ("Name:string, Price:decimal?", "Category:many-to-one")
        assert parse(*args, name="Product") == parse(*args, name="Product")

    def test_schema_is_immutable(self, product_schema):
        with pytest.raises(ValidationError):
            product_schema.name = "Other"


class TestSchemaValidation:
    """Models reject invalid data even when built without the parser."""

    def test_unparsed_invalid_schema_is_rejected(self):
        with pytest.raises(ValidationError):
            EntitySchema(
                name="1 bad",
                properties=(
                    PropertySpec(name="Name", type="string"),
                    PropertySpec(name="Price", type="decimal"),
                ),
            )

    @pytest.mark.parametrize("name", ["x y", "1st", "", "Name\n"])
    def test_property_name_must_be_identifier(self, name):
        with pytest.raises(ValidationError):
            PropertySpec(name=name, type="string")

    def test_property_type_must_be_primitive_or_entity(self):
        with pytest.raises(ValidationError):
            PropertySpec(name="Owner", type="nonsense value")

    def test_entity_typed_property_is_accepted(self):
        assert not PropertySpec(name="Owner", type="Customer").is_primitive

    def test_relationship_target_must_be_identifier(self):
        with pytest.raises(ValidationError):
            RelationshipSpec(target_entity="order line", cardinality="one-to-many")

    def test_entity_name_must_start_uppercase(self):
        with pytest.raises(ValidationError):
            EntitySchema(name="product")

    def test_duplicate_properties_are_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            EntitySchema(
                name="Product",
                properties=(
                    PropertySpec(name="Name", type="string"),
                    PropertySpec(name="name", type="string"),
                ),
            )
        assert "duplicate property 'name'" in str(exc_info.value)

    def test_parsed_schema_round_trips_through_validation(self, order_schema):
        assert EntitySchema.model_validate(order_schema.model_dump()) == order_schema


class TestHelpers:
    def test_split_segments(self):
        assert split_segments("a:int,, b:int ; c:int") == ["a:int", "b:int", "c:int"]

    def test_is_identifier(self):
        assert is_identifier("Price2")
        assert not is_identifier("2Price")
        assert not is_identifier("")

    @pytest.mark.parametrize("value", ["Name\n", "Name ", " Name", "Na\nme"])
    def test_is_identifier_rejects_whitespace(self, value):
        assert not is_identifier(value)

    def test_embedded_newline_in_property_name(self):
        with pytest.raises(InvalidIdentifier):
            parse("Na\nme:string")
