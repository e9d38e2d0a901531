"""Entity schema parser.

Parses short ``name:type`` property lists and ``Target:cardinality``
relationship lists into immutable schemas for the scaffolder.

Usage::

    from cleanforge.parser import parse

    schema = parse("Name:string, Price:decimal", "Category:many-to-one", name="Product")
    print(schema.property_names())
"""

from cleanforge.parser.models import (
    Cardinality,
    EntitySchema,
    PrimitiveType,
    PropertySpec,
    RelationshipSpec,
)
from cleanforge.parser.schema_parser import parse

__all__ = [
    "parse",
    "Cardinality",
    "EntitySchema",
    "PrimitiveType",
    "PropertySpec",
    "RelationshipSpec",
]
