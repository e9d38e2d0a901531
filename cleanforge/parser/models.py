"""Pydantic v2 models for parsed entity descriptions.

An :class:`EntitySchema` is created once by the schema parser and never
mutated afterwards; every model here is frozen and stores its sequences as
tuples.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class PrimitiveType(str, Enum):
    """Property types every template bundle knows how to render."""

    STRING = "string"
    INT = "int"
    DECIMAL = "decimal"
    BOOL = "bool"
    DATE = "date"
    GUID = "guid"


class Cardinality(str, Enum):
    """Relationship multiplicity, seen from the owning entity."""

    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    ONE_TO_ONE = "one-to-one"


PRIMITIVE_NAMES: frozenset[str] = frozenset(t.value for t in PrimitiveType)

IDENTIFIER_RE = re.compile(r"[A-Za-z][A-Za-z0-9]*")


def is_identifier(value: str) -> bool:
    """Return ``True`` if *value* starts with a letter and is alphanumeric."""
    return IDENTIFIER_RE.fullmatch(value) is not None


# ---------------------------------------------------------------------------
# Schema models
# ---------------------------------------------------------------------------


class PropertySpec(BaseModel):
    """A single entity property."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., description="Identifier-safe property name")
    type: str = Field(
        ...,
        description="Canonical primitive name or the name of another entity",
    )
    nullable: bool = Field(default=False, description="Declared with a trailing '?'")

    @model_validator(mode="after")
    def _check_names(self) -> PropertySpec:
        if not is_identifier(self.name):
            raise ValueError(f"property name '{self.name}' is not an identifier")
        if self.type not in PRIMITIVE_NAMES and not is_identifier(self.type):
            raise ValueError(
                f"property '{self.name}': type '{self.type}' is neither a primitive "
                "nor an entity name"
            )
        return self

    @property
    def is_primitive(self) -> bool:
        """``True`` unless the type refers to another entity."""
        return self.type in PRIMITIVE_NAMES


class RelationshipSpec(BaseModel):
    """A relationship from the owning entity to another entity."""

    model_config = ConfigDict(frozen=True)

    target_entity: str = Field(..., description="Name of the related entity")
    cardinality: Cardinality = Field(..., description="Relationship multiplicity")

    @field_validator("target_entity")
    @classmethod
    def _check_target(cls, value: str) -> str:
        if not is_identifier(value):
            raise ValueError(f"relationship target '{value}' is not an identifier")
        return value

    @property
    def is_collection(self) -> bool:
        """``True`` when the owning side holds many targets."""
        return self.cardinality == Cardinality.ONE_TO_MANY


class EntitySchema(BaseModel):
    """Validated description of a domain object to scaffold."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="", description="PascalCase entity name; empty if omitted")
    properties: tuple[PropertySpec, ...] = Field(
        default=(), description="Properties in order of appearance in the input"
    )
    relationships: tuple[RelationshipSpec, ...] = Field(
        default=(), description="Relationships in order of appearance"
    )
    is_aggregate_root: bool = Field(
        default=False,
        description="Independently addressable and persisted through its own repository",
    )

    @model_validator(mode="after")
    def _check_schema(self) -> EntitySchema:
        if self.name and not (is_identifier(self.name) and self.name[0].isupper()):
            raise ValueError(
                f"entity name '{self.name}' must be an identifier starting with "
                "an uppercase letter"
            )
        seen: set[str] = set()
        for prop in self.properties:
            key = prop.name.lower()
            if key in seen:
                raise ValueError(f"duplicate property '{prop.name}'")
            seen.add(key)
        return self

    def property_names(self) -> list[str]:
        """Property names in schema order."""
        return [p.name for p in self.properties]

    def references(self) -> list[str]:
        """Names of other entities used as property types, in order, deduplicated."""
        seen: dict[str, None] = {}
        for prop in self.properties:
            if not prop.is_primitive:
                seen.setdefault(prop.type, None)
        return list(seen)
