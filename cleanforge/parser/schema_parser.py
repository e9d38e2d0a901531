"""Entity schema parser.

Turns the short textual descriptions a user types on the command line, e.g.
``"Name:string, Price:decimal"`` and ``"Category:many-to-one"``, into a
validated :class:`EntitySchema`.  Parsing is a pure function of its inputs:
the same strings always yield an equal schema with properties in the order
they were written.
"""

from __future__ import annotations

from collections.abc import Iterable

from cleanforge.errors import (
    DuplicateProperty,
    InvalidIdentifier,
    MalformedProperty,
    UnknownCardinality,
)
from cleanforge.parser.models import (
    PRIMITIVE_NAMES,
    Cardinality,
    EntitySchema,
    PrimitiveType,
    PropertySpec,
    RelationshipSpec,
    is_identifier,
)


# ---------------------------------------------------------------------------
# Token tables
# ---------------------------------------------------------------------------

_SEPARATORS = {",", ";"}
_OPENERS = {"<": ">", "(": ")", "[": "]"}

# Spellings accepted for the canonical primitive names (keys are lowercase).
_TYPE_ALIASES: dict[str, PrimitiveType] = {
    "string": PrimitiveType.STRING,
    "str": PrimitiveType.STRING,
    "text": PrimitiveType.STRING,
    "int": PrimitiveType.INT,
    "integer": PrimitiveType.INT,
    "int32": PrimitiveType.INT,
    "decimal": PrimitiveType.DECIMAL,
    "money": PrimitiveType.DECIMAL,
    "bool": PrimitiveType.BOOL,
    "boolean": PrimitiveType.BOOL,
    "date": PrimitiveType.DATE,
    "datetime": PrimitiveType.DATE,
    "datetimeoffset": PrimitiveType.DATE,
    "dateonly": PrimitiveType.DATE,
    "guid": PrimitiveType.GUID,
    "uuid": PrimitiveType.GUID,
}

_CARDINALITIES: dict[str, Cardinality] = {c.value: c for c in Cardinality}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def parse(
    raw_properties: str,
    raw_relationships: str = "",
    *,
    name: str = "",
    known_entities: Iterable[str] = (),
    aggregate_root: bool = False,
) -> EntitySchema:
    """Parse a property list and a relationship list into an entity schema.

    Args:
        raw_properties: ``name:type`` pairs separated by ``,`` or ``;``.
            A trailing ``?`` on the type marks the property nullable.
        raw_relationships: ``Target:cardinality`` pairs, same separators.
        name: Entity name.  May be empty when the caller supplies it later.
        known_entities: Names of previously declared entities that may be
            used as property types.
        aggregate_root: Whether the entity is an aggregate root.

    Returns:
        The parsed, immutable schema.

    Raises:
        MalformedProperty: A segment is not exactly one ``name:type`` pair, or
            its type is neither a primitive nor a known entity.
        DuplicateProperty: Two property names match case-insensitively.
        InvalidIdentifier: A name, including one of *known_entities*, is not
            a letter followed by alphanumerics.
        UnknownCardinality: A relationship cardinality is not recognised.
    """
    entity_name = name.strip()
    if entity_name:
        _require_identifier(entity_name, "entity")
        entity_name = entity_name[0].upper() + entity_name[1:]

    entities: dict[str, str] = {}
    for entity in known_entities:
        entity = entity.strip()
        if entity:
            _require_identifier(entity, "known entity")
            entities[entity.lower()] = entity

    return EntitySchema(
        name=entity_name,
        properties=tuple(_parse_properties(raw_properties, entities)),
        relationships=tuple(_parse_relationships(raw_relationships)),
        is_aggregate_root=aggregate_root,
    )


def split_segments(raw: str) -> list[str]:
    """Split *raw* on top-level separators and drop empty segments.

    Separators nested inside ``<>``, ``()`` or ``[]`` do not split, so a
    token like ``Map<string,int>`` stays in one (malformed) segment instead of
    being cut in half.
    """
    segments: list[str] = []
    closers: list[str] = []
    current: list[str] = []
    for char in raw:
        if char in _OPENERS:
            closers.append(_OPENERS[char])
        elif closers and char == closers[-1]:
            closers.pop()
        elif char in _SEPARATORS and not closers:
            segments.append("".join(current))
            current = []
            continue
        current.append(char)
    segments.append("".join(current))
    return [s.strip() for s in segments if s.strip()]


# ---------------------------------------------------------------------------
# Internals
# ---------------------------------------------------------------------------


def _parse_properties(raw: str, entities: dict[str, str]) -> list[PropertySpec]:
    properties: list[PropertySpec] = []
    seen: set[str] = set()

    for segment in split_segments(raw):
        prop_name, type_token = _split_pair(segment)
        _require_identifier(prop_name, "property")

        nullable = type_token.endswith("?")
        if nullable:
            type_token = type_token[:-1].rstrip()

        canonical = _resolve_type(type_token, entities)
        if canonical is None:
            raise MalformedProperty(
                segment,
                f"Unknown type '{type_token}' in '{segment}' (expected one of "
                f"{', '.join(sorted(PRIMITIVE_NAMES))} or a declared entity)",
            )

        key = prop_name.lower()
        if key in seen:
            raise DuplicateProperty(prop_name, f"Duplicate property '{prop_name}'")
        seen.add(key)

        properties.append(PropertySpec(name=prop_name, type=canonical, nullable=nullable))

    return properties


def _parse_relationships(raw: str) -> list[RelationshipSpec]:
    relationships: list[RelationshipSpec] = []

    for segment in split_segments(raw):
        target, token = _split_pair(segment)
        _require_identifier(target, "relationship target")

        cardinality = _CARDINALITIES.get(token.lower().replace("_", "-"))
        if cardinality is None:
            raise UnknownCardinality(
                token,
                f"Unknown cardinality '{token}' in '{segment}' (expected one of "
                f"{', '.join(_CARDINALITIES)})",
            )

        spec = RelationshipSpec(target_entity=target, cardinality=cardinality)
        if spec not in relationships:
            relationships.append(spec)

    return relationships


def _split_pair(segment: str) -> tuple[str, str]:
    """Split ``left:right`` or raise :class:`MalformedProperty`."""
    parts = segment.split(":")
    if len(parts) != 2:
        raise MalformedProperty(
            segment, f"Expected exactly one 'name:type' pair, got '{segment}'"
        )
    left, right = parts[0].strip(), parts[1].strip()
    if not left or not right:
        raise MalformedProperty(
            segment, f"Expected exactly one 'name:type' pair, got '{segment}'"
        )
    return left, right


def _resolve_type(token: str, entities: dict[str, str]) -> str | None:
    primitive = _TYPE_ALIASES.get(token.lower())
    if primitive is not None:
        return primitive.value
    return entities.get(token.lower())


def _require_identifier(value: str, what: str) -> None:
    if not is_identifier(value):
        raise InvalidIdentifier(
            value,
            f"Invalid {what} name '{value}': must start with a letter and "
            "contain only letters and digits",
        )
