"""Scaffold generator.

Takes an :class:`EntitySchema`, a set of layers, and a
:class:`TemplateRegistry`, and renders one :class:`GeneratedArtifact` per
template unit registered for those layers.  Generation is all-or-nothing and
has no side effects: artifacts are returned in memory and writing them is the
caller's job (see :mod:`cleanforge.scaffolder.writer`).

Artifacts come back grouped by layer in ascending rank, then in registration
order, so generating twice from the same input is byte-for-byte identical.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from jinja2 import TemplateError, UndefinedError
from pydantic import BaseModel, ConfigDict, Field

from cleanforge.errors import ConfigError, NoTemplateForLayer, UnresolvedSlot
from cleanforge.layers.graph import LayerId
from cleanforge.parser.models import EntitySchema
from cleanforge.scaffolder.naming import pluralize
from cleanforge.scaffolder.registry import TemplateRegistry, absent_sources
from cleanforge.scaffolder.templates import (
    ArtifactKind,
    FillRule,
    SlotSource,
    TemplateRenderer,
    TemplateSlot,
    TemplateUnit,
)


# ---------------------------------------------------------------------------
# Output model
# ---------------------------------------------------------------------------


class GeneratedArtifact(BaseModel):
    """One rendered file, not yet written anywhere."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Relative, forward-slash path")
    content: str = Field(..., description="Rendered file content")
    layer: LayerId
    kind: ArtifactKind


# ---------------------------------------------------------------------------
# Generator
# ---------------------------------------------------------------------------


class ScaffoldGenerator:
    """Renders template units for an entity schema.

    The registry is read-only, so one generator can serve any number of
    schemas.
    """

    def __init__(self, registry: TemplateRegistry) -> None:
        self.registry = registry
        self.renderer = TemplateRenderer()

    # -- Public API --------------------------------------------------------

    def generate(
        self,
        schema: EntitySchema,
        layers: Iterable[LayerId | str],
        *,
        namespace: str = "",
    ) -> list[GeneratedArtifact]:
        """Render every unit registered for *layers*.

        Args:
            schema: Parsed entity schema.
            layers: Layers to scaffold; order and duplicates are irrelevant.
            namespace: Root namespace for units with a ``namespace`` slot.

        Returns:
            Artifacts ordered by layer rank, then registration order.

        Raises:
            NoTemplateForLayer: A requested layer has no registered unit.
            UnresolvedSlot: A unit needs a slot the schema cannot fill, or its
                body references an undeclared marker.
            ConfigError: A unit's template is not valid Jinja2.
        """
        requested = sorted({_as_layer(layer) for layer in layers}, key=lambda layer: layer.rank)

        plan: list[TemplateUnit] = []
        for layer in requested:
            units = self.registry.units_for(layer)
            if not units:
                raise NoTemplateForLayer(layer.value)
            plan.extend(units)

        return [self._render_unit(unit, schema, namespace) for unit in plan]

    # -- Rendering ---------------------------------------------------------

    def _render_unit(
        self, unit: TemplateUnit, schema: EntitySchema, namespace: str
    ) -> GeneratedArtifact:
        declared = {slot.name for slot in unit.slots}
        try:
            referenced = self.renderer.undeclared_names(unit.body) | self.renderer.undeclared_names(
                unit.path
            )
        except TemplateError as exc:
            raise ConfigError(f"Invalid template in unit {unit.label}: {exc}") from exc

        undeclared = sorted(referenced - declared)
        if undeclared:
            raise UnresolvedSlot(undeclared[0], unit.label, "marker is not a declared slot")

        absent = absent_sources(schema, namespace)
        context = {
            slot.name: self._fill_slot(slot, unit, schema, namespace, absent)
            for slot in unit.slots
        }

        try:
            path = self.renderer.render_string(unit.path, context)
            content = self.renderer.render_string(unit.body, context)
        except UndefinedError as exc:
            raise UnresolvedSlot(_undefined_name(exc), unit.label, str(exc)) from exc
        except TemplateError as exc:
            raise ConfigError(f"Cannot render unit {unit.label}: {exc}") from exc

        return GeneratedArtifact(
            path=_normalise_path(path),
            content=content,
            layer=unit.layer,
            kind=unit.kind,
        )

    def _fill_slot(
        self,
        slot: TemplateSlot,
        unit: TemplateUnit,
        schema: EntitySchema,
        namespace: str,
        absent: set[SlotSource],
    ) -> Any:
        if slot.source in absent:
            raise UnresolvedSlot(
                slot.name, unit.label, f"schema has no {slot.source.value}"
            )

        if slot.rule == FillRule.PROPERTY_LIST:
            items = [
                {
                    "name": prop.name,
                    "type": prop.type,
                    "nullable": prop.nullable,
                    "is_primitive": prop.is_primitive,
                }
                for prop in schema.properties
            ]
            return self._render_lines(slot, unit, schema, items)

        if slot.rule == FillRule.RELATIONSHIP_LIST:
            items = [
                {
                    "target": rel.target_entity,
                    "cardinality": rel.cardinality.value,
                    "is_collection": rel.is_collection,
                }
                for rel in schema.relationships
            ]
            return self._render_lines(slot, unit, schema, items)

        value = _source_value(slot.source, schema, namespace)
        if slot.rule == FillRule.PLURALIZE:
            value = pluralize(value)
            if slot.case is not None:
                value = slot.case.apply(value)
        elif slot.rule == FillRule.CASE:
            value = slot.case.apply(value)
        return value

    def _render_lines(
        self,
        slot: TemplateSlot,
        unit: TemplateUnit,
        schema: EntitySchema,
        items: list[dict[str, Any]],
    ) -> str:
        lines: list[str] = []
        for index, item in enumerate(items):
            context = {**item, "index": index, "entity": schema.name}
            try:
                lines.append(self.renderer.render_string(slot.line or "", context))
            except UndefinedError as exc:
                raise UnresolvedSlot(slot.name, unit.label, str(exc)) from exc
            except TemplateError as exc:
                raise ConfigError(
                    f"Invalid line template for slot '{slot.name}' in unit {unit.label}: {exc}"
                ) from exc
        return "\n".join(lines)


def generate(
    schema: EntitySchema,
    layers: Iterable[LayerId | str],
    registry: TemplateRegistry,
    *,
    namespace: str = "",
) -> list[GeneratedArtifact]:
    """Functional shortcut for :meth:`ScaffoldGenerator.generate`."""
    return ScaffoldGenerator(registry).generate(schema, layers, namespace=namespace)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _as_layer(value: LayerId | str) -> LayerId:
    try:
        return LayerId.parse(value)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _source_value(source: SlotSource, schema: EntitySchema, namespace: str) -> Any:
    if source == SlotSource.ENTITY_NAME:
        return schema.name
    if source == SlotSource.NAMESPACE:
        return namespace
    if source == SlotSource.AGGREGATE_ROOT:
        return schema.is_aggregate_root
    raise ValueError(f"source '{source.value}' has no scalar value")


def _undefined_name(exc: UndefinedError) -> str:
    # Jinja2 phrases these as "'Name' is undefined".
    message = str(exc)
    if message.startswith("'") and "'" in message[1:]:
        return message[1 : message.index("'", 1)]
    return message


def _normalise_path(path: str) -> str:
    return path.strip().replace("\\", "/")
