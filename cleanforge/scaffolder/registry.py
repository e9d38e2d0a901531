"""Template registry and bundle loading.

A :class:`TemplateRegistry` is an immutable, ordered collection of template
units.  It is populated once (from a built-in bundle, a YAML bundle file, or
in-memory units) and shared read-only afterwards.

Bundle file format::

    name: minimal-api
    description: Minimal API endpoints + EF Core repositories
    units:
      - layer: Domain
        kind: Entity
        path: "src/{{ Namespace }}.Domain/Entities/{{ EntityName }}.cs"
        slots:
          - {name: Namespace, source: namespace}
          - {name: EntityName}
          - name: Properties
            rule: property-list
            source: properties
            line: "    public {{ type | clr_type(nullable) }} {{ name }} { get; set; }"
        body: |
          namespace {{ Namespace }}.Domain.Entities;
          ...

A unit may use ``body_file`` (relative to the bundle file) instead of an
inline ``body``.
"""

from __future__ import annotations

from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cleanforge.errors import ConfigError
from cleanforge.layers.graph import LayerId
from cleanforge.parser.models import EntitySchema
from cleanforge.scaffolder.templates import SlotSource, TemplateUnit


# ---------------------------------------------------------------------------
# Built-in bundle discovery
# ---------------------------------------------------------------------------

_BUNDLE_DIR = Path(__file__).parent / "bundles"

DEFAULT_BUNDLE = "minimal-api"


def builtin_bundles() -> list[str]:
    """Names of the bundles shipped with the package, sorted."""
    return sorted(p.stem for p in _BUNDLE_DIR.glob("*.yaml"))


# ---------------------------------------------------------------------------
# TemplateRegistry
# ---------------------------------------------------------------------------


class TemplateRegistry(BaseModel):
    """Immutable set of template units, kept in registration order."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(default="in-memory")
    description: str = Field(default="")
    units: tuple[TemplateUnit, ...] = Field(default=())

    # -- Constructors ------------------------------------------------------

    @classmethod
    def from_units(
        cls, units: Iterable[TemplateUnit], name: str = "in-memory", description: str = ""
    ) -> TemplateRegistry:
        return cls(name=name, description=description, units=tuple(units))

    @classmethod
    def builtin(cls, name: str = DEFAULT_BUNDLE) -> TemplateRegistry:
        """Load a bundle shipped with the package.

        Raises:
            ConfigError: If no built-in bundle has that name.
        """
        path = _BUNDLE_DIR / f"{name}.yaml"
        if not path.is_file():
            raise ConfigError(
                f"Unknown template bundle '{name}' "
                f"(built-in bundles: {', '.join(builtin_bundles())})"
            )
        return cls.load(path)

    @classmethod
    def resolve(cls, bundle: str | Path) -> TemplateRegistry:
        """Load *bundle* as a built-in name or, failing that, as a file path."""
        if isinstance(bundle, str) and bundle in builtin_bundles():
            return cls.builtin(bundle)
        path = Path(bundle)
        if path.is_file():
            return cls.load(path)
        raise ConfigError(
            f"Template bundle '{bundle}' is neither a built-in bundle "
            f"({', '.join(builtin_bundles())}) nor an existing file"
        )

    @classmethod
    def load(cls, path: str | Path) -> TemplateRegistry:
        """Load a YAML bundle file.

        Raises:
            ConfigError: If the file cannot be read or does not describe a
                valid bundle.
        """
        bundle_path = Path(path)
        try:
            raw = yaml.safe_load(bundle_path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read template bundle {bundle_path}: {exc}") from exc

        if not isinstance(raw, dict) or not isinstance(raw.get("units"), list):
            raise ConfigError(f"Template bundle {bundle_path} must define a 'units' list")

        units = [
            _inline_body_file(unit, bundle_path.parent) for unit in raw["units"]
        ]
        try:
            return cls.model_validate(
                {
                    "name": raw.get("name", bundle_path.stem),
                    "description": raw.get("description", ""),
                    "units": units,
                }
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid template bundle {bundle_path}:\n{exc}") from exc

    # -- Queries -----------------------------------------------------------

    def units_for(self, layer: LayerId) -> tuple[TemplateUnit, ...]:
        """Units registered for *layer*, in registration order."""
        return tuple(u for u in self.units if u.layer == layer)

    def layers(self) -> list[LayerId]:
        """Layers with at least one unit, in ascending rank."""
        present = {u.layer for u in self.units}
        return [layer for layer in LayerId if layer in present]

    def applicable_to(self, schema: EntitySchema, namespace: str = "") -> TemplateRegistry:
        """Drop the units whose slots *schema* cannot fill.

        Used by callers that scaffold whatever the schema supports instead of
        failing on, for example, relationship templates for an entity with no
        relationships.
        """
        absent = absent_sources(schema, namespace)
        return self.model_copy(
            update={"units": tuple(u for u in self.units if not (u.sources() & absent))}
        )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def absent_sources(schema: EntitySchema, namespace: str = "") -> set[SlotSource]:
    """Slot sources that have no value for this schema and namespace."""
    absent: set[SlotSource] = set()
    if not schema.name:
        absent.add(SlotSource.ENTITY_NAME)
    if not namespace:
        absent.add(SlotSource.NAMESPACE)
    if not schema.properties:
        absent.add(SlotSource.PROPERTIES)
    if not schema.relationships:
        absent.add(SlotSource.RELATIONSHIPS)
    return absent


def _inline_body_file(unit: Any, base_dir: Path) -> Any:
    """Replace a unit's ``body_file`` key with the file's content."""
    if not isinstance(unit, dict) or "body_file" not in unit:
        return unit
    body_path = base_dir / unit["body_file"]
    try:
        body = body_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read template body {body_path}: {exc}") from exc
    resolved = {k: v for k, v in unit.items() if k != "body_file"}
    resolved["body"] = body
    return resolved
