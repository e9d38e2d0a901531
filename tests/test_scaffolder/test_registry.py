"""Tests for template bundle loading and the TemplateRegistry.

Covers:
- Built-in bundles
- YAML bundle files, including body_file
- Invalid bundles surfacing as ConfigError
- Layer queries and applicability filtering
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from cleanforge.errors import ConfigError
from cleanforge.layers import LayerId
from cleanforge.parser import parse
from cleanforge.scaffolder import ArtifactKind, TemplateRegistry, builtin_bundles
from cleanforge.scaffolder.registry import DEFAULT_BUNDLE, absent_sources
from cleanforge.scaffolder.templates import SlotSource


pytestmark = pytest.mark.unit


def _write_bundle(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "bundle.yaml"
    path.write_text(textwrap.dedent(text), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Built-in bundles
# ---------------------------------------------------------------------------


class TestBuiltinBundles:
    def test_shipped_bundles(self):
        assert builtin_bundles() == ["fast-endpoints", "minimal-api"]

    @pytest.mark.parametrize("name", ["fast-endpoints", "minimal-api"])
    def test_every_layer_is_covered(self, name):
        registry = TemplateRegistry.builtin(name)
        assert registry.name == name
        assert registry.layers() == list(LayerId)

    def test_default_bundle(self):
        assert TemplateRegistry.builtin().name == DEFAULT_BUNDLE

    def test_unknown_bundle(self):
        with pytest.raises(ConfigError, match="minimal-api"):
            TemplateRegistry.builtin("mvc")

    def test_units_for_keeps_registration_order(self):
        registry = TemplateRegistry.builtin("minimal-api")
        kinds = [u.kind for u in registry.units_for(LayerId.INFRASTRUCTURE)]
        assert kinds == [
            ArtifactKind.CONFIGURATION,
            ArtifactKind.IMPLEMENTATION,
            ArtifactKind.CONFIGURATION,
        ]


# ---------------------------------------------------------------------------
# Bundle files
# ---------------------------------------------------------------------------


class TestLoad:
    def test_inline_body(self, tmp_path):
        path = _write_bundle(
            tmp_path,
            """
            name: tiny
            description: one unit
            units:
              - layer: Domain
                kind: Entity
                path: "{{ EntityName }}.cs"
                slots:
                  - {name: EntityName}
                body: "class {{ EntityName }} {}"
            """,
        )
        registry = TemplateRegistry.load(path)
        assert registry.name == "tiny"
        assert registry.description == "one unit"
        assert len(registry.units) == 1
        assert registry.units[0].layer is LayerId.DOMAIN

    def test_body_file_is_inlined(self, tmp_path):
        (tmp_path / "entity.cs.j2").write_text("class {{ EntityName }} {}\n", encoding="utf-8")
        path = _write_bundle(
            tmp_path,
            """
            units:
              - layer: Domain
                kind: Entity
                path: "{{ EntityName }}.cs"
                slots: [{name: EntityName}]
                body_file: entity.cs.j2
            """,
        )
        registry = TemplateRegistry.load(path)
        assert registry.name == "bundle"
        assert registry.units[0].body == "class {{ EntityName }} {}\n"

    def test_missing_body_file(self, tmp_path):
        path = _write_bundle(
            tmp_path,
            """
            units:
              - {layer: Domain, kind: Entity, path: x.cs, body_file: nope.j2}
            """,
        )
        with pytest.raises(ConfigError, match="nope.j2"):
            TemplateRegistry.load(path)

    def test_missing_units_list(self, tmp_path):
        path = _write_bundle(tmp_path, "name: empty\n")
        with pytest.raises(ConfigError, match="units"):
            TemplateRegistry.load(path)

    def test_invalid_yaml(self, tmp_path):
        path = _write_bundle(tmp_path, "units: [unclosed\n")
        with pytest.raises(ConfigError, match="Cannot read"):
            TemplateRegistry.load(path)

    def test_invalid_slot_rule(self, tmp_path):
        path = _write_bundle(
            tmp_path,
            """
            units:
              - layer: Domain
                kind: Entity
                path: x.cs
                slots: [{name: Props, rule: property-list, source: properties}]
                body: "{{ Props }}"
            """,
        )
        with pytest.raises(ConfigError, match="Invalid template bundle"):
            TemplateRegistry.load(path)

    def test_unknown_layer(self, tmp_path):
        path = _write_bundle(
            tmp_path,
            """
            units:
              - {layer: Application, kind: Entity, path: x.cs, body: ""}
            """,
        )
        with pytest.raises(ConfigError):
            TemplateRegistry.load(path)

    def test_resolve_by_name_or_path(self, tmp_path):
        assert TemplateRegistry.resolve("fast-endpoints").name == "fast-endpoints"
        path = _write_bundle(tmp_path, "units: []\n")
        assert TemplateRegistry.resolve(str(path)).units == ()
        with pytest.raises(ConfigError, match="neither"):
            TemplateRegistry.resolve(str(tmp_path / "missing.yaml"))


# ---------------------------------------------------------------------------
# Applicability
# ---------------------------------------------------------------------------


class TestApplicableTo:
    def test_absent_sources(self):
        schema = parse("Name:string", name="Product")
        assert absent_sources(schema, "Shop") == {SlotSource.RELATIONSHIPS}
        assert absent_sources(parse(""), "") == {
            SlotSource.ENTITY_NAME,
            SlotSource.NAMESPACE,
            SlotSource.PROPERTIES,
            SlotSource.RELATIONSHIPS,
        }

    def test_drops_relationship_units(self, product_schema):
        registry = TemplateRegistry.builtin("minimal-api")
        filtered = registry.applicable_to(product_schema, "Shop")
        assert len(filtered.units) == len(registry.units) - 2
        assert all(SlotSource.RELATIONSHIPS not in u.sources() for u in filtered.units)
        assert filtered.name == registry.name

    def test_keeps_everything_for_full_schema(self, order_schema):
        registry = TemplateRegistry.builtin("minimal-api")
        assert registry.applicable_to(order_schema, "Shop") == registry

    def test_without_namespace_nothing_applies(self, product_schema):
        registry = TemplateRegistry.builtin("minimal-api")
        assert registry.applicable_to(product_schema).units == ()
