"""Shared pytest fixtures for the cleanforge test suite.

Provides reusable fixtures for:
- Parsed entity schemas
- Small in-memory template registries
- Layer graphs
- On-disk .NET solution trees for the source scanner
"""

from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from cleanforge.layers import LayerGraph, LayerId
from cleanforge.parser import EntitySchema, parse
from cleanforge.scaffolder import (
    ArtifactKind,
    FillRule,
    SlotSource,
    TemplateRegistry,
    TemplateSlot,
    TemplateUnit,
)


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------


@pytest.fixture
def product_schema() -> EntitySchema:
    """Product with two primitive properties and no relationships."""
    return parse("Name:string, Price:decimal", name="Product")


@pytest.fixture
def order_schema() -> EntitySchema:
    """Aggregate root with a nullable property and two relationships."""
    return parse(
        "Total:decimal; PlacedOn:date?",
        "OrderLine:one-to-many, Customer:many-to-one",
        name="Order",
        aggregate_root=True,
    )


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------


def make_entity_unit(layer: LayerId = LayerId.DOMAIN) -> TemplateUnit:
    """A one-file entity template listing every property."""
    return TemplateUnit(
        layer=layer,
        kind=ArtifactKind.ENTITY,
        path="{{ EntityName }}.cs",
        slots=(
            TemplateSlot(name="EntityName"),
            TemplateSlot(
                name="Properties",
                rule=FillRule.PROPERTY_LIST,
                source=SlotSource.PROPERTIES,
                line="    public {{ type | clr_type(nullable) }} {{ name }} { get; set; }",
            ),
        ),
        body="public class {{ EntityName }}\n{\n{{ Properties }}\n}\n",
    )


@pytest.fixture
def unit_factory():
    """Factory for entity units scoped to an arbitrary layer."""
    return make_entity_unit


@pytest.fixture
def entity_unit() -> TemplateUnit:
    return make_entity_unit()


@pytest.fixture
def domain_registry(entity_unit: TemplateUnit) -> TemplateRegistry:
    """Registry with exactly one Domain Entity unit."""
    return TemplateRegistry.from_units([entity_unit], name="domain-only")


@pytest.fixture
def default_graph() -> LayerGraph:
    return LayerGraph.default()


@pytest.fixture
def strict_graph() -> LayerGraph:
    return LayerGraph.strict()


# ---------------------------------------------------------------------------
# Solution trees
# ---------------------------------------------------------------------------


def write_source(root: Path, rel_path: str, content: str) -> Path:
    """Write a dedented source file under *root*, creating directories."""
    path = root / rel_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip(), encoding="utf-8")
    return path


@pytest.fixture
def solution_dir(tmp_path: Path) -> Path:
    """A small solution with one Domain -> Infrastructure leak.

    - ``Shop.Domain/Entities/Product.cs`` imports ``Shop.Infrastructure.Persistence``
    - ``Shop.Infrastructure`` depends on Domain only (allowed)
    - ``Shop.Api/Program.cs`` wires the DbContext (composition root, allowed)
    - ``Shop.Api/Endpoints/ProductEndpoints.cs`` uses the Domain repository
    """
    root = tmp_path / "solution"
    write_source(
        root,
        "src/Shop.Domain/Entities/Product.cs",
        """
        using System;
        using Shop.Infrastructure.Persistence;

        namespace Shop.Domain.Entities;

        public class Product
        {
            public string Name { get; set; } = string.Empty;
        }
        """,
    )
    write_source(
        root,
        "src/Shop.Infrastructure/Persistence/ApplicationDbContext.cs",
        """
        using Microsoft.EntityFrameworkCore;
        using Shop.Domain.Entities;

        namespace Shop.Infrastructure.Persistence;

        public class ApplicationDbContext : DbContext
        {
        }
        """,
    )
    write_source(
        root,
        "src/Shop.Api/Program.cs",
        """
        using Shop.Infrastructure.Persistence;

        var builder = WebApplication.CreateBuilder(args);
        builder.Services.AddDbContext<ApplicationDbContext>();
        """,
    )
    write_source(
        root,
        "src/Shop.Api/Endpoints/ProductEndpoints.cs",
        """
        using Shop.Domain.Repositories;

        namespace Shop.Api.Endpoints;

        public static class ProductEndpoints
        {
        }
        """,
    )
    write_source(root, "src/Shop.Api/obj/Debug/Generated.cs", "using Shop.Infrastructure;\n")
    return root


@pytest.fixture
def source_writer():
    """Expose :func:`write_source` to tests that build their own trees."""
    return write_source


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

CLEANFORGE_ENV_VARS = (
    "CLEANFORGE_LAYERS",
    "CLEANFORGE_BUNDLE",
    "CLEANFORGE_GRAPH",
    "CLEANFORGE_NAMESPACE",
    "CLEANFORGE_OUTPUT_DIR",
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every CLEANFORGE_* variable for the duration of a test."""
    for name in CLEANFORGE_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch
