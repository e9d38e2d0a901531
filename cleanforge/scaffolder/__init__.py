"""cleanforge scaffolder -- renders Clean Architecture feature slices.

Takes a parsed :class:`~cleanforge.parser.EntitySchema` and a
:class:`TemplateRegistry` and produces one artifact per template unit
registered for the requested layers.

Quick usage::

    from cleanforge.parser import parse
    from cleanforge.scaffolder import TemplateRegistry, generate, write_artifacts

    schema = parse("Name:string, Price:decimal", name="Product")
    registry = TemplateRegistry.builtin("minimal-api").applicable_to(schema, "Shop")
    artifacts = generate(schema, ["Domain", "Infrastructure"], registry, namespace="Shop")
    await write_artifacts(artifacts, "/tmp/shop")
"""

from cleanforge.scaffolder.generator import GeneratedArtifact, ScaffoldGenerator, generate
from cleanforge.scaffolder.registry import TemplateRegistry, builtin_bundles
from cleanforge.scaffolder.templates import (
    ArtifactKind,
    CaseStyle,
    FillRule,
    SlotSource,
    TemplateRenderer,
    TemplateSlot,
    TemplateUnit,
)
from cleanforge.scaffolder.writer import write_artifacts

__all__ = [
    "ArtifactKind",
    "CaseStyle",
    "FillRule",
    "GeneratedArtifact",
    "ScaffoldGenerator",
    "SlotSource",
    "TemplateRegistry",
    "TemplateRenderer",
    "TemplateSlot",
    "TemplateUnit",
    "builtin_bundles",
    "generate",
    "write_artifacts",
]
