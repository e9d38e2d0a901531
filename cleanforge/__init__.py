"""cleanforge -- deterministic Clean Architecture scaffolding and layer auditing.

Usage::

    from cleanforge import LayerGraph, TemplateRegistry, audit, generate, parse

    schema = parse("Name:string, Price:decimal", name="Product")
    artifacts = generate(schema, ["Domain"], TemplateRegistry.builtin(), namespace="Shop")
    report = audit(facts, LayerGraph.default())
"""

from cleanforge.auditor import AuditReport, DependencyFact, SourceScanner, audit
from cleanforge.layers import LayerGraph, LayerId
from cleanforge.parser import EntitySchema, parse
from cleanforge.scaffolder import GeneratedArtifact, TemplateRegistry, generate, write_artifacts

__version__ = "0.1.0"

__all__ = [
    "AuditReport",
    "DependencyFact",
    "EntitySchema",
    "GeneratedArtifact",
    "LayerGraph",
    "LayerId",
    "SourceScanner",
    "TemplateRegistry",
    "audit",
    "generate",
    "parse",
    "write_artifacts",
]
