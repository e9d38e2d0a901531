"""cleanforge configuration.

Centralised, typed configuration for scaffolding and auditing.  Settings use
Pydantic v2 models so they are validated at construction time and can be
serialised to/from JSON or read from environment variables.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator

from cleanforge.auditor.scanner import ScanRules
from cleanforge.errors import ConfigError
from cleanforge.layers.graph import LayerGraph, LayerId
from cleanforge.scaffolder.registry import DEFAULT_BUNDLE, TemplateRegistry


class Config(BaseModel):
    """Global cleanforge configuration.

    Instances are typically created once by the CLI entry point and then
    passed to the commands that need them.  The layer graph and template
    registry are built from it on demand and never mutated.
    """

    layers: list[LayerId] = Field(
        default_factory=lambda: list(LayerId),
        description="Layers to scaffold, in any order",
    )
    template_bundle: str = Field(
        default=DEFAULT_BUNDLE,
        description="Built-in bundle name or path to a YAML bundle file",
    )
    layer_graph: str | dict[str, list[str]] = Field(
        default="default",
        description="Preset name ('default', 'strict') or an adjacency table override",
    )
    root_namespace: str = Field(default="", description="Root namespace for generated code")
    output_dir: Path = Field(default=Path("."))
    overwrite: bool = Field(default=False, description="Replace existing files when writing")
    scan: ScanRules = Field(default_factory=ScanRules)

    @field_validator("layers", mode="before")
    @classmethod
    def _parse_layers(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.split(",")
        if isinstance(value, list):
            return [LayerId.parse(v) for v in value if not isinstance(v, str) or v.strip()]
        return value

    # ------------------------------------------------------------------
    # Derived objects
    # ------------------------------------------------------------------

    def build_graph(self) -> LayerGraph:
        """Construct the layer graph described by :attr:`layer_graph`.

        Raises:
            ConfigError: Unknown preset, or an invalid/cyclic table.
        """
        if isinstance(self.layer_graph, str):
            return LayerGraph.preset(self.layer_graph)
        return LayerGraph.from_table(self.layer_graph)

    def build_registry(self) -> TemplateRegistry:
        """Load the template registry named by :attr:`template_bundle`."""
        return TemplateRegistry.resolve(self.template_bundle)

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file.

        Returns:
            The resolved path where the file was written.
        """
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return target

    @classmethod
    def load(cls, path: Path) -> Config:
        """Load a previously-saved configuration from JSON.

        Raises:
            ConfigError: If the file is missing, not JSON, or invalid.
        """
        try:
            raw = Path(path).read_text(encoding="utf-8")
            return cls.model_validate(json.loads(raw))
        except (OSError, json.JSONDecodeError, ValidationError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration file {path}: {exc}") from exc

    @classmethod
    def from_env(cls) -> Config:
        """Build a ``Config`` from environment variables.

        Recognised variables (all optional):
            CLEANFORGE_LAYERS, CLEANFORGE_BUNDLE, CLEANFORGE_GRAPH,
            CLEANFORGE_NAMESPACE, CLEANFORGE_OUTPUT_DIR.

        ``CLEANFORGE_GRAPH`` is either a preset name or a JSON adjacency
        table.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CLEANFORGE_LAYERS"):
            kwargs["layers"] = os.environ["CLEANFORGE_LAYERS"]
        if os.environ.get("CLEANFORGE_BUNDLE"):
            kwargs["template_bundle"] = os.environ["CLEANFORGE_BUNDLE"]
        if os.environ.get("CLEANFORGE_GRAPH"):
            graph = os.environ["CLEANFORGE_GRAPH"].strip()
            if graph.startswith("{"):
                try:
                    kwargs["layer_graph"] = json.loads(graph)
                except json.JSONDecodeError as exc:
                    raise ConfigError(f"CLEANFORGE_GRAPH is not valid JSON: {exc}") from exc
            else:
                kwargs["layer_graph"] = graph
        if os.environ.get("CLEANFORGE_NAMESPACE"):
            kwargs["root_namespace"] = os.environ["CLEANFORGE_NAMESPACE"]
        if os.environ.get("CLEANFORGE_OUTPUT_DIR"):
            kwargs["output_dir"] = Path(os.environ["CLEANFORGE_OUTPUT_DIR"])

        try:
            return cls(**kwargs)
        except (ValidationError, ValueError) as exc:
            raise ConfigError(f"Invalid environment configuration: {exc}") from exc
