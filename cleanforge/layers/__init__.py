"""Architectural layers and the rules governing dependencies between them."""

from cleanforge.layers.graph import (
    DEFAULT_LAYER_TABLE,
    STRICT_LAYER_TABLE,
    LayerGraph,
    LayerId,
)

__all__ = [
    "DEFAULT_LAYER_TABLE",
    "STRICT_LAYER_TABLE",
    "LayerGraph",
    "LayerId",
]
