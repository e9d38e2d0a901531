"""Layer identifiers and the allowed-dependency graph between them.

A :class:`LayerGraph` is built once from an adjacency table, validated
(acyclic, Domain depends on nothing), closed transitively, and then shared
read-only by the generator and the conformance checker.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from graphlib import CycleError, TopologicalSorter

from cleanforge.errors import ConfigError


# ---------------------------------------------------------------------------
# LayerId
# ---------------------------------------------------------------------------


class LayerId(str, Enum):
    """Architectural tier, declared in ascending rank order."""

    DOMAIN = "Domain"
    INFRASTRUCTURE = "Infrastructure"
    PRESENTATION = "Presentation"
    TEST = "Test"

    @property
    def rank(self) -> int:
        """Position in the fixed ordering (Domain = 0)."""
        return _RANKS[self]

    @classmethod
    def parse(cls, value: str | LayerId) -> LayerId:
        """Return the layer named by *value*, ignoring case.

        Raises:
            ValueError: If *value* does not name a layer.
        """
        if isinstance(value, LayerId):
            return value
        wanted = str(value).strip().lower()
        for layer in cls:
            if layer.value.lower() == wanted:
                return layer
        raise ValueError(f"Unknown layer: {value!r}")

    @classmethod
    def parse_list(cls, raw: str) -> list[LayerId]:
        """Parse a comma-separated list such as ``"Domain, Test"``."""
        return [cls.parse(part) for part in raw.split(",") if part.strip()]


_RANKS: dict[LayerId, int] = {layer: index for index, layer in enumerate(LayerId)}


# ---------------------------------------------------------------------------
# Preset adjacency tables
# ---------------------------------------------------------------------------

DEFAULT_LAYER_TABLE: dict[LayerId, frozenset[LayerId]] = {
    LayerId.DOMAIN: frozenset(),
    LayerId.INFRASTRUCTURE: frozenset({LayerId.DOMAIN}),
    LayerId.PRESENTATION: frozenset({LayerId.DOMAIN, LayerId.INFRASTRUCTURE}),
    LayerId.TEST: frozenset(
        {LayerId.DOMAIN, LayerId.INFRASTRUCTURE, LayerId.PRESENTATION}
    ),
}

# Presentation talks to Domain abstractions only; Infrastructure is wired in
# by the composition root, never referenced from endpoint code.
STRICT_LAYER_TABLE: dict[LayerId, frozenset[LayerId]] = {
    LayerId.DOMAIN: frozenset(),
    LayerId.INFRASTRUCTURE: frozenset({LayerId.DOMAIN}),
    LayerId.PRESENTATION: frozenset({LayerId.DOMAIN}),
    LayerId.TEST: frozenset(
        {LayerId.DOMAIN, LayerId.INFRASTRUCTURE, LayerId.PRESENTATION}
    ),
}

PRESETS: dict[str, dict[LayerId, frozenset[LayerId]]] = {
    "default": DEFAULT_LAYER_TABLE,
    "strict": STRICT_LAYER_TABLE,
}


# ---------------------------------------------------------------------------
# LayerGraph
# ---------------------------------------------------------------------------


class LayerGraph:
    """Immutable, transitively closed allowed-dependency relation.

    Args:
        table: Mapping of each known layer to the layers it may depend on
            directly.  Keys and targets may be :class:`LayerId` members or
            their names (case-insensitive).

    Raises:
        ConfigError: If the table names an unknown layer, references a layer
            that has no entry of its own, gives Domain any dependency, or
            contains a cycle.
    """

    __slots__ = ("_allowed",)

    def __init__(
        self, table: Mapping[str | LayerId, Iterable[str | LayerId]]
    ) -> None:
        direct: dict[LayerId, frozenset[LayerId]] = {}
        for raw_layer, raw_targets in table.items():
            layer = _coerce(raw_layer)
            direct[layer] = frozenset(_coerce(t) for t in raw_targets)

        for layer, targets in direct.items():
            missing = sorted(t.value for t in targets if t not in direct)
            if missing:
                raise ConfigError(
                    f"Layer '{layer.value}' depends on {', '.join(missing)}, "
                    "which have no entry in the layer table"
                )

        if direct.get(LayerId.DOMAIN):
            raise ConfigError("Domain layer must not depend on any other layer")

        sorter = TopologicalSorter({layer: set(t) for layer, t in direct.items()})
        try:
            order = list(sorter.static_order())
        except CycleError as exc:
            cycle = " -> ".join(layer.value for layer in exc.args[1])
            raise ConfigError(f"Layer table contains a cycle: {cycle}") from exc

        closed: dict[LayerId, frozenset[LayerId]] = {}
        for layer in order:
            reach: set[LayerId] = set(direct[layer])
            for target in direct[layer]:
                reach |= closed[target]
            closed[layer] = frozenset(reach)

        self._allowed = {layer: closed[layer] for layer in sorted(closed, key=_rank)}

    # -- Constructors ------------------------------------------------------

    @classmethod
    def default(cls) -> LayerGraph:
        """The four-layer Clean Architecture table."""
        return cls(DEFAULT_LAYER_TABLE)

    @classmethod
    def strict(cls) -> LayerGraph:
        """Like :meth:`default` but Presentation may only reach Domain."""
        return cls(STRICT_LAYER_TABLE)

    @classmethod
    def from_table(
        cls, table: Mapping[str, Iterable[str]]
    ) -> LayerGraph:
        """Build a graph from a textual table, e.g. loaded from config."""
        return cls(table)

    @classmethod
    def preset(cls, name: str) -> LayerGraph:
        """Return a named preset graph (``default`` or ``strict``)."""
        try:
            return cls(PRESETS[name.lower()])
        except KeyError:
            known = ", ".join(sorted(PRESETS))
            raise ConfigError(
                f"Unknown layer graph preset '{name}' (expected one of: {known})"
            ) from None

    # -- Queries -----------------------------------------------------------

    @property
    def layers(self) -> tuple[LayerId, ...]:
        """Known layers in ascending rank."""
        return tuple(self._allowed)

    def knows(self, layer: LayerId) -> bool:
        """Return ``True`` if *layer* has an entry in this graph."""
        return layer in self._allowed

    def allowed_targets(self, layer: LayerId) -> frozenset[LayerId]:
        """Layers that *layer* may depend on, directly or transitively.

        Raises:
            KeyError: If *layer* is not known to this graph.
        """
        return self._allowed[layer]

    def is_violation(self, source: LayerId, target: LayerId) -> bool:
        """Return ``True`` if a *source* → *target* dependency breaks the rules."""
        if source == target:
            return False
        return target not in self.allowed_targets(source)

    def as_table(self) -> dict[str, list[str]]:
        """Closed relation as plain names, ready for JSON/YAML output."""
        return {
            layer.value: [t.value for t in sorted(targets, key=_rank)]
            for layer, targets in self._allowed.items()
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LayerGraph):
            return NotImplemented
        return self._allowed == other._allowed

    def __hash__(self) -> int:
        return hash(tuple(self._allowed.items()))

    def __repr__(self) -> str:
        return f"LayerGraph({self.as_table()!r})"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _rank(layer: LayerId) -> int:
    return layer.rank


def _coerce(value: str | LayerId) -> LayerId:
    try:
        return LayerId.parse(value)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc
