"""Exception hierarchy for cleanforge.

Every error raised by the engine derives from :class:`CleanforgeError` so the
CLI can report any failure uniformly.  None of these are transient: each one
points at a caller-input or configuration defect that has to be fixed before
retrying.
"""

from __future__ import annotations

from typing import Any


class CleanforgeError(Exception):
    """Base class for all cleanforge errors."""


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class ConfigError(CleanforgeError):
    """Raised for invalid layer tables, template bundles, or config files."""


# ---------------------------------------------------------------------------
# Entity schema parsing
# ---------------------------------------------------------------------------


class ParseError(CleanforgeError):
    """Raised when an entity description cannot be parsed.

    Attributes:
        token: The offending segment or name, verbatim from the input.
    """

    def __init__(self, token: str, message: str) -> None:
        self.token = token
        super().__init__(message)


class MalformedProperty(ParseError):
    """A segment is not a single ``name:type`` pair or the type is unknown."""


class DuplicateProperty(ParseError):
    """Two properties share a name (compared case-insensitively)."""


class InvalidIdentifier(ParseError):
    """A property, relationship target, or entity name is not an identifier."""


class UnknownCardinality(ParseError):
    """A relationship uses a cardinality outside the recognised set."""


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


class GenError(CleanforgeError):
    """Raised when the registry and schema cannot produce a consistent slice."""


class NoTemplateForLayer(GenError):
    """A requested layer has no template unit registered for it."""

    def __init__(self, layer: Any) -> None:
        self.layer = layer
        super().__init__(f"No template unit registered for layer '{layer}'")


class UnresolvedSlot(GenError):
    """A template unit references a slot the schema cannot fill."""

    def __init__(self, slot: str, unit: str, detail: str = "") -> None:
        self.slot = slot
        self.unit = unit
        message = f"Unresolved slot '{slot}' in template unit {unit}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------


class AuditError(CleanforgeError):
    """Raised when an audit cannot produce a complete report."""


class UnknownLayer(AuditError):
    """A dependency fact names a layer the layer graph does not know."""

    def __init__(self, layer: Any, fact: Any = None) -> None:
        self.layer = layer
        self.fact = fact
        where = f" (from {fact.from_file})" if fact is not None else ""
        super().__init__(f"Unknown layer '{layer}'{where}")


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------


class WriteError(CleanforgeError):
    """Raised by the artifact writer when it refuses to write a file."""
