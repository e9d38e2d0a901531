"""Pydantic v2 models for architecture conformance audits."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from cleanforge.layers.graph import LayerId


class Severity(str, Enum):
    """How badly a violation breaks the architecture."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def weight(self) -> int:
        """Ordering key: higher is more severe."""
        return {"High": 3, "Medium": 2, "Low": 1}[self.value]


class DependencyFact(BaseModel):
    """An observed dependency from a file in one layer onto another layer.

    Layers are kept as given (a :class:`LayerId` or its name) so the checker,
    not the scanner, decides whether they are known.
    """

    model_config = ConfigDict(frozen=True)

    from_file: str = Field(..., description="Path of the depending file")
    from_layer: LayerId | str = Field(..., description="Layer of the depending file")
    to_layer: LayerId | str = Field(..., description="Layer depended upon")
    target: str = Field(default="", description="Namespace or symbol observed, if known")
    line: int | None = Field(default=None, description="1-based line of the reference")


class Violation(BaseModel):
    """A dependency fact that breaks the layer graph."""

    model_config = ConfigDict(frozen=True)

    fact: DependencyFact
    severity: Severity
    reason: str


class AuditReport(BaseModel):
    """Immutable result of one audit pass."""

    model_config = ConfigDict(frozen=True)

    violations: tuple[Violation, ...] = Field(default=())
    total_facts_scanned: int = Field(default=0, ge=0)
    pass_count: int = Field(default=0, ge=0)

    @property
    def passed(self) -> bool:
        """``True`` when no fact violated the graph."""
        return not self.violations

    def count_by_severity(self) -> dict[Severity, int]:
        """Violation counts for every severity, most severe first."""
        counts = {severity: 0 for severity in Severity}
        for violation in self.violations:
            counts[violation.severity] += 1
        return counts

    def at_or_above(self, threshold: Severity) -> list[Violation]:
        """Violations whose severity is at least *threshold*."""
        return [v for v in self.violations if v.severity.weight >= threshold.weight]
