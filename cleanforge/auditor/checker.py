"""Architecture conformance checker.

Compares dependency facts against a :class:`LayerGraph` and reports every
fact that breaks it.  The checker is pure: it performs no I/O and never
retries.  A fact naming a layer the graph does not know fails the whole
audit, because a silently incomplete report is worse than a visible failure.

Given correct facts the checker reports no false positives; it can only
under-report when the upstream scanner misses facts.
"""

from __future__ import annotations

from collections.abc import Iterable

from cleanforge.auditor.models import AuditReport, DependencyFact, Severity, Violation
from cleanforge.errors import UnknownLayer
from cleanforge.layers.graph import LayerGraph, LayerId


# (from, to) pairs with a fixed severity; anything else is Low.
_SEVERITY_TABLE: dict[tuple[LayerId, LayerId], Severity] = {
    (LayerId.DOMAIN, LayerId.INFRASTRUCTURE): Severity.HIGH,
    (LayerId.DOMAIN, LayerId.PRESENTATION): Severity.HIGH,
    (LayerId.PRESENTATION, LayerId.INFRASTRUCTURE): Severity.MEDIUM,
}

_REASONS: dict[Severity, str] = {
    Severity.HIGH: "Domain must not depend on outer layers",
    Severity.MEDIUM: "Presentation accesses data directly instead of through Domain abstractions",
    Severity.LOW: "Dependency is not allowed by the layer graph",
}


class ConformanceChecker:
    """Audits dependency facts against one layer graph."""

    def __init__(self, graph: LayerGraph) -> None:
        self.graph = graph

    def audit(self, facts: Iterable[DependencyFact]) -> AuditReport:
        """Check every fact and build the report.

        Raises:
            UnknownLayer: A fact names a layer the graph does not know.  No
                partial report is returned.
        """
        fact_list = list(facts)
        violations: list[Violation] = []

        for fact in fact_list:
            source = self._known_layer(fact.from_layer, fact)
            target = self._known_layer(fact.to_layer, fact)
            if self.graph.is_violation(source, target):
                violations.append(self._violation(fact, source, target))

        return AuditReport(
            violations=tuple(violations),
            total_facts_scanned=len(fact_list),
            pass_count=len(fact_list) - len(violations),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _known_layer(self, value: LayerId | str, fact: DependencyFact) -> LayerId:
        try:
            layer = LayerId.parse(value)
        except ValueError:
            raise UnknownLayer(value, fact) from None
        if not self.graph.knows(layer):
            raise UnknownLayer(layer.value, fact)
        return layer

    def _violation(
        self, fact: DependencyFact, source: LayerId, target: LayerId
    ) -> Violation:
        severity = severity_for(source, target)
        reason = f"{source.value} -> {target.value}: {_REASONS[severity]}"
        if fact.target:
            reason = f"{reason} ({fact.target})"
        return Violation(fact=fact, severity=severity, reason=reason)


def severity_for(source: LayerId, target: LayerId) -> Severity:
    """Severity of a forbidden *source* -> *target* dependency."""
    return _SEVERITY_TABLE.get((source, target), Severity.LOW)


def audit(facts: Iterable[DependencyFact], graph: LayerGraph) -> AuditReport:
    """Functional shortcut for :meth:`ConformanceChecker.audit`."""
    return ConformanceChecker(graph).audit(facts)
