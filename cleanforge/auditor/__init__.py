"""Architecture conformance auditing.

Usage::

    from cleanforge.auditor import SourceScanner, audit
    from cleanforge.layers import LayerGraph

    facts = await SourceScanner().scan("path/to/solution")
    report = audit(facts, LayerGraph.strict())
    print(report.count_by_severity())
"""

from cleanforge.auditor.checker import ConformanceChecker, audit, severity_for
from cleanforge.auditor.models import AuditReport, DependencyFact, Severity, Violation
from cleanforge.auditor.scanner import ScanRules, SourceScanner

__all__ = [
    "AuditReport",
    "ConformanceChecker",
    "DependencyFact",
    "ScanRules",
    "Severity",
    "SourceScanner",
    "Violation",
    "audit",
    "severity_for",
]
