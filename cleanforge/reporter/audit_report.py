"""Audit report formatting.

Renders an :class:`AuditReport` either as a Rich table on the shared console
or as a Markdown document suitable for committing next to the solution or
pasting into a pull request.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cleanforge.auditor.models import AuditReport, Severity, Violation
from cleanforge.layers.graph import LayerId
from cleanforge.utils import console as default_console

SEVERITY_STYLES: dict[Severity, str] = {
    Severity.HIGH: "bold red",
    Severity.MEDIUM: "yellow",
    Severity.LOW: "cyan",
}


def _layer_name(value: LayerId | str) -> str:
    return value.value if isinstance(value, LayerId) else str(value)


def _location(violation: Violation) -> str:
    fact = violation.fact
    if fact.line is not None:
        return f"{fact.from_file}:{fact.line}"
    return fact.from_file


# ---------------------------------------------------------------------------
# Markdown
# ---------------------------------------------------------------------------


def render_markdown(report: AuditReport, title: str = "Architecture Audit") -> str:
    """Render *report* as a Markdown document."""
    counts = report.count_by_severity()
    lines: list[str] = [
        f"# {title}",
        "",
        f"- Dependencies scanned: {report.total_facts_scanned}",
        f"- Passed: {report.pass_count}",
        f"- Violations: {len(report.violations)}",
        "",
        "| Severity | Count |",
        "|---|---|",
    ]
    for severity, count in counts.items():
        lines.append(f"| {severity.value} | {count} |")
    lines.append("")

    if report.passed:
        lines.append("No layer violations found.")
        lines.append("")
        return "\n".join(lines)

    lines.extend(
        [
            "## Violations",
            "",
            "| # | Severity | Location | From | To | Reason |",
            "|---|---|---|---|---|---|",
        ]
    )
    for index, violation in enumerate(report.violations, start=1):
        fact = violation.fact
        reason = violation.reason.replace("|", "\\|")
        lines.append(
            f"| {index} | {violation.severity.value} | `{_location(violation)}` | "
            f"{_layer_name(fact.from_layer)} | {_layer_name(fact.to_layer)} | {reason} |"
        )
    lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Rich
# ---------------------------------------------------------------------------


def build_table(report: AuditReport) -> Table:
    """Build a Rich table listing every violation in report order."""
    table = Table(title="Layer Violations", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Severity")
    table.add_column("Location", overflow="fold")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Reason", overflow="fold")

    for index, violation in enumerate(report.violations, start=1):
        fact = violation.fact
        style = SEVERITY_STYLES[violation.severity]
        table.add_row(
            str(index),
            f"[{style}]{violation.severity.value}[/{style}]",
            escape(_location(violation)),
            _layer_name(fact.from_layer),
            _layer_name(fact.to_layer),
            escape(violation.reason),
        )
    return table


def print_report(report: AuditReport, console: Console | None = None) -> None:
    """Print *report* to the console: a violations table, then a summary line."""
    out = console or default_console
    if report.violations:
        out.print(build_table(report))

    counts = report.count_by_severity()
    summary = ", ".join(
        f"[{SEVERITY_STYLES[s]}]{counts[s]} {s.value}[/{SEVERITY_STYLES[s]}]" for s in Severity
    )
    status = "[bold green]PASS[/bold green]" if report.passed else "[bold red]FAIL[/bold red]"
    out.print(
        f"{status} {report.total_facts_scanned} dependencies scanned, "
        f"{report.pass_count} passed ({summary})"
    )
