"""Formatters for audit reports."""

from cleanforge.reporter.audit_report import build_table, print_report, render_markdown

__all__ = [
    "build_table",
    "print_report",
    "render_markdown",
]
