"""cleanforge command-line interface.

Commands:

- ``scaffold`` -- parse an entity description and write a feature slice.
- ``audit``    -- scan a solution and report layer violations.
- ``bundles``  -- list the built-in template bundles.

Usage::

    python -m cleanforge scaffold Product --properties "Name:string, Price:decimal" --namespace Shop
    python -m cleanforge audit ./src --graph strict --format markdown
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.table import Table

from cleanforge.auditor import SourceScanner, Severity, audit
from cleanforge.config import Config
from cleanforge.errors import CleanforgeError, ConfigError
from cleanforge.layers.graph import LayerGraph, LayerId
from cleanforge.parser import parse
from cleanforge.reporter import print_report, render_markdown
from cleanforge.scaffolder import (
    GeneratedArtifact,
    TemplateRegistry,
    builtin_bundles,
    generate,
    write_artifacts,
)
from cleanforge.utils import (
    console,
    print_detail,
    print_error,
    print_success,
    print_summary_table,
    print_warning,
)

DEFAULT_NAMESPACE = "App"

_FAIL_THRESHOLDS: dict[str, Severity | None] = {
    "high": Severity.HIGH,
    "medium": Severity.MEDIUM,
    "low": Severity.LOW,
    "never": None,
}


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level argument parser with all sub-commands."""
    parser = argparse.ArgumentParser(
        prog="cleanforge",
        description="cleanforge -- Clean Architecture scaffolding and layer auditing",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            '  cleanforge scaffold Product --properties "Name:string, Price:decimal" '
            "--namespace Shop\n"
            '  cleanforge scaffold Order --properties "Total:decimal" '
            '--relationships "OrderLine:one-to-many" --aggregate-root --dry-run\n'
            "  cleanforge audit ./src --graph strict --format markdown\n"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="JSON configuration file (default: read CLEANFORGE_* environment variables)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Print extra detail")

    sub = parser.add_subparsers(dest="command", required=True)

    scaffold = sub.add_parser("scaffold", help="Generate a feature slice for one entity")
    scaffold.add_argument("name", help="Entity name (PascalCase)")
    scaffold.add_argument(
        "--properties", "-p", default="", help='Properties, e.g. "Name:string, Price:decimal"'
    )
    scaffold.add_argument(
        "--relationships", "-r", default="", help='Relationships, e.g. "Category:many-to-one"'
    )
    scaffold.add_argument(
        "--entities",
        default="",
        help="Comma-separated names of existing entities usable as property types",
    )
    scaffold.add_argument(
        "--aggregate-root", action="store_true", help="Mark the entity as an aggregate root"
    )
    scaffold.add_argument(
        "--layers", default=None, help="Comma-separated layers (default: from config)"
    )
    scaffold.add_argument(
        "--bundle", default=None, help="Built-in bundle name or YAML bundle path"
    )
    scaffold.add_argument("--namespace", "-n", default=None, help="Root namespace")
    scaffold.add_argument("--output", "-o", default=None, help="Output directory")
    scaffold.add_argument(
        "--overwrite", action="store_true", help="Replace files that already exist"
    )
    scaffold.add_argument(
        "--no-filter",
        action="store_true",
        help="Fail instead of skipping template units the entity cannot fill",
    )
    scaffold.add_argument(
        "--dry-run", action="store_true", help="List the files that would be written"
    )

    audit_cmd = sub.add_parser("audit", help="Report layer violations in a solution")
    audit_cmd.add_argument("root", help="Solution root directory")
    audit_cmd.add_argument(
        "--graph", default=None, help="Layer graph preset: default or strict (default: config)"
    )
    audit_cmd.add_argument(
        "--format", choices=["table", "markdown"], default="table", help="Output format"
    )
    audit_cmd.add_argument(
        "--fail-on",
        choices=list(_FAIL_THRESHOLDS),
        default="low",
        help="Lowest severity that makes the command exit non-zero (default: low)",
    )
    audit_cmd.add_argument(
        "--report", default=None, help="Also write the Markdown report to this file"
    )

    sub.add_parser("bundles", help="List built-in template bundles")

    return parser


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def _load_config(args: argparse.Namespace) -> Config:
    if args.config:
        return Config.load(Path(args.config))
    return Config.from_env()


def cmd_scaffold(args: argparse.Namespace, config: Config) -> int:
    """Parse the entity, render its slice, and write (or list) the files."""
    known = [e for e in args.entities.split(",") if e.strip()]
    schema = parse(
        args.properties,
        args.relationships,
        name=args.name,
        known_entities=known,
        aggregate_root=args.aggregate_root,
    )
    print_detail(f"Parsed {schema.name} with {len(schema.properties)} properties", args.verbose)

    if args.layers:
        try:
            layers = LayerId.parse_list(args.layers)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc
    else:
        layers = config.layers

    namespace = args.namespace or config.root_namespace or DEFAULT_NAMESPACE
    registry = (
        TemplateRegistry.resolve(args.bundle) if args.bundle else config.build_registry()
    )
    if not args.no_filter:
        filtered = registry.applicable_to(schema, namespace)
        skipped = len(registry.units) - len(filtered.units)
        if skipped:
            print_warning(f"Skipping {skipped} template unit(s) this entity cannot fill")
        registry = filtered

    artifacts = generate(schema, layers, registry, namespace=namespace)

    if args.dry_run:
        console.print(_artifact_table(artifacts))
        return 0

    output_dir = Path(args.output) if args.output else config.output_dir
    written = asyncio.run(
        write_artifacts(artifacts, output_dir, overwrite=args.overwrite or config.overwrite)
    )
    for path in written:
        print_detail(f"wrote {path}", args.verbose)

    ordered = sorted(set(layers), key=lambda layer: layer.rank)
    print_summary_table(
        {
            "Entity": schema.name,
            "Bundle": registry.name,
            "Layers": ", ".join(layer.value for layer in ordered),
            "Files written": str(len(written)),
            "Output": str(output_dir.resolve()),
        },
        title="Scaffold",
    )
    print_success(f"Scaffolded {schema.name}")
    return 0


def cmd_audit(args: argparse.Namespace, config: Config) -> int:
    """Scan the solution, audit the facts, print the report."""
    graph = LayerGraph.preset(args.graph) if args.graph else config.build_graph()
    facts = asyncio.run(SourceScanner(config.scan).scan(args.root))
    print_detail(f"Extracted {len(facts)} dependency facts", args.verbose)

    report = audit(facts, graph)

    markdown = render_markdown(report)
    if args.format == "markdown":
        console.out(markdown, highlight=False)
    else:
        print_report(report)

    if args.report:
        target = Path(args.report)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(markdown, encoding="utf-8")
        print_detail(f"Report written to {target}", args.verbose)

    threshold = _FAIL_THRESHOLDS[args.fail_on]
    if threshold is not None and report.at_or_above(threshold):
        return 1
    return 0


def cmd_bundles(args: argparse.Namespace, config: Config) -> int:
    """List built-in bundles and the units each one registers."""
    table = Table(title="Template Bundles", show_header=True, header_style="bold cyan")
    table.add_column("Bundle", no_wrap=True)
    table.add_column("Layer")
    table.add_column("Kind")
    table.add_column("Path", overflow="fold")

    for name in builtin_bundles():
        registry = TemplateRegistry.builtin(name)
        for unit in registry.units:
            table.add_row(name, unit.layer.value, unit.kind.value, unit.path)
    console.print(table)
    return 0


_COMMANDS = {
    "scaffold": cmd_scaffold,
    "audit": cmd_audit,
    "bundles": cmd_bundles,
}


def _artifact_table(artifacts: list[GeneratedArtifact]) -> Table:
    table = Table(title="Planned Files", show_header=True, header_style="bold cyan")
    table.add_column("Layer")
    table.add_column("Kind")
    table.add_column("Path", overflow="fold")
    for artifact in artifacts:
        table.add_row(artifact.layer.value, artifact.kind.value, artifact.path)
    return table


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for ``cleanforge`` / ``python -m cleanforge``."""
    args = build_parser().parse_args(argv)
    try:
        config = _load_config(args)
        return _COMMANDS[args.command](args, config)
    except CleanforgeError as exc:
        print_error(f"Error: {exc}")
        return 1
    except (FileNotFoundError, NotADirectoryError) as exc:
        print_error(f"Error: {exc}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
