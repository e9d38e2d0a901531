"""Source scanner that extracts dependency facts from a .NET solution.

Projects are recognised by directory name (``Shop.Domain``,
``Shop.Infrastructure``, ``Shop.Api``, ``Shop.Domain.Tests``, ...).  Each C#
file inherits the layer of the project it lives in, and each ``using``
directive that names another project of the solution becomes one
:class:`DependencyFact`.  Presentation files that reference a concrete
``DbContext`` type also produce a Presentation -> Infrastructure fact, since
that is direct data access whether or not a ``using`` line gives it away.
Interfaces such as ``IApplicationDbContext`` and context types declared in
Domain, Application or Presentation projects are not data access.

The scanner only extracts facts; judging them is the checker's job.
"""

from __future__ import annotations

import asyncio
import re
from pathlib import Path

from pydantic import BaseModel, Field

from cleanforge.auditor.models import DependencyFact
from cleanforge.layers.graph import LayerId


# ---------------------------------------------------------------------------
# Rules
# ---------------------------------------------------------------------------


class ScanRules(BaseModel):
    """How directory and namespace names map onto layers."""

    project_suffixes: dict[LayerId, list[str]] = Field(
        default_factory=lambda: {
            LayerId.TEST: ["Tests", "Test", "UnitTests", "IntegrationTests", "FunctionalTests"],
            LayerId.PRESENTATION: ["Api", "Web", "WebApi", "Presentation"],
            LayerId.INFRASTRUCTURE: ["Infrastructure", "Persistence", "Data"],
            LayerId.DOMAIN: ["Domain", "Core"],
        },
        description="Project-name suffixes per layer; checked in declaration order",
    )
    extensions: list[str] = Field(default_factory=lambda: [".cs"])
    skip_dirs: list[str] = Field(
        default_factory=lambda: ["bin", "obj", ".git", ".vs", "node_modules", "packages"]
    )
    data_access_pattern: str = Field(
        default=r"\b(?!I[A-Z])\w*DbContext\b",
        description="Regex marking direct data access in Presentation files",
    )
    composition_roots: list[str] = Field(
        default_factory=lambda: ["Program.cs", "Startup.cs"],
        description="File names exempt from the data-access check (DI wiring)",
    )


# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

_RE_USING = re.compile(
    r"""
    ^\s*(?:global\s+)?using\s+     # using / global using
    (?:static\s+)?                 # using static
    (?:\w+\s*=\s*)?                # alias =
    (?P<namespace>[A-Za-z_][\w.]*) # namespace
    \s*;
    """,
    re.VERBOSE | re.MULTILINE,
)

_RE_DECLARATION = re.compile(
    r"\b(?:class|interface|record|struct)\s+(?P<name>[A-Za-z_]\w*)"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _read_file_async(path: Path) -> str:
    """Read a file's content asynchronously."""
    return await asyncio.to_thread(path.read_text, "utf-8", "replace")


def _collect_files(root: Path, extensions: set[str], skip_dirs: set[str]) -> list[Path]:
    """Recursively collect files matching *extensions*, skipping *skip_dirs*."""
    results: list[Path] = []
    for child in sorted(root.iterdir()):
        if child.is_dir():
            if child.name in skip_dirs:
                continue
            results.extend(_collect_files(child, extensions, skip_dirs))
        elif child.suffix in extensions:
            results.append(child)
    return results


def _find_line(content: str, match_start: int) -> int:
    """Return the 1-based line number for a character offset."""
    return content[:match_start].count("\n") + 1


# ---------------------------------------------------------------------------
# SourceScanner
# ---------------------------------------------------------------------------


class SourceScanner:
    """Extracts :class:`DependencyFact` objects from a solution directory."""

    def __init__(self, rules: ScanRules | None = None) -> None:
        self.rules = rules or ScanRules()
        self._data_access = re.compile(self.rules.data_access_pattern)

    # -- Public API --------------------------------------------------------

    async def scan(self, root: str | Path) -> list[DependencyFact]:
        """Scan *root* and return facts sorted by file path, then line.

        Files outside any recognised project are ignored.

        Raises:
            NotADirectoryError: If *root* is not a directory.
        """
        root_path = Path(root).resolve()
        if not root_path.is_dir():
            raise NotADirectoryError(f"Not a directory: {root_path}")

        files = _collect_files(
            root_path, set(self.rules.extensions), set(self.rules.skip_dirs)
        )

        located: list[tuple[Path, str, LayerId]] = []
        projects: dict[str, LayerId] = {}
        for path in files:
            rel_parts = path.relative_to(root_path).parts[:-1]
            project = self.classify_project(rel_parts)
            if project is None:
                continue
            name, layer = project
            projects[name] = layer
            located.append((path, path.relative_to(root_path).as_posix(), layer))

        contents = [await _read_file_async(path) for path, _, _ in located]
        declared: dict[str, LayerId] = {}
        for (_, _, layer), content in zip(located, contents):
            for m in _RE_DECLARATION.finditer(content):
                if layer == LayerId.INFRASTRUCTURE:
                    declared[m.group("name")] = layer
                else:
                    declared.setdefault(m.group("name"), layer)

        facts: list[DependencyFact] = []
        for (_, rel, layer), content in zip(located, contents):
            facts.extend(self.facts_for_file(rel, layer, content, projects, declared))
        return facts

    def classify_project(self, dir_parts: tuple[str, ...]) -> tuple[str, LayerId] | None:
        """Return ``(project name, layer)`` for the outermost project directory.

        Dotted project names (``Shop.Api``) win over bare folder names
        (``tests``, ``Domain``), which only count when no dotted name matches.
        """
        for dotted in (True, False):
            for part in dir_parts:
                layer = self.layer_for_name(part, dotted=dotted)
                if layer is not None:
                    return part, layer
        return None

    def layer_for_name(self, name: str, *, dotted: bool | None = None) -> LayerId | None:
        """Layer whose suffix *name* carries (``Shop.Api`` -> Presentation).

        ``dotted=True`` only accepts ``<Prefix>.<Suffix>`` names,
        ``dotted=False`` only bare suffixes, ``None`` accepts both.
        """
        lowered = name.lower()
        for layer, suffixes in self.rules.project_suffixes.items():
            for suffix in suffixes:
                suffix = suffix.lower()
                if dotted is not False and lowered.endswith("." + suffix):
                    return layer
                if dotted is not True and lowered == suffix:
                    return layer
        return None

    def facts_for_file(
        self,
        rel_path: str,
        layer: LayerId,
        content: str,
        projects: dict[str, LayerId],
        declared_types: dict[str, LayerId] | None = None,
    ) -> list[DependencyFact]:
        """Facts contributed by one file's ``using`` directives and data access.

        *declared_types* maps type names to the layer declaring them.  A
        data-access match declared outside Infrastructure is skipped; an
        undeclared one (e.g. from a referenced package) still counts.
        """
        declared_types = declared_types or {}
        facts: list[DependencyFact] = []

        for m in _RE_USING.finditer(content):
            namespace = m.group("namespace")
            target_layer = _layer_for_namespace(namespace, projects)
            if target_layer is None or target_layer == layer:
                continue
            facts.append(
                DependencyFact(
                    from_file=rel_path,
                    from_layer=layer,
                    to_layer=target_layer,
                    target=namespace,
                    line=_find_line(content, m.start("namespace")),
                )
            )

        file_name = rel_path.rsplit("/", 1)[-1]
        if layer == LayerId.PRESENTATION and file_name not in self.rules.composition_roots:
            for m in self._data_access.finditer(_strip_usings(content)):
                owner = declared_types.get(m.group(0))
                if owner is not None and owner != LayerId.INFRASTRUCTURE:
                    continue
                facts.append(
                    DependencyFact(
                        from_file=rel_path,
                        from_layer=layer,
                        to_layer=LayerId.INFRASTRUCTURE,
                        target=m.group(0),
                        line=_find_line(content, m.start()),
                    )
                )
                break

        facts.sort(key=lambda f: f.line or 0)
        return facts


def _layer_for_namespace(namespace: str, projects: dict[str, LayerId]) -> LayerId | None:
    """Layer of the longest project name that prefixes *namespace*."""
    best: str | None = None
    for project in projects:
        if namespace == project or namespace.startswith(project + "."):
            if best is None or len(project) > len(best):
                best = project
    return projects[best] if best is not None else None


def _strip_usings(content: str) -> str:
    """Blank out using directives so namespaces do not trip the data-access regex."""
    return _RE_USING.sub(lambda m: re.sub(r"[^\n]", " ", m.group(0)), content)
