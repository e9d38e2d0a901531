"""Write generated artifacts to disk.

The generator never touches the file system; this module is the collaborator
that does.  Every target path is checked before the first file is written so a
refused write leaves the output directory untouched.  Checks cover path
escapes, duplicates, existing files, and paths blocked by an existing
directory or by a file where a directory is needed.  An OS error raised while
writing (disk full, permissions) can still leave the files written before it
in place; the resulting :class:`WriteError` says how many.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence
from pathlib import Path

from cleanforge.errors import WriteError
from cleanforge.scaffolder.generator import GeneratedArtifact


async def write_artifacts(
    artifacts: Sequence[GeneratedArtifact],
    output_dir: str | Path,
    *,
    overwrite: bool = False,
) -> list[Path]:
    """Write *artifacts* under *output_dir*.

    Args:
        artifacts: Artifacts as returned by the generator.
        output_dir: Root directory; artifact paths are relative to it.
        overwrite: Replace files that already exist.

    Returns:
        The written paths, in artifact order.

    Raises:
        WriteError: A path fails the checks of :func:`plan_targets`, a target
            exists and *overwrite* is false, or the OS refuses a write.
    """
    root = Path(output_dir).resolve()
    targets = plan_targets(artifacts, root)

    if not overwrite:
        existing = [str(t) for t in targets if t.exists()]
        if existing:
            raise WriteError(
                "Refusing to overwrite existing files (use --overwrite): "
                + ", ".join(existing)
            )

    written: list[Path] = []
    for target, artifact in zip(targets, artifacts):
        try:
            await asyncio.to_thread(_write_file, target, artifact.content)
        except OSError as exc:
            raise WriteError(
                f"Failed writing {target}: {exc} ({len(written)} file(s) already written)"
            ) from exc
        written.append(target)
    return written


def plan_targets(artifacts: Sequence[GeneratedArtifact], root: Path) -> list[Path]:
    """Resolve each artifact's destination under *root*.

    Raises:
        WriteError: A path escapes *root*, is produced twice, is also the
            directory of another artifact, is an existing directory, or sits
            below an existing file.
    """
    targets: list[Path] = []
    seen: set[Path] = set()
    for artifact in artifacts:
        target = (root / artifact.path).resolve()
        if not target.is_relative_to(root):
            raise WriteError(f"Artifact path escapes the output directory: {artifact.path}")
        if target in seen:
            raise WriteError(f"Two artifacts resolve to the same path: {artifact.path}")
        if target.is_dir():
            raise WriteError(f"Artifact path is an existing directory: {artifact.path}")
        blocker = _file_ancestor(target, root)
        if blocker is not None:
            raise WriteError(f"Cannot create {artifact.path}: {blocker} is not a directory")
        seen.add(target)
        targets.append(target)

    for target in targets:
        nested = seen.intersection(target.parents)
        if nested:
            raise WriteError(
                f"Artifact path is also a directory of {target}: {min(nested)}"
            )
    return targets


def _file_ancestor(target: Path, root: Path) -> Path | None:
    """First existing non-directory between *root* and *target*, if any."""
    for parent in reversed(target.parents):
        if not parent.is_relative_to(root):
            continue
        if parent.exists() and not parent.is_dir():
            return parent
    return None


def _write_file(path: Path, content: str) -> None:
    """Synchronous helper: create parent dirs and write content."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
