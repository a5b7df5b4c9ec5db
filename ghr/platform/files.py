"""Filesystem helpers for asset discovery."""

from __future__ import annotations

import glob
from collections.abc import Iterable
from pathlib import Path

__all__ = ["expand_pattern", "paths", "unmatched_patterns"]


def expand_pattern(pattern: str, *, root: Path | None = None) -> list[Path]:
    """Expand one glob pattern to the regular files it matches.

    ``**`` matches any number of directories. Relative patterns resolve
    against ``root`` (default: the current directory).
    """
    matches = glob.glob(pattern, root_dir=root, recursive=True)
    files: list[Path] = []
    for match in sorted(matches):
        path = Path(match) if root is None else root / match
        if path.is_file():
            files.append(path)
    return files


def paths(patterns: Iterable[str], *, root: Path | None = None) -> list[Path]:
    """All files matched by ``patterns``, first occurrence wins."""
    seen: set[Path] = set()
    out: list[Path] = []
    for pattern in patterns:
        for path in expand_pattern(pattern, root=root):
            if path in seen:
                continue
            seen.add(path)
            out.append(path)
    return out


def unmatched_patterns(patterns: Iterable[str], *, root: Path | None = None) -> list[str]:
    return [p for p in patterns if not expand_pattern(p, root=root)]
