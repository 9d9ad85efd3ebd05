"""File discovery and filename matching for the classifiers."""

from __future__ import annotations

import fnmatch
import os
from pathlib import Path
from typing import Iterable, Optional


def match_filename_pattern(file_path: str | Path, pattern: str) -> bool:
    """Match a filename against a filename pattern.

    Args:
        file_path: The file path (uses only the filename part).
        pattern: A filename pattern like "*Controller.php".

    Returns:
        True if the filename matches the pattern.
    """
    filename = Path(file_path).name
    return fnmatch.fnmatchcase(filename, pattern)


def match_any_pattern(file_path: str | Path, patterns: Iterable[str]) -> bool:
    return any(match_filename_pattern(file_path, p) for p in patterns)


def _should_skip_dir(dir_name: str, skip_dirs: Iterable[str]) -> bool:
    """Check if a directory should be skipped."""
    return dir_name in skip_dirs or dir_name.startswith(".")


def find_files(
    root_dir: Path | str,
    patterns: Iterable[str],
    skip_dirs: Optional[Iterable[str]] = None,
) -> list[Path]:
    """Recursively list files under `root_dir` whose names match a pattern.

    Hidden files and directories, and directories named in `skip_dirs`, are
    ignored. Results are sorted so repeated scans see files in the same order.

    Args:
        root_dir: Directory to search.
        patterns: Filename glob patterns; a file matching any of them is kept.
        skip_dirs: Directory names never descended into.

    Returns:
        Sorted list of matching file paths. Empty if root_dir is not a directory.
    """
    root_dir = Path(root_dir)
    if not root_dir.is_dir():
        return []

    patterns = list(patterns)
    skip = set(skip_dirs or [])
    found: list[Path] = []

    for dirpath, dirnames, filenames in os.walk(root_dir):
        # Filter in place to prevent descent
        dirnames[:] = [d for d in dirnames if not _should_skip_dir(d, skip)]

        for filename in filenames:
            if filename.startswith("."):
                continue
            if match_any_pattern(filename, patterns):
                found.append(Path(dirpath) / filename)

    return sorted(found)


def first_existing_dir(base: Path | str, names: Iterable[str]) -> Optional[Path]:
    """Return the first `base/<name>` that is a directory, or None."""
    base = Path(base)
    for name in names:
        candidate = base / name
        if candidate.is_dir():
            return candidate
    return None
