"""Depth-limited directory traversal that never holds more than one handle open.

Depth is counted the way a top-down tree walk with a maximum depth counts it:
the root itself is depth 0 and an entry directly inside it is depth 1. With
the default limit of 5, a file may sit at most four directories below the
root.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

from ..config.schema import DEFAULT_MAX_DEPTH
from ..logging_config import get_logger

logger = get_logger("walker")

MAX_DEPTH = DEFAULT_MAX_DEPTH


@dataclass(frozen=True)
class WalkEntry:
    """A regular file visited by the walker."""
    path: Path
    name: str
    depth: int


def _list_directory(directory: Path) -> tuple[list[str], list[str]]:
    """Read a directory completely and close its handle.

    Args:
        directory: Directory to list

    Returns:
        Tuple of (regular file names, subdirectory names)
    """
    files = []
    subdirs = []
    with os.scandir(directory) as it:
        for entry in it:
            try:
                if entry.is_dir(follow_symlinks=False):
                    subdirs.append(entry.name)
                elif entry.is_file(follow_symlinks=False):
                    files.append(entry.name)
            except OSError as e:
                logger.debug(f"Could not stat {entry.path}: {e}")
    return files, subdirs


def walk_files(root: Path, max_depth: int = MAX_DEPTH) -> Iterator[WalkEntry]:
    """Lazily yield regular files below root, depth-first.

    Each directory is listed in full and its handle closed before any of its
    files are yielded or any child directory is opened, so abandoning the
    generator or raising out of the consumer leaves nothing open. Symlinks
    are not followed; a symlink to a regular file is not a regular file here.

    Args:
        root: Directory to walk
        max_depth: Deepest entry depth to visit (root is depth 0)

    Yields:
        WalkEntry for every regular file at depth 1..max_depth
    """
    root = Path(root)
    if max_depth < 1 or not root.is_dir():
        return

    stack = [(root, 1)]
    while stack:
        directory, depth = stack.pop()
        try:
            files, subdirs = _list_directory(directory)
        except OSError as e:
            logger.warning(f"Skipping unreadable directory {directory}: {e}")
            continue

        for name in files:
            yield WalkEntry(path=directory / name, name=name, depth=depth)

        if depth < max_depth:
            # Reversed so the first listed subdirectory is walked first
            for name in reversed(subdirs):
                stack.append((directory / name, depth + 1))
