"""Core override and restore logic.

Submodules:
    walker: walk_files() depth-limited traversal holding one directory handle at a time
    matcher: TargetSpec and SuffixPattern case-insensitive name matching
    markers: MarkerStore interface with file, XML index and in-memory backends
    override_engine: OverrideEngine apply/revert/status/reconcile of shim overrides
    executable_restore: restore_original() for ``<exe>.original.exe`` backups
    game_resolver: GameResolver mapping application ids to install and drive roots
    results: OperationResult and OverrideStatus values
    fileops: atomic writes and case-insensitive sibling lookup

Nothing here raises for a failure on one file; failures are collected in the
returned OperationResult and the traversal continues.
"""

from .executable_restore import restore_original
from .game_resolver import GameResolver, UnknownGameError
from .markers import (
    FileMarkerStore,
    IndexMarkerStore,
    MarkerKind,
    MarkerStore,
    MemoryMarkerStore,
    create_marker_store,
)
from .matcher import TargetSpec
from .override_engine import OverrideEngine
from .results import OperationResult, OverrideStatus, PathFailure
from .walker import MAX_DEPTH, walk_files

__all__ = [
    "FileMarkerStore",
    "GameResolver",
    "IndexMarkerStore",
    "MAX_DEPTH",
    "MarkerKind",
    "MarkerStore",
    "MemoryMarkerStore",
    "OperationResult",
    "OverrideEngine",
    "OverrideStatus",
    "PathFailure",
    "TargetSpec",
    "UnknownGameError",
    "create_marker_store",
    "restore_original",
    "walk_files",
]
