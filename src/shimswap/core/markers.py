"""Durable per-install markers recording the last completed override transition.

Three backends implement the same small interface:

    FileMarkerStore:   one flag file per marker inside the install root
    IndexMarkerStore:  one XML index in the config directory for all roots
    MemoryMarkerStore: process-local, for hosts that need no durability

All operations are idempotent. Setting a set marker or clearing a cleared
one does nothing and raises nothing.
"""

import os
import xml.etree.ElementTree as ET
from enum import Enum
from pathlib import Path
from typing import Optional

from filelock import FileLock

from ..config.paths import AppPaths
from ..config.schema import Settings
from ..logging_config import get_logger
from .fileops import atomic_write_bytes

logger = get_logger("markers")


class MarkerKind(Enum):
    """Marker kinds written by the override engine"""
    OVERRIDE_ACTIVE = "override_active"
    OVERRIDE_REVERTED = "override_reverted"

    @property
    def file_name(self) -> str:
        return f".shimswap_{self.value}"


class MarkerStore:
    """Interface for marker persistence keyed by (install root, kind)."""

    def set(self, root: Path, kind: MarkerKind) -> None:
        raise NotImplementedError

    def clear(self, root: Path, kind: MarkerKind) -> None:
        raise NotImplementedError

    def has(self, root: Path, kind: MarkerKind) -> bool:
        raise NotImplementedError

    def kinds(self, root: Path) -> "set[MarkerKind]":
        """Return every marker currently set for root."""
        return {kind for kind in MarkerKind if self.has(root, kind)}


def _root_key(root: Path) -> str:
    try:
        return str(Path(root).resolve())
    except (OSError, RuntimeError):
        return os.path.abspath(root)


class MemoryMarkerStore(MarkerStore):
    """Markers held in a dict; lost when the process exits."""

    def __init__(self):
        self._markers: dict[str, set[MarkerKind]] = {}

    def set(self, root: Path, kind: MarkerKind) -> None:
        self._markers.setdefault(_root_key(root), set()).add(kind)

    def clear(self, root: Path, kind: MarkerKind) -> None:
        self._markers.get(_root_key(root), set()).discard(kind)

    def has(self, root: Path, kind: MarkerKind) -> bool:
        return kind in self._markers.get(_root_key(root), set())


class FileMarkerStore(MarkerStore):
    """Markers stored as empty flag files inside the install root.

    The flag file's presence is the marker. Files are created with
    O_EXCL so concurrent setters never truncate each other, and removal
    tolerates a file that is already gone.
    """

    def _marker_path(self, root: Path, kind: MarkerKind) -> Path:
        return Path(root) / kind.file_name

    def set(self, root: Path, kind: MarkerKind) -> None:
        path = self._marker_path(root, kind)
        try:
            fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o644)
        except FileExistsError:
            return
        os.close(fd)
        logger.debug(f"Set marker {kind.value} in {root}")

    def clear(self, root: Path, kind: MarkerKind) -> None:
        try:
            self._marker_path(root, kind).unlink()
        except FileNotFoundError:
            return
        logger.debug(f"Cleared marker {kind.value} in {root}")

    def has(self, root: Path, kind: MarkerKind) -> bool:
        return self._marker_path(root, kind).is_file()


class IndexMarkerStore(MarkerStore):
    """Markers for all install roots kept in one XML index file.

    The index maps each resolved install root to the marker kinds set for
    it::

        <marker_index>
          <root path="/games/123456">
            <marker kind="override_active"/>
          </root>
        </marker_index>

    The file is re-read before every operation and rewritten atomically
    (temporary file + os.replace) after every change, so a crash leaves
    either the old or the new index, never a torn one. Changes hold an
    exclusive lock on a sibling ``.lock`` file from read to rewrite, so
    writers for different roots never drop each other's markers.
    """

    def __init__(self, index_file: Optional[Path] = None):
        self.index_file = Path(index_file or AppPaths.MARKER_INDEX_FILE)
        self._lock = FileLock(str(self.index_file.with_suffix(".lock")))

    def _locked(self) -> FileLock:
        self.index_file.parent.mkdir(parents=True, exist_ok=True)
        return self._lock

    def _load_index(self) -> dict[str, set[MarkerKind]]:
        """Load the index from XML file."""
        if not self.index_file.exists():
            return {}

        entries: dict[str, set[MarkerKind]] = {}
        try:
            tree = ET.parse(self.index_file)
        except ET.ParseError as e:
            # Corrupted index, start fresh
            logger.warning(f"Marker index {self.index_file} is corrupt, ignoring it: {e}")
            return {}

        for root_elem in tree.getroot().findall("root"):
            path = root_elem.get("path", "")
            if not path:
                continue
            kinds = set()
            for marker_elem in root_elem.findall("marker"):
                try:
                    kinds.add(MarkerKind(marker_elem.get("kind", "")))
                except ValueError:
                    logger.debug(f"Ignoring unknown marker kind for {path}")
            if kinds:
                entries[path] = kinds
        return entries

    def _save_index(self, entries: dict[str, set[MarkerKind]]) -> None:
        """Save the index to XML file atomically."""
        root = ET.Element("marker_index")
        for path in sorted(entries):
            kinds = entries[path]
            if not kinds:
                continue
            root_elem = ET.SubElement(root, "root")
            root_elem.set("path", path)
            for kind in sorted(kinds, key=lambda k: k.value):
                ET.SubElement(root_elem, "marker").set("kind", kind.value)

        tree = ET.ElementTree(root)
        ET.indent(tree, space="  ")
        data = ET.tostring(tree.getroot(), encoding="utf-8", xml_declaration=True)

        self.index_file.parent.mkdir(parents=True, exist_ok=True)
        atomic_write_bytes(self.index_file, data, mode=0o644)

    def set(self, root: Path, kind: MarkerKind) -> None:
        with self._locked():
            entries = self._load_index()
            kinds = entries.setdefault(_root_key(root), set())
            if kind in kinds:
                return
            kinds.add(kind)
            self._save_index(entries)
        logger.debug(f"Set marker {kind.value} for {root}")

    def clear(self, root: Path, kind: MarkerKind) -> None:
        with self._locked():
            entries = self._load_index()
            kinds = entries.get(_root_key(root))
            if not kinds or kind not in kinds:
                return
            kinds.discard(kind)
            self._save_index(entries)
        logger.debug(f"Cleared marker {kind.value} for {root}")

    def has(self, root: Path, kind: MarkerKind) -> bool:
        return kind in self._load_index().get(_root_key(root), set())


def create_marker_store(settings: Settings) -> MarkerStore:
    """Build the marker backend named by the settings.

    Args:
        settings: Application settings ("file" or "index" backend)

    Returns:
        A MarkerStore instance

    Raises:
        ValueError: If the backend name is unknown
    """
    if settings.marker_backend == "file":
        return FileMarkerStore()
    if settings.marker_backend == "index":
        return IndexMarkerStore()
    raise ValueError(f"Unknown marker backend: {settings.marker_backend}")
