"""Replace vendor anti-tamper libraries with bundled shims, and put them back.

For every target library found within the depth limit, apply() renames the
original to ``<name>.orig`` and writes the shim in its place; revert() moves
each ``.orig`` backup back over its library. Exactly one backup exists per
overridden path and it is never overwritten, so repeated applies cannot
replace a true original with an earlier shim.

Backups on disk are the source of truth. Markers record the last completed
transition for the host, and disagreements between the two are reported,
not trusted.
"""

import os
from pathlib import Path
from typing import Callable

from ..logging_config import get_logger
from .fileops import atomic_write_bytes, find_sibling
from .markers import MarkerKind, MarkerStore
from .matcher import BACKUP_PATTERN, BACKUP_SUFFIX, TargetSpec
from .results import OperationResult, OverrideStatus
from .walker import MAX_DEPTH, walk_files

logger = get_logger("override_engine")

ContentProvider = Callable[[str], bytes]


class OverrideEngine:
    """Apply and revert shim overrides below an install root.

    The engine holds no per-root state; the host serializes calls for the
    same root. Every per-file failure is recorded in the returned result and
    the pass continues.
    """

    def __init__(self, marker_store: MarkerStore, max_depth: int = MAX_DEPTH):
        if max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {max_depth}")
        self.marker_store = marker_store
        self.max_depth = max_depth

    def apply(
        self,
        root: Path,
        targets: TargetSpec,
        content_provider: ContentProvider,
    ) -> OperationResult:
        """Override every target library below root with shim content.

        Args:
            root: Game install root
            targets: Basenames to override
            content_provider: Returns the shim bytes for a canonical basename

        Returns:
            OperationResult; count is the number of newly overridden paths
        """
        root = Path(root)
        result = OperationResult(root=root, operation="apply")
        was_active = self._marker_state(root, MarkerKind.OVERRIDE_ACTIVE)
        contents: dict[str, bytes] = {}

        logger.info(f"Applying shim override below {root}")
        for entry in walk_files(root, self.max_depth):
            if targets.match_temp(entry.name) is not None:
                self._remove_leftover(entry.path, result)
                continue

            target = targets.match(entry.name)
            if target is not None:
                self._override_file(entry.path, target, content_provider, contents, result, was_active)
                continue

            # A backup whose library vanished means an earlier apply stopped
            # between the rename and the shim write
            target = targets.match_backup(entry.name)
            if target is not None:
                self._repair_missing(entry.path, target, content_provider, contents, result)

        self._write_markers(root, active=True, result=result)
        logger.info(f"{result.summary()} below {root}")
        return result

    def revert(self, root: Path, targets: TargetSpec) -> OperationResult:
        """Restore every backed-up target library below root.

        Args:
            root: Game install root
            targets: Basenames whose backups should be restored

        Returns:
            OperationResult; count is the number of restored paths
        """
        root = Path(root)
        result = OperationResult(root=root, operation="revert")
        was_active = self._marker_state(root, MarkerKind.OVERRIDE_ACTIVE)

        logger.info(f"Reverting shim override below {root}")
        for entry in walk_files(root, self.max_depth):
            if targets.match_temp(entry.name) is not None:
                self._remove_leftover(entry.path, result)
                continue
            if targets.match_backup(entry.name) is None:
                continue
            if not was_active:
                self._note_inconsistency(result, f"backup {entry.path} present without active marker")
            self._restore_backup(entry.path, result)

        if was_active and not result.changed and not result.failures:
            self._note_inconsistency(result, f"active marker set for {root} but no backups found")

        if result.ok:
            self._write_markers(root, active=False, result=result)
        else:
            logger.warning(f"Leaving markers for {root} unchanged: {len(result.failures)} backups not restored")
        logger.info(f"{result.summary()} below {root}")
        return result

    def status(self, root: Path, targets: TargetSpec) -> OverrideStatus:
        """Report live targets, backups and markers below root without changing anything."""
        root = Path(root)
        status = OverrideStatus(root=root)
        for entry in walk_files(root, self.max_depth):
            if targets.match(entry.name) is not None:
                status.targets.append(entry.path)
            elif targets.match_backup(entry.name) is not None:
                status.backups.append(entry.path)

        try:
            status.markers = self.marker_store.kinds(root)
        except OSError as e:
            logger.warning(f"Could not read markers for {root}: {e}")
        return status

    def reconcile(self, root: Path, targets: TargetSpec) -> OverrideStatus:
        """Rewrite the markers of root so they agree with the backups on disk.

        Raises:
            OSError: If the marker store cannot be written
        """
        status = self.status(root, targets)
        if status.consistent:
            return status

        if status.active:
            logger.warning(f"Backups present below {root} without active marker, setting it")
            self.marker_store.set(root, MarkerKind.OVERRIDE_ACTIVE)
            self.marker_store.clear(root, MarkerKind.OVERRIDE_REVERTED)
        else:
            logger.warning(f"Active marker for {root} has no backups, clearing it")
            self.marker_store.clear(root, MarkerKind.OVERRIDE_ACTIVE)
        return self.status(root, targets)

    def _override_file(self, path, target, content_provider, contents, result, was_active):
        """Back up one library and write its shim in place."""
        if find_sibling(path.parent, path.name + BACKUP_SUFFIX) is not None:
            if not was_active:
                self._note_inconsistency(result, f"backup for {path} present without active marker")
            logger.debug(f"Backup already exists for {path}, skipping")
            result.skipped.append(path)
            return

        content = self._content_for(target, content_provider, contents, path, result)
        if content is None:
            return

        backup = path.with_name(path.name + BACKUP_SUFFIX)
        try:
            mode = path.stat().st_mode & 0o7777
            os.rename(path, backup)
        except OSError as e:
            logger.error(f"Could not back up {path}: {e}")
            result.add_failure(path, "backup", e)
            return

        try:
            atomic_write_bytes(path, content, mode=mode)
        except OSError as e:
            logger.error(f"Could not write shim to {path}: {e}")
            result.add_failure(path, "override", e)
            try:
                os.replace(backup, path)
            except OSError as rollback_error:
                logger.error(f"Could not roll back {backup} to {path}: {rollback_error}")
                result.add_failure(backup, "rollback", rollback_error)
            return

        logger.info(f"Replaced {path} with shim {target} (original kept as {backup.name})")
        result.changed.append(path)

    def _repair_missing(self, backup, target, content_provider, contents, result):
        """Rewrite the shim next to a backup whose library is missing."""
        live_name = BACKUP_PATTERN.strip(backup.name)
        if find_sibling(backup.parent, live_name) is not None:
            return

        content = self._content_for(target, content_provider, contents, backup, result)
        if content is None:
            return

        path = backup.with_name(live_name)
        try:
            atomic_write_bytes(path, content, mode=backup.stat().st_mode & 0o7777)
        except OSError as e:
            logger.error(f"Could not rewrite missing shim {path}: {e}")
            result.add_failure(path, "repair", e)
            return

        logger.warning(f"Rewrote missing shim {path} next to existing backup")
        result.repaired.append(path)

    def _restore_backup(self, backup: Path, result: OperationResult) -> None:
        """Move one backup over its library, removing the backup."""
        live_name = BACKUP_PATTERN.strip(backup.name)
        path = find_sibling(backup.parent, live_name) or backup.with_name(live_name)
        try:
            os.replace(backup, path)
        except OSError as e:
            logger.error(f"Could not restore {path} from {backup}: {e}")
            result.add_failure(path, "restore", e)
            return

        logger.info(f"Restored original {path}")
        result.changed.append(path)

    @staticmethod
    def _remove_leftover(path: Path, result: OperationResult) -> None:
        """Delete a temporary file left by a write that never finished."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Could not remove leftover temporary file {path}: {e}")
            result.add_failure(path, "cleanup", e)
            return
        logger.info(f"Removed leftover temporary file {path}")

    @staticmethod
    def _content_for(target, content_provider, contents, path, result):
        """Fetch shim bytes once per target; record a failure if unavailable."""
        if target not in contents:
            try:
                contents[target] = bytes(content_provider(target))
            except (LookupError, OSError) as e:
                logger.error(f"No shim content for {target}: {e}")
                result.add_failure(path, "content", e)
                return None
        return contents[target]

    def _marker_state(self, root: Path, kind: MarkerKind) -> bool:
        try:
            return self.marker_store.has(root, kind)
        except OSError as e:
            logger.warning(f"Could not read marker {kind.value} for {root}: {e}")
            return False

    def _write_markers(self, root: Path, active: bool, result: OperationResult) -> None:
        """Record the completed transition: active after apply, reverted after revert."""
        try:
            if active:
                self.marker_store.set(root, MarkerKind.OVERRIDE_ACTIVE)
                self.marker_store.clear(root, MarkerKind.OVERRIDE_REVERTED)
            else:
                self.marker_store.clear(root, MarkerKind.OVERRIDE_ACTIVE)
                self.marker_store.set(root, MarkerKind.OVERRIDE_REVERTED)
        except OSError as e:
            logger.error(f"Could not update markers for {root}: {e}")
            result.add_failure(root, "markers", e)

    @staticmethod
    def _note_inconsistency(result: OperationResult, message: str) -> None:
        logger.warning(f"Inconsistent override state: {message}")
        result.inconsistencies.append(message)
