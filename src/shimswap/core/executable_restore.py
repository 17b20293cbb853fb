"""Put back an original executable saved as ``<exe>.original.exe``.

An external unpacker renames the game's executable to
``<exe>.original.exe`` before writing its own build in place. Restoring
moves the saved file back over ``<exe>``. The operation writes no markers:
once the backup has been moved it no longer exists, so a second call finds
nothing and does nothing.
"""

import os
from pathlib import Path, PureWindowsPath
from typing import Optional

from ..logging_config import get_logger
from .fileops import find_sibling
from .matcher import ORIGINAL_EXE_PATTERN, ORIGINAL_EXE_SUFFIX, fold
from .results import OperationResult
from .walker import MAX_DEPTH, walk_files

logger = get_logger("executable_restore")


def restore_original(
    drive_root: Path,
    executable_name: Optional[str] = None,
    max_depth: int = MAX_DEPTH,
) -> OperationResult:
    """Restore saved original executables below an emulated drive root.

    Args:
        drive_root: Root of the emulated system drive
        executable_name: Executable whose backup to restore (e.g. "game.exe").
            A relative Windows or POSIX path is reduced to its basename.
            When None, every ``*.original.exe`` within reach is restored.
        max_depth: Deepest entry depth to visit (root is depth 0)

    Returns:
        OperationResult; count is the number of executables restored.
        Finding no backup is a success with count 0.
    """
    drive_root = Path(drive_root)
    result = OperationResult(root=drive_root, operation="restore")

    wanted = None
    if executable_name:
        # Container configs store Windows paths such as "bin\\game.exe"
        basename = PureWindowsPath(executable_name).name
        wanted = fold(basename + ORIGINAL_EXE_SUFFIX)

    for entry in walk_files(drive_root, max_depth):
        if wanted is not None:
            if fold(entry.name) != wanted:
                continue
        elif not ORIGINAL_EXE_PATTERN.matches(entry.name):
            continue

        original_name = ORIGINAL_EXE_PATTERN.strip(entry.name)
        target = find_sibling(entry.path.parent, original_name) or entry.path.with_name(original_name)
        try:
            os.replace(entry.path, target)
        except OSError as e:
            logger.error(f"Could not restore {target} from {entry.path}: {e}")
            result.add_failure(target, "restore", e)
            continue

        logger.info(f"Restored original executable {target}")
        result.changed.append(target)

    if not result.changed and not result.failures:
        logger.debug(f"No original executable backup found below {drive_root}")
    return result
