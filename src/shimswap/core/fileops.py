"""Small filesystem helpers shared by the engine and the marker index."""

import os
import tempfile
from pathlib import Path
from typing import Optional

from .matcher import TEMP_SUFFIX, fold


def atomic_write_bytes(path: Path, data: bytes, mode: Optional[int] = None) -> None:
    """Write data to path so readers see either the old file or the new one.

    The bytes go to a hidden temporary file in the same directory, are
    flushed to disk, and then renamed over path.

    Args:
        path: Destination file
        data: Exact bytes to write
        mode: Permission bits for the new file (defaults to mkstemp's 0o600)

    Raises:
        OSError: If the temporary file cannot be written or renamed
    """
    path = Path(path)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=TEMP_SUFFIX, dir=path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def find_sibling(directory: Path, name: str) -> Optional[Path]:
    """Find a regular file in directory whose name equals name ignoring case.

    The exact spelling is tried first; otherwise the directory is listed
    (and closed) once.

    Args:
        directory: Directory to search
        name: File name to look for

    Returns:
        Path of the existing file or None
    """
    exact = directory / name
    if exact.is_file():
        return exact

    wanted = fold(name)
    try:
        with os.scandir(directory) as it:
            for entry in it:
                if fold(entry.name) == wanted and entry.is_file(follow_symlinks=False):
                    return directory / entry.name
    except OSError:
        return None
    return None
