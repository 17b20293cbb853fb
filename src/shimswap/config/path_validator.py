"""Path validation utilities to prevent dangerous file operations.

Provides validation for roots handed to the override engine to prevent:
- Operations on protected system directories
- Operations on a filesystem root or a user's home directory itself
- Operations on paths that are not existing directories
"""

import os
from pathlib import Path

from ..logging_config import get_logger

logger = get_logger("path_validator")

# System directories that should never be walked and mutated
PROTECTED_DIRECTORIES = [
    "/bin",
    "/boot",
    "/dev",
    "/etc",
    "/lib",
    "/proc",
    "/sbin",
    "/sys",
    "/usr",
    "C:\\Windows",
    "C:\\Program Files\\WindowsApps",
]

# Additional protected paths based on environment variables
PROTECTED_ENV_PATHS = [
    "WINDIR",
    "SYSTEMROOT",
]


def _get_protected_paths() -> set[Path]:
    """Build the set of protected paths including environment-based ones."""
    protected = set()

    for dir_path in PROTECTED_DIRECTORIES:
        try:
            protected.add(Path(dir_path).resolve())
        except (OSError, ValueError):
            pass

    for env_var in PROTECTED_ENV_PATHS:
        env_value = os.environ.get(env_var)
        if env_value:
            try:
                protected.add(Path(env_value).resolve())
            except (OSError, ValueError):
                pass

    return protected


def is_safe_path(path: Path) -> bool:
    """Check if a path is safe to walk and mutate.

    A path is unsafe if it is a filesystem anchor, the user's home
    directory itself, or lies inside a protected system directory.

    Args:
        path: The path to validate

    Returns:
        True if the path is safe, False otherwise
    """
    try:
        resolved = path.resolve()
    except (OSError, ValueError) as e:
        logger.warning("Failed to resolve path %s: %s", path, e)
        return False

    if resolved == Path(resolved.anchor):
        logger.warning("Path %s is a filesystem root", path)
        return False

    try:
        if resolved == Path.home().resolve():
            logger.warning("Path %s is the home directory", path)
            return False
    except (OSError, RuntimeError):
        pass

    for protected_path in _get_protected_paths():
        if resolved == protected_path or protected_path in resolved.parents:
            logger.warning("Path %s is in protected directory %s", path, protected_path)
            return False

    return True


def validate_root(root: Path) -> tuple[bool, str]:
    """Validate an install or emulated-drive root before mutating below it.

    Args:
        root: The root directory to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not root or not str(root).strip():
        return False, "Root path is empty"

    try:
        resolved = root.resolve()
    except (OSError, ValueError) as e:
        return False, f"Invalid path: {e}"

    if not resolved.exists():
        return False, f"Root does not exist: {root}"

    if not resolved.is_dir():
        return False, f"Root is not a directory: {root}"

    if not is_safe_path(resolved):
        return False, "Path is a protected system directory"

    return True, ""
