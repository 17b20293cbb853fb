"""Default paths for configuration, logs, markers and bundled shims"""

import os
from pathlib import Path


def _default_config_dir() -> Path:
    home = os.environ.get("SHIMSWAP_HOME")
    if home:
        return Path(os.path.expandvars(os.path.expanduser(home)))
    return Path.home() / ".shimswap"


class AppPaths:
    """Default paths used by the application.

    All configured paths use environment variable expansion for portability.
    """

    # Configuration file location
    CONFIG_DIR = _default_config_dir()
    CONFIG_FILE = CONFIG_DIR / "configuration.xml"

    # Marker index for the "index" marker backend (stored in config dir)
    MARKER_INDEX_FILE = CONFIG_DIR / "markers.xml"

    @classmethod
    def expand_path(cls, path_str: str) -> Path:
        """Expand environment variables and ``~`` in a path string.

        Args:
            path_str: Path string potentially containing environment variables

        Returns:
            Path object with expanded variables
        """
        return Path(os.path.expandvars(os.path.expanduser(path_str)))

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure the configuration directory exists.

        Returns:
            Path to the configuration directory
        """
        cls.CONFIG_DIR.mkdir(parents=True, exist_ok=True)
        return cls.CONFIG_DIR
