"""Resolve configured games to their install and emulated-drive roots"""

from pathlib import Path
from typing import Optional

from ..config.schema import AppConfiguration, GameEntry


class UnknownGameError(LookupError):
    """Raised when an application id has no usable configuration"""
    pass


class GameResolver:
    """Look up where a game is installed and where its emulated drive lives.

    Replaces a process-wide service lookup: the host builds one from its
    configuration and passes it to whatever needs paths.
    """

    def __init__(self, config: AppConfiguration):
        self.config = config

    def get(self, app_id: str) -> GameEntry:
        """Get the configured entry for an application id.

        Raises:
            UnknownGameError: If the id is not configured
        """
        entry = self.config.get_game(app_id)
        if entry is None:
            raise UnknownGameError(f"No game configured with id {app_id}")
        return entry

    def install_root(self, app_id: str) -> Path:
        """Return the install root for an application id.

        Raises:
            UnknownGameError: If the id is unknown or has no install root
        """
        entry = self.get(app_id)
        if entry.install_root is None:
            raise UnknownGameError(f"Game {app_id} has no install root configured")
        return entry.install_root

    def drive_root(self, app_id: str) -> Path:
        """Return the emulated system drive root for an application id.

        Raises:
            UnknownGameError: If the id is unknown or has no drive root
        """
        entry = self.get(app_id)
        if entry.drive_root is None:
            raise UnknownGameError(f"Game {app_id} has no emulated drive root configured")
        return entry.drive_root

    def executable(self, app_id: str) -> Optional[str]:
        """Return the configured executable name, or None to restore any."""
        return self.get(app_id).executable

    def verify(self, entry: GameEntry) -> dict[str, bool]:
        """Verify the paths for a game exist.

        Args:
            entry: The game entry to verify

        Returns:
            Dictionary with 'install_root' and 'drive_root' keys indicating existence
        """
        return {
            "install_root": entry.install_root.is_dir() if entry.install_root else False,
            "drive_root": entry.drive_root.is_dir() if entry.drive_root else False,
        }
