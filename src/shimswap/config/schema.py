"""Configuration data models"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Vendor anti-tamper libraries replaced by default (32-bit and 64-bit)
DEFAULT_TARGETS = ("steam_api.dll", "steam_api64.dll")

# Directory levels walked below an install or drive root
DEFAULT_MAX_DEPTH = 5

MARKER_BACKENDS = ("file", "index")


@dataclass
class GameEntry:
    """A configured game: where it is installed and where its drive lives"""
    app_id: str
    display_name: str = ""
    install_root: Optional[Path] = None
    drive_root: Optional[Path] = None
    executable: Optional[str] = None


@dataclass
class Settings:
    """Application settings"""
    max_depth: int = DEFAULT_MAX_DEPTH
    marker_backend: str = "file"
    asset_dir: Optional[Path] = None
    targets: tuple[str, ...] = DEFAULT_TARGETS


@dataclass
class AppConfiguration:
    """Complete application configuration"""
    settings: Settings = field(default_factory=Settings)
    games: list[GameEntry] = field(default_factory=list)

    def get_game(self, app_id: str) -> Optional[GameEntry]:
        """Get a game entry by application id.

        Args:
            app_id: The application identifier to find

        Returns:
            The GameEntry or None if not configured
        """
        for game in self.games:
            if game.app_id == app_id:
                return game
        return None

    def add_or_replace_game(self, entry: GameEntry) -> None:
        """Insert a game entry, replacing any entry with the same app id."""
        self.games = [g for g in self.games if g.app_id != entry.app_id]
        self.games.append(entry)
