"""Configuration management - load/save XML configuration"""

import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional
from xml.dom import minidom

from .paths import AppPaths
from .schema import (
    DEFAULT_MAX_DEPTH,
    DEFAULT_TARGETS,
    MARKER_BACKENDS,
    AppConfiguration,
    GameEntry,
    Settings,
)
from ..logging_config import get_logger

logger = get_logger("config_manager")


class ConfigurationManager:
    """Manages application configuration persistence.

    Handles loading and saving configuration to XML format. A missing
    configuration file yields defaults; a corrupted one is logged and
    replaced by defaults in memory.
    """

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = config_path or AppPaths.CONFIG_FILE
        self.config: Optional[AppConfiguration] = None

    def load_or_default(self) -> AppConfiguration:
        """Load configuration, falling back to defaults when unavailable.

        Returns:
            The loaded or default AppConfiguration
        """
        if not self.config_path.exists():
            logger.debug(f"No configuration at {self.config_path}, using defaults")
            return self.create_default()

        try:
            return self.load()
        except (ET.ParseError, ValueError, KeyError) as e:
            # Corrupted config = fall back to defaults
            logger.warning(f"Could not load config, using defaults: {e}")
            return self.create_default()

    def load(self) -> AppConfiguration:
        """Load configuration from XML file.

        Returns:
            AppConfiguration object with loaded settings

        Raises:
            FileNotFoundError: If config file doesn't exist
            ET.ParseError: If XML is malformed
            ValueError: If a setting has an invalid value
        """
        logger.debug(f"Loading configuration from {self.config_path}")
        tree = ET.parse(self.config_path)
        root = tree.getroot()

        settings_elem = root.find("Settings")
        if settings_elem is not None:
            settings = Settings(
                max_depth=self._parse_int(settings_elem, "MaxDepth", DEFAULT_MAX_DEPTH),
                marker_backend=self._get_text(settings_elem, "MarkerBackend", "file").strip().lower(),
                asset_dir=self._parse_path(settings_elem, "AssetDir"),
                targets=self._parse_targets(settings_elem),
            )
        else:
            # Missing Settings element - use all defaults
            settings = Settings()

        if settings.marker_backend not in MARKER_BACKENDS:
            raise ValueError(f"Unknown marker backend: {settings.marker_backend}")
        if settings.max_depth < 1:
            raise ValueError(f"MaxDepth must be positive, got {settings.max_depth}")

        games = []
        games_elem = root.find("Games")
        if games_elem is not None:
            for game_elem in games_elem.findall("Game"):
                app_id = game_elem.get("id", "").strip()
                if not app_id:
                    logger.warning("Skipping game entry without id")
                    continue
                games.append(GameEntry(
                    app_id=app_id,
                    display_name=self._get_text(game_elem, "DisplayName", app_id),
                    install_root=self._parse_path(game_elem, "InstallRoot"),
                    drive_root=self._parse_path(game_elem, "DriveRoot"),
                    executable=self._get_text(game_elem, "Executable", "") or None,
                ))

        self.config = AppConfiguration(settings=settings, games=games)
        logger.debug(f"Configuration loaded: {len(games)} games")
        return self.config

    def save(self) -> None:
        """Save current configuration to XML file.

        Creates the configuration directory if it doesn't exist.
        """
        if self.config is None:
            raise ValueError("No configuration to save")

        logger.debug(f"Saving configuration to {self.config_path}")
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        root = ET.Element("ShimSwap", version="1.0")

        settings = self.config.settings
        settings_elem = ET.SubElement(root, "Settings")
        ET.SubElement(settings_elem, "MaxDepth").text = str(settings.max_depth)
        ET.SubElement(settings_elem, "MarkerBackend").text = settings.marker_backend
        ET.SubElement(settings_elem, "AssetDir").text = str(settings.asset_dir) if settings.asset_dir else ""
        targets_elem = ET.SubElement(settings_elem, "Targets")
        for name in settings.targets:
            ET.SubElement(targets_elem, "Target").text = name

        games_elem = ET.SubElement(root, "Games")
        for game in self.config.games:
            game_elem = ET.SubElement(games_elem, "Game", id=game.app_id)
            ET.SubElement(game_elem, "DisplayName").text = game.display_name
            ET.SubElement(game_elem, "InstallRoot").text = str(game.install_root) if game.install_root else ""
            ET.SubElement(game_elem, "DriveRoot").text = str(game.drive_root) if game.drive_root else ""
            ET.SubElement(game_elem, "Executable").text = game.executable or ""

        # Write pretty-printed XML
        xml_str = minidom.parseString(ET.tostring(root, encoding="unicode")).toprettyxml(indent="  ")
        # Remove extra blank lines that minidom adds
        lines = [line for line in xml_str.split('\n') if line.strip()]
        xml_str = '\n'.join(lines)

        self.config_path.write_text(xml_str, encoding="utf-8")

    def create_default(self) -> AppConfiguration:
        """Create a default configuration.

        Returns:
            New AppConfiguration with default values
        """
        self.config = AppConfiguration(settings=Settings(), games=[])
        return self.config

    # Helper methods for XML parsing
    @staticmethod
    def _get_text(parent: ET.Element, tag: str, default: str = "") -> str:
        """Get text content of a child element."""
        elem = parent.find(tag)
        return elem.text if elem is not None and elem.text else default

    @staticmethod
    def _parse_int(parent: ET.Element, tag: str, default: int) -> int:
        """Parse an integer value from child element."""
        elem = parent.find(tag)
        if elem is not None and elem.text and elem.text.strip():
            return int(elem.text.strip())
        return default

    @staticmethod
    def _parse_path(parent: ET.Element, tag: str) -> Optional[Path]:
        """Parse a path value from child element."""
        elem = parent.find(tag)
        if elem is not None and elem.text and elem.text.strip():
            return AppPaths.expand_path(elem.text.strip())
        return None

    @staticmethod
    def _parse_targets(parent: ET.Element) -> tuple[str, ...]:
        """Parse the ordered target basenames, keeping defaults if none are listed."""
        targets_elem = parent.find("Targets")
        if targets_elem is None:
            return DEFAULT_TARGETS
        names = tuple(
            elem.text.strip()
            for elem in targets_elem.findall("Target")
            if elem.text and elem.text.strip()
        )
        return names or DEFAULT_TARGETS
