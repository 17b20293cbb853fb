"""Asset loading utilities for both development and packaged modes"""

import sys
from pathlib import Path
from typing import Optional

from ..core.fileops import find_sibling
from ..logging_config import get_logger

logger = get_logger("assets")


class AssetNotFoundError(LookupError):
    """Raised when a bundled shim for a target basename is missing"""
    pass


def get_asset_path(relative_path: str) -> Path:
    """Get the correct path for assets, works in both dev and packaged modes.

    Args:
        relative_path: Path relative to the assets directory (e.g., "shims/steam_api.dll")

    Returns:
        Absolute path to the asset file
    """
    if getattr(sys, 'frozen', False):
        # Running as compiled executable (PyInstaller)
        base_path = Path(sys._MEIPASS) / "shimswap" / "assets"
    else:
        # Running in development
        base_path = Path(__file__).parent

    return base_path / relative_path


class BundledAssetProvider:
    """Content provider returning the bundled shim bytes for a target basename.

    Shims are looked up by name in the asset directory, ignoring case.
    Content is returned verbatim and cached for the provider's lifetime.
    """

    def __init__(self, asset_dir: Optional[Path] = None):
        self.asset_dir = Path(asset_dir) if asset_dir else get_asset_path("shims")
        self._cache: dict[str, bytes] = {}

    @classmethod
    def from_settings(cls, settings) -> "BundledAssetProvider":
        return cls(settings.asset_dir)

    def __call__(self, basename: str) -> bytes:
        if basename in self._cache:
            return self._cache[basename]

        path = find_sibling(self.asset_dir, basename) if self.asset_dir.is_dir() else None
        if path is None:
            raise AssetNotFoundError(f"No bundled shim named {basename} in {self.asset_dir}")

        try:
            content = path.read_bytes()
        except OSError as e:
            raise AssetNotFoundError(f"Cannot read bundled shim {path}: {e}") from e

        logger.debug(f"Loaded shim {path} ({len(content)} bytes)")
        self._cache[basename] = content
        return content
