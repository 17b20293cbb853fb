"""Bundled shim content.

This module resolves the compatibility shims that replace vendor libraries,
in both development and packaged (PyInstaller) modes.

Submodules:
    loader: get_asset_path() and BundledAssetProvider

Asset Directory Structure:
    assets/
        shims/
            steam_api.dll    - 32-bit compatibility shim
            steam_api64.dll  - 64-bit compatibility shim

The shim binaries are not part of the source tree; they are dropped into
``assets/shims`` at build time or supplied through the AssetDir setting.
"""

from .loader import AssetNotFoundError, BundledAssetProvider, get_asset_path

__all__ = [
    "AssetNotFoundError",
    "BundledAssetProvider",
    "get_asset_path",
]
