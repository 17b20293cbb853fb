"""Shared fixtures: keep configuration, logs and marker index out of the real home."""

import pytest

from shimswap.config.paths import AppPaths


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    config_dir = tmp_path / "config"
    monkeypatch.setattr(AppPaths, "CONFIG_DIR", config_dir)
    monkeypatch.setattr(AppPaths, "CONFIG_FILE", config_dir / "configuration.xml")
    monkeypatch.setattr(AppPaths, "MARKER_INDEX_FILE", config_dir / "markers.xml")
    return config_dir


@pytest.fixture
def install_root(tmp_path):
    root = tmp_path / "games" / "123456"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def shim_provider():
    """Content provider returning distinct bytes per canonical target."""
    contents = {
        "steam_api.dll": b"X shim 32",
        "steam_api64.dll": b"Y shim 64",
    }
    calls = []

    def provider(basename):
        calls.append(basename)
        return contents[basename]

    provider.contents = contents
    provider.calls = calls
    return provider


@pytest.fixture
def nest():
    """Create root/level1/.../levelN and return the deepest directory."""
    def make(root, levels):
        current = root
        for i in range(1, levels + 1):
            current = current / f"level{i}"
        current.mkdir(parents=True, exist_ok=True)
        return current
    return make
