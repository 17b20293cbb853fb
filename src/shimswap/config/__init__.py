"""Configuration management module.

This module provides configuration storage, loading, and data models for the application.

Submodules:
    manager: ConfigurationManager for loading/saving XML configuration
    schema: Data classes defining configuration structure (GameEntry, Settings, etc.)
    paths: AppPaths with default locations for config, logs, markers and shims
    path_validator: Root validation to prevent mutating system directories

The configuration is stored as XML in $SHIMSWAP_HOME/configuration.xml.
"""

from .manager import ConfigurationManager
from .schema import AppConfiguration, GameEntry, Settings
from .paths import AppPaths

__all__ = [
    "ConfigurationManager",
    "AppConfiguration",
    "GameEntry",
    "Settings",
    "AppPaths",
]
