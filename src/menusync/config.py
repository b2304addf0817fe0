# src/menusync/config.py
"""Configuration system for menusync.

This module handles loading settings from environment variables and INI files,
providing sensible defaults, and computing derived paths for the source menu
file and the persisted generated graph.
"""

from configparser import ConfigParser
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional
import os


class ConfigError(Exception):
    """Raised when configuration validation fails."""

    pass


# Schema: section -> key -> (type, default, description)
CONFIG_SCHEMA: dict[str, dict[str, tuple[type, Any, str]]] = {
    "sync": {
        "root_display_name": (str, "Menu Items", "Name for a recovered GeneratedRoot"),
        "refresh_full_paths": (bool, True, "Refresh debug full paths after a pass"),
    },
    "identity": {
        "repair_before_diff": (bool, True, "Repair identifier collisions found while loading"),
    },
    "paths": {
        "source_file": (str, "menu.yaml", "Source menu definition file"),
        "graph_dir": (str, ".menusync", "Directory holding the generated graph"),
    },
}


@dataclass(frozen=True)
class SyncConfig:
    """Synchronization pass configuration."""

    root_display_name: str
    refresh_full_paths: bool


@dataclass(frozen=True)
class IdentityConfig:
    """Identifier repair configuration."""

    repair_before_diff: bool


@dataclass(frozen=True)
class PathsConfig:
    """Path names configuration."""

    source_file: str
    graph_dir: str


def _defaults(section: str) -> dict[str, Any]:
    return {key: default for key, (_, default, _) in CONFIG_SCHEMA[section].items()}


def _load_section(
    parser: ConfigParser, section: str, schema: dict[str, tuple[type, Any, str]]
) -> dict[str, Any]:
    """Load and validate a configuration section.

    Args:
        parser: ConfigParser instance with loaded config
        section: Section name to load
        schema: Schema definition for the section

    Returns:
        Dictionary of validated configuration values

    Raises:
        ConfigError: If validation fails
    """
    result = {}

    for key, (typ, default, _) in schema.items():
        if not parser.has_option(section, key):
            result[key] = default
            continue

        value: bool | str
        if typ is bool:
            try:
                value = parser.getboolean(section, key)
            except ValueError as e:
                raise ConfigError(
                    f"Invalid value for [{section}].{key}: "
                    f"{parser.get(section, key)!r} (expected bool)"
                ) from e
        else:
            value = parser.get(section, key)
            if not value:
                raise ConfigError(f"Value for [{section}].{key} must not be empty")

        result[key] = value

    return result


def _load_config(config_path: Optional[Path] = None) -> "Config":
    """Load configuration from an INI file (internal use only).

    Returns a Config with a placeholder workspace_path that load_settings()
    replaces with the path from the MENUSYNC_WORKSPACE environment variable.

    Raises:
        ConfigError: If validation fails
    """
    parser = ConfigParser()

    if config_path and config_path.exists():
        parser.read(config_path, encoding="utf-8")

    sync = SyncConfig(**_load_section(parser, "sync", CONFIG_SCHEMA["sync"]))
    identity = IdentityConfig(**_load_section(parser, "identity", CONFIG_SCHEMA["identity"]))
    paths = PathsConfig(**_load_section(parser, "paths", CONFIG_SCHEMA["paths"]))

    return Config(
        workspace_path=Path("."),  # Placeholder, will be overwritten
        sync=sync,
        identity=identity,
        paths=paths,
    )


@dataclass(frozen=True)
class Config:
    """Complete application configuration."""

    workspace_path: Path

    # Section configs - defaults set in __post_init__, type: ignore needed because
    # frozen dataclass doesn't allow proper initialization pattern
    sync: SyncConfig = None  # type: ignore[assignment]
    identity: IdentityConfig = None  # type: ignore[assignment]
    paths: PathsConfig = None  # type: ignore[assignment]

    def __post_init__(self):
        """Initialize section configs with defaults if not provided."""
        if self.sync is None:
            object.__setattr__(self, "sync", SyncConfig(**_defaults("sync")))
        if self.identity is None:
            object.__setattr__(self, "identity", IdentityConfig(**_defaults("identity")))
        if self.paths is None:
            object.__setattr__(self, "paths", PathsConfig(**_defaults("paths")))

    @property
    def config_file(self) -> Path:
        """Path to the optional INI file in the workspace root."""
        return self.workspace_path / "menusync.ini"

    @property
    def source_path(self) -> Path:
        """Path to the source menu definition."""
        return self.workspace_path / self.paths.source_file

    @property
    def graph_path(self) -> Path:
        """Path to the directory holding the persisted generated graph."""
        return self.workspace_path / self.paths.graph_dir


@lru_cache(maxsize=1)
def load_settings() -> Config:
    """Load settings from environment variables and config file.

    Settings are cached for the lifetime of the application.
    Use load_settings.cache_clear() to reload settings.

    Raises:
        ValueError: If MENUSYNC_WORKSPACE is not set.
        ConfigError: If menusync.ini holds invalid values.
    """
    workspace_path_str = os.getenv("MENUSYNC_WORKSPACE")
    if not workspace_path_str:
        raise ValueError("MENUSYNC_WORKSPACE environment variable must be set")

    workspace_path = Path(workspace_path_str)

    config_file = workspace_path / "menusync.ini"
    try:
        config_exists = config_file.exists()
    except PermissionError:
        config_exists = False
    base_config = _load_config(config_file if config_exists else None)

    paths = PathsConfig(
        source_file=os.getenv("MENUSYNC_SOURCE_FILE", base_config.paths.source_file),
        graph_dir=os.getenv("MENUSYNC_GRAPH_DIR", base_config.paths.graph_dir),
    )

    return Config(
        workspace_path=workspace_path,
        sync=base_config.sync,
        identity=base_config.identity,
        paths=paths,
    )
