"""FastAPI dependency injection functions."""

from functools import lru_cache

from fastapi import Depends

from menusync.config import Config, load_settings
from menusync.host.memory import InMemoryHostGraph
from menusync.source.loader import SourceProvider, YamlSourceProvider
from menusync.sync.driver import RegenerationDriver


@lru_cache(maxsize=1)
def get_settings() -> Config:
    """Get cached application settings."""
    return load_settings()


_host_instance: InMemoryHostGraph | None = None


def get_host() -> InMemoryHostGraph:
    """Get the host graph, loading it from the graph directory on first use."""
    global _host_instance
    if _host_instance is None:
        settings = get_settings()
        _host_instance = InMemoryHostGraph.load(settings.graph_path)
    return _host_instance


def _reset_host_instance() -> None:
    """Reset the host graph instance (for testing only)."""
    global _host_instance
    _host_instance = None


def get_source_provider() -> SourceProvider:
    """Get the source provider for the workspace's menu file."""
    return YamlSourceProvider(get_settings().source_path)


def get_driver(
    host: InMemoryHostGraph = Depends(get_host),
    source: SourceProvider = Depends(get_source_provider),
    settings: Config = Depends(get_settings),
) -> RegenerationDriver:
    """Get a regeneration driver wired to the workspace."""
    return RegenerationDriver(
        source=source,
        host=host,
        root_display_name=settings.sync.root_display_name,
        repair_before_diff=settings.identity.repair_before_diff,
        track_full_paths=settings.sync.refresh_full_paths,
    )


def persist_host(host: InMemoryHostGraph, settings: Config) -> None:
    """Write the host graph back to the workspace."""
    host.save(settings.graph_path)
