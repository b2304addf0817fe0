"""Shared pytest fixtures for all tests."""

import pytest

from menusync.constants import ROOT_PATH
from menusync.graph.models import Classification, NodeContent
from menusync.host.memory import InMemoryHostGraph
from menusync.source.loader import StaticSourceProvider, build_source_tree
from menusync.sync.driver import RegenerationDriver


def _item(name, *children, **extra):
    return {"name": name, "items": list(children), **extra}


def _menu(*items, name="Menu"):
    return build_source_tree({"name": name, "items": list(items)})


@pytest.fixture
def item():
    """Factory for one YAML-style menu entry: item("A", item("B"), target="Body")."""
    return _item


@pytest.fixture
def menu():
    """Factory for a validated source tree: menu(item("A"), item("B"))."""
    return _menu


@pytest.fixture
def host():
    """Host graph holding only a GeneratedRoot named "Menu"."""
    graph = InMemoryHostGraph()
    graph.create_node(None, Classification.GENERATED_ROOT, ROOT_PATH, NodeContent("Menu"))
    return graph


@pytest.fixture
def sync(host):
    """Run one pass of the given source tree against the host fixture."""

    def run(tree):
        return RegenerationDriver(StaticSourceProvider(tree), host).run()

    return run


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear cached settings and API singletons around each test."""
    from menusync.api.deps import _reset_host_instance, get_settings
    from menusync.config import load_settings

    load_settings.cache_clear()
    get_settings.cache_clear()
    _reset_host_instance()
    yield
    load_settings.cache_clear()
    get_settings.cache_clear()
    _reset_host_instance()
