"""Source menu definitions and providers."""

from menusync.source.models import MenuPath, SourceNode, format_path
from menusync.source.loader import (
    SourceProvider,
    StaticSourceProvider,
    YamlSourceProvider,
    build_source_tree,
    validate_source_tree,
)

__all__ = [
    "MenuPath",
    "SourceNode",
    "format_path",
    "SourceProvider",
    "StaticSourceProvider",
    "YamlSourceProvider",
    "build_source_tree",
    "validate_source_tree",
]
