"""Source providers: load and validate source menu trees.

A YAML menu file looks like::

    name: Expressions
    items:
      - name: Outfits
        target: Body
        items:
          - name: Casual
          - name: Formal
            display_name: Formal Wear

``name`` is the path segment, ``display_name`` defaults to ``name`` and
``target`` becomes the node's aux info.
"""

import logging
from pathlib import Path
from typing import Any, Protocol

import yaml

from menusync.constants import ROOT_PATH
from menusync.errors import InvalidSourceTree
from menusync.source.models import MenuPath, SourceNode, format_path

logger = logging.getLogger(__name__)


class SourceProvider(Protocol):
    """Supplies a fresh source tree for each pass."""

    def load_tree(self) -> SourceNode: ...


def validate_source_tree(root: SourceNode) -> None:
    """Check the provider contract on a source tree.

    Raises:
        InvalidSourceTree: If the root is not at the empty path, a child's path
            does not extend its parent's, a segment is empty, or two siblings
            share a name.
    """
    if root.path != ROOT_PATH:
        raise InvalidSourceTree(
            f"Source root must sit at the empty path, got {format_path(root.path)}",
            path=root.path,
        )

    stack = [root]
    while stack:
        node = stack.pop()
        seen: set[str] = set()
        for child in node.children:
            if len(child.path) != len(node.path) + 1 or child.path[:-1] != node.path:
                raise InvalidSourceTree(
                    f"Path {format_path(child.path)} is not a child of {format_path(node.path)}",
                    path=child.path,
                )
            if not child.name:
                raise InvalidSourceTree(
                    f"Empty segment name under {format_path(node.path)}", path=child.path
                )
            if child.name in seen:
                raise InvalidSourceTree(
                    f"Duplicate sibling name {child.name!r} under {format_path(node.path)}",
                    path=child.path,
                )
            seen.add(child.name)
            stack.append(child)


def build_source_tree(data: dict[str, Any], path: MenuPath = ROOT_PATH) -> SourceNode:
    """Build a SourceNode tree from parsed YAML/JSON data.

    Raises:
        InvalidSourceTree: If an entry is malformed.
    """
    if not isinstance(data, dict):
        raise InvalidSourceTree(f"Menu entry at {format_path(path)} must be a mapping", path=path)

    name = str(data.get("name", "")).strip()
    display_name = data.get("display_name") or name
    target = data.get("target")

    items = data.get("items") or []
    if not isinstance(items, list):
        raise InvalidSourceTree(f"'items' at {format_path(path)} must be a list", path=path)

    children = []
    for item in items:
        child_name = str(item.get("name", "")).strip() if isinstance(item, dict) else ""
        if not child_name:
            raise InvalidSourceTree(
                f"Menu entry under {format_path(path)} has no name", path=path
            )
        children.append(build_source_tree(item, path + (child_name,)))

    return SourceNode(
        path=path,
        display_name=str(display_name),
        aux_info=str(target) if target is not None else None,
        children=tuple(children),
    )


class YamlSourceProvider:
    """Loads the source tree from a YAML menu file."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load_tree(self) -> SourceNode:
        """Parse and validate the menu file.

        Raises:
            InvalidSourceTree: If the file is missing, unparsable or breaks
                the sibling-uniqueness contract.
        """
        try:
            content = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidSourceTree(f"Cannot read source menu {self.path}: {e}") from e

        try:
            data = yaml.safe_load(content) or {}
        except yaml.YAMLError as e:
            raise InvalidSourceTree(f"Cannot parse source menu {self.path}: {e}") from e

        root = build_source_tree(data)
        validate_source_tree(root)
        logger.info(f"Loaded source menu {self.path} ({sum(1 for _ in root.walk()) - 1} items)")
        return root


class StaticSourceProvider:
    """Serves a fixed in-memory tree, replaceable between passes."""

    def __init__(self, tree: SourceNode) -> None:
        self.tree = tree

    def load_tree(self) -> SourceNode:
        return self.tree
