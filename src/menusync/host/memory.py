"""In-memory reference host with JSON persistence."""

import copy
import logging
from pathlib import Path

from menusync.errors import NodeNotFound
from menusync.graph.analysis import find_node
from menusync.graph.identity import IdentityStore
from menusync.graph.models import Classification, GeneratedNode, NodeContent, NodeMetadata
from menusync.graph.persistence import load_graph, save_graph
from menusync.source.models import MenuPath

logger = logging.getLogger(__name__)


class InMemoryHostGraph:
    """A HostGraph that keeps the tree as live GeneratedNode objects.

    Lookups by identifier resolve to the first node in pre-order, the same
    way an editor would if a duplicate left two nodes with one identifier.
    """

    def __init__(
        self, root: GeneratedNode | None = None, identity: IdentityStore | None = None
    ) -> None:
        self._root = root
        self._identity = identity or IdentityStore()

    @classmethod
    def load(cls, input_dir: Path, identity: IdentityStore | None = None) -> "InMemoryHostGraph":
        """Load a host from a directory written by save()."""
        return cls(load_graph(input_dir), identity=identity)

    def save(self, output_dir: Path) -> None:
        save_graph(self._root, output_dir)

    @property
    def root(self) -> GeneratedNode | None:
        return self._root

    def _require(self, identifier: str) -> GeneratedNode:
        node = find_node(self._root, identifier)
        if node is None:
            raise NodeNotFound(identifier)
        return node

    def load_generated_tree(self) -> GeneratedNode | None:
        return self._root

    def create_node(
        self,
        parent: str | None,
        classification: Classification,
        original_path: MenuPath | None,
        content: NodeContent,
    ) -> str:
        node = GeneratedNode(
            identifier=self._identity.mint(self.list_all_identifiers()),
            classification=classification,
            display_name=content.display_name,
            metadata=NodeMetadata(
                original_path=tuple(original_path) if original_path is not None else None,
                aux_info=content.aux_info,
            ),
        )
        if parent is None:
            if self._root is not None:
                raise ValueError("Graph already has a top-level node")
            self._root = node
        else:
            self._require(parent).add_child(node)
        return node.identifier

    def destroy_node(self, identifier: str) -> None:
        node = self._require(identifier)
        if node is self._root:
            self._root = None
            return
        parent = node.parent
        if parent is None:
            raise ValueError(f"Node {identifier} is detached from the graph")
        parent.remove_child(node)

    def reparent_node(self, identifier: str, new_parent: str, index: int | None = None) -> None:
        node = self._require(identifier)
        target = self._require(new_parent)
        if target is node or any(ancestor is node for ancestor in target.ancestors()):
            raise ValueError(f"Cannot move {identifier} under its own subtree")
        target.add_child(node, index)

    def set_content(
        self, identifier: str, original_path: MenuPath | None, content: NodeContent
    ) -> None:
        node = self._require(identifier)
        node.display_name = content.display_name
        node.metadata.aux_info = content.aux_info
        node.metadata.original_path = tuple(original_path) if original_path is not None else None

    def set_classification(self, identifier: str, classification: Classification) -> None:
        self._require(identifier).classification = classification

    def reorder_children(self, parent: str, ordered: list[str]) -> None:
        node = self._require(parent)
        current = [child.identifier for child in node.children]
        if sorted(current) != sorted(ordered):
            raise ValueError(f"Reorder of {parent} is not a permutation of its children")
        by_identifier = {child.identifier: child for child in node.children}
        node.children[:] = [by_identifier[identifier] for identifier in ordered]

    def list_all_identifiers(self) -> set[str]:
        if self._root is None:
            return set()
        return {node.identifier for node in self._root.walk()}

    # Editor-side operations that are not part of the HostGraph contract

    def add_user_node(
        self, parent: str, display_name: str, index: int | None = None
    ) -> str:
        """Author a node directly in the graph, outside the source tree."""
        node = GeneratedNode(
            identifier=self._identity.mint(self.list_all_identifiers()),
            classification=Classification.USER_INCLUDED,
            display_name=display_name,
        )
        self._require(parent).add_child(node, index)
        return node.identifier

    def duplicate_node(self, identifier: str) -> GeneratedNode:
        """Clone a subtree next to the original, identifiers and provenance included."""
        node = self._require(identifier)
        parent = node.parent
        if parent is None:
            raise ValueError("Cannot duplicate the top-level node")
        clone = _clone(node)
        parent.add_child(clone, parent.children.index(node) + 1)
        logger.debug(f"Duplicated {identifier} ('{node.display_name}')")
        return clone


def _clone(node: GeneratedNode) -> GeneratedNode:
    return GeneratedNode(
        identifier=node.identifier,
        classification=node.classification,
        display_name=node.display_name,
        metadata=copy.copy(node.metadata),
        children=[_clone(child) for child in node.children],
    )
