"""Host collaborator contract.

The host owns and renders the generated graph. The engine only reads the tree
it hands out and changes it through these primitives. Every primitive is
synchronous and blocking from the driver's point of view.
"""

from typing import Protocol

from menusync.graph.models import Classification, GeneratedNode, NodeContent
from menusync.source.models import MenuPath


class HostGraph(Protocol):
    """Mutation primitives over a host-owned generated graph."""

    def load_generated_tree(self) -> GeneratedNode | None:
        """Return the live tree (the GeneratedRoot or a container holding it)."""
        ...

    def create_node(
        self,
        parent: str | None,
        classification: Classification,
        original_path: MenuPath | None,
        content: NodeContent,
    ) -> str:
        """Create a node under parent (None creates the tree root); return its identifier."""
        ...

    def destroy_node(self, identifier: str) -> None:
        """Destroy a node together with its remaining subtree."""
        ...

    def reparent_node(self, identifier: str, new_parent: str, index: int | None = None) -> None:
        """Move a node (with its subtree) under new_parent, appending when index is None."""
        ...

    def set_content(
        self, identifier: str, original_path: MenuPath | None, content: NodeContent
    ) -> None:
        """Refresh displayed content and provenance of a node."""
        ...

    def set_classification(self, identifier: str, classification: Classification) -> None:
        ...

    def reorder_children(self, parent: str, ordered: list[str]) -> None:
        """Reorder parent's children; ordered must be a permutation of them."""
        ...

    def list_all_identifiers(self) -> set[str]:
        ...
