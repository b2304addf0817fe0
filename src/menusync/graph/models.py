"""Data models for the generated graph."""

import weakref
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from menusync.source.models import MenuPath


class Classification(str, Enum):
    """How the synchronizer treats a generated-graph node."""

    GENERATED = "generated"
    USER_INCLUDED = "user_included"
    EXCLUDED = "excluded"
    GENERATED_ROOT = "generated_root"

    @property
    def engine_owned(self) -> bool:
        """True for nodes the engine may update, move or delete."""
        return self in (Classification.GENERATED, Classification.GENERATED_ROOT)

    @property
    def has_provenance(self) -> bool:
        """True for nodes that carry an original_path."""
        return self is not Classification.USER_INCLUDED


@dataclass
class NodeMetadata:
    """Persisted provenance of a generated node.

    original_path is the matching key and survives host save/duplicate cycles.
    full_path tracks where the node currently lives and is for debugging only.
    """

    original_path: MenuPath | None = None
    aux_info: str | None = None  # e.g. install target name
    full_path: str | None = None


@dataclass(frozen=True)
class NodeContent:
    """What the host writes when creating or updating a node."""

    display_name: str
    aux_info: str | None = None


@dataclass(eq=False)
class GeneratedNode:
    """A node in the host-owned generated graph."""

    identifier: str
    classification: Classification
    display_name: str
    metadata: NodeMetadata = field(default_factory=NodeMetadata)
    children: list["GeneratedNode"] = field(default_factory=list)
    _parent: "weakref.ref[GeneratedNode] | None" = field(
        default=None, init=False, repr=False
    )

    def __post_init__(self) -> None:
        for child in self.children:
            child._parent = weakref.ref(self)

    @property
    def parent(self) -> "GeneratedNode | None":
        return self._parent() if self._parent is not None else None

    @parent.setter
    def parent(self, value: "GeneratedNode | None") -> None:
        self._parent = weakref.ref(value) if value is not None else None

    @property
    def original_path(self) -> MenuPath | None:
        return self.metadata.original_path

    @property
    def content(self) -> NodeContent:
        return NodeContent(display_name=self.display_name, aux_info=self.metadata.aux_info)

    def add_child(self, child: "GeneratedNode", index: int | None = None) -> None:
        """Attach child at index (append when None), detaching it first."""
        old_parent = child.parent
        if old_parent is not None:
            old_parent.remove_child(child)
        if index is None:
            self.children.append(child)
        else:
            self.children.insert(index, child)
        child.parent = self

    def remove_child(self, child: "GeneratedNode") -> None:
        for i, candidate in enumerate(self.children):
            if candidate is child:
                del self.children[i]
                child.parent = None
                return
        raise ValueError(f"{child.identifier} is not a child of {self.identifier}")

    def walk(self) -> Iterator["GeneratedNode"]:
        """Yield this node and all descendants in pre-order.

        Assumes an acyclic graph; run graph.analysis.find_cycle first on
        untrusted input.
        """
        stack: list[GeneratedNode] = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def ancestors(self) -> Iterator["GeneratedNode"]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent
