"""Tree diff engine: compute the mutations that make the generated graph
mirror the source tree.

Matching is by exact original_path. Excluded and UserIncluded nodes never
match; an Excluded node additionally claims its original_path so that the
source entry at that path (and everything below it) is left ungenerated.

The engine keeps a simulated copy of every child list it touches. Each
mutation is recorded against that copy exactly as the host will apply it,
so later mutations (insert positions, reorders) refer to the state the host
will actually be in.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterator

from menusync.constants import ROOT_PATH
from menusync.errors import MissingRoot
from menusync.graph.analysis import ensure_acyclic, find_root
from menusync.graph.models import Classification, GeneratedNode
from menusync.source.loader import validate_source_tree
from menusync.source.models import MenuPath, SourceNode, format_path
from menusync.sync.plan import (
    Create,
    Delete,
    MutationPlan,
    NodeRef,
    Reorder,
    Reparent,
    Update,
)

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _Entry:
    """A node as it will stand once the mutations so far are applied."""

    ref: NodeRef
    node: GeneratedNode | None = None  # None for nodes created by this plan
    anchor: MenuPath | None = None  # Source path this entry mirrors
    parent: "_Entry | None" = None
    children: list["_Entry"] = field(default_factory=list)

    def move_to(self, parent: "_Entry", index: int | None = None) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
        if index is None:
            parent.children.append(self)
        else:
            parent.children.insert(index, self)
        self.parent = parent

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None


class _GraphView:
    """Index of the generated graph reachable from the GeneratedRoot.

    Excluded subtrees are opaque: their nodes are neither indexed for
    matching nor ever touched.
    """

    def __init__(self, root: GeneratedNode) -> None:
        self.root = _Entry(ref=NodeRef(identifier=root.identifier), node=root)
        self.by_path: dict[MenuPath, _Entry] = {}
        self.engine_owned: list[_Entry] = []
        self.excluded_paths: set[MenuPath] = {
            node.original_path
            for node in root.walk()
            if node.classification is Classification.EXCLUDED and node.original_path is not None
        }

        stack = [self.root]
        while stack:
            entry = stack.pop()
            node = entry.node
            assert node is not None
            if node.classification is Classification.EXCLUDED:
                continue
            if entry is not self.root and node.classification.engine_owned:
                self.engine_owned.append(entry)
                path = node.original_path
                if node.classification is Classification.GENERATED and path is not None:
                    # First in pre-order wins; later clones stay unmatched.
                    self.by_path.setdefault(path, entry)
            entry.children = [
                _Entry(ref=NodeRef(identifier=child.identifier), node=child, parent=entry)
                for child in node.children
            ]
            stack.extend(reversed(entry.children))


def _content_differs(node: GeneratedNode, source: SourceNode) -> bool:
    return (
        node.display_name != source.display_name
        or node.metadata.aux_info != source.aux_info
        or node.original_path != source.path
    )


class TreeDiffEngine:
    """Computes a MutationPlan from a source tree and a generated graph."""

    def diff(self, source: SourceNode, generated: GeneratedNode | None) -> MutationPlan:
        """Compute the mutations that make generated mirror source.

        Args:
            source: Fresh source tree (root at the empty path).
            generated: The GeneratedRoot, or any node containing it.

        Returns:
            Plan ordered as: rescues and deletes, then updates, moves and
            creates in source pre-order, then reorders.

        Raises:
            InvalidSourceTree: If the source breaks sibling uniqueness.
            CycleDetected: If the generated graph's links loop.
            MissingRoot: If no GeneratedRoot exists.
        """
        validate_source_tree(source)
        if generated is not None:
            ensure_acyclic(generated)
        root = find_root(generated)
        if root is None:
            raise MissingRoot("Generated graph has no GeneratedRoot")

        view = _GraphView(root)
        plan = MutationPlan()

        matched = self._match(source, view)
        self._plan_deletes(view, matched, plan)
        entries, visited = self._plan_tree(source, view, matched, plan)
        self._plan_reorders(visited, entries, plan)

        logger.info(f"Diff complete: {plan.summary()}")
        return plan

    def _walk_source(
        self, node: SourceNode, excluded: set[MenuPath]
    ) -> Iterator[tuple[SourceNode, SourceNode]]:
        """Yield (parent, child) pairs in pre-order, skipping excluded subtrees."""
        for child in node.children:
            if child.path in excluded:
                logger.debug(f"Skipping excluded source path {format_path(child.path)}")
                continue
            yield node, child
            yield from self._walk_source(child, excluded)

    def _match(self, source: SourceNode, view: _GraphView) -> dict[MenuPath, _Entry]:
        view.root.anchor = ROOT_PATH
        matched = {ROOT_PATH: view.root}
        for _, child in self._walk_source(source, view.excluded_paths):
            entry = view.by_path.get(child.path)
            if entry is not None:
                entry.anchor = child.path
                matched[child.path] = entry
        return matched

    def _plan_deletes(
        self, view: _GraphView, matched: dict[MenuPath, _Entry], plan: MutationPlan
    ) -> None:
        """Delete unmatched engine-owned nodes, rescuing what lives below them."""
        kept = {id(entry) for entry in matched.values()}
        doomed = [entry for entry in view.engine_owned if id(entry) not in kept]
        doomed_ids = {id(entry) for entry in doomed}

        for entry in doomed:
            parent = entry.parent
            assert parent is not None and entry.node is not None
            if id(parent) in doomed_ids:
                continue  # Removed with its ancestor

            index = parent.children.index(entry)
            for offset, survivor in enumerate(self._survivors(entry, doomed_ids)):
                assert survivor.ref.identifier is not None
                plan.add(
                    Reparent(
                        identifier=survivor.ref.identifier,
                        parent=parent.ref,
                        index=index + offset,
                    )
                )
                survivor.move_to(parent, index + offset)
                logger.info(
                    f"Rescuing '{survivor.node.display_name if survivor.node else '?'}' "
                    f"from deleted {format_path(entry.node.original_path)}"
                )

            assert entry.ref.identifier is not None
            plan.add(
                Delete(
                    identifier=entry.ref.identifier,
                    path=entry.node.original_path,
                    display_name=entry.node.display_name,
                )
            )
            entry.detach()
            logger.info(f"Deleting {format_path(entry.node.original_path)}")

    def _survivors(self, entry: _Entry, doomed_ids: set[int]) -> list[_Entry]:
        """Topmost descendants of entry that must outlive its deletion."""
        survivors = []
        for child in entry.children:
            if id(child) in doomed_ids:
                survivors.extend(self._survivors(child, doomed_ids))
            else:
                survivors.append(child)
        return survivors

    def _plan_tree(
        self,
        source: SourceNode,
        view: _GraphView,
        matched: dict[MenuPath, _Entry],
        plan: MutationPlan,
    ) -> tuple[dict[MenuPath, _Entry], list[SourceNode]]:
        """Emit updates, moves and creates in source pre-order."""
        root_node = view.root.node
        assert root_node is not None and root_node.identifier is not None
        if _content_differs(root_node, source):
            plan.add(
                Update(
                    identifier=root_node.identifier,
                    path=ROOT_PATH,
                    display_name=source.display_name,
                    aux_info=source.aux_info,
                )
            )

        entries: dict[MenuPath, _Entry] = {ROOT_PATH: view.root}
        visited = [source]
        for parent_source, child_source in self._walk_source(source, view.excluded_paths):
            parent_entry = entries[parent_source.path]
            entry = matched.get(child_source.path)

            if entry is None:
                entry = _Entry(ref=NodeRef(path=child_source.path), anchor=child_source.path)
                plan.add(
                    Create(
                        parent=parent_entry.ref,
                        path=child_source.path,
                        display_name=child_source.display_name,
                        aux_info=child_source.aux_info,
                        source=child_source,
                    )
                )
                entry.move_to(parent_entry)
            else:
                node = entry.node
                assert node is not None
                if _content_differs(node, child_source):
                    plan.add(
                        Update(
                            identifier=node.identifier,
                            path=child_source.path,
                            display_name=child_source.display_name,
                            aux_info=child_source.aux_info,
                        )
                    )
                if entry.parent is not parent_entry:
                    plan.add(Reparent(identifier=node.identifier, parent=parent_entry.ref))
                    entry.move_to(parent_entry)

            entries[child_source.path] = entry
            visited.append(child_source)

        return entries, visited

    def _plan_reorders(
        self,
        visited: list[SourceNode],
        entries: dict[MenuPath, _Entry],
        plan: MutationPlan,
    ) -> None:
        for source in visited:
            entry = entries[source.path]
            desired = self._desired_order(entry.children, source)
            if any(current is not wanted for current, wanted in zip(entry.children, desired)):
                plan.add(Reorder(parent=entry.ref, order=tuple(child.ref for child in desired)))
                entry.children = desired

    @staticmethod
    def _desired_order(children: list[_Entry], source: SourceNode) -> list[_Entry]:
        """Source-anchored children in source order; the rest keep their slots."""
        rank = {child.path: i for i, child in enumerate(source.children)}
        anchored = iter(
            sorted(
                (child for child in children if child.anchor in rank),
                key=lambda child: rank[child.anchor],  # type: ignore[index]
            )
        )
        return [next(anchored) if child.anchor in rank else child for child in children]


def diff_trees(source: SourceNode, generated: GeneratedNode | None) -> MutationPlan:
    """Convenience wrapper around TreeDiffEngine().diff()."""
    return TreeDiffEngine().diff(source, generated)
