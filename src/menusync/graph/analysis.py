"""Structural checks on the generated graph."""

import networkx as nx

from menusync.errors import CycleDetected
from menusync.graph.models import Classification, GeneratedNode


def build_link_graphs(root: GeneratedNode) -> tuple[nx.DiGraph, nx.DiGraph]:
    """Build directed graphs of the children links and parent back-references.

    Nodes are keyed by object identity so that host-cloned identifiers do not
    merge distinct nodes. Each node's children are expanded only once, which
    keeps the walk finite even when the links loop.

    Returns:
        Tuple of (child_links, parent_links), each with an ``identifier``
        attribute on every node.
    """
    child_links = nx.DiGraph()
    parent_links = nx.DiGraph()

    expanded: set[int] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        key = id(node)
        if key in expanded:
            continue
        expanded.add(key)
        child_links.add_node(key, identifier=node.identifier)
        parent_links.add_node(key, identifier=node.identifier)

        parent = node.parent
        if parent is not None:
            parent_links.add_node(id(parent), identifier=parent.identifier)
            parent_links.add_edge(key, id(parent))
            # Follow parent refs upward too; a parent-only loop never shows
            # up among the children links.
            stack.append(parent)

        for child in node.children:
            child_links.add_node(id(child), identifier=child.identifier)
            child_links.add_edge(key, id(child))
            stack.append(child)

    return child_links, parent_links


def find_cycle(root: GeneratedNode) -> list[str] | None:
    """Return the identifiers along a link cycle reachable from root, if any."""
    for graph in build_link_graphs(root):
        try:
            edges = nx.find_cycle(graph)
        except nx.NetworkXNoCycle:
            continue
        return [graph.nodes[source]["identifier"] for source, _ in edges]
    return None


def ensure_acyclic(root: GeneratedNode) -> None:
    """Raise CycleDetected if the generated graph's links loop."""
    cycle = find_cycle(root)
    if cycle is not None:
        raise CycleDetected(f"Generated graph links form a cycle: {' -> '.join(cycle)}", cycle)


def find_root(node: GeneratedNode | None) -> GeneratedNode | None:
    """Return the first GeneratedRoot at or below node in pre-order."""
    if node is None:
        return None
    for candidate in node.walk():
        if candidate.classification is Classification.GENERATED_ROOT:
            return candidate
    return None


def find_node(root: GeneratedNode | None, identifier: str) -> GeneratedNode | None:
    """Return the first node in pre-order with the given identifier."""
    if root is None:
        return None
    for node in root.walk():
        if node.identifier == identifier:
            return node
    return None


def count_by_classification(root: GeneratedNode) -> dict[Classification, int]:
    counts = {classification: 0 for classification in Classification}
    for node in root.walk():
        counts[node.classification] += 1
    return counts
