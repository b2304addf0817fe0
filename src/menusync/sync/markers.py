"""User actions that reclassify generated nodes.

Excluding a node hands it from the engine to the user: synchronization will
neither touch it nor regenerate its source path. Including it again returns
it to the engine with its original_path intact, so the next diff re-matches it.
"""

import logging

from menusync.constants import ROOT_PATH
from menusync.errors import InvalidTransition, NodeNotFound
from menusync.graph.analysis import find_node, find_root
from menusync.graph.models import Classification, GeneratedNode
from menusync.host.base import HostGraph
from menusync.source.models import format_path

logger = logging.getLogger(__name__)


def _require(host: HostGraph, identifier: str) -> tuple[GeneratedNode, GeneratedNode]:
    tree = host.load_generated_tree()
    node = find_node(tree, identifier)
    if tree is None or node is None:
        raise NodeNotFound(identifier)
    return tree, node


def mark_excluded(host: HostGraph, identifier: str) -> GeneratedNode:
    """Exclude a Generated or GeneratedRoot node from synchronization.

    Raises:
        NodeNotFound: If identifier is unknown.
        InvalidTransition: If the node is user-authored.
    """
    _, node = _require(host, identifier)

    if node.classification is Classification.EXCLUDED:
        return node
    if node.classification is Classification.USER_INCLUDED:
        raise InvalidTransition(
            f"'{node.display_name}' is user-authored and was never generated; it cannot be excluded"
        )

    host.set_classification(identifier, Classification.EXCLUDED)
    logger.info(f"Excluded '{node.display_name}' ({format_path(node.original_path)})")
    return node


def mark_included(host: HostGraph, identifier: str) -> GeneratedNode:
    """Return an Excluded node to the engine.

    The node becomes Generated again, or GeneratedRoot if it was the root and
    no other root has been created meanwhile.

    Raises:
        NodeNotFound: If identifier is unknown.
        InvalidTransition: If the node lost its original_path, or a root
            would be restored while another root exists.
    """
    tree, node = _require(host, identifier)

    if node.classification is not Classification.EXCLUDED:
        return node
    if node.original_path is None:
        raise InvalidTransition(
            f"'{node.display_name}' has no original path and cannot re-match the source"
        )

    target = Classification.GENERATED
    if node.original_path == ROOT_PATH:
        if find_root(tree) is not None:
            raise InvalidTransition(
                f"Cannot restore '{node.display_name}' as root: the graph already has one"
            )
        target = Classification.GENERATED_ROOT

    host.set_classification(identifier, target)
    logger.info(f"Included '{node.display_name}' ({format_path(node.original_path)}) again")
    return node
