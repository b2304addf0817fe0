"""Track where generated nodes currently live.

Users can drag generated or excluded nodes around inside the host. The
current location is recorded in metadata.full_path for debugging and
migrations; original_path, the matching key, is never touched here.
"""

import logging

from menusync.constants import PATH_SEPARATOR
from menusync.graph.models import Classification, GeneratedNode

logger = logging.getLogger(__name__)


def relative_menu_path(node: GeneratedNode) -> tuple[str, ...] | None:
    """Display names from just below the nearest GeneratedRoot down to node.

    Returns:
        Tuple of names (empty for the root itself), or None when node has no
        GeneratedRoot ancestor.
    """
    if node.classification is Classification.GENERATED_ROOT:
        return ()

    parts = [node.display_name]
    for ancestor in node.ancestors():
        if ancestor.classification is Classification.GENERATED_ROOT:
            return tuple(reversed(parts))
        parts.append(ancestor.display_name)
    return None


def compute_full_path(node: GeneratedNode) -> str | None:
    """Current location as "<root name>/<a>/<b>", or None if detached from a root."""
    relative = relative_menu_path(node)
    if relative is None:
        return None
    if node.classification is Classification.GENERATED_ROOT:
        return node.display_name

    root = next(
        ancestor
        for ancestor in node.ancestors()
        if ancestor.classification is Classification.GENERATED_ROOT
    )
    return PATH_SEPARATOR.join((root.display_name, *relative))


def refresh_full_paths(root: GeneratedNode) -> int:
    """Recompute metadata.full_path for every node carrying provenance.

    Returns:
        Number of nodes whose full_path changed.
    """
    changed = 0
    for node in root.walk():
        if not node.classification.has_provenance:
            continue
        full_path = compute_full_path(node)
        if node.metadata.full_path != full_path:
            node.metadata.full_path = full_path
            changed += 1

    if changed:
        logger.info(f"Refreshed full path of {changed} node(s)")
    return changed
