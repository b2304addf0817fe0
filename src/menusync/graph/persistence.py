"""Persist the generated graph to JSON files.

The persisted provenance (original_path, aux_info, classification) is what
lets identity and classification survive the host's own save and reload.
"""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from menusync.constants import GRAPH_FILE_NAME, GRAPH_METADATA_FILE_NAME
from menusync.graph.analysis import count_by_classification
from menusync.graph.models import Classification, GeneratedNode, NodeMetadata


def node_to_dict(node: GeneratedNode) -> dict[str, Any]:
    """Serialize a node and its subtree."""
    original_path = node.metadata.original_path
    return {
        "identifier": node.identifier,
        "classification": node.classification.value,
        "display_name": node.display_name,
        "original_path": list(original_path) if original_path is not None else None,
        "aux_info": node.metadata.aux_info,
        "full_path": node.metadata.full_path,
        "children": [node_to_dict(child) for child in node.children],
    }


def node_from_dict(data: dict[str, Any]) -> GeneratedNode:
    """Rebuild a node and its subtree, restoring parent back-references."""
    original_path = data.get("original_path")
    return GeneratedNode(
        identifier=data.get("identifier") or "",
        classification=Classification(data["classification"]),
        display_name=data.get("display_name", ""),
        metadata=NodeMetadata(
            original_path=tuple(original_path) if original_path is not None else None,
            aux_info=data.get("aux_info"),
            full_path=data.get("full_path"),
        ),
        children=[node_from_dict(child) for child in data.get("children", [])],
    )


def save_graph(root: GeneratedNode | None, output_dir: Path) -> None:
    """Save the generated graph to JSON files.

    Creates:
        - graph.json: The nested node tree (null when there is no root)
        - metadata.json: Save timestamp and per-classification counts

    Args:
        root: Root of the generated graph, or None for an empty graph.
        output_dir: Directory to write files to (e.g., .menusync/).
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    tree = node_to_dict(root) if root is not None else None
    with open(output_dir / GRAPH_FILE_NAME, "w", encoding="utf-8") as f:
        json.dump(tree, f, indent=2, ensure_ascii=False)

    counts = count_by_classification(root) if root is not None else {}
    metadata = {
        "saved_at": datetime.now(timezone.utc).isoformat(),
        "node_count": sum(counts.values()),
        "classifications": {key.value: value for key, value in counts.items()},
    }
    with open(output_dir / GRAPH_METADATA_FILE_NAME, "w", encoding="utf-8") as f:
        json.dump(metadata, f, indent=2)


def load_graph(input_dir: Path) -> GeneratedNode | None:
    """Load the generated graph from JSON files.

    Returns:
        Reconstructed root node, or None if nothing was saved yet.
    """
    graph_file = Path(input_dir) / GRAPH_FILE_NAME
    if not graph_file.exists():
        return None

    with open(graph_file, encoding="utf-8") as f:
        tree = json.load(f)

    if tree is None:
        return None
    return node_from_dict(tree)
