"""Generated graph models, identity and persistence."""

from menusync.graph.models import (
    Classification,
    GeneratedNode,
    NodeContent,
    NodeMetadata,
)
from menusync.graph.analysis import ensure_acyclic, find_cycle, find_node, find_root
from menusync.graph.identity import IdentityCollision, IdentityStore
from menusync.graph.persistence import load_graph, save_graph

__all__ = [
    # Models
    "Classification",
    "GeneratedNode",
    "NodeContent",
    "NodeMetadata",
    # Analysis
    "ensure_acyclic",
    "find_cycle",
    "find_node",
    "find_root",
    # Identity
    "IdentityCollision",
    "IdentityStore",
    # Persistence
    "save_graph",
    "load_graph",
]
