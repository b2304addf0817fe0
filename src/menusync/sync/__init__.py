"""Synchronization: diffing, plan application and user actions."""

from menusync.sync.plan import (
    Create,
    Delete,
    Mutation,
    MutationKind,
    MutationPlan,
    NodeRef,
    Reorder,
    Reparent,
    Update,
)
from menusync.sync.diff import TreeDiffEngine, diff_trees
from menusync.sync.driver import RegenerationDriver, SyncReport, SyncState, graph_lock
from menusync.sync.markers import mark_excluded, mark_included
from menusync.sync.provenance import refresh_full_paths, relative_menu_path

__all__ = [
    # Plan
    "Create",
    "Delete",
    "Mutation",
    "MutationKind",
    "MutationPlan",
    "NodeRef",
    "Reorder",
    "Reparent",
    "Update",
    # Engine
    "TreeDiffEngine",
    "diff_trees",
    # Driver
    "RegenerationDriver",
    "SyncReport",
    "SyncState",
    "graph_lock",
    # User actions
    "mark_excluded",
    "mark_included",
    # Provenance
    "refresh_full_paths",
    "relative_menu_path",
]
