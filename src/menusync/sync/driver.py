"""Regeneration driver: one full synchronization pass.

States run Idle -> Loading -> Diffing -> Applying -> Repairing -> Idle, or
end in Failed. Fatal errors leave the graph untouched; a host failure while
applying leaves the mutations before it in place and reports where it stopped.
"""

import logging
import threading
import weakref
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

from menusync.constants import DEFAULT_ROOT_DISPLAY_NAME, ROOT_PATH
from menusync.errors import (
    InvalidSourceTree,
    MissingRoot,
    MutationApplyFailure,
    RootRecoveryFailed,
    SyncError,
    SyncInProgress,
)
from menusync.graph.analysis import ensure_acyclic, find_root
from menusync.graph.identity import IdentityStore
from menusync.graph.models import Classification, GeneratedNode, NodeContent
from menusync.host.base import HostGraph
from menusync.source.loader import SourceProvider, validate_source_tree
from menusync.source.models import MenuPath, SourceNode
from menusync.sync.diff import TreeDiffEngine
from menusync.sync.plan import (
    Create,
    Delete,
    Mutation,
    MutationPlan,
    NodeRef,
    Reorder,
    Reparent,
    Update,
)
from menusync.sync.provenance import refresh_full_paths

logger = logging.getLogger(__name__)


class SyncState(Enum):
    """States of a synchronization pass."""

    IDLE = "idle"
    LOADING = "loading"
    DIFFING = "diffing"
    APPLYING = "applying"
    REPAIRING = "repairing"
    FAILED = "failed"


@dataclass
class SyncReport:
    """Outcome of a pass.

    Attributes:
        state: IDLE on success, FAILED otherwise.
        plan: The plan that was (partly) applied, if diffing got that far.
        applied: Number of mutations committed to the host.
        failed_index: Plan index of the mutation the host rejected.
        error: The error that ended the pass, if any.
        repaired: (old, new) identifier rewrites from identity repair.
        root_created: Whether a missing GeneratedRoot was recreated.
        transitions: States entered, in order.
    """

    state: SyncState = SyncState.IDLE
    plan: MutationPlan | None = None
    applied: int = 0
    failed_index: int | None = None
    error: SyncError | None = None
    repaired: list[tuple[str, str]] = field(default_factory=list)
    root_created: bool = False
    transitions: list[SyncState] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.state is SyncState.IDLE and self.error is None

    @property
    def total(self) -> int:
        return len(self.plan) if self.plan is not None else 0

    @property
    def committed(self) -> list[Mutation]:
        """Mutations already applied to the host."""
        if self.plan is None:
            return []
        return self.plan.mutations[: self.applied]


_graph_locks: "weakref.WeakKeyDictionary[object, threading.Lock]" = weakref.WeakKeyDictionary()
_graph_locks_guard = threading.Lock()


@contextmanager
def graph_lock(host: HostGraph) -> Iterator[None]:
    """Hold the exclusive pass lock for a host graph.

    Raises:
        SyncInProgress: If another pass holds the lock.
    """
    with _graph_locks_guard:
        lock = _graph_locks.get(host)
        if lock is None:
            lock = threading.Lock()
            _graph_locks[host] = lock
    if not lock.acquire(blocking=False):
        raise SyncInProgress("A synchronization pass is already running on this graph")
    try:
        yield
    finally:
        lock.release()


class RegenerationDriver:
    """Runs synchronization passes of one source against one host graph."""

    def __init__(
        self,
        source: SourceProvider,
        host: HostGraph,
        identity: IdentityStore | None = None,
        engine: TreeDiffEngine | None = None,
        root_display_name: str = DEFAULT_ROOT_DISPLAY_NAME,
        repair_before_diff: bool = True,
        track_full_paths: bool = True,
    ) -> None:
        self.source = source
        self.host = host
        self.identity = identity or IdentityStore()
        self.engine = engine or TreeDiffEngine()
        self.root_display_name = root_display_name
        self.repair_before_diff = repair_before_diff
        self.track_full_paths = track_full_paths
        self.state = SyncState.IDLE

    def _enter(self, state: SyncState, report: SyncReport) -> None:
        logger.info(f"Sync state: {self.state.value} -> {state.value}")
        self.state = state
        report.transitions.append(state)

    def run(self) -> SyncReport:
        """Run one full pass and report how far it got.

        Raises:
            SyncInProgress: If a pass is already running on the same graph.
        """
        with graph_lock(self.host):
            report = SyncReport()
            try:
                self._enter(SyncState.LOADING, report)
                source, generated = self._load(report)

                self._enter(SyncState.DIFFING, report)
                report.plan = self._diff(source, generated, report)

                self._enter(SyncState.APPLYING, report)
                self._apply(report.plan, report)

                self._enter(SyncState.REPAIRING, report)
                self._repair(report)
            except SyncError as e:
                report.error = e
                if isinstance(e, MutationApplyFailure):
                    report.failed_index = e.index
                logger.error(f"Sync failed during {self.state.value}: {e}")
                self._enter(SyncState.FAILED, report)
                report.state = SyncState.FAILED
                return report

            self._enter(SyncState.IDLE, report)
            report.state = SyncState.IDLE
            logger.info(f"Sync complete: {report.applied} mutation(s) applied")
            return report

    def plan(self) -> MutationPlan:
        """Compute the plan for the current state without applying it.

        Identity collisions are not repaired and a missing root is reported as
        MissingRoot rather than recovered, so the host stays untouched.
        """
        with graph_lock(self.host):
            source = self._load_source()
            return self.engine.diff(source, self.host.load_generated_tree())

    def _load_source(self) -> SourceNode:
        try:
            source = self.source.load_tree()
        except SyncError:
            raise
        except Exception as e:
            raise InvalidSourceTree(f"Source provider failed: {e}") from e
        validate_source_tree(source)
        return source

    def _load(self, report: SyncReport) -> tuple[SourceNode, GeneratedNode | None]:
        source = self._load_source()

        generated = self.host.load_generated_tree()
        if generated is not None:
            ensure_acyclic(generated)
            collisions = self.identity.find_collisions(generated)
            if collisions and self.repair_before_diff:
                logger.warning(
                    f"Found {len(collisions)} identifier collision(s); repairing before diff"
                )
                report.repaired.extend(self.identity.repair(generated))
        return source, generated

    def _diff(
        self, source: SourceNode, generated: GeneratedNode | None, report: SyncReport
    ) -> MutationPlan:
        try:
            return self.engine.diff(source, generated)
        except MissingRoot:
            logger.warning("No GeneratedRoot found; creating one")
            self._create_root(source, generated)
            report.root_created = True
            return self.engine.diff(source, self.host.load_generated_tree())

    def _create_root(self, source: SourceNode, generated: GeneratedNode | None) -> None:
        """Recreate the GeneratedRoot at the top of the host tree.

        Raises:
            RootRecoveryFailed: If the top-level node is Excluded or the host
                refuses to create the node.
        """
        if generated is not None and generated.classification is Classification.EXCLUDED:
            # Excluded subtrees are never written to, so there is nowhere to attach.
            raise RootRecoveryFailed(
                f"Cannot recreate the root under excluded node '{generated.display_name}'"
                f" ({generated.identifier}); include it again or remove it"
            )
        content = NodeContent(
            display_name=source.display_name or self.root_display_name,
            aux_info=source.aux_info,
        )
        # A tree without a root is either empty or a host container.
        parent = generated.identifier if generated is not None else None
        try:
            self.host.create_node(parent, Classification.GENERATED_ROOT, ROOT_PATH, content)
        except Exception as e:
            raise RootRecoveryFailed(f"Host refused to create the root: {e}") from e

    def _apply(self, plan: MutationPlan, report: SyncReport) -> None:
        created: dict[MenuPath, str] = {}
        for index, mutation in enumerate(plan):
            try:
                self._apply_one(mutation, created)
            except Exception as e:
                raise MutationApplyFailure(index, mutation, str(e)) from e
            report.applied = index + 1

    def _resolve(self, ref: NodeRef, created: dict[MenuPath, str]) -> str:
        if ref.identifier is not None:
            return ref.identifier
        assert ref.path is not None
        return created[ref.path]

    def _apply_one(self, mutation: Mutation, created: dict[MenuPath, str]) -> None:
        logger.debug(f"Applying {mutation.describe()}")
        if isinstance(mutation, Create):
            created[mutation.path] = self.host.create_node(
                self._resolve(mutation.parent, created),
                Classification.GENERATED,
                mutation.path,
                mutation.content,
            )
        elif isinstance(mutation, Update):
            self.host.set_content(mutation.identifier, mutation.path, mutation.content)
        elif isinstance(mutation, Delete):
            self.host.destroy_node(mutation.identifier)
        elif isinstance(mutation, Reparent):
            self.host.reparent_node(
                mutation.identifier, self._resolve(mutation.parent, created), mutation.index
            )
        elif isinstance(mutation, Reorder):
            self.host.reorder_children(
                self._resolve(mutation.parent, created),
                [self._resolve(ref, created) for ref in mutation.order],
            )
        else:
            raise TypeError(f"Unknown mutation type: {type(mutation).__name__}")

    def _repair(self, report: SyncReport) -> None:
        generated = self.host.load_generated_tree()
        report.repaired.extend(self.identity.repair(generated))
        if self.track_full_paths:
            root = find_root(generated)
            if root is not None:
                refresh_full_paths(root)
