"""Error taxonomy for synchronization passes.

Fatal errors (InvalidSourceTree, CycleDetected) abort a pass before anything
is applied. MissingRoot is recovered by the driver unless the host refuses
(RootRecoveryFailed). MutationApplyFailure stops a pass part way and records
how far the plan got.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from menusync.sync.plan import Mutation


class SyncError(Exception):
    """Base class for all synchronization errors."""

    pass


class InvalidSourceTree(SyncError):
    """Raised when the source tree breaks the provider contract."""

    def __init__(self, message: str, path: tuple[str, ...] | None = None) -> None:
        super().__init__(message)
        self.path = path


class CycleDetected(SyncError):
    """Raised when the generated graph's links form a cycle."""

    def __init__(self, message: str, cycle: list[Any] | None = None) -> None:
        super().__init__(message)
        self.cycle = cycle or []


class MissingRoot(SyncError):
    """Raised when no GeneratedRoot exists in the generated graph."""

    pass


class RootRecoveryFailed(SyncError):
    """Raised when a missing GeneratedRoot cannot be recreated."""

    pass


class MutationApplyFailure(SyncError):
    """Raised when the host rejects a mutation.

    Attributes:
        index: Position of the failed mutation in the plan.
        mutation: The mutation the host rejected.
        reason: Host-supplied reason.
    """

    def __init__(self, index: int, mutation: "Mutation", reason: str) -> None:
        super().__init__(f"Mutation #{index} ({mutation.describe()}) failed: {reason}")
        self.index = index
        self.mutation = mutation
        self.reason = reason


class InvalidTransition(SyncError):
    """Raised when a user action asks for a forbidden classification change."""

    pass


class NodeNotFound(SyncError):
    """Raised when an identifier does not resolve to a generated node."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"No node with identifier {identifier!r}")
        self.identifier = identifier


class SyncInProgress(SyncError):
    """Raised when a pass is started while another holds the graph lock."""

    pass
