"""Mutation plan produced by the diff engine and applied by the driver."""

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, ClassVar, Iterator

from menusync.graph.models import NodeContent
from menusync.source.models import MenuPath, SourceNode, format_path


class MutationKind(str, Enum):
    """Kinds of mutation, in the order a plan lists them."""

    REPARENT = "reparent"
    DELETE = "delete"
    UPDATE = "update"
    CREATE = "create"
    REORDER = "reorder"


@dataclass(frozen=True)
class NodeRef:
    """Reference to a node: existing ones by identifier, planned ones by path."""

    identifier: str | None = None
    path: MenuPath | None = None

    def __post_init__(self) -> None:
        if (self.identifier is None) == (self.path is None):
            raise ValueError("NodeRef needs exactly one of identifier or path")

    def describe(self) -> str:
        if self.identifier is not None:
            return self.identifier
        return f"path:{format_path(self.path)}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "identifier": self.identifier,
            "path": list(self.path) if self.path is not None else None,
        }


def _plain(value: Any) -> Any:
    if isinstance(value, NodeRef):
        return value.to_dict()
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    return value


class Mutation:
    """Base class for plan entries."""

    kind: ClassVar[MutationKind]

    def describe(self) -> str:
        raise NotImplementedError

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"kind": self.kind.value}
        for f in fields(self):  # type: ignore[arg-type]
            if f.repr:
                data[f.name] = _plain(getattr(self, f.name))
        return data


@dataclass(frozen=True)
class Create(Mutation):
    """Instantiate one Generated node for a source node.

    source carries the full SourceNode subtree; each descendant still gets
    its own Create later in the plan.
    """

    kind: ClassVar[MutationKind] = MutationKind.CREATE

    parent: NodeRef
    path: MenuPath
    display_name: str
    aux_info: str | None = None
    source: SourceNode | None = field(default=None, compare=False, repr=False)

    @property
    def content(self) -> NodeContent:
        return NodeContent(display_name=self.display_name, aux_info=self.aux_info)

    def describe(self) -> str:
        return f"create {format_path(self.path)} under {self.parent.describe()}"


@dataclass(frozen=True)
class Update(Mutation):
    """Refresh content and provenance of a matched node."""

    kind: ClassVar[MutationKind] = MutationKind.UPDATE

    identifier: str
    path: MenuPath
    display_name: str
    aux_info: str | None = None

    @property
    def content(self) -> NodeContent:
        return NodeContent(display_name=self.display_name, aux_info=self.aux_info)

    def describe(self) -> str:
        return f"update {format_path(self.path)} ({self.identifier})"


@dataclass(frozen=True)
class Delete(Mutation):
    """Destroy a Generated node whose source path disappeared."""

    kind: ClassVar[MutationKind] = MutationKind.DELETE

    identifier: str
    path: MenuPath | None
    display_name: str = ""

    def describe(self) -> str:
        return f"delete {format_path(self.path)} ({self.identifier})"


@dataclass(frozen=True)
class Reparent(Mutation):
    """Move a node under another parent (append when index is None)."""

    kind: ClassVar[MutationKind] = MutationKind.REPARENT

    identifier: str
    parent: NodeRef
    index: int | None = None

    def describe(self) -> str:
        where = f" at {self.index}" if self.index is not None else ""
        return f"reparent {self.identifier} under {self.parent.describe()}{where}"


@dataclass(frozen=True)
class Reorder(Mutation):
    """Set the full child order of a parent."""

    kind: ClassVar[MutationKind] = MutationKind.REORDER

    parent: NodeRef
    order: tuple[NodeRef, ...]

    def describe(self) -> str:
        return f"reorder {len(self.order)} children of {self.parent.describe()}"


@dataclass
class MutationPlan:
    """Ordered mutations, safe to apply in listed order."""

    mutations: list[Mutation] = field(default_factory=list)

    def add(self, mutation: Mutation) -> None:
        self.mutations.append(mutation)

    def __iter__(self) -> Iterator[Mutation]:
        return iter(self.mutations)

    def __len__(self) -> int:
        return len(self.mutations)

    def __getitem__(self, index: int) -> Mutation:
        return self.mutations[index]

    @property
    def is_empty(self) -> bool:
        return not self.mutations

    def of_kind(self, kind: MutationKind) -> list[Mutation]:
        return [m for m in self.mutations if m.kind is kind]

    def summary(self) -> dict[str, int]:
        """Count mutations per kind."""
        counts = {kind.value: 0 for kind in MutationKind}
        for mutation in self.mutations:
            counts[mutation.kind.value] += 1
        return counts

    def to_dicts(self) -> list[dict[str, Any]]:
        return [mutation.to_dict() for mutation in self.mutations]
