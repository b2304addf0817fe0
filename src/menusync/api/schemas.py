"""Pydantic schemas for API requests and responses."""

from typing import Any

from pydantic import BaseModel, Field

from menusync.graph.models import Classification, GeneratedNode
from menusync.sync.driver import SyncReport
from menusync.sync.plan import Mutation, MutationPlan


class NodeOut(BaseModel):
    """A generated-graph node with its subtree."""

    identifier: str
    classification: Classification
    display_name: str
    original_path: list[str] | None = None
    aux_info: str | None = None
    full_path: str | None = None
    children: list["NodeOut"] = Field(default_factory=list)

    @classmethod
    def from_node(cls, node: GeneratedNode) -> "NodeOut":
        original_path = node.metadata.original_path
        return cls(
            identifier=node.identifier,
            classification=node.classification,
            display_name=node.display_name,
            original_path=list(original_path) if original_path is not None else None,
            aux_info=node.metadata.aux_info,
            full_path=node.metadata.full_path,
            children=[cls.from_node(child) for child in node.children],
        )


NodeOut.model_rebuild()


class GraphResponse(BaseModel):
    """The current generated graph."""

    root: NodeOut | None
    node_count: int


class MutationOut(BaseModel):
    """One entry of a mutation plan."""

    kind: str
    description: str
    details: dict[str, Any]

    @classmethod
    def from_mutation(cls, mutation: Mutation) -> "MutationOut":
        return cls(
            kind=mutation.kind.value,
            description=mutation.describe(),
            details=mutation.to_dict(),
        )


class PlanResponse(BaseModel):
    """Dry-run plan."""

    mutations: list[MutationOut]
    summary: dict[str, int]

    @classmethod
    def from_plan(cls, plan: MutationPlan) -> "PlanResponse":
        return cls(
            mutations=[MutationOut.from_mutation(m) for m in plan],
            summary=plan.summary(),
        )


class SyncReportResponse(BaseModel):
    """Outcome of a synchronization pass."""

    state: str
    ok: bool
    applied: int
    total: int
    failed_index: int | None = None
    error: str | None = None
    root_created: bool = False
    repaired: int = 0
    transitions: list[str] = Field(default_factory=list)
    mutations: list[MutationOut] = Field(default_factory=list)

    @classmethod
    def from_report(cls, report: SyncReport) -> "SyncReportResponse":
        return cls(
            state=report.state.value,
            ok=report.ok,
            applied=report.applied,
            total=report.total,
            failed_index=report.failed_index,
            error=str(report.error) if report.error is not None else None,
            root_created=report.root_created,
            repaired=len(report.repaired),
            transitions=[state.value for state in report.transitions],
            mutations=[MutationOut.from_mutation(m) for m in report.plan or []],
        )
