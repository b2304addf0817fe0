"""Generated graph endpoints."""

from fastapi import APIRouter, Depends

from menusync.api.deps import get_host
from menusync.api.schemas import GraphResponse, NodeOut
from menusync.host.memory import InMemoryHostGraph


router = APIRouter(prefix="/api/graph", tags=["graph"])


@router.get("", response_model=GraphResponse)
async def get_graph(host: InMemoryHostGraph = Depends(get_host)) -> GraphResponse:
    """Return the current generated graph."""
    root = host.load_generated_tree()
    if root is None:
        return GraphResponse(root=None, node_count=0)
    return GraphResponse(root=NodeOut.from_node(root), node_count=len(host.list_all_identifiers()))
