"""User action endpoints."""

from fastapi import APIRouter, Depends, HTTPException, status

from menusync.api.deps import get_host, get_settings, persist_host
from menusync.api.schemas import NodeOut
from menusync.config import Config
from menusync.errors import InvalidTransition, NodeNotFound
from menusync.host.memory import InMemoryHostGraph
from menusync.sync.markers import mark_excluded, mark_included


router = APIRouter(prefix="/api/nodes", tags=["nodes"])


@router.post("/{identifier}/exclude", response_model=NodeOut)
async def exclude_node(
    identifier: str,
    host: InMemoryHostGraph = Depends(get_host),
    settings: Config = Depends(get_settings),
) -> NodeOut:
    """Exclude a generated node from future passes."""
    try:
        node = mark_excluded(host, identifier)
    except NodeNotFound:
        raise HTTPException(status_code=404, detail="Node not found")
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    persist_host(host, settings)
    return NodeOut.from_node(node)


@router.post("/{identifier}/include", response_model=NodeOut)
async def include_node(
    identifier: str,
    host: InMemoryHostGraph = Depends(get_host),
    settings: Config = Depends(get_settings),
) -> NodeOut:
    """Hand an excluded node back to the engine."""
    try:
        node = mark_included(host, identifier)
    except NodeNotFound:
        raise HTTPException(status_code=404, detail="Node not found")
    except InvalidTransition as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    persist_host(host, settings)
    return NodeOut.from_node(node)
