"""Synchronization endpoints."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from menusync.api.deps import get_driver, get_host, get_settings, persist_host
from menusync.api.schemas import PlanResponse, SyncReportResponse
from menusync.config import Config
from menusync.errors import CycleDetected, InvalidSourceTree, MissingRoot, SyncInProgress
from menusync.host.memory import InMemoryHostGraph
from menusync.sync.driver import RegenerationDriver
from menusync.sync.plan import MutationPlan


router = APIRouter(prefix="/api/sync", tags=["sync"])

logger = logging.getLogger(__name__)


@router.get("/plan", response_model=PlanResponse)
async def preview_plan(driver: RegenerationDriver = Depends(get_driver)) -> PlanResponse:
    """Compute the mutation plan without applying it.

    A graph without a GeneratedRoot returns an empty plan; the root is only
    created by a real pass.
    """
    try:
        plan = driver.plan()
    except MissingRoot:
        plan = MutationPlan()
    except (InvalidSourceTree, CycleDetected) as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SyncInProgress as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return PlanResponse.from_plan(plan)


@router.post("", response_model=SyncReportResponse)
async def run_sync(
    driver: RegenerationDriver = Depends(get_driver),
    host: InMemoryHostGraph = Depends(get_host),
    settings: Config = Depends(get_settings),
) -> SyncReportResponse:
    """Run a synchronization pass and persist the resulting graph.

    Failed passes still return 200 with the report: a partial application is
    a real state of the graph and is saved as such.
    """
    try:
        report = driver.run()
    except SyncInProgress as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))

    persist_host(host, settings)
    logger.info(f"Persisted generated graph to {settings.graph_path}")
    return SyncReportResponse.from_report(report)
