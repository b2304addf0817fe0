"""FastAPI application entry point."""

import logging

from fastapi import FastAPI

# Logging constants defined here (not in constants/) because logging.basicConfig()
# must run before any module imports that might create loggers.
LOG_FORMAT = "%(asctime)s %(levelname)-8s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(
    format=LOG_FORMAT,
    datefmt=DATE_FORMAT,
    level=logging.INFO,
)

from menusync import __version__  # noqa: E402
from menusync.api.routers import graph, nodes, sync  # noqa: E402

logger = logging.getLogger(__name__)


app = FastAPI(
    title="menusync",
    description="Identity-preserving synchronization of generated menu trees",
    version=__version__,
)


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


app.include_router(graph.router)
app.include_router(sync.router)
app.include_router(nodes.router)
