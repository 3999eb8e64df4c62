from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from pbom.api import deps
from pbom.core.stats import EventStats

router = APIRouter()


@router.get("/health", summary="Liveness Probe", response_class=PlainTextResponse)
async def health():
    """Always ``ok`` while the process is serving requests."""
    return PlainTextResponse("ok")


@router.get("/status", summary="Webhook Status")
async def status(stats: EventStats = Depends(deps.get_event_stats)):
    """
    Number of accepted ``workflow_run.completed`` events and, once one has
    arrived, the time of the latest (RFC 3339).
    """
    return stats.snapshot()
