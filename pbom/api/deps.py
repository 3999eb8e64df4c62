from fastapi import Request

from pbom.core.config import settings
from pbom.core.stats import EventStats
from pbom.core.worker import EnrichmentDispatcher


def get_webhook_secret() -> str:
    return settings.PBOM_WEBHOOK_SECRET


def get_max_body_bytes() -> int:
    return settings.MAX_BODY_BYTES


def get_dispatcher(request: Request) -> EnrichmentDispatcher:
    return request.app.state.dispatcher


def get_event_stats(request: Request) -> EventStats:
    return request.app.state.stats
