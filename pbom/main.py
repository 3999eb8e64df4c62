import asyncio
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from pbom.api import health
from pbom.api.endpoints import webhook
from pbom.core.config import settings
from pbom.core.metrics import APP_VERSION, PrometheusMiddleware, metrics_endpoint
from pbom.core.stats import EventStats
from pbom.core.worker import EnrichmentDispatcher
from pbom.repositories.records import RecordStore
from pbom.services.enrichment.collector import CollectorResolver
from pbom.services.enrichment.service import EnrichmentService
from pbom.services.github import GitHubClient

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    shutdown = asyncio.Event()
    github = GitHubClient(
        settings.GITHUB_TOKEN,
        api_url=settings.GITHUB_API_URL,
        timeout=settings.GITHUB_API_TIMEOUT_SECONDS,
    )
    resolver = CollectorResolver(
        github,
        settings.COLLECTOR_WORKFLOW_NAME,
        deadline=settings.SKELETON_DEADLINE_SECONDS,
        shutdown=shutdown,
    )
    enricher = EnrichmentService(github, RecordStore(settings.PBOM_STORAGE_DIR), resolver)

    app.state.stats = EventStats()
    app.state.dispatcher = EnrichmentDispatcher(
        enricher,
        timeout=settings.ENRICHMENT_TIMEOUT_SECONDS,
        shutdown=shutdown,
    )
    logger.info(f"PBOM webhook listener ready (storage_dir={settings.PBOM_STORAGE_DIR})")

    yield

    logger.info("Shutting down PBOM webhook listener")
    await app.state.dispatcher.stop(settings.SHUTDOWN_GRACE_SECONDS)


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="""
    Receives GitHub `workflow_run.completed` webhooks and enriches the Pipeline Bill of
    Materials (PBOM) of each run with runner, timing, secret and container image data.
    """,
        version=APP_VERSION,
        lifespan=lifespan,
    )
    app.add_middleware(PrometheusMiddleware)
    app.include_router(webhook.router, tags=["webhook"])
    app.include_router(health.router, tags=["health"])
    app.add_route("/metrics", metrics_endpoint, include_in_schema=False)
    return app


app = create_app()


def run() -> None:
    """Console entrypoint: configure logging and serve until SIGINT/SIGTERM."""
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        app,
        host=settings.PBOM_WEBHOOK_HOST,
        port=settings.PBOM_WEBHOOK_PORT,
        log_level=settings.LOG_LEVEL.lower(),
        timeout_graceful_shutdown=int(settings.SHUTDOWN_GRACE_SECONDS),
    )


if __name__ == "__main__":
    run()
