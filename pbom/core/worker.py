import asyncio
import logging
import time
from typing import Optional, Set

from pbom.core.metrics import (
    enrichment_duration_seconds,
    enrichment_in_progress,
    enrichment_pipelines_total,
)
from pbom.models.webhook import WorkflowRunEvent
from pbom.services.enrichment.service import EnrichmentService

logger = logging.getLogger(__name__)


class EnrichmentDispatcher:
    """
    Runs one background enrichment task per accepted webhook event.

    Tasks are detached from the request that created them: they keep running
    after the response is sent and are bounded only by ``timeout``. The
    ``shutdown`` event is shared with the skeleton resolver so pending retry
    waits end as soon as the application stops.
    """

    def __init__(
        self,
        enricher: EnrichmentService,
        timeout: float = 300.0,
        shutdown: Optional[asyncio.Event] = None,
    ):
        self.enricher = enricher
        self.timeout = timeout
        self.shutdown = shutdown or asyncio.Event()
        self.tasks: Set[asyncio.Task] = set()

    @property
    def in_flight(self) -> int:
        return len(self.tasks)

    def dispatch(self, event: WorkflowRunEvent) -> asyncio.Task:
        """Start enrichment for ``event`` and return immediately."""
        task = asyncio.create_task(self._run(event), name=f"enrich-{event.workflow_run.id}")
        # The loop only keeps weak references to tasks
        self.tasks.add(task)
        task.add_done_callback(self.tasks.discard)
        return task

    async def _run(self, event: WorkflowRunEvent) -> None:
        prefix = event.log_prefix()
        enrichment_in_progress.inc()
        start_time = time.time()
        try:
            path = await asyncio.wait_for(self.enricher.enrich(event), timeout=self.timeout)
            enrichment_pipelines_total.labels(outcome="stored" if path else "store_failed").inc()
        except asyncio.TimeoutError:
            logger.error(f"{prefix} enrichment timed out after {self.timeout:.0f}s")
            enrichment_pipelines_total.labels(outcome="timeout").inc()
        except asyncio.CancelledError:
            logger.info(f"{prefix} enrichment cancelled")
            raise
        except Exception as e:
            logger.exception(f"{prefix} enrichment crashed: {e}")
            enrichment_pipelines_total.labels(outcome="error").inc()
        finally:
            enrichment_in_progress.dec()
            enrichment_duration_seconds.observe(time.time() - start_time)

    async def stop(self, grace_period: float = 10.0) -> None:
        """Abort retry waits, give running pipelines ``grace_period`` seconds, cancel the rest."""
        self.shutdown.set()
        if not self.tasks:
            return

        logger.info(f"Waiting up to {grace_period:.0f}s for {len(self.tasks)} enrichment task(s)...")
        _, pending = await asyncio.wait(set(self.tasks), timeout=grace_period)
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
            logger.warning(f"Cancelled {len(pending)} unfinished enrichment task(s)")
