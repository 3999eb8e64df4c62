"""
Collector run correlation.

The "PBOM Collector" workflow runs alongside a repository's own CI for the
same commit and uploads a skeleton record as ``pbom-<run id>``. When the
developer CI finishes first, the collector run may still be in progress, so
resolution polls on a fixed schedule under one shared deadline.
"""

import asyncio
import logging
from typing import Optional, Sequence

from pbom.core.constants import (
    COLLECTOR_CONCLUSION_SUCCESS,
    SKELETON_ARTIFACT_PREFIX,
    SKELETON_RETRY_DELAYS,
)
from pbom.models.github_api import WorkflowRun
from pbom.models.record import PipelineRecord
from pbom.services.enrichment.archive import extract_json
from pbom.services.github import GitHubClient

logger = logging.getLogger(__name__)


class SkeletonResolutionError(Exception):
    """Raised when no skeleton record could be obtained."""


class CollectorNotFoundError(SkeletonResolutionError):
    """Raised when no successful collector run exists for a commit (yet)."""


class CollectorResolver:
    """
    Locates the collector run for a commit and decodes its skeleton record.

    Attempts run immediately and then after each delay of the schedule. A
    failed attempt is retried until the schedule runs out; only the last
    error is raised. The whole resolution is bounded by ``deadline`` seconds,
    and a set ``shutdown`` event aborts any pending wait.
    """

    def __init__(
        self,
        github: GitHubClient,
        collector_name: str,
        delays: Sequence[float] = SKELETON_RETRY_DELAYS,
        deadline: float = 120.0,
        shutdown: Optional[asyncio.Event] = None,
    ):
        self.github = github
        self.collector_name = collector_name
        self.delays = tuple(delays)
        self.deadline = deadline
        self.shutdown = shutdown

    async def find_collector_run(self, owner: str, repo: str, head_sha: str) -> WorkflowRun:
        """Return the first successful collector run for ``head_sha``."""
        runs = await self.github.list_runs_by_commit(owner, repo, head_sha)
        for run in runs:
            if run.name == self.collector_name and run.conclusion == COLLECTOR_CONCLUSION_SUCCESS:
                return run
        raise CollectorNotFoundError(f"no completed {self.collector_name} run found for commit {head_sha}")

    async def download_skeleton(self, owner: str, repo: str, collector_run_id: int) -> PipelineRecord:
        """Download the ``pbom-<run id>`` artifact of a collector run and decode it."""
        artifacts = await self.github.get_artifacts(owner, repo, collector_run_id)
        expected_name = f"{SKELETON_ARTIFACT_PREFIX}{collector_run_id}"
        artifact = next((a for a in artifacts if a.name == expected_name), None)
        if artifact is None:
            raise SkeletonResolutionError(
                f"no artifact named {expected_name!r} found in collector run {collector_run_id}"
            )

        archive = await self.github.download_artifact(artifact.archive_download_url)
        return extract_json(archive, PipelineRecord)

    async def resolve(self, owner: str, repo: str, head_sha: str, log_prefix: str = "") -> PipelineRecord:
        """
        Resolve the skeleton record for a commit.

        Raises:
            SkeletonResolutionError: When every attempt failed, the deadline
                elapsed, or shutdown was requested during a wait
        """
        try:
            return await asyncio.wait_for(
                self._resolve_with_retry(owner, repo, head_sha, log_prefix),
                timeout=self.deadline,
            )
        except asyncio.TimeoutError as e:
            raise SkeletonResolutionError(f"deadline of {self.deadline:.0f}s exceeded") from e

    async def _resolve_with_retry(self, owner: str, repo: str, head_sha: str, log_prefix: str) -> PipelineRecord:
        attempts = len(self.delays)
        for attempt, delay in enumerate(self.delays, start=1):
            if delay > 0:
                logger.info(
                    f"{log_prefix} waiting {delay:.0f}s for {self.collector_name} to complete (attempt {attempt}/{attempts})"
                )
                await self._wait(delay)

            try:
                collector_run = await self.find_collector_run(owner, repo, head_sha)
                skeleton = await self.download_skeleton(owner, repo, collector_run.id)
            except Exception as e:
                if attempt < attempts:
                    logger.debug(f"{log_prefix} skeleton attempt {attempt}/{attempts} failed: {e}")
                    continue
                raise SkeletonResolutionError(f"after {attempts} attempts: {e}") from e

            logger.info(f"{log_prefix} found skeleton in {self.collector_name} run {collector_run.id}")
            return skeleton

        raise SkeletonResolutionError("exhausted retries")

    async def _wait(self, delay: float) -> None:
        if self.shutdown is None:
            await asyncio.sleep(delay)
            return
        try:
            await asyncio.wait_for(self.shutdown.wait(), timeout=delay)
        except asyncio.TimeoutError:
            return
        raise SkeletonResolutionError("shutdown requested while waiting for collector run")
