"""
Enrichment pipeline for completed workflow runs.

One pipeline runs per accepted webhook event and walks through the stages of
EnrichmentStage in order. Every stage degrades the record on failure instead
of aborting; a missing skeleton is replaced by a record built from the event
itself. Only a storage failure ends the pipeline without a write.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from pbom.core.constants import FALLBACK_ID_PREFIX, PBOM_SCHEMA_VERSION
from pbom.core.http_utils import HTTPRequestError
from pbom.core.metrics import skeleton_resolutions_total
from pbom.models.record import Build, PipelineRecord, Source
from pbom.models.webhook import WorkflowRunEvent
from pbom.repositories.records import RecordStore, StorageError
from pbom.services.enrichment.artifacts import extract_docker_artifacts
from pbom.services.enrichment.collector import CollectorResolver, SkeletonResolutionError
from pbom.services.enrichment.runner import extract_runner, extract_timestamps
from pbom.services.enrichment.secrets import extract_secrets
from pbom.services.github import GitHubClient
from pbom.services.validation import validate_record

logger = logging.getLogger(__name__)


class EnrichmentStage(str, Enum):
    RECEIVED = "received"
    RESOLVING_SKELETON = "resolving-skeleton"
    ENRICHING_RUNNER = "enriching-runner"
    ENRICHING_SECRETS = "enriching-secrets"
    ENRICHING_ARTIFACTS = "enriching-artifacts"
    PERSISTING = "persisting"
    DONE = "done"


def build_fallback_record(event: WorkflowRunEvent, now: Optional[datetime] = None) -> PipelineRecord:
    """Minimal record synthesized from the webhook event when no skeleton exists."""
    now = now or datetime.now(timezone.utc)
    run = event.workflow_run
    return PipelineRecord(
        pbom_version=PBOM_SCHEMA_VERSION,
        id=f"{FALLBACK_ID_PREFIX}{run.id}",
        timestamp=now,
        source=Source(
            repository=event.repository.full_name,
            commit_sha=run.head_sha,
            branch=run.head_branch or None,
            author=run.actor.login or None,
        ),
        build=Build(
            workflow_run_id=str(run.id),
            workflow_name=run.name,
            workflow_file=run.path or None,
            trigger=run.event or None,
            actor=run.actor.login,
            status=run.conclusion or "",
            started_at=now,
        ),
    )


def apply_run_metadata(record: PipelineRecord, event: WorkflowRunEvent) -> None:
    """
    Overwrite status and workflow identity with the triggering run's values.

    The skeleton is written before the triggering run finishes, so its values
    for these fields are never authoritative.
    """
    run = event.workflow_run
    record.build.status = run.conclusion or ""
    record.build.workflow_name = run.name
    record.build.workflow_file = run.path or None


class EnrichmentService:
    """Runs the enrichment pipeline for one ``workflow_run.completed`` event at a time."""

    def __init__(self, github: GitHubClient, store: RecordStore, resolver: CollectorResolver):
        self.github = github
        self.store = store
        self.resolver = resolver

    async def enrich(self, event: WorkflowRunEvent) -> Optional[Path]:
        """
        Enrich and persist the record for a completed run.

        Returns:
            Path of the stored record, or None if it could not be written
        """
        prefix = event.log_prefix()
        owner = event.owner
        repo = event.repository.name
        run = event.workflow_run
        self._enter(EnrichmentStage.RECEIVED, prefix)

        self._enter(EnrichmentStage.RESOLVING_SKELETON, prefix)
        record = await self._resolve_record(event, owner, repo, prefix)

        self._enter(EnrichmentStage.ENRICHING_RUNNER, prefix)
        await self._enrich_runner(record, owner, repo, run.id, prefix)
        apply_run_metadata(record, event)

        self._enter(EnrichmentStage.ENRICHING_SECRETS, prefix)
        await self._enrich_secrets(record, owner, repo, run.path, run.head_sha, prefix)

        self._enter(EnrichmentStage.ENRICHING_ARTIFACTS, prefix)
        artifacts = await extract_docker_artifacts(
            self.github, owner, repo, run.id, event.repository.full_name, prefix
        )
        if artifacts:
            record.artifacts.extend(artifacts)
            logger.info(f"{prefix} enriched artifacts: {len(artifacts)}")

        self._enter(EnrichmentStage.PERSISTING, prefix)
        for problem in validate_record(record):
            logger.warning(f"{prefix} record validation: {problem}")
        try:
            path = await self.store.save(record, owner, repo, run.id)
        except StorageError as e:
            logger.error(f"{prefix} failed to store enriched PBOM: {e}")
            return None

        self._enter(EnrichmentStage.DONE, prefix)
        logger.info(
            f"{prefix} enriched PBOM stored at {path} "
            f"(artifacts={len(record.artifacts)}, secrets={len(record.build.secrets_accessed or [])})"
        )
        return path

    def _enter(self, stage: EnrichmentStage, prefix: str) -> None:
        logger.debug(f"{prefix} stage: {stage.value}")

    async def _resolve_record(
        self, event: WorkflowRunEvent, owner: str, repo: str, prefix: str
    ) -> PipelineRecord:
        try:
            record = await self.resolver.resolve(owner, repo, event.workflow_run.head_sha, prefix)
        except SkeletonResolutionError as e:
            logger.warning(f"{prefix} could not find skeleton PBOM, creating from scratch: {e}")
            skeleton_resolutions_total.labels(outcome="fallback").inc()
            return build_fallback_record(event)

        skeleton_resolutions_total.labels(outcome="found").inc()
        return record

    async def _enrich_runner(self, record: PipelineRecord, owner: str, repo: str, run_id: int, prefix: str) -> None:
        try:
            jobs = await self.github.get_jobs(owner, repo, run_id)
        except HTTPRequestError as e:
            logger.warning(f"{prefix} failed to get jobs: {e}")
            return

        runner = extract_runner(jobs)
        if runner is not None:
            record.build.runner = runner
            logger.info(
                f"{prefix} enriched runner: os={runner.os} arch={runner.arch} self_hosted={runner.self_hosted}"
            )

        started, completed = extract_timestamps(jobs)
        if started is not None:
            record.build.started_at = started
        if completed is not None:
            record.build.completed_at = completed

    async def _enrich_secrets(
        self, record: PipelineRecord, owner: str, repo: str, workflow_path: str, ref: str, prefix: str
    ) -> None:
        if not workflow_path:
            return
        try:
            content = await self.github.get_workflow_content(owner, repo, workflow_path, ref)
        except HTTPRequestError as e:
            logger.warning(f"{prefix} failed to fetch workflow YAML {workflow_path}: {e}")
            return

        secrets = extract_secrets(content)
        # An empty scan keeps whatever the skeleton already listed.
        if secrets:
            record.build.secrets_accessed = secrets
            logger.info(f"{prefix} enriched secrets: {', '.join(secrets)}")
