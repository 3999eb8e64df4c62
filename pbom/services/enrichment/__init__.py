"""
Enrichment pipeline: skeleton correlation, runner and secret inference,
artifact extraction, and the orchestrating service.
"""

from pbom.services.enrichment.archive import ArchiveError, extract_json
from pbom.services.enrichment.artifacts import DockerMetadata, extract_docker_artifacts
from pbom.services.enrichment.collector import (
    CollectorNotFoundError,
    CollectorResolver,
    SkeletonResolutionError,
)
from pbom.services.enrichment.runner import extract_runner, extract_timestamps
from pbom.services.enrichment.secrets import extract_secrets
from pbom.services.enrichment.service import (
    EnrichmentService,
    EnrichmentStage,
    apply_run_metadata,
    build_fallback_record,
)

__all__ = [
    "ArchiveError",
    "CollectorNotFoundError",
    "CollectorResolver",
    "DockerMetadata",
    "EnrichmentService",
    "EnrichmentStage",
    "SkeletonResolutionError",
    "apply_run_metadata",
    "build_fallback_record",
    "extract_docker_artifacts",
    "extract_json",
    "extract_runner",
    "extract_secrets",
    "extract_timestamps",
]
