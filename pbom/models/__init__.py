from pbom.models.github_api import Job, WorkflowArtifact, WorkflowRun
from pbom.models.record import (
    Artifact,
    Build,
    CoDeployedService,
    PipelineRecord,
    Promotion,
    Provenance,
    Runner,
    Source,
    Vulnerabilities,
)
from pbom.models.webhook import RepositoryReference, RunReference, WorkflowRunEvent

__all__ = [
    "Artifact",
    "Build",
    "CoDeployedService",
    "Job",
    "PipelineRecord",
    "Promotion",
    "Provenance",
    "RepositoryReference",
    "RunReference",
    "Runner",
    "Source",
    "Vulnerabilities",
    "WorkflowArtifact",
    "WorkflowRun",
    "WorkflowRunEvent",
]
