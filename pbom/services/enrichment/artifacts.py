"""
Container image artifacts published by a workflow run.

Build workflows upload ``docker-metadata-<run id>`` artifacts holding the
pushed image, its digest and its newline-separated tags.
"""

import logging
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, field_validator

from pbom.core.constants import ARTIFACT_TYPE_CONTAINER_IMAGE, DOCKER_METADATA_ARTIFACT_PREFIX
from pbom.core.http_utils import HTTPRequestError
from pbom.models.record import Artifact
from pbom.services.enrichment.archive import ArchiveError, extract_json
from pbom.services.github import GitHubClient

logger = logging.getLogger(__name__)


class DockerMetadata(BaseModel):
    model_config = ConfigDict(extra="ignore")

    image: str = ""
    digest: str = ""
    tags: str = ""

    @field_validator("tags", mode="before")
    @classmethod
    def _join_tag_list(cls, value):
        if value is None:
            return ""
        if isinstance(value, list):
            return "\n".join(str(v) for v in value)
        return value


def parse_tags(tags: str) -> Optional[List[str]]:
    """Split newline-separated tags, dropping blanks. None when there are none."""
    parsed = [line.strip() for line in tags.splitlines() if line.strip()]
    return parsed or None


def repo_base_name(full_name: str) -> str:
    """``owner/repo`` -> ``repo``."""
    return full_name.rsplit("/", 1)[-1]


def build_artifact(meta: DockerMetadata, repository: str) -> Artifact:
    uri = f"{meta.image}@{meta.digest}" if meta.digest else meta.image
    return Artifact(
        name=repo_base_name(repository),
        type=ARTIFACT_TYPE_CONTAINER_IMAGE,
        digest=meta.digest,
        uri=uri or None,
        tags=parse_tags(meta.tags),
    )


async def extract_docker_artifacts(
    github: GitHubClient,
    owner: str,
    repo: str,
    run_id: int,
    repository: str,
    log_prefix: str = "",
) -> List[Artifact]:
    """
    Collect container image artifacts from a run's docker metadata uploads.

    Each metadata artifact is handled on its own: one that cannot be
    downloaded or decoded is logged and skipped.
    """
    try:
        run_artifacts = await github.get_artifacts(owner, repo, run_id)
    except HTTPRequestError as e:
        logger.warning(f"{log_prefix} failed to get artifacts: {e}")
        return []

    result: List[Artifact] = []
    for run_artifact in run_artifacts:
        if not run_artifact.name.startswith(DOCKER_METADATA_ARTIFACT_PREFIX):
            continue
        try:
            archive = await github.download_artifact(run_artifact.archive_download_url)
            meta = extract_json(archive, DockerMetadata)
        except (HTTPRequestError, ArchiveError) as e:
            logger.warning(f"{log_prefix} failed to parse docker metadata artifact {run_artifact.name}: {e}")
            continue
        result.append(build_artifact(meta, repository))

    return result
