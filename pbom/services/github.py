import base64
import binascii
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from pbom.core.http_utils import HTTPRequestError, InstrumentedAsyncClient
from pbom.models.github_api import (
    ArtifactsResponse,
    FileContent,
    Job,
    JobsResponse,
    WorkflowArtifact,
    WorkflowRun,
    WorkflowRunsResponse,
)

logger = logging.getLogger(__name__)

_GITHUB_API_URL = "https://api.github.com"
_GITHUB_API_TIMEOUT = 30.0

ModelT = TypeVar("ModelT", bound=BaseModel)


class GitHubClient:
    """
    Authenticated GitHub REST API client for workflow run data.

    Holds nothing but credentials and configuration; every call opens its own
    short-lived HTTP client, so one instance can be shared by any number of
    concurrent enrichment pipelines.
    """

    def __init__(
        self,
        token: str,
        api_url: str = _GITHUB_API_URL,
        timeout: float = _GITHUB_API_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _get_auth_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    @asynccontextmanager
    async def _api_client(self, **kwargs: Any) -> AsyncIterator[InstrumentedAsyncClient]:
        if self._transport is not None:
            kwargs["transport"] = self._transport
        async with InstrumentedAsyncClient("GitHub API", timeout=self.timeout, **kwargs) as client:
            yield client

    async def _api_get(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> httpx.Response:
        async with self._api_client() as client:
            response = await client.get(
                f"{self.api_url}{endpoint}",
                headers=self._get_auth_headers(),
                params=params,
            )
        if not response.is_success:
            raise HTTPRequestError(
                f"GitHub API {endpoint} returned {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
        return response

    async def _api_get_model(
        self,
        endpoint: str,
        model: Type[ModelT],
        params: Optional[Dict[str, Any]] = None,
    ) -> ModelT:
        response = await self._api_get(endpoint, params=params)
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            raise HTTPRequestError(f"Could not parse GitHub API {endpoint} response: {e}") from e

    async def list_runs_by_commit(self, owner: str, repo: str, sha: str) -> List[WorkflowRun]:
        """Lists workflow runs triggered by a specific commit SHA."""
        response = await self._api_get_model(
            f"/repos/{owner}/{repo}/actions/runs",
            WorkflowRunsResponse,
            params={"head_sha": sha},
        )
        return response.workflow_runs

    async def get_jobs(self, owner: str, repo: str, run_id: int) -> List[Job]:
        """Fetches all jobs for a workflow run."""
        response = await self._api_get_model(f"/repos/{owner}/{repo}/actions/runs/{run_id}/jobs", JobsResponse)
        return response.jobs

    async def get_artifacts(self, owner: str, repo: str, run_id: int) -> List[WorkflowArtifact]:
        """Fetches all artifacts uploaded by a workflow run."""
        response = await self._api_get_model(
            f"/repos/{owner}/{repo}/actions/runs/{run_id}/artifacts", ArtifactsResponse
        )
        return response.artifacts

    async def download_artifact(self, download_url: str) -> bytes:
        """
        Downloads an artifact ZIP by its archive URL.

        GitHub answers with a redirect to blob storage; httpx drops the
        Authorization header when the redirect leaves the API host.
        """
        async with self._api_client(follow_redirects=True) as client:
            response = await client.get(download_url, headers=self._get_auth_headers())
        if not response.is_success:
            raise HTTPRequestError(
                f"Artifact download returned {response.status_code}",
                status_code=response.status_code,
            )
        return response.content

    async def get_workflow_content(self, owner: str, repo: str, path: str, ref: str) -> bytes:
        """
        Fetches a repository file (usually the workflow YAML) at a given ref.

        Returns:
            The base64-decoded file bytes
        """
        endpoint = f"/repos/{owner}/{repo}/contents/{quote(path)}"
        file_content = await self._api_get_model(endpoint, FileContent, params={"ref": ref})
        try:
            return base64.b64decode(file_content.content)
        except (binascii.Error, ValueError) as e:
            raise HTTPRequestError(f"Could not decode base64 content of {path}: {e}") from e
