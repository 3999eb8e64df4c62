"""
Pydantic models for the GitHub Actions REST API responses we consume.

Uses extra="ignore" to silently discard fields we don't use.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Account(BaseModel):
    """A GitHub user or organization (actor / owner)."""

    model_config = ConfigDict(extra="ignore")

    login: str = ""
    id: Optional[int] = None


class Repository(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str = ""
    full_name: str = ""
    owner: Account = Field(default_factory=Account)


class WorkflowRun(BaseModel):
    """A GitHub Actions workflow run."""

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    head_sha: str = ""
    head_branch: Optional[str] = None
    path: str = ""
    display_title: Optional[str] = None
    event: str = ""
    status: Optional[str] = None
    conclusion: Optional[str] = None
    workflow_id: Optional[int] = None
    actor: Account = Field(default_factory=Account)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    run_started_at: Optional[datetime] = None
    repository: Optional[Repository] = None


class WorkflowRunsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_count: int = 0
    workflow_runs: List[WorkflowRun] = Field(default_factory=list)


class Step(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    number: int = 0
    status: Optional[str] = None
    conclusion: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class Job(BaseModel):
    """A single job within a workflow run, including its runner assignment."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    run_id: Optional[int] = None
    name: str = ""
    status: Optional[str] = None
    conclusion: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    labels: List[str] = Field(default_factory=list)
    runner_name: Optional[str] = None
    runner_id: Optional[int] = None
    runner_group_name: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)


class JobsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_count: int = 0
    jobs: List[Job] = Field(default_factory=list)


class WorkflowArtifact(BaseModel):
    """An artifact uploaded by a workflow run."""

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    name: str = ""
    size_in_bytes: Optional[int] = None
    archive_download_url: str = ""
    digest: Optional[str] = None
    created_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class ArtifactsResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    total_count: int = 0
    artifacts: List[WorkflowArtifact] = Field(default_factory=list)


class FileContent(BaseModel):
    """A file fetched through the repository contents API."""

    model_config = ConfigDict(extra="ignore")

    content: str = ""
    encoding: Optional[str] = None
    path: Optional[str] = None
    sha: Optional[str] = None
