"""
Inbound ``workflow_run`` webhook payload.

Only the fields the enrichment pipeline consumes are modelled; everything
else GitHub sends is ignored. An event lives for one request plus the
background pipeline it starts.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from pbom.models.github_api import Account


class RunReference(BaseModel):
    """The ``workflow_run`` object of the event."""

    model_config = ConfigDict(extra="ignore")

    id: int = 0
    name: str = ""
    head_sha: str = ""
    head_branch: Optional[str] = None
    path: str = ""
    event: str = ""
    status: Optional[str] = None
    conclusion: Optional[str] = None
    actor: Account = Field(default_factory=Account)


class RepositoryReference(BaseModel):
    """The ``repository`` object of the event."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    full_name: str = ""
    owner: Account = Field(default_factory=Account)


class WorkflowRunEvent(BaseModel):
    """Top-level ``workflow_run`` webhook payload."""

    model_config = ConfigDict(extra="ignore")

    action: str = ""
    workflow_run: RunReference = Field(default_factory=RunReference)
    repository: RepositoryReference = Field(default_factory=RepositoryReference)

    @property
    def owner(self) -> str:
        return self.repository.owner.login

    @property
    def short_sha(self) -> str:
        return self.workflow_run.head_sha[:8]

    def log_prefix(self) -> str:
        """Identifies this event's pipeline in log lines."""
        return f"[{self.repository.full_name} run={self.workflow_run.id} sha={self.short_sha}]"
