"""
Pipeline Bill of Materials (PBOM) document model.

A PBOM tracks how an artifact reached production: the exact source state, the
CI execution that built it, the artifacts it produced and, later, the
promotion path. Fields that may be genuinely unknown are Optional and are
dropped from the serialized document when unset.
"""

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pbom.core.constants import PBOM_SCHEMA_VERSION


class Source(BaseModel):
    """The exact source code state the build ran against."""

    model_config = ConfigDict(extra="ignore")

    repository: str = ""
    commit_sha: str = ""
    branch: Optional[str] = None
    ref: Optional[str] = None
    author: Optional[str] = None


class Runner(BaseModel):
    """Runner environment, inferred from job metadata."""

    model_config = ConfigDict(extra="ignore")

    os: Optional[str] = None
    arch: Optional[str] = None
    name: Optional[str] = None
    self_hosted: bool = False


class Build(BaseModel):
    """The CI execution context."""

    model_config = ConfigDict(extra="ignore")

    workflow_run_id: str = ""
    workflow_name: str = ""
    workflow_file: Optional[str] = None
    trigger: Optional[str] = None
    actor: str = ""
    runner: Optional[Runner] = None
    tool_versions: Optional[Dict[str, str]] = None
    secrets_accessed: Optional[List[str]] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    status: str = ""


class Provenance(BaseModel):
    """SLSA attestation metadata."""

    model_config = ConfigDict(extra="ignore")

    slsa_level: Optional[int] = None
    builder_id: Optional[str] = None
    attestation_uri: Optional[str] = None


class Vulnerabilities(BaseModel):
    """Point-in-time CVE counts at build time."""

    model_config = ConfigDict(extra="ignore")

    scanner: Optional[str] = None
    scanned_at: Optional[datetime] = None
    critical: int = 0
    high: int = 0
    medium: int = 0
    low: int = 0


class Artifact(BaseModel):
    """A produced artifact and its security posture."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    type: str = ""
    digest: str = ""
    uri: Optional[str] = None
    tags: Optional[List[str]] = None
    provenance: Optional[Provenance] = None
    vulnerabilities: Optional[Vulnerabilities] = None


class CoDeployedService(BaseModel):
    """Another service present in the target environment at promotion time."""

    model_config = ConfigDict(extra="ignore")

    name: str
    digest: Optional[str] = None
    version: Optional[str] = None


class Promotion(BaseModel):
    """Promotion data. Carried through enrichment untouched."""

    model_config = ConfigDict(extra="ignore")

    freight_id: Optional[str] = None
    stage: Optional[str] = None
    promoted_by: Optional[str] = None
    promoted_at: Optional[datetime] = None
    environment_snapshot: Optional[List[CoDeployedService]] = None


class PipelineRecord(BaseModel):
    """Root PBOM document."""

    model_config = ConfigDict(extra="ignore")

    pbom_version: str = PBOM_SCHEMA_VERSION
    id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    source: Source = Field(default_factory=Source)
    build: Build = Field(default_factory=Build)
    artifacts: List[Artifact] = Field(default_factory=list)
    promotion: Optional[Promotion] = None

    @field_validator("artifacts", mode="before")
    @classmethod
    def _null_artifacts(cls, value):
        return [] if value is None else value

    def to_json(self) -> str:
        """Pretty-printed JSON with unset optional fields left out."""
        return self.model_dump_json(indent=2, exclude_none=True)
