"""
Shared Constants

Centralized constants used across the webhook listener and the enrichment
pipeline.
"""

from typing import Tuple

# Record schema version written into every PBOM document
PBOM_SCHEMA_VERSION = "1.0.0"

# =============================================================================
# Inbound webhook
# =============================================================================

WEBHOOK_HEADER_SIGNATURE = "X-Hub-Signature-256"
WEBHOOK_HEADER_EVENT = "X-GitHub-Event"
WEBHOOK_SIGNATURE_PREFIX = "sha256"

WEBHOOK_EVENT_WORKFLOW_RUN = "workflow_run"
WEBHOOK_ACTION_COMPLETED = "completed"

# =============================================================================
# Collector correlation
# =============================================================================

COLLECTOR_CONCLUSION_SUCCESS = "success"

# Artifact uploaded by the collector run: "pbom-<collector run id>"
SKELETON_ARTIFACT_PREFIX = "pbom-"

# Immediate attempt, then waits of 10s, 30s and 60s
SKELETON_RETRY_DELAYS: Tuple[float, ...] = (0.0, 10.0, 30.0, 60.0)

# =============================================================================
# Artifact metadata
# =============================================================================

DOCKER_METADATA_ARTIFACT_PREFIX = "docker-metadata-"
ARTIFACT_TYPE_CONTAINER_IMAGE = "container-image"
ARCHIVE_JSON_SUFFIX = ".json"

# =============================================================================
# Runner inference
# =============================================================================

HOSTED_RUNNER_GROUP = "GitHub Actions"
SELF_HOSTED_LABEL = "self-hosted"

RUNNER_OS_LINUX = "Linux"
RUNNER_OS_MACOS = "macOS"
RUNNER_OS_WINDOWS = "Windows"
RUNNER_ARCH_X64 = "X64"
RUNNER_ARCH_ARM64 = "ARM64"

DEFAULT_RUNNER_OS = RUNNER_OS_LINUX
DEFAULT_RUNNER_ARCH = RUNNER_ARCH_X64

# =============================================================================
# Secret scanning
# =============================================================================

# Always available to a workflow, so never recorded as an accessed secret
IMPLICIT_TOKEN_SECRET = "GITHUB_TOKEN"

# =============================================================================
# Storage
# =============================================================================

PBOM_FILE_EXTENSION = ".pbom.json"
FALLBACK_ID_PREFIX = "fallback-"
