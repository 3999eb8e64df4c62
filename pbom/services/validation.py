"""
Validation functions for PBOM documents.

The enrichment pipeline runs validate_record before persisting and reports
problems in the log without blocking the write.
"""

import re
from typing import List

from pbom.core.constants import PBOM_SCHEMA_VERSION
from pbom.models.record import PipelineRecord

_COMMIT_SHA_RE = re.compile(r"[0-9a-f]{40}")
_DIGEST_RE = re.compile(r"sha256:[0-9a-f]{64}")


def is_valid_commit_sha(value: str) -> bool:
    """
    Check that a commit SHA is 40 lowercase hex characters.

    Args:
        value: The commit SHA to check

    Returns:
        True if the SHA is well-formed
    """
    return bool(_COMMIT_SHA_RE.fullmatch(value or ""))


def is_valid_digest(value: str) -> bool:
    """
    Check that an artifact digest is ``sha256:`` followed by 64 lowercase hex characters.

    Args:
        value: The digest to check

    Returns:
        True if the digest is well-formed
    """
    return bool(_DIGEST_RE.fullmatch(value or ""))


def validate_record(record: PipelineRecord) -> List[str]:
    """
    Check a record for missing required fields and malformed identifiers.

    Args:
        record: The record to validate

    Returns:
        List of problems, empty when the record is valid
    """
    errors: List[str] = []

    if not record.pbom_version:
        errors.append("missing pbom_version")
    elif record.pbom_version != PBOM_SCHEMA_VERSION:
        errors.append(
            f"unsupported pbom_version {record.pbom_version!r} (expected {PBOM_SCHEMA_VERSION!r})"
        )

    if not record.id:
        errors.append("missing id")

    if not record.source.repository:
        errors.append("missing source.repository")
    if not record.source.commit_sha:
        errors.append("missing source.commit_sha")
    elif not is_valid_commit_sha(record.source.commit_sha):
        errors.append(f"invalid source.commit_sha {record.source.commit_sha!r} (expected 40-char hex)")

    if not record.build.workflow_run_id:
        errors.append("missing build.workflow_run_id")
    if not record.build.workflow_name:
        errors.append("missing build.workflow_name")
    if not record.build.actor:
        errors.append("missing build.actor")
    if not record.build.status:
        errors.append("missing build.status")

    for i, artifact in enumerate(record.artifacts):
        if not artifact.name:
            errors.append(f"missing artifacts[{i}].name")
        if not artifact.type:
            errors.append(f"missing artifacts[{i}].type")
        if not artifact.digest:
            errors.append(f"missing artifacts[{i}].digest")
        elif not is_valid_digest(artifact.digest):
            errors.append(
                f"invalid artifacts[{i}].digest {artifact.digest!r} (expected sha256:<64-char hex>)"
            )

    return errors
