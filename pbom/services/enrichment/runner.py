"""
Runner environment inference from workflow job metadata.

GitHub does not report a job's OS or architecture directly; they are read
from the labels the job was scheduled with. Rules are evaluated in table
order for every label, in label order, and the first label that sets a
field wins. Self-hosted status starts from the runner group and is forced on
by an explicit ``self-hosted`` label.
"""

from datetime import datetime
from typing import Callable, List, NamedTuple, Optional, Sequence, Tuple

from pbom.core.constants import (
    DEFAULT_RUNNER_ARCH,
    DEFAULT_RUNNER_OS,
    HOSTED_RUNNER_GROUP,
    RUNNER_ARCH_ARM64,
    RUNNER_ARCH_X64,
    RUNNER_OS_LINUX,
    RUNNER_OS_MACOS,
    RUNNER_OS_WINDOWS,
    SELF_HOSTED_LABEL,
)
from pbom.models.github_api import Job
from pbom.models.record import Runner


class LabelRule(NamedTuple):
    matches: Callable[[str], bool]
    field: str
    value: object


# Precedence is part of the contract: do not reorder.
LABEL_RULES: Tuple[LabelRule, ...] = (
    LabelRule(lambda label: label == SELF_HOSTED_LABEL, "self_hosted", True),
    LabelRule(lambda label: "ubuntu" in label or label == "linux", "os", RUNNER_OS_LINUX),
    LabelRule(lambda label: "macos" in label, "os", RUNNER_OS_MACOS),
    LabelRule(lambda label: "windows" in label, "os", RUNNER_OS_WINDOWS),
    LabelRule(lambda label: label in ("x64", "amd64"), "arch", RUNNER_ARCH_X64),
    LabelRule(lambda label: label in ("arm64", "aarch64"), "arch", RUNNER_ARCH_ARM64),
)

# Consulted only when no label decided the OS.
RUNNER_NAME_OS_RULES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("ubuntu", "linux"), RUNNER_OS_LINUX),
    (("macos",), RUNNER_OS_MACOS),
    (("windows",), RUNNER_OS_WINDOWS),
)


def _os_from_runner_name(name: Optional[str]) -> str:
    lower = (name or "").lower()
    for needles, os_name in RUNNER_NAME_OS_RULES:
        if any(needle in lower for needle in needles):
            return os_name
    return DEFAULT_RUNNER_OS


def extract_runner(jobs: Sequence[Job]) -> Optional[Runner]:
    """
    Build a Runner from the first job of a run.

    All jobs of one run are assumed to share an environment. Returns None
    for an empty job list.
    """
    if not jobs:
        return None

    job = jobs[0]
    group = job.runner_group_name or ""
    fields = {"os": None, "arch": None, "self_hosted": bool(group) and group != HOSTED_RUNNER_GROUP}

    for label in job.labels:
        lower = label.lower()
        for rule in LABEL_RULES:
            if rule.field != "self_hosted" and fields[rule.field] is not None:
                continue
            if rule.matches(lower):
                fields[rule.field] = rule.value

    if fields["os"] is None:
        fields["os"] = _os_from_runner_name(job.runner_name)
    if fields["arch"] is None:
        fields["arch"] = DEFAULT_RUNNER_ARCH

    return Runner(
        os=fields["os"],
        arch=fields["arch"],
        name=job.runner_name or None,
        self_hosted=fields["self_hosted"],
    )


def extract_timestamps(jobs: Sequence[Job]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Earliest job start and latest job completion; None where no job has one."""
    started: List[datetime] = [job.started_at for job in jobs if job.started_at is not None]
    completed: List[datetime] = [job.completed_at for job in jobs if job.completed_at is not None]
    return (min(started) if started else None, max(completed) if completed else None)
