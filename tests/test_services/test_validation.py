"""Tests for PBOM record validation."""

import pytest

from pbom.models.record import Artifact
from pbom.services.validation import is_valid_commit_sha, is_valid_digest, validate_record
from tests.mocks.github import HEAD_SHA, VALID_DIGEST, make_skeleton


class TestIsValidDigest:
    def test_valid(self):
        assert is_valid_digest("sha256:" + "0123456789abcdef" * 4) is True

    @pytest.mark.parametrize(
        "digest",
        [
            "",
            "sha512:" + "a" * 64,
            "sha256" + "a" * 64,
            "sha256:" + "a" * 63,
            "sha256:" + "a" * 65,
            "sha256:" + "A" * 64,
            "SHA256:" + "a" * 64,
            "sha256:" + "g" * 64,
            " sha256:" + "a" * 64,
            "sha256:" + "a" * 64 + "\n",
        ],
    )
    def test_invalid(self, digest):
        assert is_valid_digest(digest) is False


class TestIsValidCommitSha:
    def test_valid(self):
        assert is_valid_commit_sha(HEAD_SHA) is True
        assert is_valid_commit_sha("0123456789abcdef0123456789abcdef01234567") is True

    @pytest.mark.parametrize("sha", ["", "a" * 39, "a" * 41, "A" * 40, "z" * 40])
    def test_invalid(self, sha):
        assert is_valid_commit_sha(sha) is False


class TestValidateRecord:
    def test_complete_record_is_valid(self):
        record = make_skeleton(
            artifacts=[Artifact(name="widget", type="container-image", digest=VALID_DIGEST)]
        )
        assert validate_record(record) == []

    def test_reports_missing_fields(self):
        record = make_skeleton()
        record.id = ""
        record.source.repository = ""
        record.build.workflow_run_id = ""
        record.build.status = ""

        errors = validate_record(record)

        assert "missing id" in errors
        assert "missing source.repository" in errors
        assert "missing build.workflow_run_id" in errors
        assert "missing build.status" in errors

    def test_reports_bad_commit_sha(self):
        record = make_skeleton()
        record.source.commit_sha = "ABC"
        assert any("invalid source.commit_sha" in e for e in validate_record(record))

    def test_reports_unsupported_version(self):
        record = make_skeleton(pbom_version="2.0.0")
        assert any("unsupported pbom_version" in e for e in validate_record(record))

    def test_reports_artifact_problems_by_index(self):
        record = make_skeleton(
            artifacts=[
                Artifact(name="ok", type="container-image", digest=VALID_DIGEST),
                Artifact(name="", type="container-image", digest="sha256:short"),
                Artifact(name="nodigest", type="container-image", digest=""),
            ]
        )
        errors = validate_record(record)
        assert "missing artifacts[1].name" in errors
        assert any(e.startswith("invalid artifacts[1].digest") for e in errors)
        assert "missing artifacts[2].digest" in errors
        assert not any("artifacts[0]" in e for e in errors)
