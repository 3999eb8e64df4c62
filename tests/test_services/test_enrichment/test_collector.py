import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from pbom.core.http_utils import HTTPRequestError
from pbom.services.enrichment.collector import (
    CollectorNotFoundError,
    CollectorResolver,
    SkeletonResolutionError,
)
from tests.mocks.github import HEAD_SHA, make_artifact, make_github_client, make_skeleton, make_workflow_run, make_zip


def _skeleton_zip(**kwargs):
    return make_zip({"pbom.json": make_skeleton(**kwargs).model_dump(mode="json")})


def _github_with_skeleton(collector_id=100):
    return make_github_client(
        list_runs_by_commit=AsyncMock(return_value=[make_workflow_run(id=collector_id)]),
        get_artifacts=AsyncMock(return_value=[make_artifact(f"pbom-{collector_id}", url="https://x/skeleton")]),
        download_artifact=AsyncMock(return_value=_skeleton_zip()),
    )


def _resolver(github, delays=(0.0,), **kwargs):
    return CollectorResolver(github, "PBOM Collector", delays=delays, **kwargs)


class TestFindCollectorRun:
    def test_picks_successful_run_with_matching_name(self):
        github = make_github_client(
            list_runs_by_commit=AsyncMock(
                return_value=[
                    make_workflow_run(id=1, name="CI"),
                    make_workflow_run(id=2, conclusion=None),
                    make_workflow_run(id=3, conclusion="failure"),
                    make_workflow_run(id=4),
                    make_workflow_run(id=5),
                ]
            )
        )
        run = asyncio.run(_resolver(github).find_collector_run("acme", "widget", HEAD_SHA))
        assert run.id == 4
        github.list_runs_by_commit.assert_awaited_once_with("acme", "widget", HEAD_SHA)

    def test_no_match_raises(self):
        github = make_github_client(list_runs_by_commit=AsyncMock(return_value=[make_workflow_run(name="CI")]))
        with pytest.raises(CollectorNotFoundError):
            asyncio.run(_resolver(github).find_collector_run("acme", "widget", HEAD_SHA))


class TestDownloadSkeleton:
    def test_downloads_exactly_named_artifact(self):
        github = make_github_client(
            get_artifacts=AsyncMock(
                return_value=[
                    make_artifact("pbom-1000", url="https://x/wrong"),
                    make_artifact("pbom-100", url="https://x/right"),
                ]
            ),
            download_artifact=AsyncMock(return_value=_skeleton_zip()),
        )
        record = asyncio.run(_resolver(github).download_skeleton("acme", "widget", 100))
        assert record.id == "pbom-skeleton-1"
        assert record.build.tool_versions == {"go": "1.22.4"}
        github.download_artifact.assert_awaited_once_with("https://x/right")

    def test_missing_artifact_raises(self):
        github = make_github_client(get_artifacts=AsyncMock(return_value=[make_artifact("docker-metadata-100")]))
        with pytest.raises(SkeletonResolutionError, match="pbom-100"):
            asyncio.run(_resolver(github).download_skeleton("acme", "widget", 100))
        github.download_artifact.assert_not_awaited()


class TestResolve:
    def test_first_attempt_succeeds(self):
        github = _github_with_skeleton()
        record = asyncio.run(_resolver(github, delays=(0.0, 10.0)).resolve("acme", "widget", HEAD_SHA))
        assert record.id == "pbom-skeleton-1"
        assert github.list_runs_by_commit.await_count == 1

    def test_retries_until_collector_appears(self):
        github = _github_with_skeleton()
        github.list_runs_by_commit = AsyncMock(side_effect=[[], [], [make_workflow_run(id=100)]])
        resolver = _resolver(github, delays=(0.0, 0.0, 0.0))

        record = asyncio.run(resolver.resolve("acme", "widget", HEAD_SHA))
        assert record.id == "pbom-skeleton-1"
        assert github.list_runs_by_commit.await_count == 3

    def test_retries_after_download_failure(self):
        github = _github_with_skeleton()
        github.download_artifact = AsyncMock(side_effect=[HTTPRequestError("boom", status_code=500), _skeleton_zip()])

        record = asyncio.run(_resolver(github, delays=(0.0, 0.0)).resolve("acme", "widget", HEAD_SHA))
        assert record.id == "pbom-skeleton-1"

    def test_exhausted_attempts_surface_last_error(self):
        github = make_github_client(
            list_runs_by_commit=AsyncMock(
                side_effect=[HTTPRequestError("first"), HTTPRequestError("second"), HTTPRequestError("last")]
            )
        )
        with pytest.raises(SkeletonResolutionError, match="after 3 attempts: last"):
            asyncio.run(_resolver(github, delays=(0.0, 0.0, 0.0)).resolve("acme", "widget", HEAD_SHA))
        assert github.list_runs_by_commit.await_count == 3

    def test_undecodable_skeleton_is_an_error(self):
        github = _github_with_skeleton()
        github.download_artifact = AsyncMock(return_value=make_zip({"pbom.json": {"build": {}}}))
        with pytest.raises(SkeletonResolutionError):
            asyncio.run(_resolver(github).resolve("acme", "widget", HEAD_SHA))

    def test_waits_follow_schedule(self):
        github = make_github_client()
        resolver = _resolver(github, delays=(0.0, 10.0, 30.0, 60.0))
        with patch.object(resolver, "_wait", new=AsyncMock()) as wait:
            with pytest.raises(SkeletonResolutionError, match="after 4 attempts"):
                asyncio.run(resolver.resolve("acme", "widget", HEAD_SHA))
        assert [c.args[0] for c in wait.await_args_list] == [10.0, 30.0, 60.0]
        assert github.list_runs_by_commit.await_count == 4

    def test_deadline_bounds_resolution(self):
        github = make_github_client()
        resolver = _resolver(github, delays=(0.0, 5.0), deadline=0.05)
        with pytest.raises(SkeletonResolutionError, match="deadline"):
            asyncio.run(resolver.resolve("acme", "widget", HEAD_SHA))
        assert github.list_runs_by_commit.await_count == 1

    def test_shutdown_aborts_wait(self):
        github = make_github_client()

        async def run():
            shutdown = asyncio.Event()
            resolver = _resolver(github, delays=(0.0, 30.0), shutdown=shutdown)
            task = asyncio.create_task(resolver.resolve("acme", "widget", HEAD_SHA))
            for _ in range(5):
                await asyncio.sleep(0)
            shutdown.set()
            return await asyncio.wait_for(task, timeout=1.0)

        with pytest.raises(SkeletonResolutionError, match="shutdown"):
            asyncio.run(run())
        assert github.list_runs_by_commit.await_count == 1

    def test_unset_shutdown_waits_full_delay(self):
        github = make_github_client()

        async def run():
            resolver = _resolver(github, delays=(0.0, 0.01), shutdown=asyncio.Event())
            await resolver.resolve("acme", "widget", HEAD_SHA)

        with pytest.raises(SkeletonResolutionError, match="after 2 attempts"):
            asyncio.run(run())
        assert github.list_runs_by_commit.await_count == 2
