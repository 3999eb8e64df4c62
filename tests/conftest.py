"""
Shared test fixtures and configuration.

Environment variables are set BEFORE any package imports so the settings
singleton loads without a real secret or token.
"""

import os
import sys

# Ensure the repository root is importable
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ["PBOM_WEBHOOK_SECRET"] = "test-webhook-secret"
os.environ["GITHUB_TOKEN"] = "ghp-test-token"
os.environ["PBOM_STORAGE_DIR"] = os.path.join(os.path.dirname(__file__), ".pbom-test-data")

import pytest  # noqa: E402

from tests.mocks.github import make_event, make_github_client  # noqa: E402


@pytest.fixture
def completed_event():
    """workflow_run.completed event for acme/widget run 42."""
    return make_event()


@pytest.fixture
def github_client():
    """GitHubClient double whose API calls are AsyncMocks."""
    return make_github_client()


@pytest.fixture
def sample_workflow():
    """Workflow YAML referencing a handful of secrets."""
    return """
name: CI
on: push
jobs:
  build:
    runs-on: ubuntu-latest
    steps:
      - uses: docker/login-action@v3
        with:
          username: ${{ secrets.REGISTRY_USER }}
          password: ${{ secrets.REGISTRY_PASS }}
      - run: ./deploy.sh
        env:
          TOKEN: ${{ secrets.GITHUB_TOKEN }}
          KEY: ${{secrets.DEPLOY_KEY}}
          AGAIN: ${{ secrets.REGISTRY_USER }}
"""
