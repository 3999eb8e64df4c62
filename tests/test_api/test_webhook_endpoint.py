from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from pbom.api import deps
from pbom.core.security import generate_signature
from pbom.core.worker import EnrichmentDispatcher
from pbom.main import app
from tests.mocks.github import make_event_payload

SECRET = "endpoint-test-secret"


@pytest.fixture
def dispatcher():
    return MagicMock(spec=EnrichmentDispatcher)


@pytest.fixture
def client(dispatcher):
    app.dependency_overrides[deps.get_dispatcher] = lambda: dispatcher
    app.dependency_overrides[deps.get_webhook_secret] = lambda: SECRET
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def _post(client, body, event="workflow_run", signature=None):
    headers = {"Content-Type": "application/json"}
    if event is not None:
        headers["X-GitHub-Event"] = event
    headers["X-Hub-Signature-256"] = signature if signature is not None else generate_signature(SECRET, body)
    return client.post("/webhook", content=body, headers=headers)


class TestWebhookEndpoint:
    def test_completed_run_is_accepted(self, client, dispatcher):
        response = _post(client, make_event_payload())

        assert response.status_code == 202
        dispatcher.dispatch.assert_called_once()
        event = dispatcher.dispatch.call_args.args[0]
        assert event.workflow_run.id == 42
        assert event.repository.full_name == "acme/widget"

    def test_missing_signature(self, client, dispatcher):
        response = _post(client, make_event_payload(), signature="")
        assert response.status_code == 401
        dispatcher.dispatch.assert_not_called()

    def test_wrong_signature(self, client, dispatcher):
        body = make_event_payload()
        response = _post(client, body, signature=generate_signature("other-secret", body))
        assert response.status_code == 401
        dispatcher.dispatch.assert_not_called()

    def test_malformed_signature(self, client):
        assert _post(client, make_event_payload(), signature="sha1=abc").status_code == 401

    def test_tampered_body(self, client):
        body = make_event_payload()
        response = _post(client, body + b" ", signature=generate_signature(SECRET, body))
        assert response.status_code == 401

    @pytest.mark.parametrize("event", ["push", "ping", None])
    def test_other_event_types_are_ignored(self, client, dispatcher, event):
        response = _post(client, make_event_payload(), event=event)
        assert response.status_code == 200
        dispatcher.dispatch.assert_not_called()

    def test_signature_checked_before_event_filter(self, client):
        assert _post(client, b"{}", event="push", signature="sha256=00").status_code == 401

    @pytest.mark.parametrize("action", ["requested", "in_progress"])
    def test_non_completed_actions_are_ignored(self, client, dispatcher, action):
        response = _post(client, make_event_payload(action=action))
        assert response.status_code == 200
        dispatcher.dispatch.assert_not_called()

    def test_collector_run_is_ignored(self, client, dispatcher):
        response = _post(client, make_event_payload(name="PBOM Collector"))
        assert response.status_code == 200
        dispatcher.dispatch.assert_not_called()

    def test_invalid_json(self, client, dispatcher):
        response = _post(client, b"{not json")
        assert response.status_code == 400
        dispatcher.dispatch.assert_not_called()

    def test_oversized_body(self, client, dispatcher):
        app.dependency_overrides[deps.get_max_body_bytes] = lambda: 16
        response = _post(client, make_event_payload())
        assert response.status_code == 400
        dispatcher.dispatch.assert_not_called()

    def test_get_not_allowed(self, client):
        assert client.get("/webhook").status_code == 405

    def test_accepted_event_updates_status(self, client):
        assert client.get("/status").json() == {"events_processed": 0}

        _post(client, make_event_payload())
        _post(client, make_event_payload(action="requested"))

        status = client.get("/status").json()
        assert status["events_processed"] == 1
        assert status["last_event_at"].endswith("Z")
