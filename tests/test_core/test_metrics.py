from fastapi.testclient import TestClient
from prometheus_client import REGISTRY

from pbom.core.metrics import UNMATCHED_PATH_LABEL, PrometheusMiddleware
from pbom.main import app


def _request_count(endpoint, status):
    value = REGISTRY.get_sample_value(
        "http_requests_total", {"method": "GET", "endpoint": endpoint, "status": str(status)}
    )
    return value or 0.0


class TestNormalizePath:
    def test_routes_keep_their_path(self):
        middleware = PrometheusMiddleware(app=None)
        for path in ("/webhook", "/health", "/status"):
            assert middleware._normalize_path(path) == path

    def test_unknown_paths_share_one_label(self):
        middleware = PrometheusMiddleware(app=None)
        assert middleware._normalize_path("/wp-login.php") == UNMATCHED_PATH_LABEL
        assert middleware._normalize_path("/health/123") == UNMATCHED_PATH_LABEL


class TestPrometheusMiddleware:
    def test_counts_requests_per_route(self):
        before = _request_count("/health", 200)
        with TestClient(app) as client:
            client.get("/health")
        assert _request_count("/health", 200) == before + 1

    def test_unknown_paths_are_counted_as_unmatched(self):
        before = _request_count(UNMATCHED_PATH_LABEL, 404)
        with TestClient(app) as client:
            client.get("/no/such/route/1")
            client.get("/no/such/route/2")
        assert _request_count(UNMATCHED_PATH_LABEL, 404) == before + 2

    def test_uptime_is_exported(self):
        with TestClient(app) as client:
            body = client.get("/metrics").text
        assert "pbom_webhook_uptime_seconds" in body
