"""
Prometheus Metrics for the PBOM webhook listener

Every pod keeps its own registry; the /metrics endpoint is meant to be scraped
from inside the cluster.
"""

import logging
import time
from importlib.metadata import version as get_version
from typing import Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Gauge,
    Histogram,
    Info,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# =============================================================================
# Application Info Metrics
# =============================================================================

try:
    APP_VERSION = get_version("pbom-webhook")
except Exception:
    APP_VERSION = "unknown"

app_info = Info("pbom_webhook_app", "Application information")
app_info.info(
    {
        "version": APP_VERSION,
        "app_name": "PBOM Webhook",
    }
)

# =============================================================================
# HTTP Request Metrics
# =============================================================================

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint and status",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests currently being processed",
    ["method", "endpoint"],
)

# =============================================================================
# External API Metrics
# =============================================================================

external_api_requests_total = Counter(
    "external_api_requests_total",
    "Total requests to external APIs by service",
    ["service"],
)

external_api_errors_total = Counter(
    "external_api_errors_total",
    "Total failed requests to external APIs by service",
    ["service"],
)

external_api_duration_seconds = Histogram(
    "external_api_duration_seconds",
    "External API request duration in seconds",
    ["service"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# =============================================================================
# Webhook / Enrichment Metrics
# =============================================================================

webhook_deliveries_total = Counter(
    "pbom_webhook_deliveries_total",
    "Inbound webhook deliveries by outcome",
    ["outcome"],
)

enrichment_pipelines_total = Counter(
    "pbom_enrichment_pipelines_total",
    "Finished enrichment pipelines by outcome",
    ["outcome"],
)

enrichment_in_progress = Gauge(
    "pbom_enrichment_in_progress",
    "Number of enrichment pipelines currently running",
)

enrichment_duration_seconds = Histogram(
    "pbom_enrichment_duration_seconds",
    "Enrichment pipeline duration in seconds",
    buckets=(1, 5, 10, 30, 60, 120, 300),
)

skeleton_resolutions_total = Counter(
    "pbom_skeleton_resolutions_total",
    "Skeleton record resolutions by outcome",
    ["outcome"],
)

# =============================================================================
# System Metrics
# =============================================================================

_started_at = time.time()

uptime_seconds = Gauge(
    "pbom_webhook_uptime_seconds",
    "Seconds since the listener process started",
)
uptime_seconds.set_function(lambda: time.time() - _started_at)


# =============================================================================
# Prometheus Metrics Endpoint
# =============================================================================


async def metrics_endpoint(request: Request) -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)


# =============================================================================
# Middleware for HTTP Metrics
# =============================================================================


KNOWN_PATHS = frozenset({"/webhook", "/health", "/status", "/docs", "/openapi.json"})
UNMATCHED_PATH_LABEL = "unmatched"


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collects request count, latency and in-flight gauges per endpoint."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path == "/metrics":
            return await call_next(request)

        method = request.method
        endpoint = self._normalize_path(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
        except Exception as e:
            logger.error(f"Error in PrometheusMiddleware: {e}")
            raise
        finally:
            duration = time.time() - start_time
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(duration)
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        return response

    def _normalize_path(self, path: str) -> str:
        """Route paths are static; anything else (scanners, typos) shares one label."""
        return path if path in KNOWN_PATHS else UNMATCHED_PATH_LABEL
