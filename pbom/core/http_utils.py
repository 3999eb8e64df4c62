"""
HTTP Utilities

Instrumented httpx client and the shared error type for remote API calls.
"""

import logging
import time
from typing import Optional

import httpx

from pbom.core.metrics import (
    external_api_duration_seconds,
    external_api_errors_total,
    external_api_requests_total,
)

logger = logging.getLogger(__name__)


class HTTPRequestError(Exception):
    """Base exception for HTTP request failures."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InstrumentedAsyncClient:
    """
    A wrapper around httpx.AsyncClient that automatically records metrics.

    Usage:
        async with InstrumentedAsyncClient("GitHub API", timeout=30.0) as client:
            response = await client.get(url)
    """

    def __init__(
        self,
        service_name: str,
        timeout: float = 30.0,
        **kwargs,
    ):
        self.service_name = service_name
        self._client: Optional[httpx.AsyncClient] = None
        self._timeout = timeout
        self._kwargs = kwargs
        self._NOT_STARTED_MSG = "Client not started. Use 'async with' or call start()."

    async def start(self) -> None:
        """Start the underlying client (for long-lived usage)."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._timeout, **self._kwargs)

    async def close(self) -> None:
        """Close the underlying client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "InstrumentedAsyncClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def _record_request(self) -> None:
        external_api_requests_total.labels(service=self.service_name).inc()

    def _record_success(self, duration: float) -> None:
        external_api_duration_seconds.labels(service=self.service_name).observe(duration)

    def _record_error(self) -> None:
        external_api_errors_total.labels(service=self.service_name).inc()

    async def get(self, url: str, **kwargs) -> httpx.Response:
        """
        Make a GET request with metrics.

        Transport failures are raised as HTTPRequestError; the response is
        returned as-is for any status code so the caller decides what counts
        as success.
        """
        if self._client is None:
            raise RuntimeError(self._NOT_STARTED_MSG)

        start_time = time.time()
        self._record_request()
        try:
            response = await self._client.get(url, **kwargs)
        except httpx.TimeoutException as e:
            self._record_error()
            raise HTTPRequestError(f"Timeout calling {self.service_name}: {e}") from e
        except httpx.HTTPError as e:
            self._record_error()
            raise HTTPRequestError(f"Error calling {self.service_name}: {e}") from e

        if response.is_success:
            self._record_success(time.time() - start_time)
        else:
            self._record_error()
        return response
