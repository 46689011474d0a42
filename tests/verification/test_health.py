"""Tests for HTTP health checks."""

from unittest.mock import MagicMock

import httpx
import pytest

from deployment.core.topology import HealthEndpoint
from deployment.verification.health import HealthChecker

GATEWAY = HealthEndpoint("pipeshub-ai", "gateway", "https://pipeshub.example.com/api/v1/health")


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestHealthChecker:
    """Tests for HealthChecker.check."""

    async def test_expected_status_passes(self) -> None:
        async with _client(lambda request: httpx.Response(200)) as client:
            result = await HealthChecker(client, initial_wait=0).check(GATEWAY)

        assert result.passed
        assert result.kind == "http"
        assert result.name == "pipeshub-ai/gateway"
        assert result.detail == "HTTP 200"

    async def test_unexpected_status_fails_without_retry(self) -> None:
        """4xx responses are final."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(404)

        async with _client(handler) as client:
            result = await HealthChecker(client, attempts=3, initial_wait=0).check(GATEWAY)

        assert not result.passed
        assert result.detail == "HTTP 404, expected 200"
        assert len(calls) == 1

    async def test_server_error_retried_until_healthy(self) -> None:
        """5xx responses are retried."""
        statuses = iter([503, 502, 200])

        async with _client(lambda request: httpx.Response(next(statuses))) as client:
            result = await HealthChecker(client, attempts=3, initial_wait=0).check(GATEWAY)

        assert result.passed

    async def test_server_error_exhausts_attempts(self) -> None:
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(503)

        async with _client(handler) as client:
            result = await HealthChecker(client, attempts=2, initial_wait=0).check(GATEWAY)

        assert not result.passed
        assert result.detail == "HTTP 503, expected 200"
        assert len(calls) == 2

    async def test_transport_error_becomes_failed_result(self) -> None:
        """Connection failures do not raise."""

        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            result = await HealthChecker(client, attempts=2, initial_wait=0).check(GATEWAY)

        assert not result.passed
        assert result.detail.startswith("ConnectError")

    async def test_redirect_loop_becomes_failed_result(self) -> None:
        """Errors that are not retried still produce a failed check."""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(302, headers={"Location": str(request.url)})

        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, follow_redirects=True, max_redirects=3) as client:
            result = await HealthChecker(client, attempts=3, initial_wait=0).check(GATEWAY)

        assert not result.passed
        assert result.detail.startswith("TooManyRedirects")
        assert len(calls) == 4

    async def test_check_all_survives_redirect_loop(self) -> None:
        endpoints = [
            GATEWAY,
            HealthEndpoint("pipeshub-ai", "connector", "http://pipeshub-ai:8088/health"),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.host == "pipeshub.example.com":
                return httpx.Response(301, headers={"Location": str(request.url)})
            return httpx.Response(200)

        transport = httpx.MockTransport(handler)
        async with httpx.AsyncClient(transport=transport, follow_redirects=True) as client:
            results = await HealthChecker(client, attempts=1, initial_wait=0).check_all(endpoints)

        assert [r.passed for r in results] == [False, True]

    async def test_check_all_keeps_input_order(self) -> None:
        endpoints = [
            HealthEndpoint("a", "a", "http://a:1/health"),
            HealthEndpoint("b", "b", "http://b:2/health"),
        ]

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200 if request.url.host == "a" else 500)

        async with _client(handler) as client:
            results = await HealthChecker(client, attempts=1, initial_wait=0).check_all(endpoints)

        assert [(r.name, r.passed) for r in results] == [("a/a", True), ("b/b", False)]

    def test_attempts_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            HealthChecker(MagicMock(), attempts=0)
