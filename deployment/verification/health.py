"""
HTTP health checks.

Checks health endpoints with retries on transport errors and 5xx responses.
Network failures become failed results rather than exceptions.

Dependencies: httpx, tenacity
System role: "health endpoint returns 200" acceptance check
"""

import asyncio
import logging
import time

import httpx
from tenacity import (
    AsyncRetrying,
    RetryError,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from deployment.core.topology import HealthEndpoint
from deployment.verification.report import CheckResult

logger = logging.getLogger(__name__)


class _RetryableStatus(Exception):
    """A 5xx response worth retrying."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"HTTP {response.status_code}")


class HealthChecker:
    """
    Runs HTTP health checks with an injected httpx client.

    Attributes:
        attempts: Maximum attempts per endpoint
        initial_wait: First back-off delay in seconds
        max_wait: Back-off ceiling in seconds
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        attempts: int = 3,
        initial_wait: float = 1.0,
        max_wait: float = 10.0,
    ) -> None:
        if attempts < 1:
            raise ValueError("attempts must be at least 1")
        self._client = client
        self.attempts = attempts
        self.initial_wait = initial_wait
        self.max_wait = max_wait

    async def _get(self, url: str) -> httpx.Response:
        response = await self._client.get(url)
        if response.status_code >= 500:
            raise _RetryableStatus(response)
        return response

    async def check(self, endpoint: HealthEndpoint) -> CheckResult:
        """
        Check one endpoint.

        Args:
            endpoint: Resolved health endpoint

        Returns:
            CheckResult: passed when the final status equals the expected status
        """
        started = time.perf_counter()
        name = f"{endpoint.service}/{endpoint.name}"

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type((httpx.TransportError, _RetryableStatus)),
                stop=stop_after_attempt(self.attempts),
                wait=wait_exponential(multiplier=self.initial_wait, max=self.max_wait)
                + wait_random(0, self.initial_wait),
                before_sleep=lambda state: logger.info(
                    f"{__name__}:check - Retry {state.attempt_number}/{self.attempts} for {endpoint.url}"
                ),
                reraise=False,
            ):
                with attempt:
                    response = await self._get(endpoint.url)
        except RetryError as exc:
            last = exc.last_attempt.exception()
            elapsed = (time.perf_counter() - started) * 1000
            if isinstance(last, _RetryableStatus):
                detail = f"HTTP {last.response.status_code}, expected {endpoint.expected_status}"
            else:
                detail = f"{type(last).__name__}: {last}" if last else "no response"
            logger.warning(f"{__name__}:check - {name} failed after {self.attempts} attempts: {detail}")
            return CheckResult("http", name, endpoint.url, False, detail, elapsed)
        except httpx.HTTPError as exc:
            # Errors that retrying cannot fix, such as a redirect loop
            elapsed = (time.perf_counter() - started) * 1000
            detail = f"{type(exc).__name__}: {exc}"
            logger.warning(f"{__name__}:check - {name} failed: {detail}")
            return CheckResult("http", name, endpoint.url, False, detail, elapsed)

        elapsed = (time.perf_counter() - started) * 1000
        passed = response.status_code == endpoint.expected_status
        detail = f"HTTP {response.status_code}"
        if not passed:
            detail += f", expected {endpoint.expected_status}"
        return CheckResult("http", name, endpoint.url, passed, detail, elapsed)

    async def check_all(self, endpoints: list[HealthEndpoint]) -> list[CheckResult]:
        """Check endpoints concurrently, returning results in input order."""
        return list(await asyncio.gather(*(self.check(endpoint) for endpoint in endpoints)))
