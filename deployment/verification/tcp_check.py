"""
TCP reachability checks for services without an HTTP health endpoint.

Dependencies: asyncio (stdlib)
System role: Reachability of data stores from the application host
"""

import asyncio
import logging
import time
from dataclasses import dataclass

from deployment.verification.report import CheckResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TcpEndpoint:
    service: str
    host: str
    port: int


async def check_tcp(endpoint: TcpEndpoint, timeout: float = 5.0) -> CheckResult:
    """
    Open and close a TCP connection.

    Args:
        endpoint: Host and port to reach
        timeout: Connect timeout in seconds

    Returns:
        CheckResult: passed when the connection is accepted
    """
    target = f"{endpoint.host}:{endpoint.port}"
    started = time.perf_counter()
    try:
        _, writer = await asyncio.wait_for(
            asyncio.open_connection(endpoint.host, endpoint.port),
            timeout=timeout,
        )
    except (OSError, asyncio.TimeoutError) as exc:
        elapsed = (time.perf_counter() - started) * 1000
        detail = "timed out" if isinstance(exc, asyncio.TimeoutError) else f"{type(exc).__name__}: {exc}"
        logger.warning(f"{__name__}:check_tcp - {endpoint.service} unreachable at {target}: {detail}")
        return CheckResult("tcp", endpoint.service, target, False, detail, elapsed)

    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        # Peer reset during close still means the port accepted us
        pass
    elapsed = (time.perf_counter() - started) * 1000
    return CheckResult("tcp", endpoint.service, target, True, "connected", elapsed)
