"""
DNS resolution checks.

Confirms public records resolve to where the deployment expects.

Dependencies: asyncio, socket (stdlib)
System role: "DNS record resolves to expected IP" acceptance check
"""

import asyncio
import logging
import socket
import time
from typing import Awaitable, Callable

from deployment.core.dns import DnsRecord
from deployment.verification.report import CheckResult

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[set[str]]]


async def system_resolver(host: str) -> set[str]:
    """Resolve a hostname to its addresses through the system resolver."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return {info[4][0] for info in infos}


class DnsChecker:
    """Checks DnsRecords against a resolver."""

    def __init__(self, resolver: Resolver = system_resolver) -> None:
        self._resolve = resolver

    async def _addresses(self, host: str) -> tuple[set[str], str | None]:
        try:
            return await self._resolve(host), None
        except OSError as exc:
            return set(), f"{type(exc).__name__}: {exc}"

    async def check(self, record: DnsRecord) -> CheckResult:
        """
        Check one record.

        A/AAAA records pass when the expected address is among the resolved
        ones. CNAME/ALIAS records pass when the name resolves to exactly the
        target's addresses.

        Args:
            record: Expected record

        Returns:
            CheckResult: Never raises for resolution failures
        """
        started = time.perf_counter()
        target = f"{record.name} -> {record.value}"

        resolved, error = await self._addresses(record.name)
        if error:
            return self._result(record, target, False, f"resolution failed: {error}", started)
        if not resolved:
            return self._result(record, target, False, "no addresses", started)

        if record.type in ("A", "AAAA"):
            passed = record.value in resolved
            detail = f"resolved {', '.join(sorted(resolved))}"
            return self._result(record, target, passed, detail, started)

        expected, error = await self._addresses(record.value)
        if error:
            return self._result(record, target, False, f"target resolution failed: {error}", started)
        passed = bool(expected) and resolved == expected
        detail = f"resolved {', '.join(sorted(resolved))}"
        if not passed:
            detail += f"; target has {', '.join(sorted(expected)) or 'no addresses'}"
        return self._result(record, target, passed, detail, started)

    @staticmethod
    def _result(record: DnsRecord, target: str, passed: bool, detail: str, started: float) -> CheckResult:
        elapsed = (time.perf_counter() - started) * 1000
        if not passed:
            logger.warning(f"{__name__}:check - {record.name} {record.type} failed: {detail}")
        return CheckResult("dns", record.name, target, passed, detail, elapsed)

    async def check_all(self, records: list[DnsRecord]) -> list[CheckResult]:
        return list(await asyncio.gather(*(self.check(record) for record in records)))
