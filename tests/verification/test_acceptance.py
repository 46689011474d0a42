"""Tests for the acceptance run."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from deployment.core.exceptions import UnknownServiceError
from deployment.core.topology import default_topology
from deployment.verification.acceptance import run_acceptance, service_hosts, tcp_endpoints
from deployment.verification.dns_check import DnsChecker
from deployment.verification.report import CheckResult


def _healthy_client(seen: list[str]) -> httpx.AsyncClient:
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200)

    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _dns(addresses: set[str]) -> DnsChecker:
    async def resolve(host: str) -> set[str]:
        return addresses

    return DnsChecker(resolve)


class TestRunAcceptance:
    """Tests for run_acceptance."""

    async def test_public_checks(self, settings) -> None:
        """Gateway health through the public URL plus both DNS records."""
        seen: list[str] = []

        async with _healthy_client(seen) as client:
            report = await run_acceptance(
                settings,
                default_topology(settings),
                client,
                dns_checker=_dns({"203.0.113.10"}),
                check_tls=False,
            )

        assert seen == ["https://pipeshub.example.com/api/v1/health"]
        assert [r.kind for r in report.results] == ["http", "dns", "dns"]
        assert report.passed

    async def test_dns_mismatch_fails_run(self, settings) -> None:
        async with _healthy_client([]) as client:
            report = await run_acceptance(
                settings,
                default_topology(settings),
                client,
                dns_checker=_dns({"198.51.100.99"}),
                check_tls=False,
            )

        assert not report.passed
        assert {r.kind for r in report.failures} == {"dns"}

    async def test_tls_checked_for_each_public_host(self, settings) -> None:
        tls = AsyncMock(side_effect=lambda host: CheckResult("tls", host, f"{host}:443", True))

        with patch("deployment.verification.acceptance.check_certificate", tls):
            async with _healthy_client([]) as client:
                report = await run_acceptance(
                    settings, default_topology(settings), client, dns_checker=_dns({"203.0.113.10"})
                )

        assert sorted(call.args[0] for call in tls.call_args_list) == [
            "api.pipeshub.example.com",
            "pipeshub.example.com",
        ]
        assert report.passed

    async def test_dns_skipped_without_target(self, make_settings) -> None:
        settings = make_settings(domain={"expected_ip": None})

        async with _healthy_client([]) as client:
            report = await run_acceptance(settings, default_topology(settings), client, check_tls=False)

        assert [r.kind for r in report.results] == ["http"]

    async def test_internal_checks(self, settings) -> None:
        """In-network checks cover every service health port and store without HTTP."""
        seen: list[str] = []
        tcp = AsyncMock(side_effect=lambda target: CheckResult("tcp", target.service, target.host, True))

        with patch("deployment.verification.acceptance.check_tcp", tcp):
            async with _healthy_client(seen) as client:
                await run_acceptance(
                    settings,
                    default_topology(settings),
                    client,
                    dns_checker=_dns({"203.0.113.10"}),
                    include_internal=True,
                    check_tls=False,
                )

        assert "http://arangodb:8529/_api/version" in seen
        assert "http://pipeshub-ai:8088/health" in seen
        assert sorted(call.args[0].service for call in tcp.call_args_list) == [
            "kafka", "mongodb", "redis", "zookeeper",
        ]

    async def test_service_filter(self, settings) -> None:
        """Restricting services skips the public DNS and TLS checks."""
        seen: list[str] = []

        async with _healthy_client(seen) as client:
            report = await run_acceptance(
                settings,
                default_topology(settings),
                client,
                include_internal=True,
                services=["qdrant"],
            )

        assert seen == ["http://qdrant:6333/healthz"]
        assert [r.kind for r in report.results] == ["http"]

    async def test_unknown_service(self, settings) -> None:
        async with _healthy_client([]) as client:
            with pytest.raises(UnknownServiceError):
                await run_acceptance(settings, default_topology(settings), client, services=["postgres"])


class TestTargets:
    """Tests for host and TCP target derivation."""

    def test_service_hosts_follow_settings(self, make_settings) -> None:
        settings = make_settings(datastores={"redis_host": "cache.internal"})

        assert service_hosts(settings)["redis"] == "cache.internal"

    def test_tcp_endpoints_use_host_map(self, settings) -> None:
        targets = tcp_endpoints(default_topology(settings), {"redis": "cache.internal"})

        redis = next(target for target in targets if target.service == "redis")
        assert (redis.host, redis.port) == ("cache.internal", 6379)
