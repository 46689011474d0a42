"""Tests for TCP reachability checks and the acceptance report."""

import asyncio
import socket

from deployment.verification.report import AcceptanceReport, CheckResult
from deployment.verification.tcp_check import TcpEndpoint, check_tcp


def _free_port() -> int:
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestCheckTcp:
    """Tests for check_tcp against a local listener."""

    async def test_open_port(self) -> None:
        server = await asyncio.start_server(lambda reader, writer: writer.close(), "127.0.0.1", 0)
        port = server.sockets[0].getsockname()[1]
        try:
            result = await check_tcp(TcpEndpoint("redis", "127.0.0.1", port))
        finally:
            server.close()
            await server.wait_closed()

        assert result.passed
        assert result.kind == "tcp"
        assert result.target == f"127.0.0.1:{port}"

    async def test_closed_port(self) -> None:
        result = await check_tcp(TcpEndpoint("redis", "127.0.0.1", _free_port()), timeout=2.0)

        assert not result.passed
        assert result.name == "redis"


class TestAcceptanceReport:
    """Tests for report aggregation."""

    def test_empty_report_does_not_pass(self) -> None:
        report = AcceptanceReport()

        assert not report.passed
        assert report.render_text() == "no checks were run"

    def test_any_failure_fails_report(self) -> None:
        report = AcceptanceReport()
        report.extend([
            CheckResult("http", "pipeshub-ai/gateway", "https://x/api/v1/health", True, "HTTP 200"),
            CheckResult("dns", "x", "x -> 1.2.3.4", False, "no addresses"),
        ])

        assert not report.passed
        assert [r.kind for r in report.failures] == ["dns"]
        assert report.to_dict()["failed"] == 1
        assert report.to_dict()["total"] == 2

    def test_render_text(self) -> None:
        report = AcceptanceReport([CheckResult("http", "a/b", "http://a:1/health", True, "HTTP 200")])

        lines = report.render_text().splitlines()

        assert lines[0].startswith("[PASS] http")
        assert lines[0].endswith("(HTTP 200)")
        assert lines[-1] == "all checks passed"
