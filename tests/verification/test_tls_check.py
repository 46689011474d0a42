"""Tests for TLS certificate checks."""

import ssl
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from deployment.verification.tls_check import check_certificate, days_remaining, fetch_certificate


def _cert(days: float) -> dict:
    expires = datetime.now(timezone.utc) + timedelta(days=days)
    return {"notAfter": expires.strftime("%b %d %H:%M:%S %Y GMT")}


def _fetch(cert: dict):
    async def fetch(host: str, port: int) -> dict:
        return cert

    return fetch


class TestCheckCertificate:
    """Tests for check_certificate with an injected fetcher."""

    async def test_valid_certificate(self) -> None:
        result = await check_certificate("pipeshub.example.com", fetch=_fetch(_cert(60)))

        assert result.passed
        assert result.kind == "tls"
        assert result.target == "pipeshub.example.com:443"

    async def test_expiring_certificate(self) -> None:
        result = await check_certificate("pipeshub.example.com", min_days=14, fetch=_fetch(_cert(5)))

        assert not result.passed
        assert "(minimum 14)" in result.detail

    async def test_handshake_failure(self) -> None:
        async def fetch(host: str, port: int) -> dict:
            raise ssl.SSLCertVerificationError("certificate verify failed")

        result = await check_certificate("pipeshub.example.com", fetch=fetch)

        assert not result.passed
        assert result.detail.startswith("SSLCertVerificationError")

    async def test_unreachable_host(self) -> None:
        async def fetch(host: str, port: int) -> dict:
            raise ConnectionRefusedError("refused")

        result = await check_certificate("pipeshub.example.com", port=8443, fetch=fetch)

        assert not result.passed
        assert result.target == "pipeshub.example.com:8443"

    async def test_certificate_without_expiry(self) -> None:
        result = await check_certificate("pipeshub.example.com", fetch=_fetch({}))

        assert not result.passed
        assert result.detail == "certificate has no expiry"


class TestDaysRemaining:
    def test_counts_days_from_now(self) -> None:
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)

        assert days_remaining({"notAfter": "Jan 31 00:00:00 2025 GMT"}, now=now) == 30


class TestFetchCertificate:
    """Tests for the handshake helper."""

    @staticmethod
    def _writer(cert: dict) -> MagicMock:
        writer = MagicMock()
        writer.get_extra_info.return_value = cert
        writer.wait_closed = AsyncMock()
        return writer

    async def test_connection_closed_after_handshake(self) -> None:
        writer = self._writer(_cert(30))
        opener = AsyncMock(return_value=(MagicMock(), writer))

        with patch("deployment.verification.tls_check.asyncio.open_connection", opener):
            cert = await fetch_certificate("pipeshub.example.com")

        assert "notAfter" in cert
        writer.close.assert_called_once()
        writer.wait_closed.assert_awaited_once()
        assert opener.call_args.kwargs["server_hostname"] == "pipeshub.example.com"

    async def test_reset_during_close_is_ignored(self) -> None:
        writer = self._writer({})
        writer.wait_closed.side_effect = ConnectionResetError()

        with patch(
            "deployment.verification.tls_check.asyncio.open_connection",
            AsyncMock(return_value=(MagicMock(), writer)),
        ):
            assert await fetch_certificate("pipeshub.example.com") == {}
