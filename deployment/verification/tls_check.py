"""
TLS certificate checks.

Dependencies: ssl, asyncio (stdlib)
System role: Certificate provisioning acceptance check
"""

import asyncio
import logging
import ssl
import time
from datetime import datetime, timezone

from deployment.verification.report import CheckResult

logger = logging.getLogger(__name__)


async def fetch_certificate(host: str, port: int = 443, timeout: float = 10.0) -> dict:
    """
    Complete a verified TLS handshake and return the peer certificate.

    Raises:
        ssl.SSLError: If the chain or hostname does not verify
        OSError: If the host cannot be reached
    """
    context = ssl.create_default_context()
    _, writer = await asyncio.wait_for(
        asyncio.open_connection(host, port, ssl=context, server_hostname=host),
        timeout=timeout,
    )
    try:
        return writer.get_extra_info("peercert") or {}
    finally:
        writer.close()
        try:
            await writer.wait_closed()
        except OSError:
            # Peer may drop the connection before close_notify
            pass


def days_remaining(cert: dict, now: datetime | None = None) -> float:
    """Days until the certificate's notAfter."""
    now = now or datetime.now(timezone.utc)
    expires = datetime.fromtimestamp(ssl.cert_time_to_seconds(cert["notAfter"]), tz=timezone.utc)
    return (expires - now).total_seconds() / 86400


async def check_certificate(
    host: str,
    port: int = 443,
    min_days: int = 14,
    fetch=fetch_certificate,
) -> CheckResult:
    """
    Check that host serves a valid certificate with enough remaining life.

    Args:
        host: Hostname to connect to and verify against
        port: TLS port
        min_days: Minimum days before expiry
        fetch: Certificate fetcher (injected in tests)

    Returns:
        CheckResult: Never raises for handshake or network failures
    """
    target = f"{host}:{port}"
    started = time.perf_counter()
    try:
        cert = await fetch(host, port)
    except (ssl.SSLError, ssl.CertificateError, OSError, asyncio.TimeoutError) as exc:
        elapsed = (time.perf_counter() - started) * 1000
        logger.warning(f"{__name__}:check_certificate - {host} handshake failed: {exc}")
        return CheckResult("tls", host, target, False, f"{type(exc).__name__}: {exc}", elapsed)

    elapsed = (time.perf_counter() - started) * 1000
    if "notAfter" not in cert:
        return CheckResult("tls", host, target, False, "certificate has no expiry", elapsed)

    remaining = days_remaining(cert)
    passed = remaining > min_days
    detail = f"expires in {remaining:.0f} days"
    if not passed:
        detail += f" (minimum {min_days})"
    return CheckResult("tls", host, target, passed, detail, elapsed)
