"""Tests for DNS resolution checks."""

from deployment.core.dns import DnsRecord
from deployment.verification.dns_check import DnsChecker


def _resolver(table: dict[str, set[str]]):
    async def resolve(host: str) -> set[str]:
        if host not in table:
            raise OSError(f"NXDOMAIN {host}")
        return table[host]

    return resolve


class TestDnsChecker:
    """Tests for DnsChecker.check."""

    async def test_a_record_matches(self) -> None:
        checker = DnsChecker(_resolver({"pipeshub.example.com": {"203.0.113.10", "203.0.113.11"}}))

        result = await checker.check(DnsRecord("pipeshub.example.com", "A", "203.0.113.10"))

        assert result.passed
        assert result.kind == "dns"
        assert result.detail == "resolved 203.0.113.10, 203.0.113.11"

    async def test_a_record_wrong_address(self) -> None:
        checker = DnsChecker(_resolver({"pipeshub.example.com": {"198.51.100.1"}}))

        result = await checker.check(DnsRecord("pipeshub.example.com", "A", "203.0.113.10"))

        assert not result.passed

    async def test_resolution_failure_is_a_failed_result(self) -> None:
        checker = DnsChecker(_resolver({}))

        result = await checker.check(DnsRecord("api.pipeshub.example.com", "A", "203.0.113.10"))

        assert not result.passed
        assert result.detail.startswith("resolution failed: OSError")

    async def test_cname_matches_target_addresses(self) -> None:
        """A CNAME passes when the name resolves exactly like its target."""
        checker = DnsChecker(_resolver({
            "api.pipeshub.example.com": {"10.1.1.1", "10.1.1.2"},
            "alb.example.net": {"10.1.1.2", "10.1.1.1"},
        }))

        result = await checker.check(DnsRecord("api.pipeshub.example.com", "CNAME", "alb.example.net"))

        assert result.passed

    async def test_cname_pointing_elsewhere(self) -> None:
        checker = DnsChecker(_resolver({
            "api.pipeshub.example.com": {"10.9.9.9"},
            "alb.example.net": {"10.1.1.1"},
        }))

        result = await checker.check(DnsRecord("api.pipeshub.example.com", "CNAME", "alb.example.net"))

        assert not result.passed
        assert "target has 10.1.1.1" in result.detail

    async def test_check_all(self) -> None:
        checker = DnsChecker(_resolver({"a.example.com": {"10.0.0.1"}}))

        results = await checker.check_all([
            DnsRecord("a.example.com", "A", "10.0.0.1"),
            DnsRecord("b.example.com", "A", "10.0.0.1"),
        ])

        assert [r.passed for r in results] == [True, False]
