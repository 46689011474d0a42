"""
Expected public DNS records.

Dependencies: ipaddress (stdlib)
System role: Declares the records the edge must publish, consumed by the DNS smoke check
"""

import ipaddress
from dataclasses import dataclass

from deployment.configs.domain import DomainSettings
from deployment.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class DnsRecord:
    """A DNS record the deployment expects to exist."""

    name: str
    type: str
    value: str
    ttl: int = 300

    def __str__(self) -> str:
        return f"{self.name} {self.ttl} IN {self.type} {self.value}"


def is_ip_address(value: str) -> bool:
    try:
        ipaddress.ip_address(value)
    except ValueError:
        return False
    return True


def expected_records(domain: DomainSettings, target: str | None = None, ttl: int = 300) -> list[DnsRecord]:
    """
    Records pointing the public hostnames at the load balancer.

    An IP target yields A (or AAAA) records, a hostname yields CNAMEs. The
    frontend and API hosts collapse to one record when they are the same name.

    Args:
        domain: Public domain settings
        target: Load balancer DNS name or IP (defaults to domain.expected_ip)
        ttl: Record TTL in seconds

    Returns:
        list[DnsRecord]: Frontend record first, then API

    Raises:
        ConfigurationError: If no target is given or configured
    """
    target = (target or domain.expected_ip or "").strip().rstrip(".")
    if not target:
        raise ConfigurationError(
            "A DNS target (load balancer hostname or IP) is required",
            field="expected_ip",
        )

    if is_ip_address(target):
        record_type = "AAAA" if ipaddress.ip_address(target).version == 6 else "A"
    else:
        record_type = "CNAME"

    records: list[DnsRecord] = []
    for host in dict.fromkeys([domain.frontend_host, domain.api_host]):
        if record_type == "CNAME" and host == domain.domain:
            # An apex cannot carry a CNAME; the provider alias record resolves the same way
            records.append(DnsRecord(host, "ALIAS", target, ttl))
        else:
            records.append(DnsRecord(host, record_type, target, ttl))
    return records
