"""
Deployment acceptance run.

Gathers every smoke check the deployment guide calls for (public health,
DNS records, certificate, and optionally in-network health and data store
reachability) into one report.

Dependencies: httpx, deployment.verification
System role: Backend of `pipeshub-deploy verify`
"""

import asyncio
import logging

import httpx

from deployment.configs.settings import Settings
from deployment.core.dns import expected_records
from deployment.core.exceptions import ConfigurationError
from deployment.core.topology import ServiceKind, Topology
from deployment.observability.log_utils import log_with_context
from deployment.verification.dns_check import DnsChecker
from deployment.verification.health import HealthChecker
from deployment.verification.report import AcceptanceReport
from deployment.verification.tcp_check import TcpEndpoint, check_tcp
from deployment.verification.tls_check import check_certificate

logger = logging.getLogger(__name__)


def service_hosts(settings: Settings) -> dict[str, str]:
    """Reachable host per data store, as configured for the application."""
    ds = settings.datastores
    return {
        "mongodb": ds.mongo_host,
        "arangodb": ds.arango_host,
        "redis": ds.redis_host,
        "etcd": ds.etcd_host,
        "kafka": ds.kafka_host,
        "qdrant": ds.qdrant_host,
    }


def tcp_endpoints(topology: Topology, host_map: dict[str, str]) -> list[TcpEndpoint]:
    """TCP targets for data stores that have no HTTP health check."""
    endpoints = []
    for name in topology.startup_order():
        spec = topology.get(name)
        if spec.kind is not ServiceKind.DATASTORE or spec.health_checks or not spec.ports:
            continue
        endpoints.append(TcpEndpoint(name, host_map.get(name, name), spec.ports[0].target_port))
    return endpoints


async def run_acceptance(
    settings: Settings,
    topology: Topology,
    client: httpx.AsyncClient,
    dns_checker: DnsChecker | None = None,
    include_internal: bool = False,
    services: list[str] | None = None,
    check_tls: bool = True,
    attempts: int = 3,
) -> AcceptanceReport:
    """
    Run the acceptance checks for a deployment.

    Public checks always run: the gateway health endpoint through the public
    URL, the expected DNS records (when a target IP is configured), and the
    certificate (when the scheme is https). In-network checks run only with
    include_internal, from a host that can reach the service hostnames.

    Args:
        settings: Deployment settings
        topology: Deployment topology
        client: HTTP client used for health checks
        dns_checker: DNS checker (defaults to the system resolver)
        include_internal: Also check in-network health endpoints and store ports
        services: Restrict health/TCP checks to these services
        check_tls: Check the certificate of the public hosts
        attempts: HTTP attempts per endpoint

    Returns:
        AcceptanceReport: Results of every check
    """
    report = AcceptanceReport()
    domain = settings.domain
    host_map = service_hosts(settings)
    wanted = set(services) if services else None
    if wanted:
        for name in wanted:
            topology.get(name)

    endpoints = topology.health_endpoints(
        host_map=host_map,
        public_base_url=domain.frontend_url,
        include_internal=include_internal,
    )
    if wanted:
        endpoints = [endpoint for endpoint in endpoints if endpoint.service in wanted]

    checks = [HealthChecker(client, attempts=attempts).check_all(endpoints)]

    if include_internal:
        tcp_targets = tcp_endpoints(topology, host_map)
        if wanted:
            tcp_targets = [target for target in tcp_targets if target.service in wanted]
        checks.append(asyncio.gather(*(check_tcp(target) for target in tcp_targets)))

    if not wanted:
        try:
            records = expected_records(domain)
        except ConfigurationError:
            logger.info(f"{__name__}:run_acceptance - No expected IP configured, skipping DNS checks")
            records = []
        if records:
            checks.append((dns_checker or DnsChecker()).check_all(records))
        if check_tls and domain.scheme == "https":
            hosts = list(dict.fromkeys([domain.frontend_host, domain.api_host]))
            checks.append(asyncio.gather(*(check_certificate(host) for host in hosts)))

    for results in await asyncio.gather(*checks):
        report.extend(list(results))

    log_with_context(
        logger,
        logging.INFO,
        f"{__name__}:run_acceptance - Acceptance run complete",
        checks=len(report.results),
        failed=len(report.failures),
        internal=include_internal,
        services=sorted(wanted) if wanted else None,
    )
    return report
