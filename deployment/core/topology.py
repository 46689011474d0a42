"""
Deployment topology for the PipesHub AI stack.

Describes the independently deployed services (application container, data
stores, external inference, edge), how they depend on each other, and where
each one exposes its health check. Internals of every service are opaque.

Dependencies: deployment.configs
System role: Single source of truth for service wiring and startup order
"""

import heapq
import logging
from dataclasses import dataclass, field
from enum import Enum

from deployment.configs.settings import Settings
from deployment.core.exceptions import DependencyCycleError, UnknownServiceError

logger = logging.getLogger(__name__)

APPLICATION_SERVICE = "pipeshub-ai"
LOAD_BALANCER_SERVICE = "load-balancer"
INFERENCE_SERVICE = "inference"


class ServiceKind(str, Enum):
    """Role a service plays in the deployment."""

    APPLICATION = "application"
    DATASTORE = "datastore"
    INFERENCE = "inference"
    EDGE = "edge"


@dataclass(frozen=True)
class ServicePort:
    """
    A port a service listens on.

    Attributes:
        name: Port name
        port: Port published on the host
        container_port: Port inside the container, when it differs from port
        protocol: Transport protocol
    """

    name: str
    port: int
    container_port: int | None = None
    protocol: str = "tcp"

    @property
    def target_port(self) -> int:
        """Port peers on the same network connect to."""
        return self.container_port if self.container_port is not None else self.port


@dataclass(frozen=True)
class HealthCheck:
    """HTTP health check for one port of a service."""

    name: str
    path: str
    port: int
    expected_status: int = 200
    scheme: str = "http"
    public: bool = False


@dataclass(frozen=True)
class HealthEndpoint:
    """A fully-resolved health check URL."""

    service: str
    name: str
    url: str
    expected_status: int = 200


@dataclass
class ServiceSpec:
    """
    One independently deployed service.

    Attributes:
        name: Service name (also the compose service / internal hostname)
        kind: Role of the service
        image: Container image, None for services not run as containers
        ports: Listening ports
        depends_on: Names of services that must be up first
        health_checks: HTTP health checks
        env_keys: Environment variables the service consumes
        managed: Provided by the cloud provider rather than self-hosted
        volume: Data directory needing a persistent volume
    """

    name: str
    kind: ServiceKind
    image: str | None = None
    ports: list[ServicePort] = field(default_factory=list)
    depends_on: list[str] = field(default_factory=list)
    health_checks: list[HealthCheck] = field(default_factory=list)
    env_keys: list[str] = field(default_factory=list)
    managed: bool = False
    volume: str | None = None

    @property
    def is_self_hosted_store(self) -> bool:
        return self.kind is ServiceKind.DATASTORE and not self.managed


class Topology:
    """Set of services keyed by name with dependency-aware ordering."""

    def __init__(self, services: list[ServiceSpec]) -> None:
        self._services: dict[str, ServiceSpec] = {}
        for spec in services:
            if spec.name in self._services:
                raise ValueError(f"Duplicate service: {spec.name}")
            self._services[spec.name] = spec

    def __iter__(self):
        return iter(self._services.values())

    def __len__(self) -> int:
        return len(self._services)

    def __contains__(self, name: object) -> bool:
        return name in self._services

    def get(self, name: str) -> ServiceSpec:
        """
        Look up a service by name.

        Raises:
            UnknownServiceError: If the name is not in the topology
        """
        try:
            return self._services[name]
        except KeyError:
            raise UnknownServiceError(name) from None

    def names(self) -> list[str]:
        return sorted(self._services)

    def by_kind(self, kind: ServiceKind) -> list[ServiceSpec]:
        return [s for s in self._services.values() if s.kind is kind]

    def self_hosted(self) -> list[ServiceSpec]:
        """Data stores that must be run by the deployment itself."""
        return [s for s in self._services.values() if s.is_self_hosted_store]

    def startup_order(self) -> list[str]:
        """
        Order services so every dependency starts before its dependents.

        Uses Kahn's algorithm with a name-ordered heap so the result is
        deterministic for a given topology.

        Returns:
            list[str]: Service names in startup order

        Raises:
            UnknownServiceError: If a service depends on a name not in the topology
            DependencyCycleError: If dependencies are circular
        """
        indegree: dict[str, int] = {name: 0 for name in self._services}
        dependents: dict[str, list[str]] = {name: [] for name in self._services}

        for spec in self._services.values():
            for dep in spec.depends_on:
                if dep not in self._services:
                    raise UnknownServiceError(dep, {"required_by": spec.name})
                indegree[spec.name] += 1
                dependents[dep].append(spec.name)

        ready = [name for name, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)
        order: list[str] = []

        while ready:
            name = heapq.heappop(ready)
            order.append(name)
            for dependent in dependents[name]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(ready, dependent)

        if len(order) != len(self._services):
            blocked = [name for name, degree in indegree.items() if degree > 0]
            raise DependencyCycleError(blocked)

        return order

    def health_endpoints(
        self,
        host_map: dict[str, str] | None = None,
        public_base_url: str | None = None,
        include_internal: bool = True,
    ) -> list[HealthEndpoint]:
        """
        Resolve every health check into a URL.

        Public checks go through public_base_url when one is given. Internal
        checks address the service by the host in host_map, defaulting to the
        service name (its compose hostname).

        Args:
            host_map: Service name -> reachable host
            public_base_url: Base URL of the load-balanced frontend
            include_internal: Include checks that are only reachable inside the network

        Returns:
            list[HealthEndpoint]: Endpoints in startup order
        """
        host_map = host_map or {}
        endpoints: list[HealthEndpoint] = []

        for name in self.startup_order():
            spec = self._services[name]
            for check in spec.health_checks:
                if check.public and public_base_url:
                    url = f"{public_base_url.rstrip('/')}{check.path}"
                elif include_internal:
                    host = host_map.get(name, name)
                    url = f"{check.scheme}://{host}:{check.port}{check.path}"
                else:
                    continue
                endpoints.append(
                    HealthEndpoint(
                        service=name,
                        name=check.name,
                        url=url,
                        expected_status=check.expected_status,
                    )
                )

        return endpoints


def default_topology(settings: Settings) -> Topology:
    """
    Build the PipesHub deployment topology.

    Args:
        settings: Deployment settings (image, store placement, ports)

    Returns:
        Topology: Application container, data stores, inference and edge
    """
    ds = settings.datastores

    def managed(store: str) -> bool:
        return ds.mode_of(store) == "managed"

    def store_port(name: str, field_name: str) -> ServicePort:
        return ServicePort(name, getattr(ds, field_name), ds.client_port(field_name))

    stores = [
        ServiceSpec(
            name="mongodb",
            kind=ServiceKind.DATASTORE,
            image="mongo:8.0.6",
            ports=[store_port("mongodb", "mongo_port")],
            env_keys=["MONGO_URI", "MONGO_DB_NAME"],
            managed=managed("mongodb"),
            volume="/data/db",
        ),
        ServiceSpec(
            name="redis",
            kind=ServiceKind.DATASTORE,
            image="redis:7.4-alpine",
            ports=[store_port("redis", "redis_port")],
            env_keys=["REDIS_HOST", "REDIS_PORT", "REDIS_PASSWORD"],
            managed=managed("redis"),
            volume="/data",
        ),
        ServiceSpec(
            name="arangodb",
            kind=ServiceKind.DATASTORE,
            image="arangodb:3.12.4",
            ports=[store_port("arangodb", "arango_port")],
            health_checks=[HealthCheck("arangodb", "/_api/version", ds.client_port("arango_port"))],
            env_keys=["ARANGO_URL", "ARANGO_DB_NAME", "ARANGO_USERNAME", "ARANGO_PASSWORD"],
            managed=managed("arangodb"),
            volume="/var/lib/arangodb3",
        ),
        ServiceSpec(
            name="etcd",
            kind=ServiceKind.DATASTORE,
            image="quay.io/coreos/etcd:v3.5.17",
            ports=[store_port("etcd", "etcd_port")],
            health_checks=[HealthCheck("etcd", "/health", ds.client_port("etcd_port"))],
            env_keys=["ETCD_URL"],
            managed=managed("etcd"),
            volume="/etcd-data",
        ),
        ServiceSpec(
            name="zookeeper",
            kind=ServiceKind.DATASTORE,
            image="confluentinc/cp-zookeeper:7.9.0",
            ports=[ServicePort("zookeeper", 2181)],
            managed=managed("kafka"),
        ),
        ServiceSpec(
            name="kafka",
            kind=ServiceKind.DATASTORE,
            image="confluentinc/cp-kafka:7.9.0",
            ports=[store_port("kafka", "kafka_port")],
            depends_on=[] if managed("kafka") else ["zookeeper"],
            env_keys=["KAFKA_BROKERS"],
            managed=managed("kafka"),
        ),
        ServiceSpec(
            name="qdrant",
            kind=ServiceKind.DATASTORE,
            image="qdrant/qdrant:v1.13.6",
            ports=[
                store_port("qdrant-http", "qdrant_port"),
                store_port("qdrant-grpc", "qdrant_grpc_port"),
            ],
            health_checks=[HealthCheck("qdrant", "/healthz", ds.client_port("qdrant_port"))],
            env_keys=["QDRANT_HOST", "QDRANT_PORT", "QDRANT_GRPC_PORT", "QDRANT_API_KEY"],
            managed=managed("qdrant"),
            volume="/qdrant/storage",
        ),
    ]

    # Managed Kafka needs no zookeeper container
    if managed("kafka"):
        stores = [s for s in stores if s.name != "zookeeper"]

    application = ServiceSpec(
        name=APPLICATION_SERVICE,
        kind=ServiceKind.APPLICATION,
        image=settings.image,
        ports=[
            ServicePort("frontend", 3000),
            ServicePort("query", 8000),
            ServicePort("docling", 8081),
            ServicePort("connector", 8088),
            ServicePort("indexing", 8091),
        ],
        depends_on=[s.name for s in stores if s.name != "zookeeper"],
        health_checks=[
            HealthCheck("gateway", "/api/v1/health", 3000, public=True),
            HealthCheck("connector", "/health", 8088),
            HealthCheck("indexing", "/health", 8091),
            HealthCheck("query", "/health", 8000),
            HealthCheck("docling", "/health", 8081),
        ],
        volume="/data/pipeshub",
    )

    inference = ServiceSpec(
        name=INFERENCE_SERVICE,
        kind=ServiceKind.INFERENCE,
        env_keys=["LLM_PROVIDER", "LLM_MODEL", "EMBEDDING_MODEL", "LLM_ENDPOINT", "LLM_API_KEY"],
        managed=True,
    )

    edge = ServiceSpec(
        name=LOAD_BALANCER_SERVICE,
        kind=ServiceKind.EDGE,
        ports=[ServicePort("http", 80), ServicePort("https", 443)],
        depends_on=[APPLICATION_SERVICE],
        managed=True,
    )

    topology = Topology([*stores, inference, application, edge])
    logger.debug(
        f"{__name__}:default_topology - {len(topology)} services, "
        f"{len(topology.self_hosted())} self-hosted stores"
    )
    return topology
