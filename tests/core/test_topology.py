"""Tests for the deployment topology."""

import pytest

from deployment.core.exceptions import DependencyCycleError, UnknownServiceError
from deployment.core.topology import (
    APPLICATION_SERVICE,
    LOAD_BALANCER_SERVICE,
    HealthCheck,
    ServiceKind,
    ServiceSpec,
    Topology,
    default_topology,
)


def _spec(name: str, *deps: str) -> ServiceSpec:
    return ServiceSpec(name=name, kind=ServiceKind.DATASTORE, depends_on=list(deps))


class TestTopologyOrdering:
    """Tests for dependency-aware startup order."""

    def test_dependencies_start_first(self) -> None:
        """Every service appears after all of its dependencies."""
        topology = Topology([_spec("app", "db", "cache"), _spec("db"), _spec("cache", "db")])

        order = topology.startup_order()

        assert order.index("db") < order.index("cache") < order.index("app")

    def test_order_is_deterministic(self) -> None:
        """Independent services are ordered by name."""
        topology = Topology([_spec("zeta"), _spec("alpha"), _spec("mid")])

        assert topology.startup_order() == ["alpha", "mid", "zeta"]

    def test_cycle_raises_with_members(self) -> None:
        """Circular dependencies are reported with the blocked services."""
        topology = Topology([_spec("a", "b"), _spec("b", "a"), _spec("c")])

        with pytest.raises(DependencyCycleError) as exc_info:
            topology.startup_order()

        assert exc_info.value.members == ["a", "b"]

    def test_unknown_dependency_raises(self) -> None:
        """Depending on a service outside the topology is an error."""
        topology = Topology([_spec("app", "missing")])

        with pytest.raises(UnknownServiceError) as exc_info:
            topology.startup_order()

        assert exc_info.value.service == "missing"
        assert exc_info.value.details["required_by"] == "app"

    def test_duplicate_service_rejected(self) -> None:
        """Two services with the same name cannot coexist."""
        with pytest.raises(ValueError):
            Topology([_spec("db"), _spec("db")])

    def test_get_unknown_service(self) -> None:
        """Looking up an unknown name raises UnknownServiceError."""
        with pytest.raises(UnknownServiceError):
            Topology([_spec("db")]).get("cache")


class TestHealthEndpoints:
    """Tests for health endpoint resolution."""

    @pytest.fixture
    def topology(self) -> Topology:
        return Topology([
            ServiceSpec(
                name="web",
                kind=ServiceKind.APPLICATION,
                depends_on=["db"],
                health_checks=[
                    HealthCheck("public", "/api/v1/health", 3000, public=True),
                    HealthCheck("internal", "/health", 8088),
                ],
            ),
            ServiceSpec(
                name="db",
                kind=ServiceKind.DATASTORE,
                health_checks=[HealthCheck("db", "/_api/version", 8529)],
            ),
        ])

    def test_public_checks_use_public_url(self, topology: Topology) -> None:
        """Public checks go through the load-balanced base URL."""
        endpoints = topology.health_endpoints(public_base_url="https://app.example.com/")

        urls = {endpoint.name: endpoint.url for endpoint in endpoints}
        assert urls["public"] == "https://app.example.com/api/v1/health"
        assert urls["internal"] == "http://web:8088/health"

    def test_host_map_overrides_service_name(self, topology: Topology) -> None:
        """Internal checks address the mapped host."""
        endpoints = topology.health_endpoints(host_map={"db": "10.0.3.5"})

        assert endpoints[0].url == "http://10.0.3.5:8529/_api/version"

    def test_endpoints_follow_startup_order(self, topology: Topology) -> None:
        """Dependencies are checked before dependents."""
        services = [endpoint.service for endpoint in topology.health_endpoints()]

        assert services == ["db", "web", "web"]

    def test_public_only(self, topology: Topology) -> None:
        """Without internal checks only public ones remain."""
        endpoints = topology.health_endpoints(
            public_base_url="https://app.example.com",
            include_internal=False,
        )

        assert [endpoint.name for endpoint in endpoints] == ["public"]


class TestDefaultTopology:
    """Tests for the PipesHub topology."""

    def test_contains_all_services(self, settings) -> None:
        """Application, stores, inference and edge are all present."""
        topology = default_topology(settings)

        for name in (
            "mongodb", "redis", "arangodb", "etcd", "zookeeper", "kafka", "qdrant",
            APPLICATION_SERVICE, LOAD_BALANCER_SERVICE, "inference",
        ):
            assert name in topology

    def test_application_after_stores_and_before_edge(self, settings) -> None:
        """The application starts after every store and before the load balancer."""
        order = default_topology(settings).startup_order()

        app = order.index(APPLICATION_SERVICE)
        for store in ("mongodb", "redis", "arangodb", "etcd", "kafka", "qdrant"):
            assert order.index(store) < app
        assert order.index("zookeeper") < order.index("kafka")
        assert order[-1] == LOAD_BALANCER_SERVICE

    def test_gateway_health_is_public(self, settings) -> None:
        """The gateway health check is reachable through the public URL."""
        app = default_topology(settings).get(APPLICATION_SERVICE)

        public = [check for check in app.health_checks if check.public]
        assert [(check.path, check.port) for check in public] == [("/api/v1/health", 3000)]

    def test_application_uses_configured_image(self, make_settings) -> None:
        """The application image comes from settings."""
        settings = make_settings(image="registry.example.com/pipeshub-ai:v1.2")

        assert default_topology(settings).get(APPLICATION_SERVICE).image == "registry.example.com/pipeshub-ai:v1.2"

    def test_managed_stores_are_not_self_hosted(self, prod_settings) -> None:
        """Managed stores stay in the topology but are not run by the deployment."""
        topology = default_topology(prod_settings)
        self_hosted = {spec.name for spec in topology.self_hosted()}

        assert topology.get("redis").managed
        assert "redis" not in self_hosted
        assert "mongodb" not in self_hosted
        assert "arangodb" in self_hosted

    def test_managed_kafka_drops_zookeeper(self, make_settings) -> None:
        """Zookeeper is only needed for self-hosted Kafka."""
        topology = default_topology(make_settings(datastores={"kafka_mode": "managed"}))

        assert "zookeeper" not in topology
        assert topology.get("kafka").depends_on == []

    def test_configured_port_is_published_on_host(self, make_settings) -> None:
        """A self-hosted store keeps its image port inside the compose network."""
        arangodb = default_topology(make_settings(datastores={"arango_port": 18529})).get("arangodb")

        assert (arangodb.ports[0].port, arangodb.ports[0].target_port) == (18529, 8529)
        assert arangodb.health_checks[0].port == 8529

    def test_managed_store_uses_configured_port(self, make_settings) -> None:
        arangodb = default_topology(
            make_settings(datastores={"arango_port": 18529, "arango_mode": "managed"})
        ).get("arangodb")

        assert arangodb.ports[0].target_port == 18529
        assert arangodb.health_checks[0].port == 18529
