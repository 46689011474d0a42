"""Tests for docker-compose rendering."""

import yaml

from deployment.core.compose import bootstrap_values, render_compose, to_yaml
from deployment.core.env_contract import build_contract
from deployment.core.topology import APPLICATION_SERVICE, default_topology


class TestRenderCompose:
    """Tests for the compose document."""

    def test_services_in_startup_order(self, settings) -> None:
        """Compose services follow the topology's startup order."""
        topology = default_topology(settings)

        document = render_compose(topology)

        expected = [name for name in topology.startup_order() if name in document["services"]]
        assert list(document["services"]) == expected
        assert list(document["services"])[-1] == APPLICATION_SERVICE

    def test_managed_and_edge_services_excluded(self, prod_settings) -> None:
        """Managed stores, inference and the load balancer are not containers."""
        document = render_compose(default_topology(prod_settings))

        services = set(document["services"])
        assert "redis" not in services
        assert "mongodb" not in services
        assert "inference" not in services
        assert "load-balancer" not in services
        assert "arangodb" in services

    def test_application_reads_env_file(self, settings) -> None:
        """The application gets its configuration from the rendered env file."""
        document = render_compose(default_topology(settings), env_file="/opt/pipeshub/.env")

        assert document["services"][APPLICATION_SERVICE]["env_file"] == ["/opt/pipeshub/.env"]

    def test_application_waits_for_healthy_stores(self, settings) -> None:
        """Stores with a healthcheck gate the application start."""
        app = render_compose(default_topology(settings))["services"][APPLICATION_SERVICE]

        assert app["depends_on"]["arangodb"] == {"condition": "service_healthy"}
        assert "zookeeper" not in app["depends_on"]

    def test_managed_dependencies_not_in_depends_on(self, prod_settings) -> None:
        """Dependencies satisfied outside compose are left out."""
        app = render_compose(default_topology(prod_settings))["services"][APPLICATION_SERVICE]

        assert "redis" not in app["depends_on"]
        assert "mongodb" not in app["depends_on"]

    def test_stores_only(self, settings) -> None:
        """The application container can be omitted."""
        document = render_compose(default_topology(settings), include_application=False)

        assert APPLICATION_SERVICE not in document["services"]
        assert "pipeshub-ai-data" not in document["volumes"]

    def test_volumes_declared(self, settings) -> None:
        """Every service with a data directory gets a named volume."""
        document = render_compose(default_topology(settings))

        assert document["services"]["arangodb"]["volumes"] == ["arangodb-data:/var/lib/arangodb3"]
        assert "arangodb-data" in document["volumes"]

    def test_secrets_never_inlined(self, settings) -> None:
        """Credentials are interpolated from the env file, not written literally."""
        text = to_yaml(render_compose(default_topology(settings), build_contract(settings)))

        for secret in ("mongo-secret-123", "arango-secret-456", "redis-secret-789", "qdrant-key-abcdef"):
            assert secret not in text
        assert "${ARANGO_PASSWORD" in text

    def test_custom_store_port_maps_to_image_port(self, make_settings) -> None:
        """Configured ports are published on the host, mapped onto the image's port."""
        settings = make_settings(datastores={"qdrant_port": 7333, "mongo_port": 27018})

        services = render_compose(default_topology(settings))["services"]

        assert services["qdrant"]["ports"] == ["7333:6333", "6334:6334"]
        assert services["mongodb"]["ports"] == ["27018:27017"]
        assert services[APPLICATION_SERVICE]["ports"][0] == "3000:3000"

    def test_application_runs_registry_image(self, settings) -> None:
        """The host runs the pushed copy, not the upstream image."""
        image = "123456789012.dkr.ecr.us-east-1.amazonaws.com/pipeshub-dev-app:latest"

        app = render_compose(default_topology(settings), app_image=image)["services"][APPLICATION_SERVICE]

        assert app["image"] == image
        assert render_compose(default_topology(settings), app_image=image)["services"]["redis"]["image"] == (
            "redis:7.4-alpine"
        )

    def test_application_image_defaults_to_topology(self, settings) -> None:
        app = render_compose(default_topology(settings))["services"][APPLICATION_SERVICE]

        assert app["image"] == settings.image

    def test_yaml_round_trips(self, settings) -> None:
        """The YAML text parses back to the same document."""
        document = render_compose(default_topology(settings))

        assert yaml.safe_load(to_yaml(document)) == document


class TestBootstrapValues:
    """Tests for compose-only interpolation values."""

    def test_self_hosted_mongo_needs_root_credentials(self, settings) -> None:
        values = bootstrap_values(default_topology(settings), settings)

        assert values == {"MONGO_USERNAME": "admin", "MONGO_PASSWORD": "mongo-secret-123"}

    def test_managed_mongo_needs_nothing(self, prod_settings) -> None:
        assert bootstrap_values(default_topology(prod_settings), prod_settings) == {}
