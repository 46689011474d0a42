"""
docker-compose rendering for self-hosted services.

Builds a compose document running every self-hosted data store plus the
application container. Secrets never appear literally: the application
reads the rendered .env through env_file, and store credentials use compose
variable interpolation. Compose interpolates from the project env file, so
the stack is started with `docker compose --env-file <env file>` pointing at
the same rendered file.

Published store ports are the configured host ports; inside the compose
network each store keeps the port its image listens on.

Dependencies: PyYAML, deployment.core.topology, deployment.core.env_contract
System role: Container configuration artifact for the data and app hosts
"""

import logging
from typing import Any

import yaml

from deployment.configs.settings import Settings
from deployment.core.env_contract import EnvContract
from deployment.core.topology import APPLICATION_SERVICE, ServiceSpec, Topology

logger = logging.getLogger(__name__)

# Store-specific container settings. Keys are compose service names.
_STORE_OVERRIDES: dict[str, dict[str, Any]] = {
    "mongodb": {
        "environment": {
            "MONGO_INITDB_ROOT_USERNAME": "${MONGO_USERNAME:-admin}",
            "MONGO_INITDB_ROOT_PASSWORD": "${MONGO_PASSWORD:?MONGO_PASSWORD must be set}",
        },
        "healthcheck_test": ["CMD", "mongosh", "--quiet", "--eval", "db.adminCommand('ping')"],
    },
    "redis": {
        "command": ["redis-server", "--requirepass", "${REDIS_PASSWORD}", "--appendonly", "yes"],
        "healthcheck_test": ["CMD-SHELL", "redis-cli -a \"$$REDIS_PASSWORD\" ping | grep PONG"],
        "environment": {"REDIS_PASSWORD": "${REDIS_PASSWORD}"},
    },
    "arangodb": {
        "environment": {"ARANGO_ROOT_PASSWORD": "${ARANGO_PASSWORD:?ARANGO_PASSWORD must be set}"},
        "healthcheck_test": [
            "CMD-SHELL",
            "arangosh --server.password \"$$ARANGO_ROOT_PASSWORD\" --javascript.execute-string 'db._version()' > /dev/null 2>&1",
        ],
    },
    "etcd": {
        "command": [
            "etcd",
            "--name=etcd0",
            "--data-dir=/etcd-data",
            "--listen-client-urls=http://0.0.0.0:2379",
            "--advertise-client-urls=http://etcd:2379",
        ],
        "healthcheck_test": ["CMD", "etcdctl", "endpoint", "health"],
    },
    "zookeeper": {
        "environment": {"ZOOKEEPER_CLIENT_PORT": "2181", "ZOOKEEPER_TICK_TIME": "2000"},
        "healthcheck_test": ["CMD-SHELL", "echo srvr | nc localhost 2181 || exit 1"],
    },
    "kafka": {
        "environment": {
            "KAFKA_BROKER_ID": "1",
            "KAFKA_ZOOKEEPER_CONNECT": "zookeeper:2181",
            "KAFKA_ADVERTISED_LISTENERS": "PLAINTEXT://kafka:9092",
            "KAFKA_OFFSETS_TOPIC_REPLICATION_FACTOR": "1",
            "KAFKA_AUTO_CREATE_TOPICS_ENABLE": "true",
        },
        "healthcheck_test": [
            "CMD-SHELL",
            "kafka-broker-api-versions --bootstrap-server localhost:9092 > /dev/null 2>&1",
        ],
    },
    "qdrant": {
        "environment": {"QDRANT__SERVICE__API_KEY": "${QDRANT_API_KEY}"},
        # The qdrant image ships without curl
        "healthcheck_test": ["CMD-SHELL", "bash -c ':> /dev/tcp/127.0.0.1/6333' || exit 1"],
    },
}

_HEALTHCHECK_TIMING = {"interval": "10s", "timeout": "5s", "retries": 5, "start_period": "30s"}


def _healthcheck(spec: ServiceSpec, override: dict[str, Any]) -> dict[str, Any] | None:
    test = override.get("healthcheck_test")
    if test is None and spec.health_checks:
        check = spec.health_checks[0]
        test = ["CMD-SHELL", f"curl -fsS http://localhost:{check.port}{check.path} || exit 1"]
    if test is None:
        return None
    return {"test": test, **_HEALTHCHECK_TIMING}


def _service_entry(
    spec: ServiceSpec,
    topology: Topology,
    included: set[str],
    env_file: str,
    image: str | None,
) -> dict[str, Any]:
    override = _STORE_OVERRIDES.get(spec.name, {})
    entry: dict[str, Any] = {
        "image": image or spec.image,
        "container_name": spec.name,
        "restart": "unless-stopped",
    }

    if "command" in override:
        entry["command"] = list(override["command"])

    if spec.name == APPLICATION_SERVICE:
        entry["env_file"] = [env_file]
    if "environment" in override:
        entry["environment"] = dict(override["environment"])

    entry["ports"] = [f"{port.port}:{port.target_port}" for port in spec.ports]

    if spec.volume:
        entry["volumes"] = [f"{spec.name}-data:{spec.volume}"]

    # Dependencies on managed services are satisfied outside compose
    local_deps = [dep for dep in spec.depends_on if dep in included]
    if local_deps:
        entry["depends_on"] = {
            dep: {
                "condition": "service_healthy"
                if _healthcheck(topology.get(dep), _STORE_OVERRIDES.get(dep, {}))
                else "service_started"
            }
            for dep in local_deps
        }

    healthcheck = _healthcheck(spec, override)
    if healthcheck:
        entry["healthcheck"] = healthcheck

    return entry


def render_compose(
    topology: Topology,
    contract: EnvContract | None = None,
    env_file: str = ".env",
    include_application: bool = True,
    app_image: str | None = None,
) -> dict[str, Any]:
    """
    Build a docker-compose document for the self-hosted part of the topology.

    The application reads its whole environment from env_file. Store
    credentials are interpolated by compose, which reads them from the file
    passed to `docker compose --env-file`; use the same file for both.

    Args:
        topology: Deployment topology
        contract: Environment contract, used to check the app's inputs are covered
        env_file: Dotenv file the application container reads
        include_application: Include the application container
        app_image: Image the application container runs (defaults to the topology's image)

    Returns:
        dict: Compose document (services in startup order, then volumes)
    """
    included = {spec.name for spec in topology.self_hosted()}
    if include_application:
        included.add(APPLICATION_SERVICE)

    services: dict[str, Any] = {}
    volumes: dict[str, Any] = {}

    for name in topology.startup_order():
        if name not in included:
            continue
        spec = topology.get(name)
        image = app_image if name == APPLICATION_SERVICE else None
        services[name] = _service_entry(spec, topology, included, env_file, image)
        if spec.volume:
            volumes[f"{name}-data"] = {}

    if contract is not None:
        uncovered = [
            key
            for spec in topology
            for key in spec.env_keys
            if key not in contract
        ]
        if uncovered:
            logger.warning(f"{__name__}:render_compose - Variables outside contract: {uncovered}")

    document: dict[str, Any] = {"services": services}
    if volumes:
        document["volumes"] = volumes

    logger.info(f"{__name__}:render_compose - Rendered {len(services)} services")
    return document


def to_yaml(document: dict[str, Any]) -> str:
    """Serialise a compose document, keeping insertion order."""
    return yaml.safe_dump(document, sort_keys=False, default_flow_style=False)


def bootstrap_values(topology: Topology, settings: Settings) -> dict[str, str]:
    """
    Values the compose file interpolates that the application never reads.

    Args:
        topology: Deployment topology
        settings: Deployment settings

    Returns:
        dict[str, str]: Extra dotenv entries for self-hosted store bootstrap
    """
    values: dict[str, str] = {}
    self_hosted = {spec.name for spec in topology.self_hosted()}
    if "mongodb" in self_hosted:
        values["MONGO_USERNAME"] = settings.datastores.mongo_user
        values["MONGO_PASSWORD"] = settings.datastores.mongo_password
    return values
