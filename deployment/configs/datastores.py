"""
Data store configuration settings.

Hosts, ports, credentials and placement (managed or self-hosted) for every
store the application container talks to: MongoDB, ArangoDB, Redis, etcd,
Kafka and Qdrant.

Dependencies: pydantic, pydantic_settings
System role: Connection parameters consumed by the environment contract
"""

from typing import Literal
from urllib.parse import quote_plus

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

StoreMode = Literal["self_hosted", "managed"]

DATASTORE_NAMES = ("mongodb", "arangodb", "redis", "etcd", "kafka", "qdrant")

# Ports the store images listen on inside their containers
CONTAINER_PORTS = {
    "mongo_port": 27017,
    "arango_port": 8529,
    "redis_port": 6379,
    "etcd_port": 2379,
    "kafka_port": 9092,
    "qdrant_port": 6333,
    "qdrant_grpc_port": 6334,
}


class DataStoreSettings(BaseSettings):
    """Connection settings for the application's backing stores."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DATASTORE_",
        case_sensitive=False,
        extra="ignore",
    )

    # MongoDB
    mongo_host: str = Field(default="mongodb", description="MongoDB host")
    mongo_port: int = Field(default=27017, description="MongoDB port")
    mongo_user: str = Field(default="admin", description="MongoDB user")
    mongo_password: str = Field(default="", description="MongoDB password")
    mongo_db_name: str = Field(default="es", description="MongoDB database name")
    mongo_mode: StoreMode = Field(default="self_hosted")

    # ArangoDB
    arango_host: str = Field(default="arangodb", description="ArangoDB host")
    arango_port: int = Field(default=8529, description="ArangoDB port")
    arango_user: str = Field(default="root", description="ArangoDB user")
    arango_password: str = Field(default="", description="ArangoDB root password")
    arango_db_name: str = Field(default="es", description="ArangoDB database name")
    arango_mode: StoreMode = Field(default="self_hosted")

    # Redis
    redis_host: str = Field(default="redis", description="Redis host")
    redis_port: int = Field(default=6379, description="Redis port")
    redis_password: str = Field(default="", description="Redis password")
    redis_mode: StoreMode = Field(default="self_hosted")

    # etcd
    etcd_host: str = Field(default="etcd", description="etcd host")
    etcd_port: int = Field(default=2379, description="etcd client port")
    etcd_mode: StoreMode = Field(default="self_hosted")

    # Kafka
    kafka_host: str = Field(default="kafka", description="Kafka broker host")
    kafka_port: int = Field(default=9092, description="Kafka broker port")
    kafka_mode: StoreMode = Field(default="self_hosted")

    # Qdrant
    qdrant_host: str = Field(default="qdrant", description="Qdrant host")
    qdrant_port: int = Field(default=6333, description="Qdrant HTTP port")
    qdrant_grpc_port: int = Field(default=6334, description="Qdrant gRPC port")
    qdrant_api_key: str = Field(default="", description="Qdrant API key")
    qdrant_mode: StoreMode = Field(default="self_hosted")

    def mode_of(self, store: str) -> StoreMode:
        """
        Get the placement of a store.

        Args:
            store: One of DATASTORE_NAMES

        Returns:
            "managed" or "self_hosted"

        Raises:
            KeyError: If the store name is unknown
        """
        prefixes = {
            "mongodb": "mongo",
            "arangodb": "arango",
            "redis": "redis",
            "etcd": "etcd",
            "kafka": "kafka",
            "qdrant": "qdrant",
        }
        return getattr(self, f"{prefixes[store]}_mode")

    def client_port(self, field_name: str) -> int:
        """
        Port the application connects to for one port setting.

        Self-hosted stores are reached over the compose network, where the
        container listens on the image's fixed port; the configured value is
        only the port published on the host. Managed stores are reached on
        the configured port.

        Args:
            field_name: Port field, e.g. "qdrant_grpc_port"

        Returns:
            int: Port to put in connection strings

        Raises:
            KeyError: If field_name is not a store port
        """
        container_port = CONTAINER_PORTS[field_name]
        prefix = field_name.split("_", 1)[0]
        if getattr(self, f"{prefix}_mode") == "self_hosted":
            return container_port
        return getattr(self, field_name)

    @property
    def mongo_uri(self) -> str:
        """
        Construct MongoDB connection URI.

        Returns:
            str: URI with credentials and authSource=admin when a password is set
        """
        address = f"{self.mongo_host}:{self.client_port('mongo_port')}"
        if self.mongo_password:
            return (
                f"mongodb://{quote_plus(self.mongo_user)}:{quote_plus(self.mongo_password)}"
                f"@{address}/?authSource=admin"
            )
        return f"mongodb://{address}/"

    @property
    def arango_url(self) -> str:
        return f"http://{self.arango_host}:{self.client_port('arango_port')}"

    @property
    def redis_url(self) -> str:
        auth = f":{quote_plus(self.redis_password)}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.client_port('redis_port')}"

    @property
    def etcd_url(self) -> str:
        return f"http://{self.etcd_host}:{self.client_port('etcd_port')}"

    @property
    def kafka_brokers(self) -> str:
        return f"{self.kafka_host}:{self.client_port('kafka_port')}"

    @property
    def qdrant_url(self) -> str:
        return f"http://{self.qdrant_host}:{self.client_port('qdrant_port')}"
