"""
Infrastructure constants for PipesHub.

Contains CIDR blocks, instance types, ports and monitoring defaults.
"""

from typing import Final

# VPC Configuration
VPC_CIDR: Final[str] = "10.0.0.0/16"

# Subnet CIDR blocks
SUBNET_CIDRS: Final[dict[str, str]] = {
    "public": "10.0.0.0/24",   # ALB, NAT gateway (AZ-a)
    "public_b": "10.0.5.0/24", # ALB (AZ-b)
    "app": "10.0.1.0/24",      # Docker host
    "data": "10.0.3.0/24",     # Managed stores (AZ-a)
    "data_b": "10.0.4.0/24",   # Managed stores (AZ-b)
}

# Docker host instance types by environment (app + self-hosted stores)
APP_INSTANCE_TYPES: Final[dict[str, str]] = {
    "dev": "t3.xlarge",
    "staging": "m6i.2xlarge",
    "prod": "r6i.2xlarge",
}

# Default tags applied to all resources
DEFAULT_TAGS: Final[dict[str, str]] = {
    "Project": "pipeshub",
    "ManagedBy": "pulumi",
}

# Application container ports
PORTS: Final[dict[str, int]] = {
    "http": 80,
    "https": 443,
    "frontend": 3000,
    "query": 8000,
    "docling": 8081,
    "connector": 8088,
    "indexing": 8091,
}

# Data store ports opened from the application host
STORE_PORTS: Final[dict[str, int]] = {
    "mongodb": 27017,
    "redis": 6379,
    "arangodb": 8529,
    "etcd": 2379,
    "kafka": 9092,
    "zookeeper": 2181,
    "qdrant": 6333,
    "qdrant_grpc": 6334,
}

GATEWAY_HEALTH_PATH: Final[str] = "/api/v1/health"
CONNECTOR_HEALTH_PATH: Final[str] = "/health"

# Custom CloudWatch metrics published by the hosts
METRIC_NAMESPACE: Final[str] = "PipesHub"
METRICS: Final[dict[str, str]] = {
    "restart_count": "RestartCount",
    "memory_percent": "MemoryUtilization",
    "consumer_lag": "ConsumerLag",
}

# Containers the hosts report metrics for
APP_CONTAINERS: Final[list[str]] = ["pipeshub-ai"]
STORE_CONTAINERS: Final[list[str]] = [
    "mongodb",
    "redis",
    "arangodb",
    "etcd",
    "zookeeper",
    "kafka",
    "qdrant",
]
