"""
ElastiCache Redis Component (optional managed replacement for the redis container).

Enabled with `pulumi config set managed_redis true`. The auth token comes from
the stack secret `redis_auth_token` and must match REDIS_PASSWORD in the
application environment.

Access: data security group, which admits 6379 from the app host only.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.base import EnvironmentConfig
from IAC.configs.constants import STORE_PORTS
from IAC.utils.tags import create_tags

NODE_TYPES = {
    "dev": "cache.t4g.small",
    "staging": "cache.t4g.medium",
    "prod": "cache.r7g.large",
}


@dataclass
class RedisOutputs:
    """Output values from ElastiCache component."""
    primary_endpoint: pulumi.Output[str]
    port: pulumi.Output[int]


class ElastiCacheRedisComponent(pulumi.ComponentResource):
    """
    Single-shard Redis replication group with encryption and AUTH.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        config: EnvironmentConfig,
        subnet_ids: list[pulumi.Input[str]],
        security_group_id: pulumi.Input[str],
        auth_token: pulumi.Input[str],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:storage:ElastiCacheRedis", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.subnet_group = aws.elasticache.SubnetGroup(
            f"{name}-redis-subnets",
            subnet_ids=subnet_ids,
            tags=create_tags(environment, f"{name}-redis-subnets"),
            opts=child_opts,
        )

        replicas = 1 if config.is_production else 0
        self.replication_group = aws.elasticache.ReplicationGroup(
            f"{name}-redis",
            description="PipesHub Redis",
            engine="redis",
            engine_version="7.1",
            node_type=NODE_TYPES[environment],
            num_cache_clusters=1 + replicas,
            automatic_failover_enabled=replicas > 0,
            port=STORE_PORTS["redis"],
            subnet_group_name=self.subnet_group.name,
            security_group_ids=[security_group_id],
            at_rest_encryption_enabled=True,
            transit_encryption_enabled=True,
            auth_token=auth_token,
            snapshot_retention_limit=7 if config.is_production else 0,
            tags=create_tags(environment, f"{name}-redis", service="redis"),
            opts=child_opts,
        )

        self.register_outputs({
            "primary_endpoint": self.replication_group.primary_endpoint_address,
            "port": self.replication_group.port,
        })

    def get_outputs(self) -> RedisOutputs:
        """Get ElastiCache output values."""
        return RedisOutputs(
            primary_endpoint=self.replication_group.primary_endpoint_address,
            port=self.replication_group.port,
        )
