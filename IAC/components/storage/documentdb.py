"""
DocumentDB Component (optional MongoDB-compatible replacement for the mongodb container).

Enabled with `pulumi config set managed_mongo true`.

Credentials: manage_master_user_password=True means AWS generates the password
and stores it in Secrets Manager. The operator copies it into the
datastore-credentials secret, which feeds MONGO_URI.

Access: data security group, which admits 27017 from the app host only.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.base import EnvironmentConfig
from IAC.configs.constants import STORE_PORTS
from IAC.utils.tags import create_tags

INSTANCE_CLASSES = {
    "dev": "db.t4g.medium",
    "staging": "db.t4g.medium",
    "prod": "db.r6g.large",
}


@dataclass
class DocumentDbOutputs:
    """Output values from DocumentDB component."""
    endpoint: pulumi.Output[str]
    port: pulumi.Output[int]
    master_user_secret_arn: pulumi.Output[str]


class DocumentDbComponent(pulumi.ComponentResource):
    """
    DocumentDB cluster used as the MongoDB store.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        config: EnvironmentConfig,
        subnet_ids: list[pulumi.Input[str]],
        security_group_id: pulumi.Input[str],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:storage:DocumentDb", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.subnet_group = aws.docdb.SubnetGroup(
            f"{name}-docdb-subnets",
            subnet_ids=subnet_ids,
            tags=create_tags(environment, f"{name}-docdb-subnets"),
            opts=child_opts,
        )

        self.cluster = aws.docdb.Cluster(
            f"{name}-docdb",
            cluster_identifier=f"{name}-docdb",
            engine="docdb",
            master_username="pipeshub",
            manage_master_user_password=True,
            port=STORE_PORTS["mongodb"],
            db_subnet_group_name=self.subnet_group.name,
            vpc_security_group_ids=[security_group_id],
            storage_encrypted=True,
            deletion_protection=config.enable_deletion_protection,
            skip_final_snapshot=not config.is_production,
            final_snapshot_identifier=f"{name}-docdb-final" if config.is_production else None,
            backup_retention_period=7 if config.is_production else 1,
            preferred_backup_window="03:00-04:00",
            tags=create_tags(environment, f"{name}-docdb", service="mongodb"),
            opts=child_opts,
        )

        instance_count = 2 if config.is_production else 1
        self.instances = [
            aws.docdb.ClusterInstance(
                f"{name}-docdb-{index}",
                cluster_identifier=self.cluster.id,
                instance_class=INSTANCE_CLASSES[environment],
                tags=create_tags(environment, f"{name}-docdb-{index}", service="mongodb"),
                opts=child_opts,
            )
            for index in range(instance_count)
        ]

        self.register_outputs({
            "endpoint": self.cluster.endpoint,
            "port": self.cluster.port,
        })

    def get_outputs(self) -> DocumentDbOutputs:
        """Get DocumentDB output values."""
        return DocumentDbOutputs(
            endpoint=self.cluster.endpoint,
            port=self.cluster.port,
            master_user_secret_arn=self.cluster.master_user_secrets.apply(
                lambda secrets: secrets[0].secret_arn if secrets else ""
            ),
        )
