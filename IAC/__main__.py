"""
Pulumi program entry point for PipesHub infrastructure.

Instantiates all component resources in dependency order:
1. Configuration
2. VPC -> Security Groups -> IAM Role
3. Secrets Manager, ECR repository, optional ElastiCache / DocumentDB
4. Docker host (application + self-hosted data stores)
5. ACM certificate -> ALB -> Route53 records
6. CloudWatch alarms
"""

import pulumi
import pulumi_aws as aws

from IAC.configs.constants import APP_CONTAINERS, STORE_CONTAINERS
from IAC.configs.environment import get_config
from IAC.utils.naming import ResourceNamer
from IAC.utils.outputs import write_outputs_to_env

# Networking
from IAC.components.networking.vpc import VpcComponent
from IAC.components.networking.security_groups import SecurityGroupsComponent

# Security
from IAC.components.security.iam_roles import IamRolesComponent
from IAC.components.security.secrets_manager import SecretsManagerComponent

# Storage
from IAC.components.storage.ecr_repository import EcrRepositoryComponent
from IAC.components.storage.elasticache_redis import ElastiCacheRedisComponent
from IAC.components.storage.documentdb import DocumentDbComponent

# Compute
from IAC.components.compute.docker_host import DockerHostComponent, render_user_data
from IAC.components.compute.alb import AlbComponent

# Edge
from IAC.components.edge.certificate import CertificateComponent
from IAC.components.edge.route53 import Route53Component

# Monitoring
from IAC.components.monitoring.alarms import AlarmsComponent

# Read by `pipeshub-deploy push-image`
ECR_OUTPUT_KEY = "app_ecr_repository"


def self_hosted_containers(managed_redis: bool, managed_mongo: bool) -> list[str]:
    """Data store containers that run on the Docker host."""
    managed = set()
    if managed_redis:
        managed.add("redis")
    if managed_mongo:
        managed.add("mongodb")
    return [name for name in STORE_CONTAINERS if name not in managed]


def main() -> None:
    """Deploy PipesHub infrastructure."""
    # Load configuration
    config = get_config()
    namer = ResourceNamer(project="pipeshub", environment=config.environment)
    base_name = namer.name("")
    pulumi_config = pulumi.Config()

    aws_region = aws.get_region().name

    # --- Layer 1: Networking Foundation ---
    vpc = VpcComponent(
        name=base_name,
        environment=config.environment,
    )
    vpc_outputs = vpc.get_outputs()

    security_groups = SecurityGroupsComponent(
        name=base_name,
        environment=config.environment,
        vpc_id=vpc_outputs.vpc_id,
    )
    sg_outputs = security_groups.get_outputs()

    # --- Layer 2: IAM ---
    iam_roles = IamRolesComponent(
        name=base_name,
        environment=config.environment,
        secret_prefix=namer.secret_prefix(),
        allow_bedrock=config.uses_bedrock,
    )
    iam_outputs = iam_roles.get_outputs()

    # --- Layer 3: Secrets, Storage ---
    secrets = SecretsManagerComponent(
        name=base_name,
        environment=config.environment,
        namer=namer,
    )
    secret_outputs = secrets.get_outputs()

    ecr_repository = EcrRepositoryComponent(
        name=base_name,
        environment=config.environment,
    )
    ecr_outputs = ecr_repository.get_outputs()

    managed_outputs: dict[str, pulumi.Input] = {}
    if config.managed_redis:
        redis = ElastiCacheRedisComponent(
            name=base_name,
            environment=config.environment,
            config=config,
            subnet_ids=vpc_outputs.data_subnet_ids,
            security_group_id=sg_outputs.data_sg_id,
            auth_token=pulumi_config.require_secret("redis_auth_token"),
        )
        managed_outputs["redis_endpoint"] = redis.get_outputs().primary_endpoint

    if config.managed_mongo:
        docdb = DocumentDbComponent(
            name=base_name,
            environment=config.environment,
            config=config,
            subnet_ids=vpc_outputs.data_subnet_ids,
            security_group_id=sg_outputs.data_sg_id,
        )
        docdb_outputs = docdb.get_outputs()
        managed_outputs["mongo_endpoint"] = docdb_outputs.endpoint
        managed_outputs["mongo_master_secret_arn"] = docdb_outputs.master_user_secret_arn

    # --- Layer 4: Compute ---
    stores = self_hosted_containers(config.managed_redis, config.managed_mongo)
    host = DockerHostComponent(
        name=namer.name("host"),
        environment=config.environment,
        instance_type=config.app_instance_type,
        volume_size=config.app_volume_size,
        subnet_id=vpc_outputs.app_subnet_id,
        security_group_id=sg_outputs.app_sg_id,
        instance_profile_name=iam_outputs.host_instance_profile_name,
        user_data=render_user_data(
            environment=config.environment,
            region=aws_region,
            containers=APP_CONTAINERS + stores,
            publish_consumer_lag="kafka" in stores,
        ),
    )
    host_outputs = host.get_outputs()

    # --- Layer 5: Edge ---
    certificate = CertificateComponent(
        name=base_name,
        environment=config.environment,
        hosted_zone=config.hosted_zone,
        hosts=config.public_hosts,
    )
    cert_outputs = certificate.get_outputs()

    alb = AlbComponent(
        name=base_name,
        environment=config.environment,
        vpc_id=vpc_outputs.vpc_id,
        subnet_ids=vpc_outputs.public_subnet_ids,
        security_group_id=sg_outputs.alb_sg_id,
        certificate_arn=cert_outputs.certificate_arn,
        api_host=config.api_host,
        target_instance_id=host_outputs.instance_id,
        deletion_protection=config.enable_deletion_protection,
    )
    alb_outputs = alb.get_outputs()

    Route53Component(
        name=base_name,
        zone_id=cert_outputs.zone_id,
        hosts=config.public_hosts,
        alb_dns_name=alb_outputs.alb_dns_name,
        alb_zone_id=alb_outputs.alb_zone_id,
    )

    # --- Layer 6: Monitoring ---
    alarms = AlarmsComponent(
        name=base_name,
        environment=config.environment,
        config=config,
        services=APP_CONTAINERS + stores,
    )

    # --- Exports ---
    outputs = {
        "vpc_id": vpc_outputs.vpc_id,
        "host_instance_id": host_outputs.instance_id,
        "host_private_ip": host_outputs.private_ip,
        "alb_dns_name": alb_outputs.alb_dns_name,
        "certificate_arn": cert_outputs.certificate_arn,
        ECR_OUTPUT_KEY: ecr_outputs.repository_url,
        "frontend_url": f"https://{config.frontend_host}",
        "api_url": f"https://{config.api_host}",
        "alarm_topic_arn": alarms.get_outputs().topic_arn,
        **{
            f"secret_{key.replace('-', '_')}": name
            for key, name in secret_outputs.secret_names.items()
        },
        **managed_outputs,
    }

    # Write outputs to .env file for operators
    write_outputs_to_env(outputs, "infrastructure.env")

    # Export to Pulumi stack
    for key, value in outputs.items():
        pulumi.export(key, value)


# Execute
main()
