"""
Security Groups Component for Network Access Control.

Access pattern:
   Internet --80/443--> ALB --3000/8088--> App host --store ports--> Data stores

- ALB: accepts HTTP and HTTPS from anywhere. HTTP only redirects to HTTPS.
- App: accepts the gateway (3000) and connector (8088) ports from the ALB only.
- Data: accepts each data store port from the app host only. The same group
  covers the self-hosted store host and the managed ElastiCache/DocumentDB
  endpoints.

Groups are created first without rules so rules can reference each other by id.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.constants import PORTS, STORE_PORTS
from IAC.utils.tags import create_tags

# Application ports the load balancer forwards to
ALB_TARGET_PORTS = ("frontend", "connector")


@dataclass
class SecurityGroupOutputs:
    """Output values from security groups component."""
    alb_sg_id: pulumi.Output[str]
    app_sg_id: pulumi.Output[str]
    data_sg_id: pulumi.Output[str]


class SecurityGroupsComponent(pulumi.ComponentResource):
    """
    Security groups for the load balancer, application host and data stores.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        vpc_id: pulumi.Input[str],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:networking:SecurityGroups", name, None, opts)
        self.environment = environment

        child_opts = pulumi.ResourceOptions(parent=self)

        self.alb_sg = aws.ec2.SecurityGroup(
            f"{name}-alb-sg",
            description="Public Application Load Balancer",
            vpc_id=vpc_id,
            tags=create_tags(environment, f"{name}-alb-sg"),
            opts=child_opts,
        )

        self.app_sg = aws.ec2.SecurityGroup(
            f"{name}-app-sg",
            description="PipesHub application host",
            vpc_id=vpc_id,
            tags=create_tags(environment, f"{name}-app-sg"),
            opts=child_opts,
        )

        self.data_sg = aws.ec2.SecurityGroup(
            f"{name}-data-sg",
            description="PipesHub data stores",
            vpc_id=vpc_id,
            tags=create_tags(environment, f"{name}-data-sg"),
            opts=child_opts,
        )

        self._create_rules(name, child_opts)

        self.register_outputs({
            "alb_sg_id": self.alb_sg.id,
            "app_sg_id": self.app_sg.id,
            "data_sg_id": self.data_sg.id,
        })

    def _create_rules(
        self,
        name: str,
        opts: pulumi.ResourceOptions,
    ) -> None:
        """Create security group rules."""
        # ALB: public HTTP/HTTPS
        for port_name in ("http", "https"):
            aws.vpc.SecurityGroupIngressRule(
                f"{name}-alb-ingress-{port_name}",
                security_group_id=self.alb_sg.id,
                ip_protocol="tcp",
                from_port=PORTS[port_name],
                to_port=PORTS[port_name],
                cidr_ipv4="0.0.0.0/0",
                description=f"{port_name.upper()} from internet",
                opts=opts,
            )

        for port_name in ALB_TARGET_PORTS:
            # ALB -> app
            aws.vpc.SecurityGroupEgressRule(
                f"{name}-alb-egress-{port_name}",
                security_group_id=self.alb_sg.id,
                ip_protocol="tcp",
                from_port=PORTS[port_name],
                to_port=PORTS[port_name],
                referenced_security_group_id=self.app_sg.id,
                description=f"To app {port_name}",
                opts=opts,
            )
            aws.vpc.SecurityGroupIngressRule(
                f"{name}-app-ingress-{port_name}",
                security_group_id=self.app_sg.id,
                ip_protocol="tcp",
                from_port=PORTS[port_name],
                to_port=PORTS[port_name],
                referenced_security_group_id=self.alb_sg.id,
                description=f"{port_name} from ALB",
                opts=opts,
            )

        # App: image pulls, LLM provider, OAuth providers
        aws.vpc.SecurityGroupEgressRule(
            f"{name}-app-egress-all",
            security_group_id=self.app_sg.id,
            ip_protocol="-1",
            cidr_ipv4="0.0.0.0/0",
            description="All outbound traffic",
            opts=opts,
        )

        for store, port in STORE_PORTS.items():
            label = store.replace("_", "-")
            aws.vpc.SecurityGroupIngressRule(
                f"{name}-data-ingress-{label}",
                security_group_id=self.data_sg.id,
                ip_protocol="tcp",
                from_port=port,
                to_port=port,
                referenced_security_group_id=self.app_sg.id,
                description=f"{store} from app",
                opts=opts,
            )

        # Data: image pulls
        aws.vpc.SecurityGroupEgressRule(
            f"{name}-data-egress-all",
            security_group_id=self.data_sg.id,
            ip_protocol="-1",
            cidr_ipv4="0.0.0.0/0",
            description="All outbound traffic",
            opts=opts,
        )

    def get_outputs(self) -> SecurityGroupOutputs:
        """Get security group output values."""
        return SecurityGroupOutputs(
            alb_sg_id=self.alb_sg.id,
            app_sg_id=self.app_sg.id,
            data_sg_id=self.data_sg.id,
        )
