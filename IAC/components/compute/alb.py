"""
Application Load Balancer Component for public traffic.

The 3-Resource Chain:
1. Load Balancer: internet-facing, in the two public subnets.
2. Listeners:
   - HTTP :80 redirects every request to HTTPS (301).
   - HTTPS :443 terminates TLS with the ACM certificate and forwards:
     * Host api.<domain> -> connector target group (8088), where OAuth
       callbacks and webhooks for the connector service land.
     * Everything else -> frontend target group (3000), the gateway serving the
       web app and /api/v1.
3. Target Groups: the application host registered on both ports.

Health checks:
- frontend: GET /api/v1/health on 3000 (the same endpoint `pipeshub-deploy verify` checks)
- connector: GET /health on 8088
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.constants import CONNECTOR_HEALTH_PATH, GATEWAY_HEALTH_PATH, PORTS
from IAC.utils.tags import create_tags

TLS_POLICY = "ELBSecurityPolicy-TLS13-1-2-2021-06"


@dataclass
class AlbOutputs:
    """Output values from ALB component."""
    alb_arn: pulumi.Output[str]
    alb_dns_name: pulumi.Output[str]
    alb_zone_id: pulumi.Output[str]
    https_listener_arn: pulumi.Output[str]
    frontend_target_group_arn: pulumi.Output[str]
    connector_target_group_arn: pulumi.Output[str]


class AlbComponent(pulumi.ComponentResource):
    """
    Internet-facing Application Load Balancer in front of the application host.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        vpc_id: pulumi.Input[str],
        subnet_ids: list[pulumi.Input[str]],
        security_group_id: pulumi.Input[str],
        certificate_arn: pulumi.Input[str],
        api_host: str,
        target_instance_id: pulumi.Input[str],
        deletion_protection: bool = False,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:compute:Alb", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.alb = aws.lb.LoadBalancer(
            f"{name}-alb",
            name=f"{name}-alb"[:32],
            internal=False,
            load_balancer_type="application",
            security_groups=[security_group_id],
            subnets=subnet_ids,
            enable_deletion_protection=deletion_protection,
            drop_invalid_header_fields=True,
            # Chat responses stream for a while
            idle_timeout=300,
            tags=create_tags(environment, f"{name}-alb", service="load-balancer"),
            opts=child_opts,
        )

        self.frontend_tg = self._target_group(
            name, environment, "frontend", vpc_id, GATEWAY_HEALTH_PATH, child_opts
        )
        self.connector_tg = self._target_group(
            name, environment, "connector", vpc_id, CONNECTOR_HEALTH_PATH, child_opts
        )

        for port_name, target_group in [
            ("frontend", self.frontend_tg),
            ("connector", self.connector_tg),
        ]:
            aws.lb.TargetGroupAttachment(
                f"{name}-{port_name}-attachment",
                target_group_arn=target_group.arn,
                target_id=target_instance_id,
                port=PORTS[port_name],
                opts=child_opts,
            )

        self.http_listener = aws.lb.Listener(
            f"{name}-http",
            load_balancer_arn=self.alb.arn,
            port=PORTS["http"],
            protocol="HTTP",
            default_actions=[
                aws.lb.ListenerDefaultActionArgs(
                    type="redirect",
                    redirect=aws.lb.ListenerDefaultActionRedirectArgs(
                        port=str(PORTS["https"]),
                        protocol="HTTPS",
                        status_code="HTTP_301",
                    ),
                ),
            ],
            tags=create_tags(environment, f"{name}-http"),
            opts=child_opts,
        )

        self.https_listener = aws.lb.Listener(
            f"{name}-https",
            load_balancer_arn=self.alb.arn,
            port=PORTS["https"],
            protocol="HTTPS",
            ssl_policy=TLS_POLICY,
            certificate_arn=certificate_arn,
            default_actions=[
                aws.lb.ListenerDefaultActionArgs(
                    type="forward",
                    target_group_arn=self.frontend_tg.arn,
                ),
            ],
            tags=create_tags(environment, f"{name}-https"),
            opts=child_opts,
        )

        aws.lb.ListenerRule(
            f"{name}-api-host-rule",
            listener_arn=self.https_listener.arn,
            priority=10,
            conditions=[
                aws.lb.ListenerRuleConditionArgs(
                    host_header=aws.lb.ListenerRuleConditionHostHeaderArgs(
                        values=[api_host],
                    ),
                ),
            ],
            actions=[
                aws.lb.ListenerRuleActionArgs(
                    type="forward",
                    target_group_arn=self.connector_tg.arn,
                ),
            ],
            tags=create_tags(environment, f"{name}-api-host-rule"),
            opts=child_opts,
        )

        self.register_outputs({
            "alb_arn": self.alb.arn,
            "alb_dns_name": self.alb.dns_name,
            "alb_zone_id": self.alb.zone_id,
            "https_listener_arn": self.https_listener.arn,
        })

    def _target_group(
        self,
        name: str,
        environment: str,
        port_name: str,
        vpc_id: pulumi.Input[str],
        health_path: str,
        opts: pulumi.ResourceOptions,
    ) -> aws.lb.TargetGroup:
        tg_name = f"{name}-{port_name}"[:29].rstrip("-") + "-tg"
        return aws.lb.TargetGroup(
            f"{name}-{port_name}-tg",
            name=tg_name,
            port=PORTS[port_name],
            protocol="HTTP",
            vpc_id=vpc_id,
            target_type="instance",
            deregistration_delay=60,
            health_check=aws.lb.TargetGroupHealthCheckArgs(
                enabled=True,
                path=health_path,
                port="traffic-port",
                protocol="HTTP",
                healthy_threshold=2,
                unhealthy_threshold=3,
                timeout=5,
                interval=30,
                matcher="200",
            ),
            tags=create_tags(environment, tg_name),
            opts=opts,
        )

    def get_outputs(self) -> AlbOutputs:
        """Get ALB output values."""
        return AlbOutputs(
            alb_arn=self.alb.arn,
            alb_dns_name=self.alb.dns_name,
            alb_zone_id=self.alb.zone_id,
            https_listener_arn=self.https_listener.arn,
            frontend_target_group_arn=self.frontend_tg.arn,
            connector_target_group_arn=self.connector_tg.arn,
        )
