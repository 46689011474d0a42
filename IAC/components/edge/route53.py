"""
Route53 Component for the public host records.

Creates alias A records for the frontend host and the API host pointing at the
load balancer. These are the records `pipeshub-deploy dns-records` lists and
`pipeshub-deploy verify` resolves.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws


@dataclass
class Route53Outputs:
    """Output values from Route53 component."""
    record_fqdns: list[pulumi.Output[str]]


class Route53Component(pulumi.ComponentResource):
    """
    Alias records from the public hosts to the load balancer.
    """

    def __init__(
        self,
        name: str,
        zone_id: pulumi.Input[str],
        hosts: list[str],
        alb_dns_name: pulumi.Input[str],
        alb_zone_id: pulumi.Input[str],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:edge:Route53", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.records = []
        for host in hosts:
            label = host.replace(".", "-")
            self.records.append(aws.route53.Record(
                f"{name}-{label}",
                zone_id=zone_id,
                name=host,
                type="A",
                aliases=[
                    aws.route53.RecordAliasArgs(
                        name=alb_dns_name,
                        zone_id=alb_zone_id,
                        evaluate_target_health=True,
                    ),
                ],
                opts=child_opts,
            ))

        self.register_outputs({
            "record_fqdns": [record.fqdn for record in self.records],
        })

    def get_outputs(self) -> Route53Outputs:
        """Get Route53 output values."""
        return Route53Outputs(record_fqdns=[record.fqdn for record in self.records])
