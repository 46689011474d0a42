"""
ACM Certificate Component with DNS validation.

Issues one certificate covering the frontend host and the API host, writes
the validation CNAMEs into the Route53 hosted zone, and waits for ACM to mark
the certificate ISSUED. The HTTPS listener uses the validated ARN, so the
load balancer is never created with a pending certificate.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.utils.tags import create_tags


@dataclass
class CertificateOutputs:
    """Output values from certificate component."""
    certificate_arn: pulumi.Output[str]
    zone_id: pulumi.Output[str]


class CertificateComponent(pulumi.ComponentResource):
    """
    DNS-validated ACM certificate for the public hosts.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        hosted_zone: str,
        hosts: list[str],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:edge:Certificate", name, None, opts)

        if not hosts:
            raise ValueError("At least one host is required for the certificate")

        child_opts = pulumi.ResourceOptions(parent=self)

        zone = aws.route53.get_zone(name=hosted_zone, private_zone=False)
        self.zone_id = zone.zone_id

        self.certificate = aws.acm.Certificate(
            f"{name}-cert",
            domain_name=hosts[0],
            subject_alternative_names=hosts[1:],
            validation_method="DNS",
            tags=create_tags(environment, f"{name}-cert"),
            opts=child_opts,
        )

        # One validation record per host; ACM may return them in any order
        validation_records = []
        for index in range(len(hosts)):
            option = self.certificate.domain_validation_options[index]
            validation_records.append(aws.route53.Record(
                f"{name}-cert-validation-{index}",
                zone_id=self.zone_id,
                name=option.resource_record_name,
                type=option.resource_record_type,
                records=[option.resource_record_value],
                ttl=60,
                allow_overwrite=True,
                opts=child_opts,
            ))

        self.validation = aws.acm.CertificateValidation(
            f"{name}-cert-validation",
            certificate_arn=self.certificate.arn,
            validation_record_fqdns=[record.fqdn for record in validation_records],
            opts=child_opts,
        )

        self.register_outputs({
            "certificate_arn": self.validation.certificate_arn,
            "zone_id": self.zone_id,
        })

    def get_outputs(self) -> CertificateOutputs:
        """Get certificate output values."""
        return CertificateOutputs(
            certificate_arn=self.validation.certificate_arn,
            zone_id=pulumi.Output.from_input(self.zone_id),
        )
