"""
VPC Component Resource for Network Infrastructure.

Layout:
1. VPC (10.0.0.0/16) with DNS hostnames, so hosts resolve each other by private name.
2. Internet Gateway for the public subnets.
3. Subnets:
   - Public (10.0.0.0/24, 10.0.5.0/24): internet-facing ALB (needs two AZs) and the NAT gateway.
   - App (10.0.1.0/24): application host, no public IP.
   - Data (10.0.3.0/24, 10.0.4.0/24): data store host and the optional managed stores
     (ElastiCache and DocumentDB subnet groups need two AZs).
4. NAT Gateway: the hosts pull container images from Docker Hub and call the LLM
   provider, so private subnets route 0.0.0.0/0 through NAT.
5. Route tables and explicit associations for every subnet.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.constants import VPC_CIDR, SUBNET_CIDRS
from IAC.utils.tags import create_tags


@dataclass
class VpcOutputs:
    """Output values from VPC component."""
    vpc_id: pulumi.Output[str]
    public_subnet_ids: list[pulumi.Output[str]]
    app_subnet_id: pulumi.Output[str]
    data_subnet_ids: list[pulumi.Output[str]]
    nat_gateway_id: pulumi.Output[str]


class VpcComponent(pulumi.ComponentResource):
    """
    VPC component with public, app and data subnets and a NAT gateway.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:networking:Vpc", name, None, opts)
        self.environment = environment

        child_opts = pulumi.ResourceOptions(parent=self)

        zones = aws.get_availability_zones(state="available").names
        if len(zones) < 2:
            raise ValueError("Region must offer at least two availability zones")
        zone_a, zone_b = zones[0], zones[1]

        self.vpc = aws.ec2.Vpc(
            f"{name}-vpc",
            cidr_block=VPC_CIDR,
            enable_dns_hostnames=True,
            enable_dns_support=True,
            tags=create_tags(environment, f"{name}-vpc"),
            opts=child_opts,
        )

        self.igw = aws.ec2.InternetGateway(
            f"{name}-igw",
            vpc_id=self.vpc.id,
            tags=create_tags(environment, f"{name}-igw"),
            opts=child_opts,
        )

        self.public_subnet = self._subnet(name, "public", zone_a, child_opts, public=True)
        self.public_subnet_b = self._subnet(name, "public_b", zone_b, child_opts, public=True)
        self.app_subnet = self._subnet(name, "app", zone_a, child_opts)
        self.data_subnet = self._subnet(name, "data", zone_a, child_opts)
        self.data_subnet_b = self._subnet(name, "data_b", zone_b, child_opts)

        # NAT for outbound traffic from the private subnets
        self.nat_eip = aws.ec2.Eip(
            f"{name}-nat-eip",
            domain="vpc",
            tags=create_tags(environment, f"{name}-nat-eip"),
            opts=child_opts,
        )
        self.nat_gateway = aws.ec2.NatGateway(
            f"{name}-nat",
            allocation_id=self.nat_eip.id,
            subnet_id=self.public_subnet.id,
            tags=create_tags(environment, f"{name}-nat"),
            opts=pulumi.ResourceOptions(parent=self, depends_on=[self.igw]),
        )

        self._create_route_tables(name, child_opts)

        self.register_outputs({
            "vpc_id": self.vpc.id,
            "public_subnet_ids": [self.public_subnet.id, self.public_subnet_b.id],
            "app_subnet_id": self.app_subnet.id,
            "data_subnet_ids": [self.data_subnet.id, self.data_subnet_b.id],
            "nat_gateway_id": self.nat_gateway.id,
        })

    def _subnet(
        self,
        name: str,
        key: str,
        zone: str,
        opts: pulumi.ResourceOptions,
        public: bool = False,
    ) -> aws.ec2.Subnet:
        label = key.replace("_", "-")
        return aws.ec2.Subnet(
            f"{name}-{label}-subnet",
            vpc_id=self.vpc.id,
            cidr_block=SUBNET_CIDRS[key],
            availability_zone=zone,
            map_public_ip_on_launch=public,
            tags=create_tags(self.environment, f"{name}-{label}-subnet", Tier="public" if public else "private"),
            opts=opts,
        )

    def _create_route_tables(
        self,
        name: str,
        opts: pulumi.ResourceOptions,
    ) -> None:
        """Create route tables for public and private subnets."""
        public_rt = aws.ec2.RouteTable(
            f"{name}-public-rt",
            vpc_id=self.vpc.id,
            routes=[
                aws.ec2.RouteTableRouteArgs(
                    cidr_block="0.0.0.0/0",
                    gateway_id=self.igw.id,
                ),
            ],
            tags=create_tags(self.environment, f"{name}-public-rt"),
            opts=opts,
        )

        for subnet_name, subnet in [
            ("public", self.public_subnet),
            ("public-b", self.public_subnet_b),
        ]:
            aws.ec2.RouteTableAssociation(
                f"{name}-{subnet_name}-rt-assoc",
                subnet_id=subnet.id,
                route_table_id=public_rt.id,
                opts=opts,
            )

        # Private subnets reach the internet only through NAT
        self.private_rt = aws.ec2.RouteTable(
            f"{name}-private-rt",
            vpc_id=self.vpc.id,
            routes=[
                aws.ec2.RouteTableRouteArgs(
                    cidr_block="0.0.0.0/0",
                    nat_gateway_id=self.nat_gateway.id,
                ),
            ],
            tags=create_tags(self.environment, f"{name}-private-rt"),
            opts=opts,
        )

        for subnet_name, subnet in [
            ("app", self.app_subnet),
            ("data", self.data_subnet),
            ("data-b", self.data_subnet_b),
        ]:
            aws.ec2.RouteTableAssociation(
                f"{name}-{subnet_name}-rt-assoc",
                subnet_id=subnet.id,
                route_table_id=self.private_rt.id,
                opts=opts,
            )

    def get_outputs(self) -> VpcOutputs:
        """Get VPC output values."""
        return VpcOutputs(
            vpc_id=self.vpc.id,
            public_subnet_ids=[self.public_subnet.id, self.public_subnet_b.id],
            app_subnet_id=self.app_subnet.id,
            data_subnet_ids=[self.data_subnet.id, self.data_subnet_b.id],
            nat_gateway_id=self.nat_gateway.id,
        )
