"""
IAM roles component for the EC2 hosts.

Creates one role shared by the application and data store hosts:
- ECR pull for the application image
- Secrets Manager read for pipeshub/{environment}/* secrets
- CloudWatch logs and custom metrics (RestartCount, MemoryUtilization, ConsumerLag)
- SSM Session Manager instead of SSH
- bedrock:InvokeModel when the LLM provider is Bedrock
"""

import json
from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.constants import METRIC_NAMESPACE
from IAC.utils.tags import create_tags


@dataclass
class IamRoleOutputs:
    """Output values from IAM roles component."""
    host_role_arn: pulumi.Output[str]
    host_instance_profile_name: pulumi.Output[str]
    host_instance_profile_arn: pulumi.Output[str]


def host_policy_document(secret_prefix: str, allow_bedrock: bool) -> dict:
    """
    Build the inline policy for the hosts.

    Args:
        secret_prefix: Secrets Manager name prefix (pipeshub/{environment})
        allow_bedrock: Grant Bedrock model invocation

    Returns:
        dict: IAM policy document
    """
    statements = [
        {
            "Effect": "Allow",
            "Action": ["ecr:GetAuthorizationToken"],
            "Resource": ["*"],
        },
        {
            "Effect": "Allow",
            "Action": [
                "ecr:BatchGetImage",
                "ecr:GetDownloadUrlForLayer",
                "ecr:BatchCheckLayerAvailability",
            ],
            "Resource": ["arn:aws:ecr:*:*:repository/*"],
        },
        {
            "Effect": "Allow",
            "Action": ["secretsmanager:GetSecretValue"],
            "Resource": [f"arn:aws:secretsmanager:*:*:secret:{secret_prefix}/*"],
        },
        {
            "Effect": "Allow",
            "Action": [
                "logs:CreateLogGroup",
                "logs:CreateLogStream",
                "logs:PutLogEvents",
            ],
            "Resource": ["arn:aws:logs:*:*:*"],
        },
        {
            "Effect": "Allow",
            "Action": ["cloudwatch:PutMetricData"],
            "Resource": ["*"],
            "Condition": {"StringEquals": {"cloudwatch:namespace": METRIC_NAMESPACE}},
        },
    ]
    if allow_bedrock:
        statements.append({
            "Effect": "Allow",
            "Action": [
                "bedrock:InvokeModel",
                "bedrock:InvokeModelWithResponseStream",
            ],
            "Resource": ["*"],
        })
    return {"Version": "2012-10-17", "Statement": statements}


class IamRolesComponent(pulumi.ComponentResource):
    """
    IAM role and instance profile for the EC2 hosts.

    Follows least-privilege principle with specific resource permissions.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        secret_prefix: str,
        allow_bedrock: bool = False,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:security:IamRoles", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        ec2_assume_policy = json.dumps({
            "Version": "2012-10-17",
            "Statement": [{
                "Effect": "Allow",
                "Principal": {"Service": "ec2.amazonaws.com"},
                "Action": "sts:AssumeRole",
            }],
        })

        self.host_role = aws.iam.Role(
            f"{name}-host-role",
            assume_role_policy=ec2_assume_policy,
            tags=create_tags(environment, f"{name}-host-role"),
            opts=child_opts,
        )

        self.host_instance_profile = aws.iam.InstanceProfile(
            f"{name}-host-profile",
            role=self.host_role.name,
            tags=create_tags(environment, f"{name}-host-profile"),
            opts=child_opts,
        )

        aws.iam.RolePolicy(
            f"{name}-host-policy",
            role=self.host_role.id,
            policy=json.dumps(host_policy_document(secret_prefix, allow_bedrock)),
            opts=child_opts,
        )

        # Shell access through Session Manager; no SSH ingress
        aws.iam.RolePolicyAttachment(
            f"{name}-host-ssm",
            role=self.host_role.name,
            policy_arn="arn:aws:iam::aws:policy/AmazonSSMManagedInstanceCore",
            opts=child_opts,
        )

        self.register_outputs({
            "host_role_arn": self.host_role.arn,
            "host_instance_profile_name": self.host_instance_profile.name,
            "host_instance_profile_arn": self.host_instance_profile.arn,
        })

    def get_outputs(self) -> IamRoleOutputs:
        """Get IAM role output values."""
        return IamRoleOutputs(
            host_role_arn=self.host_role.arn,
            host_instance_profile_name=self.host_instance_profile.name,
            host_instance_profile_arn=self.host_instance_profile.arn,
        )
