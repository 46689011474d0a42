"""
Docker Host Component for the application and the self-hosted data stores.

Runs the rendered docker-compose.yml: the pipeshub-ai container, pulled from
ECR, plus every data store that is not managed by AWS.

Key Components:
1. AMI: Amazon Linux 2023 ECS-optimized (Docker pre-installed).
2. User Data: runs once at first boot. Installs the compose plugin and the ECR
   credential helper, creates /opt/pipeshub, and installs a systemd timer that
   publishes container metrics (RestartCount, MemoryUtilization and Kafka
   ConsumerLag) to CloudWatch.
3. Instance Profile: ECR pull, Secrets Manager read, PutMetricData, SSM.
4. Placement: private subnet, no public IP. Operators connect with SSM Session Manager.
5. Storage: gp3 root volume, encrypted at rest. Store data lives in named volumes on it.
6. IMDSv2 (http_tokens="required").
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.constants import METRIC_NAMESPACE, METRICS
from IAC.utils.tags import create_tags

COMPOSE_VERSION = "v2.29.7"
METRICS_INTERVAL = "5min"

_BOOTSTRAP = r"""
# Docker compose plugin
mkdir -p /usr/local/lib/docker/cli-plugins
curl -fsSL "https://github.com/docker/compose/releases/download/${COMPOSE_VERSION}/docker-compose-linux-x86_64" \
  -o /usr/local/lib/docker/cli-plugins/docker-compose
chmod +x /usr/local/lib/docker/cli-plugins/docker-compose

# Pull from ECR with the instance role
dnf install -y amazon-ecr-credential-helper
mkdir -p /root/.docker
echo '{"credsStore": "ecr-login"}' > /root/.docker/config.json

systemctl enable --now docker
mkdir -p /opt/pipeshub
"""

_METRICS_SCRIPT = r"""
cat > /usr/local/bin/pipeshub-metrics << EOF
#!/bin/bash
set -u
REGION="${REGION}"
ENVIRONMENT="${ENVIRONMENT}"
NAMESPACE="${NAMESPACE}"
CONTAINERS="${CONTAINERS}"
EOF
cat >> /usr/local/bin/pipeshub-metrics << 'EOF'
put() {
  aws cloudwatch put-metric-data --region "$REGION" --namespace "$NAMESPACE" \
    --metric-name "$1" --dimensions "Service=$2,Environment=$ENVIRONMENT" --value "$3"
}
for c in $CONTAINERS; do
  docker inspect "$c" > /dev/null 2>&1 || continue
  put "${RESTART_METRIC}" "$c" "$(docker inspect -f '{{.RestartCount}}' "$c")"
  put "${MEMORY_METRIC}" "$c" "$(docker stats --no-stream --format '{{.MemPerc}}' "$c" | tr -d '%')"
done
EOF
"""

_LAG_SCRIPT = r"""
cat >> /usr/local/bin/pipeshub-metrics << 'EOF'
if docker inspect kafka > /dev/null 2>&1; then
  lag=$(docker exec kafka kafka-consumer-groups --bootstrap-server localhost:9092 --describe --all-groups 2> /dev/null \
    | awk '$6 ~ /^[0-9]+$/ {sum += $6} END {print sum + 0}')
  put "${LAG_METRIC}" "pipeshub-ai" "$lag"
fi
EOF
"""

_TIMER = r"""
chmod +x /usr/local/bin/pipeshub-metrics

cat > /etc/systemd/system/pipeshub-metrics.service << 'EOF'
[Unit]
Description=Publish PipesHub container metrics

[Service]
Type=oneshot
ExecStart=/usr/local/bin/pipeshub-metrics
EOF

cat > /etc/systemd/system/pipeshub-metrics.timer << 'EOF'
[Unit]
Description=Publish PipesHub container metrics periodically

[Timer]
OnBootSec=${INTERVAL}
OnUnitActiveSec=${INTERVAL}

[Install]
WantedBy=timers.target
EOF

systemctl daemon-reload
systemctl enable --now pipeshub-metrics.timer

echo "Bootstrap complete"
"""


def render_user_data(
    environment: str,
    region: str,
    containers: list[str],
    publish_consumer_lag: bool = False,
) -> str:
    """
    Build the first-boot script for a Docker host.

    Args:
        environment: Deployment environment, used as a metric dimension
        region: AWS region for the CloudWatch client
        containers: Containers to report RestartCount and MemoryUtilization for
        publish_consumer_lag: Also report Kafka consumer lag

    Returns:
        str: Bash script
    """
    parts = ["#!/bin/bash\nset -euo pipefail\n", _BOOTSTRAP, _METRICS_SCRIPT]
    if publish_consumer_lag:
        parts.append(_LAG_SCRIPT)
    parts.append(_TIMER)

    substitutions = {
        "${COMPOSE_VERSION}": COMPOSE_VERSION,
        "${REGION}": region,
        "${ENVIRONMENT}": environment,
        "${NAMESPACE}": METRIC_NAMESPACE,
        "${CONTAINERS}": " ".join(containers),
        "${RESTART_METRIC}": METRICS["restart_count"],
        "${MEMORY_METRIC}": METRICS["memory_percent"],
        "${LAG_METRIC}": METRICS["consumer_lag"],
        "${INTERVAL}": METRICS_INTERVAL,
    }
    script = "".join(parts)
    for placeholder, value in substitutions.items():
        script = script.replace(placeholder, value)
    return script


@dataclass
class DockerHostOutputs:
    """Output values from Docker host component."""
    instance_id: pulumi.Output[str]
    private_ip: pulumi.Output[str]
    private_dns: pulumi.Output[str]


class DockerHostComponent(pulumi.ComponentResource):
    """
    EC2 instance running Docker workloads in a private subnet.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        instance_type: str,
        volume_size: int,
        subnet_id: pulumi.Input[str],
        security_group_id: pulumi.Input[str],
        instance_profile_name: pulumi.Input[str],
        user_data: str,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:compute:DockerHost", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        # Latest Amazon Linux 2023 ECS-optimized AMI (Docker pre-installed)
        ami = aws.ec2.get_ami(
            most_recent=True,
            owners=["amazon"],
            filters=[
                aws.ec2.GetAmiFilterArgs(
                    name="name",
                    values=["al2023-ami-ecs-hvm-*-x86_64"],
                ),
                aws.ec2.GetAmiFilterArgs(
                    name="virtualization-type",
                    values=["hvm"],
                ),
            ],
        )

        self.log_group = aws.cloudwatch.LogGroup(
            f"{name}-logs",
            name=f"/ec2/{name}",
            retention_in_days=30,
            tags=create_tags(environment, f"{name}-logs"),
            opts=child_opts,
        )

        self.instance = aws.ec2.Instance(
            f"{name}-instance",
            ami=ami.id,
            instance_type=instance_type,
            subnet_id=subnet_id,
            vpc_security_group_ids=[security_group_id],
            iam_instance_profile=instance_profile_name,
            user_data=user_data,
            user_data_replace_on_change=False,
            root_block_device=aws.ec2.InstanceRootBlockDeviceArgs(
                volume_size=volume_size,
                volume_type="gp3",
                encrypted=True,
            ),
            metadata_options=aws.ec2.InstanceMetadataOptionsArgs(
                http_tokens="required",  # IMDSv2
                http_endpoint="enabled",
                # Containers reach IMDS through the docker bridge
                http_put_response_hop_limit=2,
            ),
            tags=create_tags(environment, name, service="pipeshub-ai"),
            opts=child_opts,
        )

        self.register_outputs({
            "instance_id": self.instance.id,
            "private_ip": self.instance.private_ip,
            "private_dns": self.instance.private_dns,
        })

    def get_outputs(self) -> DockerHostOutputs:
        """Get host output values."""
        return DockerHostOutputs(
            instance_id=self.instance.id,
            private_ip=self.instance.private_ip,
            private_dns=self.instance.private_dns,
        )
