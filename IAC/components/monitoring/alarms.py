"""
CloudWatch Alarms Component for container health.

The Docker hosts publish per-container metrics to the custom PipesHub
namespace every five minutes (see DockerHostComponent user data):
- RestartCount: docker restart count, per container
- MemoryUtilization: percent of the container memory limit, per container
- ConsumerLag: total Kafka consumer lag, reported for pipeshub-ai

An alarm fires when the maximum over one period is strictly greater than the
threshold, the same rule `pipeshub-deploy alerts` applies to samples.
Missing data is not breaching, so containers of managed stores stay quiet.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.configs.base import EnvironmentConfig
from IAC.configs.constants import METRIC_NAMESPACE, METRICS
from IAC.utils.tags import create_tags

PERIOD_SECONDS = 300


@dataclass(frozen=True)
class AlarmSpec:
    """One alarm to create."""
    service: str
    metric: str
    threshold: float
    severity: str


def alarm_specs(config: EnvironmentConfig, services: list[str]) -> list[AlarmSpec]:
    """
    Alarms for the given containers using the configured thresholds.

    Args:
        config: Environment configuration with the thresholds
        services: Container names to alarm on

    Returns:
        list[AlarmSpec]: Restart and memory alarms per service, plus one consumer lag alarm
    """
    specs = []
    for service in services:
        specs.append(AlarmSpec(service, METRICS["restart_count"], float(config.max_restart_count), "critical"))
        specs.append(AlarmSpec(service, METRICS["memory_percent"], float(config.max_memory_percent), "warning"))
    specs.append(AlarmSpec("pipeshub-ai", METRICS["consumer_lag"], float(config.max_consumer_lag), "warning"))
    return specs


@dataclass
class AlarmOutputs:
    """Output values from alarms component."""
    topic_arn: pulumi.Output[str]
    alarm_names: list[pulumi.Output[str]]


class AlarmsComponent(pulumi.ComponentResource):
    """
    SNS topic plus one CloudWatch alarm per (service, metric).
    """

    def __init__(
        self,
        name: str,
        environment: str,
        config: EnvironmentConfig,
        services: list[str],
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:monitoring:Alarms", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.topic = aws.sns.Topic(
            f"{name}-alarms",
            name=f"{name}-alarms",
            tags=create_tags(environment, f"{name}-alarms"),
            opts=child_opts,
        )

        if config.alarm_email:
            aws.sns.TopicSubscription(
                f"{name}-alarms-email",
                topic=self.topic.arn,
                protocol="email",
                endpoint=config.alarm_email,
                opts=child_opts,
            )

        self.alarms = []
        for spec in alarm_specs(config, services):
            alarm_name = f"{name}-{spec.service}-{spec.metric}"
            self.alarms.append(aws.cloudwatch.MetricAlarm(
                alarm_name,
                name=alarm_name,
                namespace=METRIC_NAMESPACE,
                metric_name=spec.metric,
                dimensions={"Service": spec.service, "Environment": environment},
                statistic="Maximum",
                period=PERIOD_SECONDS,
                evaluation_periods=1,
                threshold=spec.threshold,
                comparison_operator="GreaterThanThreshold",
                treat_missing_data="notBreaching",
                alarm_description=f"{spec.severity}: {spec.service} {spec.metric} above {spec.threshold:g}",
                alarm_actions=[self.topic.arn],
                ok_actions=[self.topic.arn],
                tags=create_tags(environment, alarm_name, service=spec.service, Severity=spec.severity),
                opts=child_opts,
            ))

        self.register_outputs({
            "topic_arn": self.topic.arn,
            "alarm_count": len(self.alarms),
        })

    def get_outputs(self) -> AlarmOutputs:
        """Get alarm output values."""
        return AlarmOutputs(
            topic_arn=self.topic.arn,
            alarm_names=[alarm.name for alarm in self.alarms],
        )
