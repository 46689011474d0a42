"""
Monitoring threshold evaluation.

Compares metric samples (container restart count, memory usage, Kafka
consumer lag) against alert rules and reports every breach.

Dependencies: json, deployment.configs.alerts
System role: Operational alerting for the deployed services
"""

import json
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from deployment.configs.alerts import AlertSettings
from deployment.core.exceptions import InvalidMetricError

logger = logging.getLogger(__name__)

RESTART_COUNT = "restart_count"
MEMORY_PERCENT = "memory_percent"
CONSUMER_LAG = "consumer_lag"

Severity = Literal["warning", "critical"]


@dataclass(frozen=True)
class MetricSample:
    """One observed metric value for a service."""

    service: str
    metric: str
    value: float
    timestamp: datetime | None = None


@dataclass(frozen=True)
class AlertRule:
    """Threshold a metric must stay at or below."""

    metric: str
    threshold: float
    severity: Severity = "warning"
    description: str = ""


@dataclass(frozen=True)
class Alert:
    """A breached rule."""

    service: str
    metric: str
    value: float
    threshold: float
    severity: Severity
    message: str


def default_rules(settings: AlertSettings) -> list[AlertRule]:
    """Rules for the three operational metrics from configured thresholds."""
    return [
        AlertRule(
            RESTART_COUNT,
            settings.max_restart_count,
            "critical",
            "container restarted more often than tolerated",
        ),
        AlertRule(
            MEMORY_PERCENT,
            settings.max_memory_percent,
            "warning",
            "memory usage above ceiling",
        ),
        AlertRule(
            CONSUMER_LAG,
            settings.max_consumer_lag,
            "warning",
            "consumer group falling behind",
        ),
    ]


def evaluate(samples: list[MetricSample], rules: list[AlertRule]) -> list[Alert]:
    """
    Evaluate samples against rules.

    A sample alerts only when strictly above the threshold. Samples for
    metrics without a rule are ignored.

    Args:
        samples: Observed values
        rules: Alert rules, at most one per metric is used (the last wins)

    Returns:
        list[Alert]: Breaches in sample order

    Raises:
        InvalidMetricError: If a sample value is negative or not finite
    """
    by_metric = {rule.metric: rule for rule in rules}
    alerts: list[Alert] = []

    for sample in samples:
        if not math.isfinite(sample.value):
            raise InvalidMetricError(
                f"Non-finite value for {sample.metric}",
                {"service": sample.service, "value": str(sample.value)},
            )
        if sample.value < 0:
            raise InvalidMetricError(
                f"Negative value for {sample.metric}",
                {"service": sample.service, "value": sample.value},
            )
        rule = by_metric.get(sample.metric)
        if rule is None:
            logger.debug(f"{__name__}:evaluate - No rule for metric {sample.metric}")
            continue
        if sample.value > rule.threshold:
            alerts.append(
                Alert(
                    service=sample.service,
                    metric=sample.metric,
                    value=sample.value,
                    threshold=rule.threshold,
                    severity=rule.severity,
                    message=(
                        f"{sample.service}: {rule.description or sample.metric} "
                        f"({sample.value:g} > {rule.threshold:g})"
                    ),
                )
            )

    if alerts:
        logger.warning(f"{__name__}:evaluate - {len(alerts)} alert(s) fired")
    return alerts


def _parse_timestamp(raw: object) -> datetime | None:
    if raw is None:
        return None
    if isinstance(raw, (int, float)):
        return datetime.fromtimestamp(raw, tz=timezone.utc)
    return datetime.fromisoformat(str(raw))


def load_samples(path: Path) -> list[MetricSample]:
    """
    Read samples from a JSON file.

    Expected shape: [{"service": ..., "metric": ..., "value": ..., "timestamp": ...}]

    Raises:
        InvalidMetricError: If the file is not a list of well-formed samples
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidMetricError(f"Samples file is not valid JSON: {path}") from exc

    if not isinstance(raw, list):
        raise InvalidMetricError("Samples file must contain a JSON list")

    samples: list[MetricSample] = []
    for index, item in enumerate(raw):
        try:
            samples.append(
                MetricSample(
                    service=str(item["service"]),
                    metric=str(item["metric"]),
                    value=float(item["value"]),
                    timestamp=_parse_timestamp(item.get("timestamp")),
                )
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise InvalidMetricError(f"Malformed sample at index {index}", {"index": index}) from exc
    return samples
