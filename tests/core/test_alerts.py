"""Tests for monitoring threshold evaluation."""

import json
from pathlib import Path

import pytest

from deployment.configs.alerts import AlertSettings
from deployment.core.alerts import (
    CONSUMER_LAG,
    MEMORY_PERCENT,
    RESTART_COUNT,
    AlertRule,
    MetricSample,
    default_rules,
    evaluate,
    load_samples,
)
from deployment.core.exceptions import InvalidMetricError


@pytest.fixture
def rules() -> list[AlertRule]:
    return default_rules(AlertSettings(_env_file=None))


class TestEvaluate:
    """Tests for evaluate."""

    def test_value_at_threshold_does_not_alert(self, rules: list[AlertRule]) -> None:
        """Alerts fire only strictly above the threshold."""
        samples = [
            MetricSample("pipeshub-ai", RESTART_COUNT, 3),
            MetricSample("pipeshub-ai", MEMORY_PERCENT, 85.0),
            MetricSample("pipeshub-ai", CONSUMER_LAG, 1000),
        ]

        assert evaluate(samples, rules) == []

    def test_breaches_reported_in_sample_order(self, rules: list[AlertRule]) -> None:
        samples = [
            MetricSample("kafka", MEMORY_PERCENT, 91.5),
            MetricSample("pipeshub-ai", RESTART_COUNT, 4),
        ]

        alerts = evaluate(samples, rules)

        assert [(a.service, a.metric, a.severity) for a in alerts] == [
            ("kafka", MEMORY_PERCENT, "warning"),
            ("pipeshub-ai", RESTART_COUNT, "critical"),
        ]
        assert alerts[0].message == "kafka: memory usage above ceiling (91.5 > 85)"

    def test_metric_without_rule_ignored(self, rules: list[AlertRule]) -> None:
        assert evaluate([MetricSample("redis", "cpu_percent", 99)], rules) == []

    def test_negative_value_rejected(self, rules: list[AlertRule]) -> None:
        with pytest.raises(InvalidMetricError):
            evaluate([MetricSample("redis", MEMORY_PERCENT, -1)], rules)

    @pytest.mark.parametrize("value", [float("nan"), float("inf")])
    def test_non_finite_value_rejected(self, rules: list[AlertRule], value: float) -> None:
        """NaN compares false against every threshold."""
        with pytest.raises(InvalidMetricError) as exc_info:
            evaluate([MetricSample("kafka", CONSUMER_LAG, value)], rules)

        assert exc_info.value.details["service"] == "kafka"

    def test_zero_threshold(self) -> None:
        """A zero threshold alerts on any restart."""
        rules = default_rules(AlertSettings(_env_file=None, max_restart_count=0))

        alerts = evaluate([MetricSample("etcd", RESTART_COUNT, 1)], rules)

        assert len(alerts) == 1
        assert alerts[0].threshold == 0


class TestLoadSamples:
    """Tests for reading sample files."""

    def test_reads_samples(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text(json.dumps([
            {"service": "kafka", "metric": CONSUMER_LAG, "value": 1500, "timestamp": "2025-01-01T00:00:00+00:00"},
            {"service": "redis", "metric": RESTART_COUNT, "value": "2"},
        ]))

        samples = load_samples(path)

        assert samples[0].value == 1500.0
        assert samples[0].timestamp.year == 2025
        assert samples[1].timestamp is None
        assert samples[1].value == 2.0

    def test_epoch_timestamp(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text(json.dumps([{"service": "s", "metric": "m", "value": 1, "timestamp": 0}]))

        assert load_samples(path)[0].timestamp.year == 1970

    def test_not_a_list(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text(json.dumps({"service": "s"}))

        with pytest.raises(InvalidMetricError):
            load_samples(path)

    def test_malformed_sample(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text(json.dumps([{"service": "s", "value": 1}]))

        with pytest.raises(InvalidMetricError) as exc_info:
            load_samples(path)

        assert exc_info.value.details["index"] == 0

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text("{not json")

        with pytest.raises(InvalidMetricError):
            load_samples(path)

    def test_nan_literal_loads_then_fails_evaluation(self, tmp_path: Path) -> None:
        path = tmp_path / "samples.json"
        path.write_text('[{"service": "kafka", "metric": "consumer_lag", "value": NaN}]')

        samples = load_samples(path)

        with pytest.raises(InvalidMetricError):
            evaluate(samples, default_rules(AlertSettings(_env_file=None)))
