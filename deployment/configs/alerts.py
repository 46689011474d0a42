"""
Monitoring alert thresholds.

Dependencies: pydantic_settings
System role: Thresholds for alert evaluation and CloudWatch alarms
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AlertSettings(BaseSettings):
    """Alert thresholds for container health metrics."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ALERT_",
        case_sensitive=False,
        extra="ignore",
    )

    max_restart_count: int = Field(default=3, ge=0, description="Container restarts tolerated per window")
    max_memory_percent: float = Field(default=85.0, gt=0, le=100, description="Memory usage ceiling (%)")
    max_consumer_lag: int = Field(default=1000, ge=0, description="Kafka consumer lag ceiling (messages)")
