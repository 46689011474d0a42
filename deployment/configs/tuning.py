"""
Throughput tuning knobs.

Parallel parsing and indexing limits plus the public API rate limit. These
are opaque to the deployment and handed to the application container as-is.

Dependencies: pydantic_settings
System role: Pass-through tuning configuration
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TuningSettings(BaseSettings):
    """Concurrency and rate limit values for the application container."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="TUNING_",
        case_sensitive=False,
        extra="ignore",
    )

    max_concurrent_parsing: int = Field(default=5, gt=0, description="Parallel document parsing limit")
    max_concurrent_indexing: int = Field(default=10, gt=0, description="Parallel indexing limit")
    api_rate_limit_per_minute: int = Field(default=1000, gt=0, description="API requests per minute per client")
