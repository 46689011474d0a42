"""
Unified deployment settings.

Aggregates all configuration modules into a single Settings class.

Dependencies: All config modules
System role: Central configuration aggregator for the toolkit
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from deployment.configs.alerts import AlertSettings
from deployment.configs.base import BaseSettings
from deployment.configs.datastores import DataStoreSettings
from deployment.configs.domain import DomainSettings
from deployment.configs.llm import LlmSettings
from deployment.configs.tuning import TuningSettings


class Settings(BaseSettings):
    """Unified deployment settings aggregating all config modules."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DEPLOY_",
        case_sensitive=False,
        extra="ignore",
    )

    secret_key: str = Field(default="", description="Application secret key (JWT signing)")
    image: str = Field(
        default="pipeshubai/pipeshub-ai:latest",
        description="Upstream application image mirrored into ECR",
    )
    registry_image: str = Field(
        default="",
        description="Image the Docker host runs; empty means the ECR copy of image from the stack outputs",
    )

    # Aggregated settings
    domain: DomainSettings = Field(default_factory=DomainSettings)
    datastores: DataStoreSettings = Field(default_factory=DataStoreSettings)
    llm: LlmSettings = Field(default_factory=LlmSettings)
    tuning: TuningSettings = Field(default_factory=TuningSettings)
    alerts: AlertSettings = Field(default_factory=AlertSettings)


@lru_cache
def get_settings() -> Settings:
    """
    Get deployment settings singleton.

    Environment variables and .env are read once per process.

    Returns:
        Settings: Deployment settings instance

    Usage:
        from deployment.configs import get_settings
        settings = get_settings()
    """
    return Settings()
