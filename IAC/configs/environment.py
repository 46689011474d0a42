"""
Environment configuration loader.

Loads and validates configuration from Pulumi stack config files.
"""

import pulumi

from IAC.configs.base import EnvironmentConfig
from IAC.configs.constants import APP_INSTANCE_TYPES

ENVIRONMENTS = ("dev", "staging", "prod")


def _default(value, default):
    # Zero is a valid threshold
    return default if value is None else value


def get_config() -> EnvironmentConfig:
    """
    Load environment configuration from Pulumi stack config.

    Returns:
        EnvironmentConfig: Validated configuration object

    Raises:
        pulumi.ConfigMissingError: If required config values are missing
        ValueError: If the environment is not dev, staging or prod
    """
    config = pulumi.Config()

    environment = config.require("environment")
    if environment not in ENVIRONMENTS:
        raise ValueError(f"environment must be one of {ENVIRONMENTS}, got {environment!r}")

    domain = config.require("domain").strip().lower().rstrip(".")

    return EnvironmentConfig(
        environment=environment,
        domain=domain,
        hosted_zone=config.get("hosted_zone") or domain,
        frontend_subdomain=config.get("frontend_subdomain") or "",
        api_subdomain=config.get("api_subdomain") or "api",
        app_instance_type=config.get("app_instance_type") or APP_INSTANCE_TYPES[environment],
        app_volume_size=config.get_int("app_volume_size") or 200,
        managed_redis=config.get_bool("managed_redis") or False,
        managed_mongo=config.get_bool("managed_mongo") or False,
        llm_provider=config.get("llm_provider") or "openai",
        max_restart_count=_default(config.get_int("max_restart_count"), 3),
        max_memory_percent=_default(config.get_float("max_memory_percent"), 85.0),
        max_consumer_lag=_default(config.get_int("max_consumer_lag"), 1000),
        alarm_email=config.get("alarm_email"),
        enable_deletion_protection=config.get_bool("enable_deletion_protection") or False,
    )
