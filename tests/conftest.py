"""
Shared test fixtures and configuration for entire test suite.

Provides: Settings factories with complete, contract-satisfying values
Dependencies: pytest, pydantic-settings
System role: Test infrastructure and fixture management
"""

from typing import Any, Callable

import pytest

from deployment.configs.alerts import AlertSettings
from deployment.configs.datastores import DataStoreSettings
from deployment.configs.domain import DomainSettings
from deployment.configs.llm import LlmSettings
from deployment.configs.settings import Settings
from deployment.configs.tuning import TuningSettings

DEFAULT_DOMAIN: dict[str, Any] = {
    "domain": "pipeshub.example.com",
    "api_subdomain": "api",
    "expected_ip": "203.0.113.10",
}

DEFAULT_DATASTORES: dict[str, Any] = {
    "mongo_password": "mongo-secret-123",
    "arango_password": "arango-secret-456",
    "redis_password": "redis-secret-789",
    "qdrant_api_key": "qdrant-key-abcdef",
}

DEFAULT_LLM: dict[str, Any] = {
    "provider": "openai",
    "api_key": "sk-test-0123456789",
}


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """
    Build Settings without reading the process environment's .env file.

    Nested sections are given as dicts merged over complete defaults.
    """

    def _make(
        domain: dict[str, Any] | None = None,
        datastores: dict[str, Any] | None = None,
        llm: dict[str, Any] | None = None,
        alerts: dict[str, Any] | None = None,
        **top_level: Any,
    ) -> Settings:
        values = {"environment": "dev", "secret_key": "app-secret-key-0001", **top_level}
        return Settings(
            _env_file=None,
            domain=DomainSettings(_env_file=None, **{**DEFAULT_DOMAIN, **(domain or {})}),
            datastores=DataStoreSettings(_env_file=None, **{**DEFAULT_DATASTORES, **(datastores or {})}),
            llm=LlmSettings(_env_file=None, **{**DEFAULT_LLM, **(llm or {})}),
            tuning=TuningSettings(_env_file=None),
            alerts=AlertSettings(_env_file=None, **(alerts or {})),
            **values,
        )

    return _make


@pytest.fixture
def settings(make_settings: Callable[..., Settings]) -> Settings:
    """Complete dev settings with every store self-hosted."""
    return make_settings()


@pytest.fixture
def prod_settings(make_settings: Callable[..., Settings]) -> Settings:
    """Production settings with managed Redis and MongoDB."""
    return make_settings(
        environment="prod",
        datastores={"redis_mode": "managed", "mongo_mode": "managed", "mongo_host": "docdb.internal"},
    )
