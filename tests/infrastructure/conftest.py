"""Pytest fixtures for infrastructure tests."""

from pathlib import Path

import pytest

from IAC.configs.base import EnvironmentConfig

PROJECT_ROOT = Path(__file__).parent.parent.parent


@pytest.fixture
def iac_project_root() -> Path:
    """Return the IAC project root directory."""
    return PROJECT_ROOT / "IAC"


@pytest.fixture
def python_files_in_iac(iac_project_root: Path) -> list[Path]:
    """Return all Python files in IAC directory."""
    return [f for f in iac_project_root.rglob("*.py") if "__pycache__" not in str(f)]


@pytest.fixture
def make_env_config():
    """Build an EnvironmentConfig with dev defaults and keyword overrides."""

    def _make(**overrides) -> EnvironmentConfig:
        values = {
            "environment": "dev",
            "domain": "pipeshub.example.com",
            "hosted_zone": "example.com",
            "frontend_subdomain": "",
            "api_subdomain": "api",
            "app_instance_type": "t3.xlarge",
            "app_volume_size": 200,
            "managed_redis": False,
            "managed_mongo": False,
            "llm_provider": "openai",
            "max_restart_count": 3,
            "max_memory_percent": 85.0,
            "max_consumer_lag": 1000,
            "alarm_email": None,
            "enable_deletion_protection": False,
        }
        values.update(overrides)
        return EnvironmentConfig(**values)

    return _make
