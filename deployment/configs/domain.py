"""
Public domain configuration.

Settings for the hostnames the deployment is served under and the address
the public DNS records must point at.

Dependencies: pydantic, pydantic_settings
System role: Source of public URLs for env rendering, OAuth and DNS checks
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class DomainSettings(BaseSettings):
    """Public hostnames and scheme for the deployment."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="PIPESHUB_",
        case_sensitive=False,
        extra="ignore",
    )

    domain: str = Field(default="localhost", description="Base domain, e.g. pipeshub.example.com")
    frontend_subdomain: str = Field(
        default="",
        description="Subdomain for the web frontend (empty serves from the apex)",
    )
    api_subdomain: str = Field(default="api", description="Subdomain for connector callbacks")
    scheme: str = Field(default="https", description="Public URL scheme")
    expected_ip: str | None = Field(
        default=None,
        description="Address the public records must resolve to (load balancer or elastic IP)",
    )

    @field_validator("domain")
    @classmethod
    def _normalise_domain(cls, value: str) -> str:
        value = value.strip().lower().rstrip(".")
        if not value:
            raise ValueError("domain must not be empty")
        if "://" in value or "/" in value:
            raise ValueError(f"domain must be a bare hostname, got {value!r}")
        return value

    @field_validator("scheme")
    @classmethod
    def _check_scheme(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("http", "https"):
            raise ValueError("scheme must be http or https")
        return value

    def _host(self, subdomain: str) -> str:
        return f"{subdomain}.{self.domain}" if subdomain else self.domain

    @property
    def frontend_host(self) -> str:
        """Hostname serving the web frontend and API gateway."""
        return self._host(self.frontend_subdomain)

    @property
    def api_host(self) -> str:
        """Hostname exposing the connector service callbacks."""
        return self._host(self.api_subdomain)

    @property
    def frontend_url(self) -> str:
        return f"{self.scheme}://{self.frontend_host}"

    @property
    def backend_url(self) -> str:
        return f"{self.scheme}://{self.api_host}"

    @property
    def connector_public_url(self) -> str:
        """Public base URL the connector service advertises to OAuth providers."""
        return self.backend_url
