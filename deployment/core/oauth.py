"""
OAuth connector redirect URI conventions.

Each connector that syncs an external source authorises through an OAuth
provider, and the provider must be told which redirect URIs belong to this
deployment. The registry holds one deployment descriptor per connector; the
connectors themselves live in the application image.

Dependencies: urllib.parse
System role: Computes the URIs/origins to register with OAuth providers
"""

import logging
from dataclasses import dataclass, field
from typing import Literal
from urllib.parse import urlparse

from deployment.core.exceptions import (
    ConnectorRegistrationError,
    InvalidRedirectBaseError,
    UnknownConnectorError,
)

logger = logging.getLogger(__name__)

RedirectBase = Literal["frontend", "connector"]

_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1"})
ACCOUNT_TYPES = frozenset({"individual", "enterprise"})


@dataclass(frozen=True)
class ConnectorDescriptor:
    """
    Deployment-side description of one OAuth connector.

    Attributes:
        name: Registry key
        display_name: Name shown in the provider console
        provider: OAuth provider that issues the client
        redirect_paths: Callback paths, relative to the chosen base URL
        scopes: Scopes the OAuth client must be granted
        base: Whether callbacks land on the frontend or the connector backend
        account_types: PipesHub account kinds the connector can be set up for
    """

    name: str
    display_name: str
    provider: str
    redirect_paths: tuple[str, ...]
    scopes: tuple[str, ...] = field(default_factory=tuple)
    base: RedirectBase = "frontend"
    account_types: tuple[str, ...] = ("enterprise",)

    def __post_init__(self) -> None:
        if not self.redirect_paths:
            raise ConnectorRegistrationError(
                f"Connector {self.name} declares no redirect paths",
                {"connector": self.name},
            )
        for path in self.redirect_paths:
            if not path.startswith("/"):
                raise ConnectorRegistrationError(
                    f"Redirect path must be absolute: {path}",
                    {"connector": self.name},
                )
        unknown = set(self.account_types) - ACCOUNT_TYPES
        if not self.account_types or unknown:
            raise ConnectorRegistrationError(
                f"Connector {self.name} has invalid account types: {sorted(unknown)}",
                {"connector": self.name},
            )


class ConnectorRegistry:
    """Name -> ConnectorDescriptor with duplicate protection."""

    def __init__(self) -> None:
        self._connectors: dict[str, ConnectorDescriptor] = {}

    def register(self, descriptor: ConnectorDescriptor) -> ConnectorDescriptor:
        if descriptor.name in self._connectors:
            raise ConnectorRegistrationError(
                f"Connector already registered: {descriptor.name}",
                {"connector": descriptor.name},
            )
        self._connectors[descriptor.name] = descriptor
        return descriptor

    def get(self, name: str) -> ConnectorDescriptor:
        try:
            return self._connectors[name]
        except KeyError:
            raise UnknownConnectorError(name) from None

    def names(self) -> list[str]:
        return sorted(self._connectors)

    def __iter__(self):
        return iter(self._connectors[name] for name in self.names())

    def __len__(self) -> int:
        return len(self._connectors)


def default_registry() -> ConnectorRegistry:
    """Registry with the connectors shipped in the application image."""
    registry = ConnectorRegistry()

    registry.register(ConnectorDescriptor(
        name="google-workspace",
        display_name="Google Workspace",
        provider="google",
        redirect_paths=(
            "/account/individual/settings/connector/googleWorkspace",
            "/account/company-settings/settings/connector/googleWorkspace",
        ),
        scopes=(
            "https://www.googleapis.com/auth/drive.readonly",
            "https://www.googleapis.com/auth/gmail.readonly",
            "https://www.googleapis.com/auth/calendar.readonly",
        ),
        account_types=("individual", "enterprise"),
    ))
    registry.register(ConnectorDescriptor(
        name="google-signin",
        display_name="Google sign-in",
        provider="google",
        redirect_paths=("/auth/google/callback",),
        scopes=("openid", "email", "profile"),
        account_types=("individual", "enterprise"),
    ))
    registry.register(ConnectorDescriptor(
        name="microsoft-365",
        display_name="Microsoft 365",
        provider="microsoft",
        redirect_paths=(
            "/auth/microsoft/callback",
            "/account/company-settings/settings/connector/microsoft365",
        ),
        scopes=("openid", "offline_access", "Files.Read.All", "Sites.Read.All", "Mail.Read"),
    ))
    registry.register(ConnectorDescriptor(
        name="slack",
        display_name="Slack",
        provider="slack",
        redirect_paths=("/api/v1/connectors/slack/oauth/callback",),
        scopes=("channels:history", "channels:read", "users:read"),
        base="connector",
    ))
    registry.register(ConnectorDescriptor(
        name="atlassian",
        display_name="Atlassian (Confluence, Jira)",
        provider="atlassian",
        redirect_paths=("/api/v1/connectors/atlassian/oauth/callback",),
        scopes=("read:confluence-content.all", "read:jira-work", "offline_access"),
        base="connector",
    ))
    registry.register(ConnectorDescriptor(
        name="notion",
        display_name="Notion",
        provider="notion",
        redirect_paths=("/api/v1/connectors/notion/oauth/callback",),
        base="connector",
    ))

    return registry


def _normalise_base(url: str) -> str:
    parsed = urlparse(url.strip())
    if not parsed.scheme or not parsed.netloc:
        raise InvalidRedirectBaseError(f"Redirect base must be an absolute URL: {url!r}")
    if parsed.path not in ("", "/") or parsed.query or parsed.fragment:
        raise InvalidRedirectBaseError(f"Redirect base must not carry a path or query: {url!r}")
    if parsed.scheme != "https" and parsed.hostname not in _LOCAL_HOSTS:
        raise InvalidRedirectBaseError(
            f"OAuth providers require https outside localhost: {url!r}",
            {"scheme": parsed.scheme, "host": parsed.hostname},
        )
    return f"{parsed.scheme}://{parsed.netloc.lower()}"


def redirect_uris(
    registry: ConnectorRegistry,
    frontend_url: str,
    connector_url: str | None = None,
    connector: str | None = None,
) -> list[str]:
    """
    Compute the absolute redirect URIs to register with OAuth providers.

    Args:
        registry: Connector registry
        frontend_url: Public frontend base URL
        connector_url: Public connector backend base URL (defaults to frontend_url)
        connector: Restrict to one connector

    Returns:
        list[str]: Sorted, de-duplicated URIs

    Raises:
        InvalidRedirectBaseError: If a base URL is not absolute https (localhost excepted)
        UnknownConnectorError: If connector is given and not registered
    """
    bases = {"frontend": _normalise_base(frontend_url)}
    bases["connector"] = _normalise_base(connector_url) if connector_url else bases["frontend"]

    descriptors = [registry.get(connector)] if connector else list(registry)
    uris = {
        f"{bases[descriptor.base]}{path}"
        for descriptor in descriptors
        for path in descriptor.redirect_paths
    }
    logger.debug(f"{__name__}:redirect_uris - {len(uris)} URIs for {len(descriptors)} connectors")
    return sorted(uris)


def redirect_uris_by_provider(
    registry: ConnectorRegistry,
    frontend_url: str,
    connector_url: str | None = None,
) -> dict[str, list[str]]:
    """Group redirect URIs by the OAuth provider they are registered with."""
    grouped: dict[str, set[str]] = {}
    for descriptor in registry:
        uris = redirect_uris(registry, frontend_url, connector_url, connector=descriptor.name)
        grouped.setdefault(descriptor.provider, set()).update(uris)
    return {provider: sorted(uris) for provider, uris in sorted(grouped.items())}


def authorized_origins(frontend_url: str) -> list[str]:
    """JavaScript origins to register for browser-initiated OAuth flows."""
    return [_normalise_base(frontend_url)]
