"""Tests for OAuth redirect URI conventions."""

import pytest

from deployment.core.exceptions import (
    ConnectorRegistrationError,
    InvalidRedirectBaseError,
    UnknownConnectorError,
)
from deployment.core.oauth import (
    ConnectorDescriptor,
    ConnectorRegistry,
    authorized_origins,
    default_registry,
    redirect_uris,
    redirect_uris_by_provider,
)

FRONTEND = "https://pipeshub.example.com"
CONNECTOR = "https://api.pipeshub.example.com"


@pytest.fixture
def registry() -> ConnectorRegistry:
    return default_registry()


class TestConnectorRegistry:
    """Tests for registration rules."""

    def test_duplicate_registration_rejected(self) -> None:
        registry = ConnectorRegistry()
        descriptor = ConnectorDescriptor("drive", "Drive", "google", ("/cb",))
        registry.register(descriptor)

        with pytest.raises(ConnectorRegistrationError):
            registry.register(descriptor)

    def test_relative_path_rejected(self) -> None:
        """Redirect paths must be absolute."""
        with pytest.raises(ConnectorRegistrationError):
            ConnectorDescriptor("drive", "Drive", "google", ("callback",))

    def test_empty_paths_rejected(self) -> None:
        with pytest.raises(ConnectorRegistrationError):
            ConnectorDescriptor("drive", "Drive", "google", ())

    def test_unknown_connector(self, registry: ConnectorRegistry) -> None:
        with pytest.raises(UnknownConnectorError):
            registry.get("dropbox")

    def test_default_connectors(self, registry: ConnectorRegistry) -> None:
        """The shipped connectors are registered."""
        assert {"google-workspace", "microsoft-365", "slack", "atlassian", "notion"} <= set(registry.names())

    def test_account_types(self, registry: ConnectorRegistry) -> None:
        """Google Workspace serves both account kinds, backend connectors enterprise only."""
        assert registry.get("google-workspace").account_types == ("individual", "enterprise")
        assert registry.get("slack").account_types == ("enterprise",)

    def test_unknown_account_type_rejected(self) -> None:
        with pytest.raises(ConnectorRegistrationError):
            ConnectorDescriptor("drive", "Drive", "google", ("/cb",), account_types=("team",))

    def test_empty_account_types_rejected(self) -> None:
        with pytest.raises(ConnectorRegistrationError):
            ConnectorDescriptor("drive", "Drive", "google", ("/cb",), account_types=())


class TestRedirectUris:
    """Tests for redirect URI computation."""

    def test_single_connector(self, registry: ConnectorRegistry) -> None:
        """Frontend-based connectors resolve against the frontend URL."""
        uris = redirect_uris(registry, FRONTEND, CONNECTOR, connector="google-workspace")

        assert uris == [
            "https://pipeshub.example.com/account/company-settings/settings/connector/googleWorkspace",
            "https://pipeshub.example.com/account/individual/settings/connector/googleWorkspace",
        ]

    def test_connector_base(self, registry: ConnectorRegistry) -> None:
        """Backend-based connectors resolve against the connector URL."""
        uris = redirect_uris(registry, FRONTEND, CONNECTOR, connector="slack")

        assert uris == ["https://api.pipeshub.example.com/api/v1/connectors/slack/oauth/callback"]

    def test_connector_base_defaults_to_frontend(self, registry: ConnectorRegistry) -> None:
        uris = redirect_uris(registry, FRONTEND, connector="notion")

        assert uris == ["https://pipeshub.example.com/api/v1/connectors/notion/oauth/callback"]

    def test_all_uris_sorted_and_unique(self, registry: ConnectorRegistry) -> None:
        uris = redirect_uris(registry, FRONTEND, CONNECTOR)

        assert uris == sorted(set(uris))
        assert all(uri.startswith("https://") for uri in uris)

    def test_base_is_normalised(self, registry: ConnectorRegistry) -> None:
        """Trailing slashes and host case do not leak into URIs."""
        uris = redirect_uris(registry, "https://PipesHub.Example.com/", connector="google-signin")

        assert uris == ["https://pipeshub.example.com/auth/google/callback"]

    def test_http_rejected_outside_localhost(self, registry: ConnectorRegistry) -> None:
        """Providers require https for public hosts."""
        with pytest.raises(InvalidRedirectBaseError):
            redirect_uris(registry, "http://pipeshub.example.com")

    def test_http_allowed_for_localhost(self, registry: ConnectorRegistry) -> None:
        uris = redirect_uris(registry, "http://localhost:3000", connector="google-signin")

        assert uris == ["http://localhost:3000/auth/google/callback"]

    @pytest.mark.parametrize("base", ["pipeshub.example.com", "https://pipeshub.example.com/app"])
    def test_invalid_bases(self, registry: ConnectorRegistry, base: str) -> None:
        """Bases must be absolute and carry no path."""
        with pytest.raises(InvalidRedirectBaseError):
            redirect_uris(registry, base)

    def test_grouped_by_provider(self, registry: ConnectorRegistry) -> None:
        """Connectors sharing a provider share one group."""
        grouped = redirect_uris_by_provider(registry, FRONTEND, CONNECTOR)

        assert list(grouped) == sorted(grouped)
        assert "https://pipeshub.example.com/auth/google/callback" in grouped["google"]
        assert len(grouped["google"]) == 3

    def test_authorized_origins(self) -> None:
        assert authorized_origins("https://pipeshub.example.com/") == ["https://pipeshub.example.com"]
