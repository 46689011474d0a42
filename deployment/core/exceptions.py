"""
Exception hierarchy for the deployment toolkit.

Provides layered exception structure for domain-specific errors.
All exceptions include context for observability and debugging.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the toolkit
"""

from typing import Any


class DeploymentError(Exception):
    """Base exception for all deployment toolkit errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(DeploymentError):
    """Raised when deployment configuration is inconsistent."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize configuration error.

        Args:
            message: Error message
            field: Setting name that is invalid
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class EnvContractError(DeploymentError):
    """Raised when environment values violate the application contract."""

    def __init__(
        self,
        message: str,
        violations: list[Any] | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize contract error.

        Args:
            message: Error message
            violations: Every ContractViolation found
            details: Additional context
        """
        self.violations = list(violations or [])
        details = details or {}
        if self.violations:
            details["violations"] = [str(v) for v in self.violations]
        super().__init__(message, details)


class UnknownServiceError(DeploymentError):
    """Raised when a service name is not part of the topology."""

    def __init__(self, service: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["service"] = service
        self.service = service
        super().__init__(f"Unknown service: {service}", details)


class DependencyCycleError(DeploymentError):
    """Raised when services or runbook steps depend on each other circularly."""

    def __init__(self, members: list[str], details: dict[str, Any] | None = None) -> None:
        """
        Initialize cycle error.

        Args:
            members: Names participating in (or blocked by) the cycle, sorted
            details: Additional context
        """
        self.members = sorted(members)
        details = details or {}
        details["members"] = self.members
        super().__init__(f"Dependency cycle between: {', '.join(self.members)}", details)


class ConnectorRegistrationError(DeploymentError):
    """Raised when a connector descriptor cannot be registered."""

    pass


class UnknownConnectorError(DeploymentError):
    """Raised when a connector name is not registered."""

    def __init__(self, connector: str, details: dict[str, Any] | None = None) -> None:
        details = details or {}
        details["connector"] = connector
        self.connector = connector
        super().__init__(f"Unknown connector: {connector}", details)


class InvalidRedirectBaseError(DeploymentError):
    """Raised when the frontend URL cannot serve as an OAuth redirect base."""

    pass


class InvalidMetricError(DeploymentError):
    """Raised when a metric sample carries an impossible value."""

    pass


class ImageBuildError(DeploymentError):
    """Raised when building or pushing the application image fails."""

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize image build error.

        Args:
            message: Error message
            stage: Stage that failed (build, login, push)
            details: Additional context
        """
        details = details or {}
        if stage:
            details["stage"] = stage
        super().__init__(message, details)
