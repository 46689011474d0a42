"""
Base configuration dataclass for environment settings.

Provides type-safe configuration structure loaded from Pulumi stack configs.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EnvironmentConfig:
    """
    Environment-specific configuration for infrastructure deployment.

    Attributes:
        environment: Deployment environment (dev, staging, prod)
        domain: Base domain for the application
        hosted_zone: Route53 hosted zone holding the domain
        frontend_subdomain: Frontend label ("" serves the apex)
        api_subdomain: Label for the connector backend host
        app_instance_type: EC2 instance type for the Docker host
        app_volume_size: Root volume of the Docker host in GB (holds store volumes)
        managed_redis: Use ElastiCache instead of the self-hosted container
        managed_mongo: Use DocumentDB instead of the self-hosted container
        llm_provider: LLM provider name (bedrock grants InvokeModel)
        max_restart_count: Restart count alarm threshold
        max_memory_percent: Memory utilisation alarm threshold
        max_consumer_lag: Kafka consumer lag alarm threshold
        alarm_email: Address subscribed to alarm notifications
        enable_deletion_protection: Enable deletion protection for the ALB and databases
    """
    environment: str
    domain: str
    hosted_zone: str
    frontend_subdomain: str
    api_subdomain: str
    app_instance_type: str
    app_volume_size: int
    managed_redis: bool
    managed_mongo: bool
    llm_provider: str
    max_restart_count: int
    max_memory_percent: float
    max_consumer_lag: int
    alarm_email: str | None
    enable_deletion_protection: bool

    @property
    def is_production(self) -> bool:
        """Check if this is a production environment."""
        return self.environment == "prod"

    @property
    def frontend_host(self) -> str:
        """Fully qualified frontend host."""
        if self.frontend_subdomain:
            return f"{self.frontend_subdomain}.{self.domain}"
        return self.domain

    @property
    def api_host(self) -> str:
        """Fully qualified connector backend host."""
        return f"{self.api_subdomain}.{self.domain}"

    @property
    def public_hosts(self) -> list[str]:
        """Hosts served by the load balancer, frontend first."""
        return list(dict.fromkeys([self.frontend_host, self.api_host]))

    @property
    def uses_bedrock(self) -> bool:
        return self.llm_provider == "bedrock"

    def get_tags(self) -> dict[str, str]:
        """Get environment-specific tags."""
        return {
            "Environment": self.environment,
        }
