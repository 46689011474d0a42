"""
Secrets Manager component for application secrets.

Creates (empty) secrets for:
- app-secret-key: SECRET_KEY used by the application to sign sessions
- datastore-credentials: JSON with MongoDB, ArangoDB, Redis and Qdrant credentials
- llm-api-key: API key of the configured LLM provider

Values are filled by the operator with `aws secretsmanager put-secret-value`
(see `pipeshub-deploy plan`), so no secret value ever enters Pulumi state.
"""

from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.utils.tags import create_tags
from IAC.utils.naming import ResourceNamer

SECRET_IDS = ("app-secret-key", "datastore-credentials", "llm-api-key")

_DESCRIPTIONS = {
    "app-secret-key": "PipesHub application SECRET_KEY",
    "datastore-credentials": "Passwords for MongoDB, ArangoDB, Redis and Qdrant",
    "llm-api-key": "API key for the configured LLM provider",
}


@dataclass
class SecretsOutputs:
    """Output values from secrets component."""
    secret_arns: dict[str, pulumi.Output[str]]
    secret_names: dict[str, pulumi.Output[str]]


class SecretsManagerComponent(pulumi.ComponentResource):
    """
    Secrets Manager component for storing sensitive configuration.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        namer: ResourceNamer,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:security:SecretsManager", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)
        # Immediate deletion outside production
        recovery_window = 7 if environment == "prod" else 0

        self.secrets: dict[str, aws.secretsmanager.Secret] = {}
        for secret_id in SECRET_IDS:
            self.secrets[secret_id] = aws.secretsmanager.Secret(
                f"{name}-{secret_id}",
                name=namer.secret_name(secret_id),
                description=_DESCRIPTIONS[secret_id],
                recovery_window_in_days=recovery_window,
                tags=create_tags(environment, f"{name}-{secret_id}"),
                opts=child_opts,
            )

        self.register_outputs({
            f"{secret_id}_arn": secret.arn for secret_id, secret in self.secrets.items()
        })

    def get_outputs(self) -> SecretsOutputs:
        """Get secret output values."""
        return SecretsOutputs(
            secret_arns={key: secret.arn for key, secret in self.secrets.items()},
            secret_names={key: secret.name for key, secret in self.secrets.items()},
        )
