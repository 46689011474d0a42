"""
Provisioning runbook.

Turns the deployment recipe into ordered, dependency-aware steps with the
commands an operator runs. Commands reference environment variables rather
than values, so a rendered runbook never contains secrets.

Dependencies: deployment.core.topology
System role: Executable form of the deployment guide
"""

import heapq
import logging
from dataclasses import dataclass, field

from deployment.configs.settings import Settings
from deployment.core.exceptions import DependencyCycleError, UnknownServiceError
from deployment.core.topology import APPLICATION_SERVICE, ServiceKind, Topology

logger = logging.getLogger(__name__)

# Read by the application container and by compose interpolation
ENV_FILE = ".env"

PHASES = (
    "prerequisites",
    "infrastructure",
    "datastores",
    "image",
    "application",
    "edge",
    "connectors",
    "verification",
)


@dataclass(frozen=True)
class Step:
    """One runbook step."""

    id: str
    title: str
    phase: str
    commands: tuple[str, ...] = ()
    depends_on: tuple[str, ...] = ()
    manual: bool = False
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "phase": self.phase,
            "commands": list(self.commands),
            "depends_on": list(self.depends_on),
            "manual": self.manual,
            "notes": self.notes,
        }


@dataclass
class Runbook:
    """Ordered collection of steps."""

    environment: str
    steps: list[Step] = field(default_factory=list)

    def ordered(self) -> list[Step]:
        """
        Order steps so each follows its dependencies.

        Ties keep declaration order.

        Raises:
            UnknownServiceError: If a step depends on an undeclared step id
            DependencyCycleError: If steps depend on each other circularly
        """
        index = {step.id: position for position, step in enumerate(self.steps)}
        if len(index) != len(self.steps):
            raise ValueError("Duplicate step ids in runbook")

        indegree = {step.id: 0 for step in self.steps}
        dependents: dict[str, list[str]] = {step.id: [] for step in self.steps}
        for step in self.steps:
            for dep in step.depends_on:
                if dep not in index:
                    raise UnknownServiceError(dep, {"required_by": step.id})
                indegree[step.id] += 1
                dependents[dep].append(step.id)

        ready = [index[sid] for sid, degree in indegree.items() if degree == 0]
        heapq.heapify(ready)
        ordered: list[Step] = []

        while ready:
            step = self.steps[heapq.heappop(ready)]
            ordered.append(step)
            for dependent in dependents[step.id]:
                indegree[dependent] -= 1
                if indegree[dependent] == 0:
                    heapq.heappush(ready, index[dependent])

        if len(ordered) != len(self.steps):
            raise DependencyCycleError([sid for sid, degree in indegree.items() if degree > 0])
        return ordered

    def to_dict(self) -> dict:
        return {
            "environment": self.environment,
            "steps": [step.to_dict() for step in self.ordered()],
        }

    def render_markdown(self) -> str:
        """Render the runbook as a numbered markdown checklist."""
        lines = [f"# PipesHub deployment runbook ({self.environment})", ""]
        current_phase = None
        for number, step in enumerate(self.ordered(), start=1):
            if step.phase != current_phase:
                current_phase = step.phase
                lines.extend([f"## {current_phase.capitalize()}", ""])
            marker = " (manual)" if step.manual else ""
            lines.append(f"{number}. [ ] **{step.title}**{marker}")
            if step.notes:
                lines.append(f"   {step.notes}")
            if step.commands:
                lines.append("")
                lines.append("   ```sh")
                lines.extend(f"   {command}" for command in step.commands)
                lines.append("   ```")
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"


def build_runbook(settings: Settings, topology: Topology) -> Runbook:
    """
    Build the provisioning runbook for a deployment.

    Args:
        settings: Deployment settings
        topology: Deployment topology

    Returns:
        Runbook: Steps in declaration order (use Runbook.ordered() to execute)
    """
    env = settings.environment
    secret_prefix = f"pipeshub/{env}"
    steps: list[Step] = []

    steps.append(Step(
        id="check-tooling",
        title="Check local tooling",
        phase="prerequisites",
        commands=("aws sts get-caller-identity", "pulumi version", "docker version --format '{{.Client.Version}}'"),
    ))
    steps.append(Step(
        id="store-secrets",
        title="Store application secrets",
        phase="infrastructure",
        commands=(
            f'aws secretsmanager put-secret-value --secret-id {secret_prefix}/app-secret-key --secret-string "$SECRET_KEY"',
            f'aws secretsmanager put-secret-value --secret-id {secret_prefix}/datastore-credentials '
            f'--secret-string "$DATASTORE_CREDENTIALS_JSON"',
            f'aws secretsmanager put-secret-value --secret-id {secret_prefix}/llm-api-key --secret-string "$LLM_API_KEY"',
        ),
        depends_on=("provision-infrastructure",),
        notes="Secrets are created empty by the infrastructure program and filled here.",
    ))
    stack_config = [
        f"pulumi stack select {env} --create --cwd IAC",
        f"pulumi config set environment {env} --cwd IAC",
        f"pulumi config set domain {settings.domain.domain} --cwd IAC",
        f"pulumi config set llm_provider {settings.llm.provider} --cwd IAC",
    ]
    if settings.datastores.redis_mode == "managed":
        stack_config.append("pulumi config set managed_redis true --cwd IAC")
        stack_config.append('pulumi config set --secret redis_auth_token "$REDIS_PASSWORD" --cwd IAC')
    if settings.datastores.mongo_mode == "managed":
        stack_config.append("pulumi config set managed_mongo true --cwd IAC")
    steps.append(Step(
        id="provision-infrastructure",
        title="Provision network, hosts, load balancer, DNS and certificate",
        phase="infrastructure",
        commands=(*stack_config, "pulumi up --yes --cwd IAC"),
        depends_on=("check-tooling",),
    ))
    steps.append(Step(
        id="render-config",
        title="Render environment file and compose file",
        phase="datastores",
        commands=(
            f"pipeshub-deploy render-env --output {ENV_FILE}",
            f"pipeshub-deploy render-compose --env-file {ENV_FILE} --environment {env} --output docker-compose.yml",
        ),
        depends_on=("store-secrets",),
    ))

    startup = topology.startup_order()
    stores = [name for name in startup if name in {s.name for s in topology.self_hosted()}]
    if stores:
        steps.append(Step(
            id="start-datastores",
            title="Start self-hosted data stores",
            phase="datastores",
            commands=(
                f"docker compose --env-file {ENV_FILE} up -d --wait {' '.join(stores)}",
            ),
            depends_on=("render-config",),
        ))
    managed = sorted(
        spec.name for spec in topology if spec.kind is ServiceKind.DATASTORE and spec.managed
    )
    if managed:
        steps.append(Step(
            id="check-managed-datastores",
            title="Confirm managed data stores are reachable from the application host",
            phase="datastores",
            commands=tuple(f"pipeshub-deploy verify --internal --service {name}" for name in managed),
            depends_on=("render-config",),
            notes=f"Managed: {', '.join(managed)}",
        ))

    steps.append(Step(
        id="push-image",
        title="Build and push the application image",
        phase="image",
        commands=(f"pipeshub-deploy build-and-push --environment {env}",),
        depends_on=("provision-infrastructure",),
    ))

    store_steps = tuple(
        sid for sid in ("start-datastores", "check-managed-datastores")
        if any(step.id == sid for step in steps)
    )
    steps.append(Step(
        id="deploy-application",
        title="Start the application container",
        phase="application",
        commands=(f"docker compose --env-file {ENV_FILE} up -d --wait {APPLICATION_SERVICE}",),
        depends_on=("push-image", *store_steps) if store_steps else ("push-image", "render-config"),
    ))
    steps.append(Step(
        id="check-dns",
        title="Confirm DNS records and certificate",
        phase="edge",
        commands=("pipeshub-deploy dns-records",),
        depends_on=("provision-infrastructure",),
        notes=(
            f"{settings.domain.frontend_host} and {settings.domain.api_host} "
            "must resolve to the load balancer before the certificate validates."
        ),
    ))
    steps.append(Step(
        id="register-oauth",
        title="Register OAuth redirect URIs with each provider",
        phase="connectors",
        commands=("pipeshub-deploy redirect-uris",),
        depends_on=("check-dns",),
        manual=True,
        notes="Paste the listed URIs into the Google, Microsoft, Slack, Atlassian and Notion consoles.",
    ))
    steps.append(Step(
        id="verify",
        title="Run deployment acceptance checks",
        phase="verification",
        commands=("pipeshub-deploy verify",),
        depends_on=("deploy-application", "check-dns"),
    ))

    runbook = Runbook(environment=env, steps=steps)
    logger.info(f"{__name__}:build_runbook - {len(steps)} steps for {env}")
    return runbook
