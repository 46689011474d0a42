"""
Environment variable contract of the application container.

Names every variable the PipesHub container reads, what it means, whether
it is required or secret, and how to check its value. Resolves values from
settings, validates them, and renders/parses dotenv files.

Dependencies: deployment.configs, urllib.parse
System role: Configuration contract between the deployment and the application
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable
from urllib.parse import urlparse

from deployment.configs.settings import Settings
from deployment.core.exceptions import EnvContractError

logger = logging.getLogger(__name__)

Validator = Callable[[str], str | None]

_NEEDS_QUOTING = re.compile(r"[\s#'\"\\$]")


def url_validator(*schemes: str) -> Validator:
    """Build a validator accepting absolute URLs with one of the given schemes."""

    def check(value: str) -> str | None:
        parsed = urlparse(value)
        if parsed.scheme not in schemes or not parsed.netloc:
            return f"expected a {'/'.join(schemes)} URL"
        return None

    return check


def positive_int(value: str) -> str | None:
    try:
        number = int(value)
    except ValueError:
        return "expected an integer"
    if number <= 0:
        return "expected a positive integer"
    return None


def port_number(value: str) -> str | None:
    try:
        number = int(value)
    except ValueError:
        return "expected a port number"
    if not 0 < number < 65536:
        return "port out of range"
    return None


def broker_list(value: str) -> str | None:
    for broker in value.split(","):
        host, sep, port = broker.strip().rpartition(":")
        if not sep or not host or port_number(port):
            return "expected comma-separated host:port pairs"
    return None


def one_of(*choices: str) -> Validator:
    def check(value: str) -> str | None:
        if value not in choices:
            return f"expected one of {', '.join(choices)}"
        return None

    return check


@dataclass(frozen=True)
class EnvVar:
    """
    One environment variable consumed by the application container.

    Attributes:
        name: Variable name
        description: What the application uses it for
        required: Must be present and non-empty
        secret: Must be redacted in logs and plans
        default: Value used when settings provide nothing
        validator: Returns an error message for malformed values, None when valid
    """

    name: str
    description: str
    required: bool = True
    secret: bool = False
    default: str | None = None
    validator: Validator | None = field(default=None, compare=False)


@dataclass(frozen=True)
class ContractViolation:
    """A single problem with a variable's value."""

    name: str
    problem: str

    def __str__(self) -> str:
        return f"{self.name}: {self.problem}"


class EnvContract:
    """Ordered collection of EnvVar definitions."""

    def __init__(self, variables: list[EnvVar]) -> None:
        self._variables = list(variables)
        self._by_name = {var.name: var for var in self._variables}
        if len(self._by_name) != len(self._variables):
            raise ValueError("Duplicate variable names in contract")

    def __iter__(self):
        return iter(self._variables)

    def __len__(self) -> int:
        return len(self._variables)

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def get(self, name: str) -> EnvVar:
        return self._by_name[name]

    def names(self) -> list[str]:
        return [var.name for var in self._variables]

    def secret_names(self) -> set[str]:
        return {var.name for var in self._variables if var.secret}

    def resolve(self, settings: Settings) -> dict[str, str]:
        """
        Resolve contract values from deployment settings.

        Variables without a settings value fall back to their default, then to
        the empty string.

        Args:
            settings: Deployment settings

        Returns:
            dict[str, str]: Values in contract order
        """
        sources = _settings_values(settings)
        values: dict[str, str] = {}
        for var in self._variables:
            value = sources.get(var.name)
            if value in (None, "") and var.default is not None:
                value = var.default
            values[var.name] = "" if value is None else str(value)
        return values

    def validate(self, values: dict[str, str]) -> list[ContractViolation]:
        """
        Check values against the contract.

        Args:
            values: Variable name -> value

        Returns:
            list[ContractViolation]: Every problem found, in contract order
        """
        violations: list[ContractViolation] = []
        for var in self._variables:
            value = values.get(var.name)
            if value is None or value == "":
                if var.required:
                    problem = "secret is empty" if var.secret and value == "" else "required variable is missing"
                    violations.append(ContractViolation(var.name, problem))
                continue
            if var.validator is not None:
                problem = var.validator(value)
                if problem:
                    violations.append(ContractViolation(var.name, problem))
        return violations

    def require_valid(self, values: dict[str, str]) -> dict[str, str]:
        """
        Validate values and raise on any violation.

        Raises:
            EnvContractError: Carrying every violation found
        """
        violations = self.validate(values)
        if violations:
            logger.warning(f"{__name__}:require_valid - {len(violations)} contract violations")
            raise EnvContractError(
                f"{len(violations)} environment contract violation(s)",
                violations=violations,
            )
        return values


def build_contract(settings: Settings) -> EnvContract:
    """
    Build the application container's environment contract.

    Requirement flags depend on settings: the LLM API key is required only for
    key-authenticated providers, the endpoint only for providers without a
    fixed public endpoint.

    Args:
        settings: Deployment settings

    Returns:
        EnvContract: Ordered contract
    """
    llm = settings.llm
    http_url = url_validator("http", "https")

    variables = [
        # Runtime
        EnvVar("NODE_ENV", "Runtime mode of the API gateway", default="production",
               validator=one_of("production", "development")),
        EnvVar("LOG_LEVEL", "Application log verbosity", default="info",
               validator=one_of("error", "warn", "info", "debug")),
        EnvVar("SECRET_KEY", "Secret used to sign sessions and tokens", secret=True),
        # Public URLs
        EnvVar("FRONTEND_PUBLIC_URL", "Public URL of the web frontend", validator=http_url),
        EnvVar("CONNECTOR_PUBLIC_BACKEND", "Public URL OAuth providers redirect connector callbacks to",
               validator=http_url),
        EnvVar("ALLOWED_ORIGINS", "CORS origins allowed by the API gateway"),
        # Stores
        EnvVar("MONGO_URI", "MongoDB connection URI", secret=True,
               validator=url_validator("mongodb", "mongodb+srv")),
        EnvVar("MONGO_DB_NAME", "MongoDB database name", default="es"),
        EnvVar("ARANGO_URL", "ArangoDB HTTP endpoint", validator=http_url),
        EnvVar("ARANGO_DB_NAME", "ArangoDB database name", default="es"),
        EnvVar("ARANGO_USERNAME", "ArangoDB user", default="root"),
        EnvVar("ARANGO_PASSWORD", "ArangoDB password", secret=True),
        EnvVar("REDIS_HOST", "Redis host"),
        EnvVar("REDIS_PORT", "Redis port", default="6379", validator=port_number),
        EnvVar("REDIS_PASSWORD", "Redis password", required=False, secret=True),
        EnvVar("ETCD_URL", "etcd endpoint for runtime configuration", validator=http_url),
        EnvVar("KAFKA_BROKERS", "Kafka bootstrap brokers", validator=broker_list),
        EnvVar("QDRANT_HOST", "Qdrant host"),
        EnvVar("QDRANT_PORT", "Qdrant HTTP port", default="6333", validator=port_number),
        EnvVar("QDRANT_GRPC_PORT", "Qdrant gRPC port", default="6334", validator=port_number),
        EnvVar("QDRANT_API_KEY", "Qdrant API key", secret=True),
        # Inference
        EnvVar("LLM_PROVIDER", "Managed inference provider"),
        EnvVar("LLM_MODEL", "Chat completion model"),
        EnvVar("EMBEDDING_MODEL", "Embedding model"),
        EnvVar("LLM_ENDPOINT", "Inference endpoint", required=llm.requires_endpoint,
               validator=http_url),
        EnvVar("LLM_API_KEY", "Inference API key", required=llm.requires_api_key, secret=True),
        # Tuning
        EnvVar("MAX_CONCURRENT_PARSING", "Parallel document parsing limit", validator=positive_int),
        EnvVar("MAX_CONCURRENT_INDEXING", "Parallel indexing limit", validator=positive_int),
        EnvVar("API_RATE_LIMIT_PER_MINUTE", "API requests per minute per client", validator=positive_int),
    ]
    return EnvContract(variables)


def _settings_values(settings: Settings) -> dict[str, str | int | None]:
    ds = settings.datastores
    domain = settings.domain
    log_level = settings.log_level.lower()
    return {
        "NODE_ENV": "production" if settings.is_production else "development",
        "LOG_LEVEL": {"warning": "warn", "critical": "error"}.get(log_level, log_level),
        "SECRET_KEY": settings.secret_key,
        "FRONTEND_PUBLIC_URL": domain.frontend_url,
        "CONNECTOR_PUBLIC_BACKEND": domain.connector_public_url,
        "ALLOWED_ORIGINS": domain.frontend_url,
        "MONGO_URI": ds.mongo_uri,
        "MONGO_DB_NAME": ds.mongo_db_name,
        "ARANGO_URL": ds.arango_url,
        "ARANGO_DB_NAME": ds.arango_db_name,
        "ARANGO_USERNAME": ds.arango_user,
        "ARANGO_PASSWORD": ds.arango_password,
        "REDIS_HOST": ds.redis_host,
        "REDIS_PORT": ds.client_port("redis_port"),
        "REDIS_PASSWORD": ds.redis_password,
        "ETCD_URL": ds.etcd_url,
        "KAFKA_BROKERS": ds.kafka_brokers,
        "QDRANT_HOST": ds.qdrant_host,
        "QDRANT_PORT": ds.client_port("qdrant_port"),
        "QDRANT_GRPC_PORT": ds.client_port("qdrant_grpc_port"),
        "QDRANT_API_KEY": ds.qdrant_api_key,
        "LLM_PROVIDER": settings.llm.provider,
        "LLM_MODEL": settings.llm.model,
        "EMBEDDING_MODEL": settings.llm.embedding_model,
        "LLM_ENDPOINT": settings.llm.endpoint,
        "LLM_API_KEY": settings.llm.api_key,
        "MAX_CONCURRENT_PARSING": settings.tuning.max_concurrent_parsing,
        "MAX_CONCURRENT_INDEXING": settings.tuning.max_concurrent_indexing,
        "API_RATE_LIMIT_PER_MINUTE": settings.tuning.api_rate_limit_per_minute,
    }


_SECRET_SUFFIXES = ("_PASSWORD", "_SECRET", "_API_KEY", "_TOKEN")


def _looks_secret(name: str) -> bool:
    return name.upper().endswith(_SECRET_SUFFIXES)


def redact_value(value: str) -> str:
    if len(value) > 8:
        return "****" + value[-4:]
    return "****"


def redact(values: dict[str, str], contract: EnvContract) -> dict[str, str]:
    """
    Mask secret values for display.

    Args:
        values: Variable name -> value
        contract: Contract marking which variables are secret

    Returns:
        dict[str, str]: Copy with non-empty secrets masked
    """
    secrets = contract.secret_names()
    return {
        name: redact_value(value) if value and (name in secrets or _looks_secret(name)) else value
        for name, value in values.items()
    }


def _quote(value: str) -> str:
    if value == "" or not _NEEDS_QUOTING.search(value):
        return value
    escaped = value.replace("\\", "\\\\").replace('"', '\\"').replace("$", "\\$")
    return f'"{escaped}"'


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] == '"':
        inner = value[1:-1]
        return re.sub(r"\\(.)", r"\1", inner)
    if len(value) >= 2 and value[0] == value[-1] == "'":
        return value[1:-1]
    return value


def render_env_file(values: dict[str, str], contract: EnvContract) -> str:
    """
    Render values as a dotenv file.

    Contract variables come first in contract order, each preceded by its
    description. Extra values follow in insertion order.

    Args:
        values: Variable name -> value
        contract: Contract providing order and descriptions

    Returns:
        str: Dotenv text ending in a newline
    """
    lines: list[str] = []
    for var in contract:
        if var.name not in values:
            continue
        lines.append(f"# {var.description}")
        lines.append(f"{var.name}={_quote(values[var.name])}")

    extras = [name for name in values if name not in contract]
    if extras:
        lines.append("# Additional values")
        lines.extend(f"{name}={_quote(values[name])}" for name in extras)

    return "\n".join(lines) + "\n"


def parse_env_file(text: str) -> dict[str, str]:
    """
    Parse dotenv text.

    Ignores comments and blank lines, accepts an optional "export " prefix
    and strips one level of quoting.

    Args:
        text: Dotenv file contents

    Returns:
        dict[str, str]: Parsed values

    Raises:
        EnvContractError: If a line is not a KEY=VALUE assignment
    """
    values: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export "):].lstrip()
        name, sep, value = line.partition("=")
        name = name.strip()
        if not sep or not name:
            raise EnvContractError(f"Malformed line {lineno} in env file", details={"line": lineno})
        values[name] = _unquote(value.strip())
    return values
