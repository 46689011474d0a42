"""
Command line entry point.

Usage:
    pipeshub-deploy render-env --output .env
    pipeshub-deploy verify-env .env
    pipeshub-deploy render-compose --output docker-compose.yml
    pipeshub-deploy plan --format markdown
    pipeshub-deploy redirect-uris --connector google-workspace
    pipeshub-deploy dns-records --target 203.0.113.10
    pipeshub-deploy verify --internal --json
    pipeshub-deploy alerts samples.json
    pipeshub-deploy build-and-push --environment prod

Exit codes: 0 success, 1 check/validation failure, 2 usage or configuration error.

Dependencies: argparse, httpx, pydantic, deployment.*
System role: Operator-facing surface of the toolkit
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import httpx
from pydantic import ValidationError

from deployment import __version__
from deployment.configs.settings import Settings, get_settings
from deployment.core.alerts import default_rules, evaluate, load_samples
from deployment.core.compose import bootstrap_values, render_compose, to_yaml
from deployment.core.dns import expected_records
from deployment.core.env_contract import build_contract, parse_env_file, redact, render_env_file
from deployment.core.exceptions import DeploymentError
from deployment.core.oauth import authorized_origins, default_registry, redirect_uris, redirect_uris_by_provider
from deployment.core.runbook import build_runbook
from deployment.core.topology import default_topology
from deployment.observability.logger import configure_logging
from deployment.scripts.image_builder import ImagePublisher
from deployment.verification.acceptance import run_acceptance

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def _write_or_print(text: str, output: str | None) -> None:
    if output:
        Path(output).write_text(text, encoding="utf-8")
        logger.info(f"Wrote {output}")
    else:
        sys.stdout.write(text if text.endswith("\n") else text + "\n")


def cmd_render_env(args: argparse.Namespace, settings: Settings) -> int:
    contract = build_contract(settings)
    topology = default_topology(settings)
    values = contract.resolve(settings)

    violations = contract.validate(values)
    for violation in violations:
        logger.error(f"Contract violation - {violation}")
    if violations and not args.allow_missing:
        return EXIT_FAILED

    values.update(bootstrap_values(topology, settings))
    _write_or_print(render_env_file(values, contract), args.output)
    return EXIT_OK


def cmd_verify_env(args: argparse.Namespace, settings: Settings) -> int:
    contract = build_contract(settings)
    values = parse_env_file(Path(args.path).read_text(encoding="utf-8"))
    violations = contract.validate(values)
    if violations:
        for violation in violations:
            print(f"INVALID {violation}")
        return EXIT_FAILED
    print(f"OK {len(contract)} variables satisfy the contract")
    return EXIT_OK


def _application_image(args: argparse.Namespace, settings: Settings) -> str | None:
    if args.stores_only:
        return None
    if args.image:
        return args.image
    if settings.registry_image:
        return settings.registry_image
    publisher = ImagePublisher(
        environment=args.environment or settings.environment,
        source_image=settings.image,
    )
    return publisher.registry_image_uri()


def cmd_render_compose(args: argparse.Namespace, settings: Settings) -> int:
    topology = default_topology(settings)
    document = render_compose(
        topology,
        build_contract(settings),
        env_file=args.env_file,
        include_application=not args.stores_only,
        app_image=_application_image(args, settings),
    )
    _write_or_print(to_yaml(document), args.output)
    return EXIT_OK


def cmd_plan(args: argparse.Namespace, settings: Settings) -> int:
    runbook = build_runbook(settings, default_topology(settings))
    if args.format == "json":
        print(json.dumps(runbook.to_dict(), indent=2))
    else:
        print(runbook.render_markdown(), end="")
    if args.show_env:
        contract = build_contract(settings)
        shown = redact(contract.resolve(settings), contract)
        print("\n## Environment (secrets redacted)\n")
        for name, value in shown.items():
            print(f"    {name}={value}")
    return EXIT_OK


def cmd_redirect_uris(args: argparse.Namespace, settings: Settings) -> int:
    registry = default_registry()
    domain = settings.domain
    if args.connector:
        for uri in redirect_uris(registry, domain.frontend_url, domain.connector_public_url, args.connector):
            print(uri)
        return EXIT_OK

    for provider, uris in redirect_uris_by_provider(
        registry, domain.frontend_url, domain.connector_public_url
    ).items():
        print(f"[{provider}]")
        for uri in uris:
            print(f"  {uri}")
    print("[authorized origins]")
    for origin in authorized_origins(domain.frontend_url):
        print(f"  {origin}")
    return EXIT_OK


def cmd_dns_records(args: argparse.Namespace, settings: Settings) -> int:
    for record in expected_records(settings.domain, args.target):
        print(record)
    return EXIT_OK


async def _verify(args: argparse.Namespace, settings: Settings):
    async with httpx.AsyncClient(timeout=args.timeout, follow_redirects=True) as client:
        return await run_acceptance(
            settings,
            default_topology(settings),
            client,
            include_internal=args.internal,
            services=args.service or None,
            check_tls=not args.skip_tls,
            attempts=args.attempts,
        )


def cmd_verify(args: argparse.Namespace, settings: Settings) -> int:
    report = asyncio.run(_verify(args, settings))
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
    else:
        print(report.render_text())
    return EXIT_OK if report.passed else EXIT_FAILED


def cmd_alerts(args: argparse.Namespace, settings: Settings) -> int:
    alerts = evaluate(load_samples(Path(args.samples)), default_rules(settings.alerts))
    for alert in alerts:
        print(f"[{alert.severity.upper()}] {alert.message}")
    if not alerts:
        print("No thresholds breached")
    return EXIT_FAILED if alerts else EXIT_OK


def _publisher(args: argparse.Namespace, settings: Settings) -> ImagePublisher:
    return ImagePublisher(
        environment=args.environment or settings.environment,
        source_image=settings.image,
        build_context=Path(args.context) if args.context else None,
    )


def cmd_build_image(args: argparse.Namespace, settings: Settings) -> int:
    print(_publisher(args, settings).build_image())
    return EXIT_OK


def cmd_push_image(args: argparse.Namespace, settings: Settings) -> int:
    publisher = _publisher(args, settings)
    ecr_url = publisher.get_ecr_repository_url()
    publisher.authenticate_with_ecr(ecr_url)
    print(publisher.push_image(ecr_url))
    return EXIT_OK


def cmd_build_and_push(args: argparse.Namespace, settings: Settings) -> int:
    print(_publisher(args, settings).build_and_push())
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pipeshub-deploy",
        description="Provisioning and acceptance toolkit for PipesHub deployments",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL for this run")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("render-env", help="Render the application .env file")
    p.add_argument("--output", "-o", help="Write to file instead of stdout")
    p.add_argument("--allow-missing", action="store_true", help="Render even with contract violations")
    p.set_defaults(handler=cmd_render_env)

    p = sub.add_parser("verify-env", help="Validate an existing .env file")
    p.add_argument("path")
    p.set_defaults(handler=cmd_verify_env)

    p = sub.add_parser("render-compose", help="Render docker-compose.yml for self-hosted services")
    p.add_argument("--output", "-o")
    p.add_argument("--env-file", default=".env")
    p.add_argument("--stores-only", action="store_true", help="Omit the application container")
    p.add_argument("--image", help="Application image (defaults to DEPLOY_REGISTRY_IMAGE, then the stack's ECR copy)")
    p.add_argument("--environment", help="Pulumi stack to read the ECR repository from (defaults to settings)")
    p.set_defaults(handler=cmd_render_compose)

    p = sub.add_parser("plan", help="Print the provisioning runbook")
    p.add_argument("--format", choices=("markdown", "json"), default="markdown")
    p.add_argument("--show-env", action="store_true", help="Append resolved environment (redacted)")
    p.set_defaults(handler=cmd_plan)

    p = sub.add_parser("redirect-uris", help="Print OAuth redirect URIs to register")
    p.add_argument("--connector")
    p.set_defaults(handler=cmd_redirect_uris)

    p = sub.add_parser("dns-records", help="Print the expected DNS records")
    p.add_argument("--target", help="Load balancer hostname or IP (defaults to PIPESHUB_EXPECTED_IP)")
    p.set_defaults(handler=cmd_dns_records)

    p = sub.add_parser("verify", help="Run deployment acceptance checks")
    p.add_argument("--internal", action="store_true", help="Include in-network health and store checks")
    p.add_argument("--service", action="append", help="Restrict to a service (repeatable)")
    p.add_argument("--attempts", type=int, default=3)
    p.add_argument("--timeout", type=float, default=10.0)
    p.add_argument("--skip-tls", action="store_true")
    p.add_argument("--json", action="store_true")
    p.set_defaults(handler=cmd_verify)

    p = sub.add_parser("alerts", help="Evaluate metric samples against alert thresholds")
    p.add_argument("samples")
    p.set_defaults(handler=cmd_alerts)

    for name, handler, help_text in (
        ("build-image", cmd_build_image, "Pull or build the application image"),
        ("push-image", cmd_push_image, "Push the application image to ECR"),
        ("build-and-push", cmd_build_and_push, "Build (or pull) and push the application image"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("--environment", help="Pulumi stack / environment (defaults to settings)")
        p.add_argument("--context", help="Build from this directory instead of pulling")
        p.set_defaults(handler=handler)

    return parser


def main(argv: list[str] | None = None, settings: Settings | None = None) -> int:
    """
    Run one CLI command.

    Args:
        argv: Arguments (defaults to sys.argv[1:])
        settings: Settings to use instead of loading from the environment

    Returns:
        int: Process exit code
    """
    args = build_parser().parse_args(argv)

    try:
        settings = settings or get_settings()
    except ValidationError as e:
        configure_logging()
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE

    configure_logging(args.log_level or settings.log_level)

    try:
        return args.handler(args, settings)
    except DeploymentError as e:
        logger.error(f"Error: {e}")
        return EXIT_USAGE
    except ValidationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_USAGE
    except FileNotFoundError as e:
        logger.error(f"Error: {e}")
        return EXIT_USAGE


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
