"""
Application image publisher for ECR.

Usage:
    pipeshub-deploy build-image --environment dev
    pipeshub-deploy push-image --environment dev
    pipeshub-deploy build-and-push --environment prod

Purpose:
- Pull the pre-built application image (or build it from a local context)
- Authenticate with AWS ECR
- Tag and push the image to the repository created by the IAC program
- Print the image URI for the application host

Dependencies: python-dotenv, docker CLI, aws CLI, pulumi CLI
System role: CI/CD helper for the application container
"""

import json
import logging
import subprocess
from pathlib import Path

from dotenv import load_dotenv

from deployment.core.exceptions import ImageBuildError

logger = logging.getLogger(__name__)

ECR_OUTPUT_KEY = "app_ecr_repository"


class ImagePublisher:
    """Pull or build the application image and push it to ECR."""

    def __init__(
        self,
        environment: str,
        source_image: str = "pipeshubai/pipeshub-ai:latest",
        build_context: Path | None = None,
        dockerfile: Path | None = None,
        iac_dir: Path | None = None,
    ) -> None:
        """
        Initialize publisher.

        Args:
            environment: Deployment environment (dev, staging, prod)
            source_image: Upstream image to mirror when no build context is given
            build_context: Directory to build from instead of pulling
            dockerfile: Dockerfile path (defaults to <build_context>/Dockerfile)
            iac_dir: Pulumi project directory holding the stack outputs

        Raises:
            FileNotFoundError: If a build context is given without a Dockerfile
        """
        load_dotenv()
        self.environment = environment
        self.source_image = source_image
        self.build_context = build_context
        self.project_root = Path(__file__).parent.parent.parent
        self.iac_dir = iac_dir or self.project_root / "IAC"

        last_component = source_image.rsplit("/", 1)[-1]
        _, sep, tag = last_component.rpartition(":")
        self.image_tag = tag if sep and tag else "latest"
        self.image_local = f"pipeshub-ai:{self.image_tag}"

        self.dockerfile = None
        if build_context is not None:
            self.dockerfile = dockerfile or build_context / "Dockerfile"
            if not self.dockerfile.exists():
                raise FileNotFoundError(f"Dockerfile not found: {self.dockerfile}")

    @staticmethod
    def _run(args: list[str], stage: str, **kwargs) -> subprocess.CompletedProcess:
        try:
            return subprocess.run(args, check=True, capture_output=True, text=True, **kwargs)
        except subprocess.CalledProcessError as e:
            raise ImageBuildError(f"{args[0]} {args[1]} failed: {e.stderr.strip()}", stage=stage) from e
        except FileNotFoundError as e:
            raise ImageBuildError(f"{args[0]} not found. Install it and try again.", stage=stage) from e

    def build_image(self) -> str:
        """
        Produce the local image, by building or by pulling the upstream image.

        Returns:
            str: Local image reference

        Raises:
            ImageBuildError: If docker fails
        """
        if self.build_context is not None:
            logger.info(f"Building image: {self.image_local}")
            logger.info(f"Dockerfile: {self.dockerfile}")
            self._run(
                [
                    "docker",
                    "build",
                    "--platform=linux/amd64",
                    "-t",
                    self.image_local,
                    "-f",
                    str(self.dockerfile),
                    str(self.build_context),
                ],
                stage="build",
            )
        else:
            logger.info(f"Pulling image: {self.source_image}")
            self._run(["docker", "pull", "--platform=linux/amd64", self.source_image], stage="pull")
            self._run(["docker", "tag", self.source_image, self.image_local], stage="pull")

        logger.info("✓ Image ready")
        return self.image_local

    def get_ecr_repository_url(self) -> str:
        """
        Get ECR repository URL from the Pulumi stack outputs.

        Raises:
            ImageBuildError: If the stack has no repository output
        """
        logger.info("Retrieving ECR repository URL from Pulumi stack...")
        result = self._run(
            ["pulumi", "stack", "output", "-s", self.environment, "--json"],
            stage="lookup",
            cwd=str(self.iac_dir),
        )
        try:
            outputs = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ImageBuildError("Failed to parse Pulumi outputs", stage="lookup") from e

        ecr_url = outputs.get(ECR_OUTPUT_KEY)
        if not ecr_url:
            raise ImageBuildError(
                "ECR repository URL not found in Pulumi outputs. Ensure IAC is deployed.",
                stage="lookup",
            )

        logger.info(f"ECR Repository: {ecr_url}")
        return ecr_url

    @staticmethod
    def parse_registry(ecr_url: str) -> tuple[str, str]:
        """
        Split an ECR repository URL into registry host and region.

        Args:
            ecr_url: <account>.dkr.ecr.<region>.amazonaws.com/<repository>

        Returns:
            tuple[str, str]: (registry host, region)

        Raises:
            ImageBuildError: If the URL is not an ECR repository URL
        """
        registry = ecr_url.split("/", 1)[0]
        parts = registry.split(".")
        if len(parts) < 6 or parts[1:3] != ["dkr", "ecr"]:
            raise ImageBuildError(f"Invalid ECR URL format: {ecr_url}", stage="login")
        return registry, parts[3]

    def authenticate_with_ecr(self, ecr_url: str) -> None:
        """
        Authenticate Docker with AWS ECR.

        Raises:
            ImageBuildError: If the URL is malformed or login fails
        """
        logger.info("Authenticating with AWS ECR...")
        registry, region = self.parse_registry(ecr_url)

        result = self._run(["aws", "ecr", "get-login-password", "--region", region], stage="login")
        self._run(
            ["docker", "login", "--username", "AWS", "--password-stdin", registry],
            stage="login",
            input=result.stdout.strip(),
        )
        logger.info("✓ ECR authentication successful")

    def push_image(self, ecr_url: str) -> str:
        """
        Tag and push the local image.

        Returns:
            str: Full image URI with tag

        Raises:
            ImageBuildError: If tagging or pushing fails
        """
        image_uri = f"{ecr_url}:{self.image_tag}"
        logger.info(f"Tagging image: {image_uri}")
        self._run(["docker", "tag", self.image_local, image_uri], stage="push")

        logger.info("Pushing image to ECR...")
        self._run(["docker", "push", image_uri], stage="push")

        logger.info(f"✓ Image pushed: {image_uri}")
        return image_uri

    def registry_image_uri(self) -> str:
        """Image URI the push produces, which the Docker host pulls."""
        return f"{self.get_ecr_repository_url()}:{self.image_tag}"

    def build_and_push(self) -> str:
        """Build (or pull), authenticate and push in one operation."""
        self.build_image()
        ecr_url = self.get_ecr_repository_url()
        self.authenticate_with_ecr(ecr_url)
        return self.push_image(ecr_url)
