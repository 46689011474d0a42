"""
ECR Repository Component for the PipesHub application image.

The application image is published upstream (pipeshubai/pipeshub-ai). It is
mirrored into a private repository so the hosts pull from ECR through their
instance role instead of Docker Hub:

  1. pipeshub-deploy build-and-push --environment <env>
     (pulls or builds, authenticates, tags, pushes)
  2. The application host pulls <repository_url>:<tag> with its instance role

Key Features:
- scan_on_push=True: every image is scanned for CVEs on upload.
- Lifecycle Policy: keep the last 10 images.
- Encryption: AES256 at rest.
- Tag mutability: MUTABLE, so 'latest' can be re-pushed.
"""

import json
from dataclasses import dataclass

import pulumi
import pulumi_aws as aws

from IAC.utils.tags import create_tags

KEEP_IMAGES = 10


@dataclass
class EcrRepositoryOutputs:
    """Output values from ECR repository component."""
    repository_url: pulumi.Output[str]
    repository_arn: pulumi.Output[str]
    repository_name: pulumi.Output[str]


class EcrRepositoryComponent(pulumi.ComponentResource):
    """
    Private ECR repository for the application container image.
    """

    def __init__(
        self,
        name: str,
        environment: str,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("custom:storage:EcrRepository", name, None, opts)

        child_opts = pulumi.ResourceOptions(parent=self)

        self.repository = aws.ecr.Repository(
            f"{name}-app-repo",
            name=f"{name}-app",
            image_scanning_configuration=aws.ecr.RepositoryImageScanningConfigurationArgs(
                scan_on_push=True,
            ),
            image_tag_mutability="MUTABLE",
            encryption_configurations=[
                aws.ecr.RepositoryEncryptionConfigurationArgs(
                    encryption_type="AES256",
                ),
            ],
            force_delete=environment != "prod",
            tags=create_tags(environment, f"{name}-app-repo", service="pipeshub-ai"),
            opts=child_opts,
        )

        aws.ecr.LifecyclePolicy(
            f"{name}-app-lifecycle",
            repository=self.repository.name,
            policy=json.dumps({
                "rules": [{
                    "rulePriority": 1,
                    "description": f"Keep last {KEEP_IMAGES} images",
                    "selection": {
                        "tagStatus": "any",
                        "countType": "imageCountMoreThan",
                        "countNumber": KEEP_IMAGES,
                    },
                    "action": {"type": "expire"},
                }],
            }),
            opts=child_opts,
        )

        self.register_outputs({
            "repository_url": self.repository.repository_url,
            "repository_arn": self.repository.arn,
            "repository_name": self.repository.name,
        })

    def get_outputs(self) -> EcrRepositoryOutputs:
        """Get ECR repository output values."""
        return EcrRepositoryOutputs(
            repository_url=self.repository.repository_url,
            repository_arn=self.repository.arn,
            repository_name=self.repository.name,
        )
