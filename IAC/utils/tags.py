"""
Tag factory for AWS resources.

Every resource carries the project defaults plus Environment and Name.
Resources that belong to one deployment service (pipeshub-ai, redis,
mongodb, load-balancer) also carry a Service tag using the same name the
toolkit's topology and the CloudWatch metric dimensions use.
"""

from IAC.configs.constants import DEFAULT_TAGS


def create_tags(
    environment: str,
    resource_name: str,
    service: str | None = None,
    **extra_tags: str,
) -> dict[str, str]:
    """
    Create a standard tag set for an AWS resource.

    Args:
        environment: Deployment environment
        resource_name: Name of the resource
        service: Deployment service the resource belongs to
        **extra_tags: Additional tags (e.g. Tier="private")

    Returns:
        Dictionary of tags
    """
    tags = {**DEFAULT_TAGS, "Environment": environment, "Name": resource_name}
    if service:
        tags["Service"] = service
    return {**tags, **extra_tags}
