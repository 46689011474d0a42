"""
Compute components for the Docker hosts and the load balancer.

Components:
- DockerHostComponent: EC2 instance for the application or the self-hosted data stores
- AlbComponent: Public Application Load Balancer
"""

from IAC.components.compute.docker_host import DockerHostComponent, DockerHostOutputs, render_user_data
from IAC.components.compute.alb import AlbComponent, AlbOutputs

__all__ = [
    "DockerHostComponent",
    "DockerHostOutputs",
    "render_user_data",
    "AlbComponent",
    "AlbOutputs",
]
