"""
Observability module.

Provides logging configuration for the command line.
"""

from deployment.observability.logger import configure_logging

__all__ = ["configure_logging"]
