"""
Utility functions for Pulumi infrastructure.

Provides naming conventions, tag factories, and output utilities.
"""

from IAC.utils.naming import ResourceNamer
from IAC.utils.tags import create_tags
from IAC.utils.outputs import write_outputs_to_env

__all__ = [
    "ResourceNamer",
    "create_tags",
    "write_outputs_to_env",
]
