"""
Security components for IAM and secrets management.

Components:
- IamRolesComponent: IAM role and instance profile for the EC2 hosts
- SecretsManagerComponent: Secrets for the app key, data store credentials and LLM key
"""

from IAC.components.security.iam_roles import IamRolesComponent, IamRoleOutputs
from IAC.components.security.secrets_manager import SecretsManagerComponent, SecretsOutputs

__all__ = [
    "IamRolesComponent",
    "IamRoleOutputs",
    "SecretsManagerComponent",
    "SecretsOutputs",
]
