"""
Utility modules for the Secrets Manager application.
"""

from .exceptions import (
    SecretsManagerException,
    NotFoundError,
    AuthenticationError,
    PermissionDeniedError,
    ValidationError,
    ConflictError,
    CredentialStoreError,
    CredentialNotFoundError,
)

__all__ = [
    "SecretsManagerException",
    "NotFoundError",
    "AuthenticationError",
    "PermissionDeniedError",
    "ValidationError",
    "ConflictError",
    "CredentialStoreError",
    "CredentialNotFoundError",
]
