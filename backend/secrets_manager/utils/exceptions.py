"""
Custom exception classes for the Secrets Manager application.
"""

from typing import Optional


class SecretsManagerException(Exception):
    """Base exception for all Secrets Manager errors."""

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(self.message)


class NotFoundError(SecretsManagerException):
    """Raised when a user, project, secret or membership does not exist."""

    def __init__(self, resource_type: str, resource_id=None, detail: Optional[str] = None):
        if resource_id is None:
            message = f"{resource_type.capitalize()} not found"
        else:
            message = f"{resource_type.capitalize()} not found: {resource_id}"
        super().__init__(message, detail)
        self.resource_type = resource_type
        self.resource_id = resource_id


class AuthenticationError(SecretsManagerException):
    """Raised when authentication fails."""

    def __init__(self, message: str = "Could not validate credentials", detail: Optional[str] = None):
        super().__init__(message, detail)


class PermissionDeniedError(SecretsManagerException):
    """Raised when the authorization engine denies an action."""

    def __init__(self, message: str = "Forbidden", detail: Optional[str] = None):
        super().__init__(message, detail)


class ValidationError(SecretsManagerException):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: Optional[str] = None, detail: Optional[str] = None):
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, detail)
        self.field = field


class ConflictError(SecretsManagerException):
    """Raised when a unique key (username, email, secret path) is already taken."""


class CredentialStoreError(SecretsManagerException):
    """Raised when a call to the external credential store fails."""

    def __init__(self, message: str, path: Optional[str] = None, detail: Optional[str] = None):
        super().__init__(f"Credential store error: {message}", detail)
        self.path = path


class CredentialNotFoundError(CredentialStoreError):
    """Raised when the credential store has no parameter at the given path."""

    def __init__(self, path: str, detail: Optional[str] = None):
        super().__init__(f"parameter not found at {path}", path=path, detail=detail)
