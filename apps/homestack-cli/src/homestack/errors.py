"""Custom exceptions for the homestack CLI."""

from __future__ import annotations


class HomestackError(Exception):
    """Base exception for all homestack operations."""

    def __init__(self, message: str, *, exit_code: int = 1):
        super().__init__(message)
        self.exit_code = exit_code


class ConfigMissingError(HomestackError):
    """A required environment or config file is absent."""


class PrivilegeRequiredError(HomestackError):
    """The operation must run as root."""


class DockerError(HomestackError):
    """Docker/Compose operation failed."""


class CertbotError(HomestackError):
    """Certbot operation failed."""


class NginxConfigError(HomestackError):
    """NGINX configuration validation failed."""


class RegistryError(HomestackError):
    """The unit registry is inconsistent (unknown dependency, duplicate or cycle)."""


class UnitNotFoundError(HomestackError):
    """No unit with the requested name is registered."""
