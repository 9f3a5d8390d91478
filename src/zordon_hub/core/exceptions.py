"""
Core Exceptions
================

Custom exceptions for the application following clean architecture principles.

Every exception carries a stable ``kind`` and the HTTP status it maps to, so
the interface layer can build a structured error without inspecting types.
"""

from typing import Optional


class ApplicationException(Exception):
    """Base exception for all application errors."""

    kind = "internal"
    status_code = 500

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        """Structured, client-safe representation."""
        return {"success": False, "message": self.message, "error": self.kind}


class DomainException(ApplicationException):
    """Base exception for domain logic violations."""

    kind = "domain_error"
    status_code = 400


class RepositoryException(ApplicationException):
    """Base exception for repository/data access errors."""

    kind = "repository_error"


class ConfigurationException(ApplicationException):
    """Exception for configuration errors."""

    kind = "configuration_error"


class UnauthenticatedException(ApplicationException):
    """No identity, or an identity that cannot be resolved."""

    kind = "unauthenticated"
    status_code = 401

    def __init__(self, message: str = "User not authenticated", details: Optional[dict] = None):
        super().__init__(message, details)


class ForbiddenException(ApplicationException):
    """Known identity, action denied."""

    kind = "forbidden"
    status_code = 403


class ResourceNotFoundException(ApplicationException):
    """Exception when a requested resource is not found."""

    kind = "not_found"
    status_code = 404

    def __init__(
        self,
        resource_type: str,
        resource_id: Optional[str] = None,
        details: Optional[dict] = None
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        message = f"{resource_type}"
        if resource_id:
            message += f" with id '{resource_id}'"
        message += " not found"
        super().__init__(message, details)


class ValidationException(ApplicationException):
    """Missing field, empty content or an unrecognised enum value."""

    kind = "invalid_input"
    status_code = 400


class InvalidAssigneeException(DomainException):
    """Assignment target is not an engineer."""

    kind = "invalid_assignee"
    status_code = 400


class InvalidTransitionException(DomainException):
    """State change not allowed from the current state (ticket status, engineer role)."""

    kind = "invalid_transition"
    status_code = 409


class ConflictException(ApplicationException):
    """Write would violate a uniqueness constraint."""

    kind = "conflict"
    status_code = 409


class ExternalServiceException(ApplicationException):
    """Base exception for external service failures."""

    kind = "upstream"
    status_code = 502

    def __init__(
        self,
        service_name: str,
        message: str,
        details: Optional[dict] = None
    ):
        self.service_name = service_name
        super().__init__(f"{service_name}: {message}", details)


class MailDeliveryException(ExternalServiceException):
    """Exception for mail relay failures."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__("Mail Relay", message, details)
