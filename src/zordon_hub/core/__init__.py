"""
Core Module
============

Shared core utilities and abstractions used across the application.

This module contains framework-agnostic code that defines the fundamental
building blocks of the system.
"""

from zordon_hub.core.exceptions import (
    ApplicationException,
    DomainException,
    RepositoryException,
    ConfigurationException,
    UnauthenticatedException,
    ForbiddenException,
    ResourceNotFoundException,
    ValidationException,
    InvalidAssigneeException,
    InvalidTransitionException,
    ConflictException,
    ExternalServiceException,
    MailDeliveryException,
)

__all__ = [
    "ApplicationException",
    "DomainException",
    "RepositoryException",
    "ConfigurationException",
    "UnauthenticatedException",
    "ForbiddenException",
    "ResourceNotFoundException",
    "ValidationException",
    "InvalidAssigneeException",
    "InvalidTransitionException",
    "ConflictException",
    "ExternalServiceException",
    "MailDeliveryException",
]
