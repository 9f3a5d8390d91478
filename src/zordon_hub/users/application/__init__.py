"""
User Application Layer
======================

Services, DTOs and the user repository interface.
"""

from zordon_hub.users.application.dto import (
    RoleChangeRequest,
    UserRegisterRequest,
    WorkloadOverrideRequest,
)
from zordon_hub.users.application.services import IUserRepository, UserService

__all__ = [
    "RoleChangeRequest",
    "UserRegisterRequest",
    "WorkloadOverrideRequest",
    "IUserRepository",
    "UserService",
]
