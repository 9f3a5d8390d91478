"""
User Application Services
=========================

Registration, role management and identity resolution.

Credential handling (hashing, token issuance and rotation) belongs to the
identity provider in front of this service; only the resolved user id
reaches the core.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional
from uuid import uuid4

from zordon_hub.access import ensure_can_manage_users
from zordon_hub.config import Department, Role
from zordon_hub.core import (
    ConflictException,
    InvalidTransitionException,
    ResourceNotFoundException,
    UnauthenticatedException,
    ValidationException,
)
from zordon_hub.shared.infrastructure.logging import get_logger
from zordon_hub.users.domain import Identity, User

if TYPE_CHECKING:
    from zordon_hub.tickets.application.services import ITicketRepository

logger = get_logger(__name__)


# ========== Repository Interface ==========

class IUserRepository(ABC):
    """Interface for user data access."""

    @abstractmethod
    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by id."""

    @abstractmethod
    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """Get several users keyed by id; unknown ids are omitted."""

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Case-insensitive lookup by e-mail."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Insert a new user."""

    @abstractmethod
    async def list(self, role: Optional[Role] = None) -> List[User]:
        """List users, newest first, optionally filtered by role."""

    @abstractmethod
    async def count(self, role: Optional[Role] = None, is_online: Optional[bool] = None) -> int:
        """Count users matching the filters."""

    @abstractmethod
    async def update_fields(self, user_id: str, **fields) -> Optional[User]:
        """Partial update (last write wins). Returns the updated user."""

    @abstractmethod
    async def increment_workload(self, user_id: str, delta: int) -> None:
        """
        Atomically add ``delta`` to workload_score, never below zero.

        Runs isolated from the caller's pending writes: a failure here must
        not roll back the ticket change that triggered it.
        """


# ========== Application Services ==========

class UserService:
    """Registration, listing and role elevation."""

    def __init__(self, user_repository: IUserRepository, ticket_repository: "ITicketRepository"):
        self._user_repo = user_repository
        self._ticket_repo = ticket_repository

    async def register(
        self,
        name: str,
        email: str,
        department: Department = Department.RED,
        skills: Optional[List[str]] = None
    ) -> User:
        """
        Self-service registration.

        The role is always RANGER; elevation is an admin action.

        Raises:
            ValidationException: name or e-mail missing
            ConflictException: e-mail already registered
        """
        name = (name or "").strip()
        email = (email or "").strip().lower()
        if not name or not email:
            raise ValidationException("Name and email are required")

        if await self._user_repo.get_by_email(email):
            raise ConflictException(f"Email {email} is already registered")

        user = await self._user_repo.create(User(
            id=str(uuid4()),
            name=name,
            email=email,
            role=Role.RANGER,
            department=department,
            skills=list(skills or []),
        ))
        logger.info("User registered", extra={"user_id": user.id})
        return user

    async def resolve_identity(self, user_id: Optional[str]) -> Identity:
        """Build the caller identity, or fail as unauthenticated."""
        if not user_id:
            raise UnauthenticatedException()

        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise UnauthenticatedException("Unknown user")
        return user.to_identity()

    async def get_user(self, user_id: str) -> User:
        user = await self._user_repo.get_by_id(user_id)
        if user is None:
            raise ResourceNotFoundException("User", user_id)
        return user

    async def list_users(self, identity: Optional[Identity]) -> List[User]:
        ensure_can_manage_users(identity)
        return await self._user_repo.list()

    async def change_role(self, identity: Optional[Identity], user_id: str, role: Role) -> User:
        """
        Admin-only role change.

        An engineer still holding active tickets cannot leave the role; those
        tickets must be reassigned or resolved first. A demoted engineer's
        cached workload drops to zero.
        """
        ensure_can_manage_users(identity)
        user = await self.get_user(user_id)

        fields = {"role": role}
        if user.is_engineer and role != Role.ENGINEER:
            active = (await self._ticket_repo.count_active_by_assignee()).get(user_id, 0)
            if active:
                raise InvalidTransitionException(
                    "Engineer still has active tickets; reassign them before changing role",
                    {"user_id": user_id, "active_tickets": active}
                )
            fields["workload_score"] = 0

        user = await self._user_repo.update_fields(user_id, **fields)
        logger.info(
            "User role changed",
            extra={"user_id": user_id, "role": role.value, "changed_by": identity.id}
        )
        return user
