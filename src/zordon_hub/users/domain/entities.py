"""
User Domain Entities
====================

Users and the resolved identity the core receives on every call.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from zordon_hub.config import Department, Role


@dataclass
class User:
    """
    Registered user.

    ``workload_score`` is a cache of the engineer's active-ticket count and
    can always be recomputed from tickets. Credentials are opaque values owned
    by the identity provider and are never serialised.
    """

    id: str
    name: str
    email: str
    role: Role = Role.RANGER
    department: Department = Department.RED
    is_online: bool = False
    workload_score: int = 0
    skills: List[str] = field(default_factory=list)
    password_hash: Optional[str] = field(default=None, repr=False)
    refresh_token: Optional[str] = field(default=None, repr=False)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self):
        self.email = self.email.strip().lower()
        self.name = self.name.strip()

    @property
    def is_engineer(self) -> bool:
        return self.role == Role.ENGINEER

    def to_identity(self) -> "Identity":
        return Identity(
            id=self.id,
            role=self.role,
            name=self.name,
            email=self.email,
            department=self.department,
        )

    def public_profile(self) -> dict:
        """Author projection used on comments."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "department": self.department.value,
            "role": self.role.value,
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "role": self.role.value,
            "department": self.department.value,
            "is_online": self.is_online,
            "workload_score": self.workload_score,
            "skills": list(self.skills),
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class Identity:
    """Authenticated caller: id and role, optionally enriched with profile data."""

    id: str
    role: Role
    name: Optional[str] = None
    email: Optional[str] = None
    department: Optional[Department] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
