"""
User Infrastructure Models
==========================

SQLAlchemy ORM model for users.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from zordon_hub.config import Department, Role
from zordon_hub.infrastructure.database import Base


class UserModel(Base):
    """
    Database model for User entity.

    Maps to the 'users' table. E-mails are stored lower-cased.
    """
    __tablename__ = "users"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Profile
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), unique=True, index=True, nullable=False)
    role: Mapped[Role] = mapped_column(String(20), nullable=False, default=Role.RANGER, index=True)
    department: Mapped[Department] = mapped_column(String(20), nullable=False, default=Department.RED)
    skills: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Engineer presence and cached active-ticket count
    is_online: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    workload_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Opaque credentials owned by the identity provider
    password_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    refresh_token: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
