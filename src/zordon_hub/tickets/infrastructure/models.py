"""
Ticket Infrastructure Models
============================

SQLAlchemy ORM model for tickets.
"""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from zordon_hub.config import DEFAULT_CATEGORY, Priority, TicketStatus
from zordon_hub.infrastructure.database import Base


class TicketModel(Base):
    """
    Database model for Ticket entity.

    Maps to the 'tickets' table. Reporter and assignee are plain user ids;
    deleting a user leaves its tickets in place.
    """
    __tablename__ = "tickets"

    # Primary key
    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)

    # Content
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default=DEFAULT_CATEGORY)
    tags: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)

    # Lifecycle
    priority: Mapped[Priority] = mapped_column(String(20), nullable=False, default=Priority.MEDIUM)
    status: Mapped[TicketStatus] = mapped_column(String(20), nullable=False, default=TicketStatus.OPEN, index=True)

    # People
    reporter_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)
    assignee_id: Mapped[Optional[UUID]] = mapped_column(Uuid, nullable=True, index=True)

    # SLA tracking
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    breached: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    deadline_notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))
