"""
Ticket Domain Entities
======================

The ticket and the lifecycle rules that need nothing but the ticket itself.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from zordon_hub.config import (
    ACTIVE_STATUSES, DEFAULT_CATEGORY, TERMINAL_STATUSES, Priority, TicketStatus
)
from zordon_hub.core import InvalidTransitionException
from zordon_hub.sla.domain import SLACalculator


@dataclass
class Ticket:
    """
    Support ticket.

    Rules:
    - ``due_date`` is fixed at creation from priority and never recomputed.
    - ``breached`` only moves False -> True, and only while active.
    - ASSIGNED implies an assignee.
    """

    id: str
    title: str
    reporter_id: Optional[str]
    priority: Priority = Priority.MEDIUM
    status: TicketStatus = TicketStatus.OPEN
    description: Optional[str] = None
    category: str = DEFAULT_CATEGORY
    assignee_id: Optional[str] = None
    due_date: Optional[datetime] = None
    breached: bool = False
    deadline_notified: bool = False
    tags: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def check_breach(self, now: Optional[datetime] = None) -> bool:
        """
        Mark the ticket breached if it is overdue and still active.

        Returns True only when the flag flipped on this call, so callers know
        whether a write is needed.
        """
        if self.breached:
            return False
        if SLACalculator.is_breached(self.due_date, self.status, now):
            self.breached = True
            return True
        return False

    def apply_status(self, new_status: TicketStatus) -> int:
        """
        Move to ``new_status`` and return the workload delta for the assignee.

        -1 when an active ticket becomes RESOLVED/CLOSED, +1 when a
        RESOLVED/CLOSED ticket is reopened, 0 otherwise (or with no assignee).

        Raises:
            InvalidTransitionException: ASSIGNED requested without an assignee
        """
        if new_status == TicketStatus.ASSIGNED and not self.assignee_id:
            raise InvalidTransitionException("Cannot set ASSIGNED on a ticket without an assignee")

        was_terminal = self.is_terminal
        self.status = new_status
        self.updated_at = datetime.now(timezone.utc)

        if not self.assignee_id:
            return 0
        if not was_terminal and self.is_terminal:
            return -1
        if was_terminal and not self.is_terminal:
            return 1
        return 0

    def sla_view(self, now: Optional[datetime] = None) -> dict:
        """Derived SLA fields for API responses."""
        remaining = SLACalculator.time_remaining(self.due_date, now)
        return {
            "time_remaining_seconds": int(remaining.total_seconds()) if remaining is not None else None,
            "display": SLACalculator.format_remaining(self.due_date, now),
            "urgency": SLACalculator.urgency(self.due_date, now),
        }

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority.value,
            "status": self.status.value,
            "reporter_id": self.reporter_id,
            "assignee_id": self.assignee_id,
            "due_date": self.due_date.isoformat() if self.due_date else None,
            "breached": self.breached,
            "deadline_notified": self.deadline_notified,
            "tags": list(self.tags),
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "sla": self.sla_view(),
        }


@dataclass
class DeadlineNotificationResult:
    """Outcome of one reminder in a deadline sweep."""

    ticket_id: str
    success: bool
    recipient: Optional[str] = None
    message_id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "success": self.success,
            "recipient": self.recipient,
            "message_id": self.message_id,
            "error": self.error,
        }
