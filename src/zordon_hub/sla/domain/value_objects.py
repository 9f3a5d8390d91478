"""
SLA Value Objects
==================

Resolution-time policy and the pure functions evaluating it.

Nothing in this module touches storage or the clock other than through the
optional ``now`` arguments, which default to the current UTC time.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from zordon_hub.config import (
    DEFAULT_SLA_HOURS, TERMINAL_STATUSES, Priority, TicketStatus
)

PriorityLike = Union[Priority, str, None]
StatusLike = Union[TicketStatus, str, None]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never raise."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SLAPolicy(BaseModel):
    """
    Resolution hours by priority, loaded from YAML or built-in defaults.

    Immutable: a reload swaps the whole object.
    """
    model_config = ConfigDict(frozen=True)

    resolution_hours: Dict[str, float] = Field(
        default_factory=lambda: dict(DEFAULT_SLA_HOURS),
        description="Hours to resolve by priority"
    )

    @field_validator("resolution_hours")
    @classmethod
    def fill_missing_priorities(cls, v: Dict[str, float]) -> Dict[str, float]:
        """Normalise keys to upper case and default any missing priority."""
        hours = {str(k).upper(): float(h) for k, h in v.items()}
        for priority, default in DEFAULT_SLA_HOURS.items():
            if hours.get(priority, 0) <= 0:
                hours[priority] = float(default)
        return hours

    def hours_for(self, priority: PriorityLike) -> float:
        """Hours for ``priority``; unknown or missing priority gets MEDIUM's."""
        key = priority.value if isinstance(priority, Priority) else str(priority or "").upper()
        if key not in self.resolution_hours:
            key = Priority.MEDIUM.value
        return self.resolution_hours[key]


DEFAULT_POLICY = SLAPolicy()


class SLACalculator:
    """
    Pure functions for SLA calculations.

    Stateless; every input is null-checked and no method raises.
    """

    @staticmethod
    def calculate_due_date(
        priority: PriorityLike,
        created_at: Optional[datetime] = None,
        policy: Optional[SLAPolicy] = None
    ) -> datetime:
        """``created_at + hours[priority]``."""
        policy = policy or DEFAULT_POLICY
        start = _as_aware(created_at) if created_at else _utcnow()
        return start + timedelta(hours=policy.hours_for(priority))

    @staticmethod
    def is_breached(
        due_date: Optional[datetime],
        status: StatusLike,
        now: Optional[datetime] = None
    ) -> bool:
        """True only for a non-terminal ticket whose due date has passed."""
        if due_date is None:
            return False
        if _status_value(status) in {s.value for s in TERMINAL_STATUSES}:
            return False
        now = _as_aware(now) if now else _utcnow()
        return now > _as_aware(due_date)

    @staticmethod
    def time_remaining(
        due_date: Optional[datetime],
        now: Optional[datetime] = None
    ) -> Optional[timedelta]:
        """Signed time left; negative means overdue."""
        if due_date is None:
            return None
        now = _as_aware(now) if now else _utcnow()
        return _as_aware(due_date) - now

    @staticmethod
    def format_remaining(
        due_date: Optional[datetime],
        now: Optional[datetime] = None
    ) -> str:
        """Human string such as ``5h 12m remaining`` or ``Breached by 1h 3m``."""
        remaining = SLACalculator.time_remaining(due_date, now)
        if remaining is None:
            return "No SLA"

        total_minutes = int(abs(remaining.total_seconds()) // 60)
        hours, minutes = divmod(total_minutes, 60)
        if remaining.total_seconds() < 0:
            return f"Breached by {hours}h {minutes}m"
        return f"{hours}h {minutes}m remaining"

    @staticmethod
    def urgency(
        due_date: Optional[datetime],
        now: Optional[datetime] = None
    ) -> str:
        """Colour band for dashboards: none, breached, critical, warning, caution, normal."""
        remaining = SLACalculator.time_remaining(due_date, now)
        if remaining is None:
            return "none"

        hours_left = remaining.total_seconds() / 3600
        if hours_left < 0:
            return "breached"
        if hours_left <= 1:
            return "critical"
        if hours_left <= 4:
            return "warning"
        if hours_left <= 8:
            return "caution"
        return "normal"


def _status_value(status: StatusLike) -> str:
    if isinstance(status, TicketStatus):
        return status.value
    return str(status or "").upper()
