"""
Ticket Lifecycle Service
========================

Owns ticket creation and the status state machine, and coordinates the
derived updates each change implies:

- SLA due date at creation, lazy breach marking on every read;
- workload ledger adjustments on assign, status change and delete;
- assignment e-mails and the deadline reminder sweep.

Status changes are gated by role and ownership only; any active status may
move to any other status. ASSIGNED additionally requires an assignee.

Side effects (workload, breach flags, reminder flags, mail) run after the
ticket write and never undo it: the repositories isolate those writes so a
failed one leaves the ticket change committable.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Iterable, List, Optional, Union
from uuid import uuid4

from zordon_hub.access import (
    ensure_can_assign,
    ensure_can_change_status,
    ensure_can_create_ticket,
    ensure_can_delete_ticket,
    ensure_can_list_all_tickets,
    ensure_can_list_assigned,
    ensure_can_list_reported,
    ensure_can_manage_users,
    ensure_can_read_ticket,
    ensure_can_trigger_deadline_sweep,
)
from zordon_hub.config import (
    DEFAULT_CATEGORY, Priority, Role, TicketStatus, settings
)
from zordon_hub.core import (
    InvalidAssigneeException,
    ResourceNotFoundException,
    ValidationException,
)
from zordon_hub.notifications.application import NotificationDispatcher
from zordon_hub.shared.infrastructure.logging import get_logger, log_latency
from zordon_hub.sla.domain import DEFAULT_POLICY, SLACalculator, SLAPolicy
from zordon_hub.tickets.domain import DeadlineNotificationResult, Ticket
from zordon_hub.users.application import IUserRepository
from zordon_hub.users.domain import Identity, User
from zordon_hub.workload.application import WorkloadLedger

logger = get_logger(__name__)


# ========== Repository Interface (Dependency Inversion) ==========

class ITicketRepository(ABC):
    """Interface for ticket data access."""

    @abstractmethod
    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        """Get ticket by id."""

    @abstractmethod
    async def create(self, ticket: Ticket) -> Ticket:
        """Insert a new ticket."""

    @abstractmethod
    async def list(self, filters: dict) -> List[Ticket]:
        """
        List tickets, newest first.

        Supported filters: reporter_id, assignee_id, status, priority.
        """

    @abstractmethod
    async def update_fields(self, ticket_id: str, **fields) -> Optional[Ticket]:
        """Partial update (last write wins). Returns the updated ticket."""

    @abstractmethod
    async def delete(self, ticket_id: str) -> bool:
        """Remove a ticket. Comments are not touched."""

    @abstractmethod
    async def mark_breached(self, ticket_ids: List[str]) -> int:
        """
        Set breached=True for every id; idempotent. Returns rows changed.

        A failure must leave the surrounding unit of work usable.
        """

    @abstractmethod
    async def mark_deadline_notified(self, ticket_id: str) -> bool:
        """Record a sent deadline reminder; isolated like ``mark_breached``."""

    @abstractmethod
    async def find_due_for_reminder(self, now: datetime, until: datetime) -> List[Ticket]:
        """Assigned, active, un-notified tickets with ``now < due_date <= until``."""

    @abstractmethod
    async def count_active_by_assignee(self) -> Dict[str, int]:
        """Active-status ticket count per assignee id."""

    @abstractmethod
    async def stats(self) -> dict:
        """Aggregate counts for the admin dashboard."""


# ========== Value parsing ==========

def parse_status(value: Union[str, TicketStatus, None]) -> TicketStatus:
    if isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus(str(value or "").strip().upper())
    except ValueError:
        raise ValidationException(
            f"Invalid status '{value}'",
            {"allowed": [s.value for s in TicketStatus]}
        )


def parse_priority(value: Union[str, Priority, None]) -> Priority:
    if value is None or value == "":
        return Priority.MEDIUM
    if isinstance(value, Priority):
        return value
    try:
        return Priority(str(value).strip().upper())
    except ValueError:
        raise ValidationException(
            f"Invalid priority '{value}'",
            {"allowed": [p.value for p in Priority]}
        )


@dataclass
class DeadlineSweepReport:
    window_hours: float
    results: List[DeadlineNotificationResult] = field(default_factory=list)

    @property
    def notified(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def to_dict(self) -> dict:
        return {
            "window_hours": self.window_hours,
            "checked": len(self.results),
            "notified": self.notified,
            "failed": self.failed,
            "results": [r.to_dict() for r in self.results],
        }


# ========== Application Service ==========

class TicketLifecycleService:
    """Ticket operations, each gated by the access policy."""

    def __init__(
        self,
        ticket_repository: ITicketRepository,
        user_repository: IUserRepository,
        workload_ledger: WorkloadLedger,
        dispatcher: NotificationDispatcher,
        policy_provider: Optional[Callable[[], SLAPolicy]] = None
    ):
        self._ticket_repo = ticket_repository
        self._user_repo = user_repository
        self._ledger = workload_ledger
        self._dispatcher = dispatcher
        self._policy_provider = policy_provider or (lambda: DEFAULT_POLICY)

    # ----- create -----

    async def create_ticket(
        self,
        identity: Optional[Identity],
        title: Optional[str],
        description: Optional[str] = None,
        category: Optional[str] = None,
        priority: Union[str, Priority, None] = None,
        tags: Optional[Iterable[str]] = None
    ) -> Ticket:
        ensure_can_create_ticket(identity)

        title = (title or "").strip()
        if not title:
            raise ValidationException("Title is required")
        ticket_priority = parse_priority(priority)

        now = datetime.now(timezone.utc)
        ticket = Ticket(
            id=str(uuid4()),
            title=title,
            description=description,
            category=(category or "").strip() or DEFAULT_CATEGORY,
            priority=ticket_priority,
            status=TicketStatus.OPEN,
            reporter_id=identity.id,
            due_date=SLACalculator.calculate_due_date(ticket_priority, now, self._policy_provider()),
            tags=[t.strip() for t in (tags or []) if t and t.strip()],
            created_at=now,
            updated_at=now,
        )
        ticket = await self._ticket_repo.create(ticket)

        logger.info(
            "Ticket created",
            extra={
                "ticket_id": ticket.id,
                "priority": ticket.priority.value,
                "reporter_id": identity.id,
                "due_date": ticket.due_date.isoformat(),
            }
        )
        return ticket

    # ----- reads -----

    async def get_ticket(self, identity: Optional[Identity], ticket_id: str) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        ensure_can_read_ticket(identity, ticket)
        await self._refresh_breaches([ticket])
        return ticket

    async def list_all(
        self,
        identity: Optional[Identity],
        status: Optional[str] = None,
        priority: Optional[str] = None,
        assignee_id: Optional[str] = None
    ) -> List[Ticket]:
        ensure_can_list_all_tickets(identity)

        filters = {}
        if status:
            filters["status"] = parse_status(status)
        if priority:
            filters["priority"] = parse_priority(priority)
        if assignee_id:
            filters["assignee_id"] = assignee_id

        tickets = await self._ticket_repo.list(filters)
        await self._refresh_breaches(tickets)
        return tickets

    async def list_reported(self, identity: Optional[Identity]) -> List[Ticket]:
        ensure_can_list_reported(identity)
        tickets = await self._ticket_repo.list({"reporter_id": identity.id})
        await self._refresh_breaches(tickets)
        return tickets

    async def list_assigned(self, identity: Optional[Identity]) -> List[Ticket]:
        ensure_can_list_assigned(identity)
        tickets = await self._ticket_repo.list({"assignee_id": identity.id})
        await self._refresh_breaches(tickets)
        return tickets

    async def _refresh_breaches(self, tickets: List[Ticket]) -> None:
        """Flag overdue active tickets, persisting newly breached ones in one batch."""
        now = datetime.now(timezone.utc)
        newly_breached = [t.id for t in tickets if t.check_breach(now)]
        if not newly_breached:
            return

        try:
            await self._ticket_repo.mark_breached(newly_breached)
        except Exception as e:
            logger.error(
                "Failed to persist breach flags",
                extra={"ticket_ids": newly_breached, "error": str(e)}
            )
            return

        logger.info("Tickets breached SLA", extra={"ticket_ids": newly_breached})

    # ----- state machine -----

    async def set_status(
        self,
        identity: Optional[Identity],
        ticket_id: str,
        status: Union[str, TicketStatus, None]
    ) -> Ticket:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        ensure_can_change_status(identity, ticket)

        new_status = parse_status(status)
        old_status = ticket.status
        delta = ticket.apply_status(new_status)

        ticket = await self._ticket_repo.update_fields(
            ticket.id, status=ticket.status, updated_at=ticket.updated_at
        ) or ticket
        await self._ledger.adjust(ticket.assignee_id, delta)

        logger.info(
            "Ticket status changed",
            extra={
                "ticket_id": ticket.id,
                "from_status": old_status.value,
                "to_status": new_status.value,
                "changed_by": identity.id,
                "workload_delta": delta,
            }
        )
        return ticket

    async def assign(
        self,
        identity: Optional[Identity],
        ticket_id: str,
        assignee_id: str
    ) -> Ticket:
        """
        Assign or reassign to an engineer; status always resets to ASSIGNED.

        The previous assignee loses the ticket from their workload if it was
        still active; the new assignee gains it unless they already held it
        as an active ticket.
        """
        ensure_can_assign(identity)

        ticket = await self._ticket_repo.get_by_id(ticket_id)
        if ticket is None:
            raise ResourceNotFoundException("Ticket", ticket_id)

        assignee = await self._user_repo.get_by_id(assignee_id) if assignee_id else None
        if assignee is None:
            raise ResourceNotFoundException("User", assignee_id)
        if not assignee.is_engineer:
            raise InvalidAssigneeException(
                "Tickets can only be assigned to engineers",
                {"assignee_id": assignee_id, "role": assignee.role.value}
            )

        previous_id = ticket.assignee_id
        was_active = ticket.is_active
        now = datetime.now(timezone.utc)

        fields = {"assignee_id": assignee.id, "status": TicketStatus.ASSIGNED, "updated_at": now}
        if previous_id != assignee.id:
            # The reminder belongs to the engineer who received it
            fields["deadline_notified"] = False
        ticket = await self._ticket_repo.update_fields(ticket.id, **fields) or ticket

        if previous_id == assignee.id:
            if not was_active:
                await self._ledger.adjust(assignee.id, 1)
        else:
            if previous_id and was_active:
                await self._ledger.adjust(previous_id, -1)
            await self._ledger.adjust(assignee.id, 1)

        logger.info(
            "Ticket assigned",
            extra={
                "ticket_id": ticket.id,
                "assignee_id": assignee.id,
                "previous_assignee_id": previous_id,
                "assigned_by": identity.id,
            }
        )

        reporter = await self._user_repo.get_by_id(ticket.reporter_id) if ticket.reporter_id else None
        await self._dispatcher.ticket_assigned(ticket, assignee, reporter)
        return ticket

    async def delete_ticket(self, identity: Optional[Identity], ticket_id: str) -> None:
        """Delete a ticket; its comments are left in place."""
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        ensure_can_delete_ticket(identity, ticket)

        await self._ticket_repo.delete(ticket.id)
        if ticket.assignee_id and ticket.is_active:
            await self._ledger.adjust(ticket.assignee_id, -1)

        logger.info("Ticket deleted", extra={"ticket_id": ticket.id, "deleted_by": identity.id})

    # ----- deadline reminders -----

    async def notify_deadlines(
        self,
        identity: Optional[Identity],
        hours: Optional[float] = None
    ) -> DeadlineSweepReport:
        ensure_can_trigger_deadline_sweep(identity)
        return await self.run_deadline_sweep(hours)

    async def run_deadline_sweep(self, hours: Optional[float] = None) -> DeadlineSweepReport:
        """
        Mail every assignee whose active ticket falls due within the window.

        ``deadline_notified`` is set only after a successful send, so a
        failed ticket is retried by the next sweep (at-least-once delivery).
        One failure never stops the rest of the sweep.
        """
        window = settings.deadline_lookahead_hours if hours is None else hours
        if window <= 0:
            raise ValidationException("hours must be positive")

        now = datetime.now(timezone.utc)
        report = DeadlineSweepReport(window_hours=window)

        with log_latency(logger, "deadline_sweep", window_hours=window):
            tickets = await self._ticket_repo.find_due_for_reminder(now, now + timedelta(hours=window))
            assignees = await self._user_repo.get_many({t.assignee_id for t in tickets})

            for ticket in tickets:
                report.results.append(await self._remind(ticket, assignees.get(ticket.assignee_id)))

        logger.info(
            "Deadline sweep finished",
            extra={"checked": len(report.results), "notified": report.notified, "failed": report.failed}
        )
        return report

    async def _remind(self, ticket: Ticket, assignee: Optional[User]) -> DeadlineNotificationResult:
        if assignee is None:
            return DeadlineNotificationResult(
                ticket_id=ticket.id, success=False, error="Assignee not found"
            )

        try:
            sent = await self._dispatcher.deadline_reminder(ticket, assignee)
            await self._ticket_repo.mark_deadline_notified(ticket.id)
        except Exception as e:
            logger.error(
                "Deadline reminder failed",
                extra={"ticket_id": ticket.id, "to": assignee.email, "error": str(e)}
            )
            return DeadlineNotificationResult(
                ticket_id=ticket.id, success=False, recipient=assignee.email, error=str(e)
            )

        return DeadlineNotificationResult(
            ticket_id=ticket.id,
            success=True,
            recipient=assignee.email,
            message_id=sent.get("message_id"),
        )

    # ----- dashboard -----

    async def dashboard_stats(self, identity: Optional[Identity]) -> dict:
        ensure_can_manage_users(identity)

        stats = await self._ticket_repo.stats()
        stats.update(
            total_users=await self._user_repo.count(),
            total_engineers=await self._user_repo.count(role=Role.ENGINEER),
            online_engineers=await self._user_repo.count(role=Role.ENGINEER, is_online=True),
        )
        return stats

    # ----- presentation -----

    async def present(self, tickets: List[Ticket]) -> List[dict]:
        """Serialise tickets with reporter and assignee profiles embedded."""
        user_ids = {t.reporter_id for t in tickets} | {t.assignee_id for t in tickets}
        users = await self._user_repo.get_many(uid for uid in user_ids if uid)

        rows = []
        for ticket in tickets:
            row = ticket.to_dict()
            reporter = users.get(ticket.reporter_id)
            assignee = users.get(ticket.assignee_id)
            row["reporter"] = reporter.public_profile() if reporter else None
            row["assignee"] = assignee.public_profile() if assignee else None
            rows.append(row)
        return rows
