"""
Ticket Infrastructure Repositories
==================================

Concrete ticket repository using async SQLAlchemy.

Ids are UUIDs in the database and strings everywhere else; an id that does
not parse as a UUID simply matches nothing.

Bookkeeping writes made after the primary change (breach flags, reminder
flags) run in savepoints so their failure never aborts the request
transaction.
"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from zordon_hub.config import ACTIVE_STATUSES, Priority, TicketStatus
from zordon_hub.core import RepositoryException
from zordon_hub.tickets.application.services import ITicketRepository
from zordon_hub.tickets.domain import Ticket
from zordon_hub.tickets.infrastructure.models import TicketModel


def _to_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _to_entity(model: TicketModel) -> Ticket:
    return Ticket(
        id=str(model.id),
        title=model.title,
        description=model.description,
        category=model.category,
        tags=list(model.tags or []),
        priority=Priority(model.priority),
        status=TicketStatus(model.status),
        reporter_id=str(model.reporter_id) if model.reporter_id else None,
        assignee_id=str(model.assignee_id) if model.assignee_id else None,
        due_date=model.due_date,
        breached=model.breached,
        deadline_notified=model.deadline_notified,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyTicketRepository(ITicketRepository):
    """
    SQLAlchemy implementation of ticket repository.

    Runs inside the caller's session; commit happens at the end of the
    request or background job.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, ticket_id: str) -> Optional[TicketModel]:
        ticket_uuid = _to_uuid(ticket_id)
        if ticket_uuid is None:
            return None
        return await self._session.get(TicketModel, ticket_uuid)

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        return _to_entity(model) if model else None

    async def create(self, ticket: Ticket) -> Ticket:
        model = TicketModel(
            id=_to_uuid(ticket.id),
            title=ticket.title,
            description=ticket.description,
            category=ticket.category,
            tags=list(ticket.tags),
            priority=ticket.priority.value,
            status=ticket.status.value,
            reporter_id=_to_uuid(ticket.reporter_id),
            assignee_id=_to_uuid(ticket.assignee_id),
            due_date=ticket.due_date,
            breached=ticket.breached,
            deadline_notified=ticket.deadline_notified,
            created_at=ticket.created_at,
            updated_at=ticket.updated_at,
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except SQLAlchemyError as e:
            raise RepositoryException("Failed to create ticket", {"error": str(e)})
        return _to_entity(model)

    async def list(self, filters: dict) -> List[Ticket]:
        stmt = select(TicketModel)

        if "reporter_id" in filters:
            stmt = stmt.where(TicketModel.reporter_id == _to_uuid(filters["reporter_id"]))
        if "assignee_id" in filters:
            stmt = stmt.where(TicketModel.assignee_id == _to_uuid(filters["assignee_id"]))
        if "status" in filters:
            stmt = stmt.where(TicketModel.status == TicketStatus(filters["status"]).value)
        if "priority" in filters:
            stmt = stmt.where(TicketModel.priority == Priority(filters["priority"]).value)

        stmt = stmt.order_by(TicketModel.created_at.desc())

        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def update_fields(self, ticket_id: str, **fields) -> Optional[Ticket]:
        model = await self._get_model(ticket_id)
        if model is None:
            return None

        for name, value in fields.items():
            if name in ("reporter_id", "assignee_id"):
                value = _to_uuid(value)
            elif name in ("status", "priority") and value is not None:
                value = value.value if hasattr(value, "value") else value
            setattr(model, name, value)

        await self._session.flush()
        return _to_entity(model)

    async def delete(self, ticket_id: str) -> bool:
        ticket_uuid = _to_uuid(ticket_id)
        if ticket_uuid is None:
            return False
        result = await self._session.execute(delete(TicketModel).where(TicketModel.id == ticket_uuid))
        return result.rowcount > 0

    async def mark_breached(self, ticket_ids: List[str]) -> int:
        uuids = [u for u in (_to_uuid(t) for t in ticket_ids) if u is not None]
        if not uuids:
            return 0

        stmt = (
            update(TicketModel)
            .where(TicketModel.id.in_(uuids), TicketModel.breached.is_(False))
            .values(breached=True)
        )
        async with self._session.begin_nested():
            result = await self._session.execute(stmt)
        return result.rowcount

    async def mark_deadline_notified(self, ticket_id: str) -> bool:
        ticket_uuid = _to_uuid(ticket_id)
        if ticket_uuid is None:
            return False

        stmt = (
            update(TicketModel)
            .where(TicketModel.id == ticket_uuid)
            .values(deadline_notified=True)
        )
        async with self._session.begin_nested():
            result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def find_due_for_reminder(self, now: datetime, until: datetime) -> List[Ticket]:
        stmt = (
            select(TicketModel)
            .where(
                TicketModel.assignee_id.is_not(None),
                TicketModel.status.in_([s.value for s in ACTIVE_STATUSES]),
                TicketModel.deadline_notified.is_(False),
                TicketModel.due_date > now,
                TicketModel.due_date <= until,
            )
            .order_by(TicketModel.due_date.asc())
        )
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def count_active_by_assignee(self) -> Dict[str, int]:
        stmt = (
            select(TicketModel.assignee_id, func.count(TicketModel.id))
            .where(
                TicketModel.assignee_id.is_not(None),
                TicketModel.status.in_([s.value for s in ACTIVE_STATUSES]),
            )
            .group_by(TicketModel.assignee_id)
        )
        result = await self._session.execute(stmt)
        return {str(assignee_id): count for assignee_id, count in result.all()}

    async def stats(self) -> dict:
        """Ticket totals for the admin dashboard."""
        from zordon_hub.users.infrastructure.models import UserModel

        active = [s.value for s in ACTIVE_STATUSES]

        by_status = {s.value: 0 for s in TicketStatus}
        rows = await self._session.execute(
            select(TicketModel.status, func.count(TicketModel.id)).group_by(TicketModel.status)
        )
        for status, count in rows.all():
            by_status[status] = count

        by_priority = {}
        rows = await self._session.execute(
            select(TicketModel.priority, func.count(TicketModel.id))
            .where(TicketModel.status.in_(active))
            .group_by(TicketModel.priority)
        )
        for priority, count in rows.all():
            by_priority[priority] = count

        by_department = {}
        rows = await self._session.execute(
            select(UserModel.department, func.count(TicketModel.id))
            .join(UserModel, UserModel.id == TicketModel.reporter_id)
            .group_by(UserModel.department)
        )
        for department, count in rows.all():
            by_department[department] = count

        critical = await self._session.scalar(
            select(func.count(TicketModel.id)).where(
                TicketModel.priority == Priority.CRITICAL.value,
                TicketModel.status.in_(active),
            )
        )
        breached = await self._session.scalar(
            select(func.count(TicketModel.id)).where(TicketModel.breached.is_(True))
        )

        return {
            "total_tickets": sum(by_status.values()),
            "open_tickets": by_status[TicketStatus.OPEN.value],
            "assigned_tickets": by_status[TicketStatus.ASSIGNED.value],
            "in_progress_tickets": by_status[TicketStatus.IN_PROGRESS.value],
            "resolved_tickets": by_status[TicketStatus.RESOLVED.value] + by_status[TicketStatus.CLOSED.value],
            "critical_tickets": critical or 0,
            "breached_tickets": breached or 0,
            "tickets_by_priority": by_priority,
            "tickets_by_department": by_department,
        }
