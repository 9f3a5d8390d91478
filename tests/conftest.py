"""
Pytest configuration and fixtures

In-memory repositories stand in for the database. They hand out copies of
stored entities, the way a real session would, so services must persist
every change explicitly.
"""
import copy
from datetime import datetime, timezone
from types import SimpleNamespace
from typing import Any, Dict, Iterable, List, Optional

import pytest

from zordon_hub.comments.application import CommentService, ICommentRepository
from zordon_hub.config import ACTIVE_STATUSES, Department, Priority, Role, TicketStatus
from zordon_hub.core import MailDeliveryException
from zordon_hub.notifications.application import IMailer, NotificationDispatcher
from zordon_hub.shared.infrastructure.realtime import Broadcaster
from zordon_hub.tickets.application import ITicketRepository, TicketLifecycleService
from zordon_hub.tickets.domain import Ticket
from zordon_hub.users.application import IUserRepository, UserService
from zordon_hub.users.domain import User
from zordon_hub.workload.application import WorkloadLedger


# ========== Fakes ==========

class InMemoryUserRepository(IUserRepository):
    def __init__(self):
        self.users: Dict[str, User] = {}
        self.fail_increments = False

    def seed(self, user: User) -> User:
        self.users[user.id] = copy.deepcopy(user)
        return user

    async def get_by_id(self, user_id: str) -> Optional[User]:
        return copy.deepcopy(self.users.get(user_id))

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        return {i: copy.deepcopy(self.users[i]) for i in set(user_ids) if i in self.users}

    async def get_by_email(self, email: str) -> Optional[User]:
        email = email.strip().lower()
        for user in self.users.values():
            if user.email == email:
                return copy.deepcopy(user)
        return None

    async def create(self, user: User) -> User:
        self.users[user.id] = copy.deepcopy(user)
        return copy.deepcopy(user)

    async def list(self, role: Optional[Role] = None) -> List[User]:
        users = [u for u in self.users.values() if role is None or u.role == role]
        users.sort(key=lambda u: u.created_at, reverse=True)
        return copy.deepcopy(users)

    async def count(self, role: Optional[Role] = None, is_online: Optional[bool] = None) -> int:
        return sum(
            1 for u in self.users.values()
            if (role is None or u.role == role) and (is_online is None or u.is_online == is_online)
        )

    async def update_fields(self, user_id: str, **fields) -> Optional[User]:
        user = self.users.get(user_id)
        if user is None:
            return None
        for name, value in fields.items():
            setattr(user, name, value)
        return copy.deepcopy(user)

    async def increment_workload(self, user_id: str, delta: int) -> None:
        if self.fail_increments:
            raise RuntimeError("database unavailable")
        user = self.users.get(user_id)
        if user is not None:
            user.workload_score = max(0, user.workload_score + delta)


class InMemoryTicketRepository(ITicketRepository):
    def __init__(self, user_repository: Optional[InMemoryUserRepository] = None):
        self.tickets: Dict[str, Ticket] = {}
        self.mark_breached_calls: List[List[str]] = []
        self.fail_mark_breached = False
        self._users = user_repository

    def seed(self, ticket: Ticket) -> Ticket:
        self.tickets[ticket.id] = copy.deepcopy(ticket)
        return ticket

    async def get_by_id(self, ticket_id: str) -> Optional[Ticket]:
        return copy.deepcopy(self.tickets.get(ticket_id))

    async def create(self, ticket: Ticket) -> Ticket:
        self.tickets[ticket.id] = copy.deepcopy(ticket)
        return copy.deepcopy(ticket)

    async def list(self, filters: dict) -> List[Ticket]:
        result = []
        for ticket in self.tickets.values():
            if "reporter_id" in filters and ticket.reporter_id != filters["reporter_id"]:
                continue
            if "assignee_id" in filters and ticket.assignee_id != filters["assignee_id"]:
                continue
            if "status" in filters and ticket.status != filters["status"]:
                continue
            if "priority" in filters and ticket.priority != filters["priority"]:
                continue
            result.append(ticket)
        result.sort(key=lambda t: t.created_at, reverse=True)
        return copy.deepcopy(result)

    async def update_fields(self, ticket_id: str, **fields) -> Optional[Ticket]:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return None
        for name, value in fields.items():
            setattr(ticket, name, value)
        return copy.deepcopy(ticket)

    async def delete(self, ticket_id: str) -> bool:
        return self.tickets.pop(ticket_id, None) is not None

    async def mark_breached(self, ticket_ids: List[str]) -> int:
        self.mark_breached_calls.append(list(ticket_ids))
        if self.fail_mark_breached:
            raise RuntimeError("database unavailable")
        changed = 0
        for ticket_id in ticket_ids:
            ticket = self.tickets.get(ticket_id)
            if ticket is not None and not ticket.breached:
                ticket.breached = True
                changed += 1
        return changed

    async def mark_deadline_notified(self, ticket_id: str) -> bool:
        ticket = self.tickets.get(ticket_id)
        if ticket is None:
            return False
        ticket.deadline_notified = True
        return True

    async def find_due_for_reminder(self, now: datetime, until: datetime) -> List[Ticket]:
        due = [
            t for t in self.tickets.values()
            if t.assignee_id
            and t.status in ACTIVE_STATUSES
            and not t.deadline_notified
            and t.due_date is not None
            and now < t.due_date <= until
        ]
        due.sort(key=lambda t: t.due_date)
        return copy.deepcopy(due)

    async def count_active_by_assignee(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for ticket in self.tickets.values():
            if ticket.assignee_id and ticket.status in ACTIVE_STATUSES:
                counts[ticket.assignee_id] = counts.get(ticket.assignee_id, 0) + 1
        return counts

    async def stats(self) -> dict:
        tickets = list(self.tickets.values())
        active = [t for t in tickets if t.status in ACTIVE_STATUSES]

        by_priority: Dict[str, int] = {}
        for t in active:
            by_priority[t.priority.value] = by_priority.get(t.priority.value, 0) + 1

        by_department: Dict[str, int] = {}
        for t in tickets:
            reporter = self._users.users.get(t.reporter_id) if self._users else None
            if reporter is not None:
                key = reporter.department.value
                by_department[key] = by_department.get(key, 0) + 1

        def count(*statuses):
            return sum(1 for t in tickets if t.status in statuses)

        return {
            "total_tickets": len(tickets),
            "open_tickets": count(TicketStatus.OPEN),
            "assigned_tickets": count(TicketStatus.ASSIGNED),
            "in_progress_tickets": count(TicketStatus.IN_PROGRESS),
            "resolved_tickets": count(TicketStatus.RESOLVED, TicketStatus.CLOSED),
            "critical_tickets": sum(1 for t in active if t.priority == Priority.CRITICAL),
            "breached_tickets": sum(1 for t in tickets if t.breached),
            "tickets_by_priority": by_priority,
            "tickets_by_department": by_department,
        }


class InMemoryCommentRepository(ICommentRepository):
    def __init__(self):
        self.comments = {}

    async def get_by_id(self, comment_id):
        return copy.deepcopy(self.comments.get(comment_id))

    async def list_for_ticket(self, ticket_id):
        thread = [c for c in self.comments.values() if c.ticket_id == ticket_id]
        thread.sort(key=lambda c: c.created_at)
        return copy.deepcopy(thread)

    async def create(self, comment):
        self.comments[comment.id] = copy.deepcopy(comment)
        return copy.deepcopy(comment)

    async def update_content(self, comment_id, content, updated_at):
        comment = self.comments.get(comment_id)
        if comment is None:
            return None
        comment.content = content
        comment.updated_at = updated_at
        return copy.deepcopy(comment)

    async def delete(self, comment_id):
        return self.comments.pop(comment_id, None) is not None


class RecordingMailer(IMailer):
    """Captures outbound mail; addresses in ``failing`` raise like a dead relay."""

    def __init__(self):
        self.sent: List[Dict[str, Any]] = []
        self.failing = set()

    async def send_mail(self, to, subject, text, html=None):
        if to in self.failing:
            raise MailDeliveryException("relay returned 503", {"to": to})
        message_id = f"msg-{len(self.sent) + 1}"
        self.sent.append({"to": to, "subject": subject, "text": text, "html": html, "message_id": message_id})
        return {"message_id": message_id}

    def recipients(self) -> List[str]:
        return [m["to"] for m in self.sent]


class RecordingBroadcaster(Broadcaster):
    def __init__(self):
        self.events: List[Dict[str, Any]] = []

    async def publish(self, channel, event, payload):
        self.events.append({"channel": channel, "event": event, "payload": payload})


# ========== Fixtures ==========

def make_user(user_id: str, name: str, role: Role, department: Department = Department.RED, **kwargs) -> User:
    return User(
        id=user_id,
        name=name,
        email=f"{user_id}@command-center.test",
        role=role,
        department=department,
        **kwargs
    )


@pytest.fixture
def user_repo() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def ticket_repo(user_repo) -> InMemoryTicketRepository:
    return InMemoryTicketRepository(user_repo)


@pytest.fixture
def comment_repo() -> InMemoryCommentRepository:
    return InMemoryCommentRepository()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def broadcaster() -> RecordingBroadcaster:
    return RecordingBroadcaster()


@pytest.fixture
def people(user_repo) -> SimpleNamespace:
    """Zordon (admin), Billy and Trini (engineers), Jason and Kimberly (rangers)."""
    people = SimpleNamespace(
        admin=make_user("admin-1", "Zordon", Role.ADMIN, Department.BLACK),
        billy=make_user("eng-1", "Billy", Role.ENGINEER, Department.BLUE, is_online=True),
        trini=make_user("eng-2", "Trini", Role.ENGINEER, Department.YELLOW),
        jason=make_user("ranger-1", "Jason", Role.RANGER, Department.RED),
        kim=make_user("ranger-2", "Kimberly", Role.RANGER, Department.PINK),
    )
    for user in vars(people).values():
        user_repo.seed(user)
    return people


@pytest.fixture
def ledger(user_repo, ticket_repo) -> WorkloadLedger:
    return WorkloadLedger(user_repo, ticket_repo)


@pytest.fixture
def ticket_service(ticket_repo, user_repo, ledger, mailer) -> TicketLifecycleService:
    return TicketLifecycleService(ticket_repo, user_repo, ledger, NotificationDispatcher(mailer))


@pytest.fixture
def comment_service(comment_repo, ticket_repo, user_repo, broadcaster) -> CommentService:
    return CommentService(comment_repo, ticket_repo, user_repo, broadcaster)


@pytest.fixture
def user_service(user_repo, ticket_repo) -> UserService:
    return UserService(user_repo, ticket_repo)


@pytest.fixture
def now() -> datetime:
    return datetime.now(timezone.utc)
