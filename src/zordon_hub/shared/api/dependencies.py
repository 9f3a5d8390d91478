"""
Request Dependencies
====================

FastAPI providers that wire repositories and services for one request.

All repositories share the request's session, so a request commits or rolls
back as a unit. Process-wide collaborators (mailer, realtime hub, SLA config)
live on ``app.state`` and are set up in the application lifespan.
"""

from typing import Callable, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from zordon_hub.comments.application import CommentService, ICommentRepository
from zordon_hub.comments.infrastructure import SQLAlchemyCommentRepository
from zordon_hub.infrastructure.database import get_session
from zordon_hub.notifications.application import IMailer, NotificationDispatcher
from zordon_hub.notifications.infrastructure import HTTPMailClient
from zordon_hub.shared.infrastructure.realtime import Broadcaster, NullBroadcaster
from zordon_hub.sla.domain import DEFAULT_POLICY, SLAPolicy
from zordon_hub.tickets.application import ITicketRepository, TicketLifecycleService
from zordon_hub.tickets.infrastructure import SQLAlchemyTicketRepository
from zordon_hub.users.application import IUserRepository, UserService
from zordon_hub.users.domain import Identity
from zordon_hub.users.infrastructure import SQLAlchemyUserRepository
from zordon_hub.workload.application import WorkloadLedger


# ========== Repositories ==========

def get_user_repository(db: AsyncSession = Depends(get_session)) -> IUserRepository:
    return SQLAlchemyUserRepository(db)


def get_ticket_repository(db: AsyncSession = Depends(get_session)) -> ITicketRepository:
    return SQLAlchemyTicketRepository(db)


def get_comment_repository(db: AsyncSession = Depends(get_session)) -> ICommentRepository:
    return SQLAlchemyCommentRepository(db)


# ========== Process-wide collaborators ==========

def get_mailer(request: Request) -> IMailer:
    mailer = getattr(request.app.state, "mailer", None)
    if mailer is None:
        mailer = HTTPMailClient()
        request.app.state.mailer = mailer
    return mailer


def get_broadcaster(request: Request) -> Broadcaster:
    return getattr(request.app.state, "broadcaster", None) or NullBroadcaster()


def get_policy_provider(request: Request) -> Callable[[], SLAPolicy]:
    """Reads the live policy at call time so hot reloads apply to new tickets."""
    manager = getattr(request.app.state, "sla_config", None)
    if manager is None:
        return lambda: DEFAULT_POLICY
    return lambda: manager.policy


# ========== Services ==========

def get_user_service(
    users: IUserRepository = Depends(get_user_repository),
    tickets: ITicketRepository = Depends(get_ticket_repository)
) -> UserService:
    return UserService(users, tickets)


def get_workload_ledger(
    users: IUserRepository = Depends(get_user_repository),
    tickets: ITicketRepository = Depends(get_ticket_repository)
) -> WorkloadLedger:
    return WorkloadLedger(users, tickets)


def get_ticket_service(
    tickets: ITicketRepository = Depends(get_ticket_repository),
    users: IUserRepository = Depends(get_user_repository),
    ledger: WorkloadLedger = Depends(get_workload_ledger),
    mailer: IMailer = Depends(get_mailer),
    policy_provider: Callable[[], SLAPolicy] = Depends(get_policy_provider)
) -> TicketLifecycleService:
    return TicketLifecycleService(
        tickets, users, ledger, NotificationDispatcher(mailer), policy_provider
    )


def get_comment_service(
    comments: ICommentRepository = Depends(get_comment_repository),
    tickets: ITicketRepository = Depends(get_ticket_repository),
    users: IUserRepository = Depends(get_user_repository),
    broadcaster: Broadcaster = Depends(get_broadcaster)
) -> CommentService:
    return CommentService(comments, tickets, users, broadcaster)


# ========== Identity ==========

async def get_current_identity(
    x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
    users: UserService = Depends(get_user_service)
) -> Identity:
    """
    Caller identity from the ``X-User-Id`` header.

    The header is set by the authenticating gateway in front of the service.
    A missing or unknown id fails with 401.
    """
    return await users.resolve_identity(x_user_id)
