"""
Access Control Policy
=====================

Pure predicates deciding what an identity may do with a ticket or comment.

| Action                  | ADMIN      | ENGINEER          | RANGER                       |
|-------------------------|------------|-------------------|------------------------------|
| Create ticket           | yes        | no                | yes                          |
| List all tickets        | yes        | no                | no                           |
| Read ticket / comments  | yes        | assignee only     | reporter only                |
| Post comment            | yes        | assignee only     | reporter only                |
| List my reported        | yes        | no                | yes                          |
| List my assigned        | yes        | yes               | no                           |
| Change status           | yes        | assignee only     | no                           |
| Assign / reassign       | yes        | no                | no                           |
| Delete ticket           | yes        | no                | reporter only, status OPEN   |
| Edit comment            | author     | author            | author                       |
| Delete comment          | any        | author            | author                       |
| Deadline sweep          | yes        | no                | no                           |

Each ``ensure_*`` raises UnauthenticatedException for a missing identity,
ResourceNotFoundException for a missing object and ForbiddenException when
the rule denies the action. The ``can_*`` twins return booleans.
"""

from typing import TYPE_CHECKING, Optional

from zordon_hub.config import Role, TicketStatus
from zordon_hub.core import (
    ForbiddenException,
    ResourceNotFoundException,
    UnauthenticatedException,
)

if TYPE_CHECKING:
    from zordon_hub.comments.domain import Comment
    from zordon_hub.tickets.domain import Ticket
    from zordon_hub.users.domain import Identity


def _require_identity(identity: Optional["Identity"]) -> "Identity":
    if identity is None or not identity.id:
        raise UnauthenticatedException()
    return identity


def _require(obj, resource_type: str):
    if obj is None:
        raise ResourceNotFoundException(resource_type)
    return obj


def _is_reporter(identity: "Identity", ticket: "Ticket") -> bool:
    return ticket.reporter_id is not None and ticket.reporter_id == identity.id


def _is_assignee(identity: "Identity", ticket: "Ticket") -> bool:
    return ticket.assignee_id is not None and ticket.assignee_id == identity.id


# ========== Boolean rules ==========

def can_create_ticket(identity: "Identity") -> bool:
    return identity.role in (Role.ADMIN, Role.RANGER)


def can_list_all_tickets(identity: "Identity") -> bool:
    return identity.role == Role.ADMIN


def can_read_ticket(identity: "Identity", ticket: "Ticket") -> bool:
    if identity.role == Role.ADMIN:
        return True
    if identity.role == Role.ENGINEER:
        return _is_assignee(identity, ticket)
    return _is_reporter(identity, ticket)


def can_list_reported(identity: "Identity") -> bool:
    return identity.role in (Role.ADMIN, Role.RANGER)


def can_list_assigned(identity: "Identity") -> bool:
    return identity.role in (Role.ADMIN, Role.ENGINEER)


def can_change_status(identity: "Identity", ticket: "Ticket") -> bool:
    if identity.role == Role.ADMIN:
        return True
    if identity.role == Role.ENGINEER:
        return _is_assignee(identity, ticket)
    return False


def can_assign(identity: "Identity") -> bool:
    return identity.role == Role.ADMIN


def can_delete_ticket(identity: "Identity", ticket: "Ticket") -> bool:
    if identity.role == Role.ADMIN:
        return True
    if identity.role == Role.RANGER:
        return _is_reporter(identity, ticket) and ticket.status == TicketStatus.OPEN
    return False


# Comment threads follow ticket read access
can_read_comments = can_read_ticket
can_post_comment = can_read_ticket


def can_edit_comment(identity: "Identity", comment: "Comment") -> bool:
    return comment.author_id == identity.id


def can_delete_comment(identity: "Identity", comment: "Comment") -> bool:
    return identity.role == Role.ADMIN or comment.author_id == identity.id


def can_trigger_deadline_sweep(identity: "Identity") -> bool:
    return identity.role == Role.ADMIN


def can_manage_users(identity: "Identity") -> bool:
    return identity.role == Role.ADMIN


# ========== Raising guards ==========

def ensure_can_create_ticket(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_create_ticket(identity):
        raise ForbiddenException("Only rangers and admins can create tickets")


def ensure_can_list_all_tickets(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_list_all_tickets(identity):
        raise ForbiddenException("Only admins can list all tickets")


def ensure_can_read_ticket(identity: Optional["Identity"], ticket: Optional["Ticket"]) -> None:
    identity = _require_identity(identity)
    ticket = _require(ticket, "Ticket")
    if not can_read_ticket(identity, ticket):
        raise ForbiddenException("You do not have access to this ticket")


def ensure_can_list_reported(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_list_reported(identity):
        raise ForbiddenException("Only rangers and admins have reported tickets")


def ensure_can_list_assigned(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_list_assigned(identity):
        raise ForbiddenException("Only engineers and admins have assigned tickets")


def ensure_can_change_status(identity: Optional["Identity"], ticket: Optional["Ticket"]) -> None:
    identity = _require_identity(identity)
    ticket = _require(ticket, "Ticket")
    if not can_change_status(identity, ticket):
        if identity.role == Role.RANGER:
            raise ForbiddenException("Rangers cannot change ticket status")
        raise ForbiddenException("You can only update tickets assigned to you")


def ensure_can_assign(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_assign(identity):
        raise ForbiddenException("Only admins can assign tickets")


def ensure_can_delete_ticket(identity: Optional["Identity"], ticket: Optional["Ticket"]) -> None:
    identity = _require_identity(identity)
    ticket = _require(ticket, "Ticket")
    if not can_delete_ticket(identity, ticket):
        if identity.role == Role.RANGER and _is_reporter(identity, ticket):
            raise ForbiddenException("Tickets can only be deleted while OPEN")
        raise ForbiddenException("You cannot delete this ticket")


def ensure_can_read_comments(identity: Optional["Identity"], ticket: Optional["Ticket"]) -> None:
    identity = _require_identity(identity)
    ticket = _require(ticket, "Ticket")
    if not can_read_comments(identity, ticket):
        raise ForbiddenException("You do not have access to this ticket's comments")


def ensure_can_post_comment(identity: Optional["Identity"], ticket: Optional["Ticket"]) -> None:
    identity = _require_identity(identity)
    ticket = _require(ticket, "Ticket")
    if not can_post_comment(identity, ticket):
        raise ForbiddenException("You cannot comment on this ticket")


def ensure_can_edit_comment(identity: Optional["Identity"], comment: Optional["Comment"]) -> None:
    identity = _require_identity(identity)
    comment = _require(comment, "Comment")
    if not can_edit_comment(identity, comment):
        raise ForbiddenException("You can only edit your own comments")


def ensure_can_delete_comment(identity: Optional["Identity"], comment: Optional["Comment"]) -> None:
    identity = _require_identity(identity)
    comment = _require(comment, "Comment")
    if not can_delete_comment(identity, comment):
        raise ForbiddenException("You can only delete your own comments")


def ensure_can_trigger_deadline_sweep(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_trigger_deadline_sweep(identity):
        raise ForbiddenException("Only admins can trigger deadline notifications")


def ensure_can_manage_users(identity: Optional["Identity"]) -> None:
    identity = _require_identity(identity)
    if not can_manage_users(identity):
        raise ForbiddenException("Admin access required")
