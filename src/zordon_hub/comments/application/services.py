"""
Comment Service
===============

Append-mostly message log per ticket.

Every mutation validates in the same order, before anything is written:

1. content (non-empty after trimming, at most 2000 characters)
2. existence of the ticket or comment
3. authorisation

After the write, an event is published to the ticket's room. Publishing is
fire-and-forget; a delivery problem never fails the operation.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, List, Optional
from uuid import uuid4

from zordon_hub.access import (
    ensure_can_delete_comment,
    ensure_can_edit_comment,
    ensure_can_post_comment,
    ensure_can_read_comments,
)
from zordon_hub.comments.domain import Comment
from zordon_hub.config import COMMENT_MAX_LENGTH, RealtimeEvent, ticket_room
from zordon_hub.core import ResourceNotFoundException, ValidationException
from zordon_hub.shared.infrastructure.logging import get_logger
from zordon_hub.shared.infrastructure.realtime import Broadcaster
from zordon_hub.tickets.application.services import ITicketRepository
from zordon_hub.users.application import IUserRepository
from zordon_hub.users.domain import Identity

logger = get_logger(__name__)


class ICommentRepository(ABC):
    """Interface for comment data access."""

    @abstractmethod
    async def get_by_id(self, comment_id: str) -> Optional[Comment]:
        """Get comment by id."""

    @abstractmethod
    async def list_for_ticket(self, ticket_id: str) -> List[Comment]:
        """All comments on a ticket, oldest first."""

    @abstractmethod
    async def create(self, comment: Comment) -> Comment:
        """Insert a new comment."""

    @abstractmethod
    async def update_content(self, comment_id: str, content: str, updated_at: datetime) -> Optional[Comment]:
        """Replace the content. Returns the updated comment."""

    @abstractmethod
    async def delete(self, comment_id: str) -> bool:
        """Remove a comment."""


def clean_content(content: Optional[str]) -> str:
    text = (content or "").strip()
    if not text:
        raise ValidationException("Comment content is required")
    if len(text) > COMMENT_MAX_LENGTH:
        raise ValidationException(
            f"Comment content exceeds {COMMENT_MAX_LENGTH} characters",
            {"length": len(text), "max_length": COMMENT_MAX_LENGTH}
        )
    return text


class CommentService:
    """Thread operations on a ticket, with room fan-out."""

    def __init__(
        self,
        comment_repository: ICommentRepository,
        ticket_repository: ITicketRepository,
        user_repository: IUserRepository,
        broadcaster: Broadcaster
    ):
        self._comment_repo = comment_repository
        self._ticket_repo = ticket_repository
        self._user_repo = user_repository
        self._broadcaster = broadcaster

    async def list_comments(self, identity: Optional[Identity], ticket_id: str) -> List[dict]:
        ticket = await self._ticket_repo.get_by_id(ticket_id)
        ensure_can_read_comments(identity, ticket)

        comments = await self._comment_repo.list_for_ticket(ticket.id)
        return await self.present(comments)

    async def create_comment(
        self,
        identity: Optional[Identity],
        ticket_id: str,
        content: Optional[str]
    ) -> dict:
        text = clean_content(content)

        ticket = await self._ticket_repo.get_by_id(ticket_id)
        ensure_can_post_comment(identity, ticket)

        comment = await self._comment_repo.create(Comment(
            id=str(uuid4()),
            ticket_id=ticket.id,
            author_id=identity.id,
            content=text,
        ))
        logger.info(
            "Comment posted",
            extra={"comment_id": comment.id, "ticket_id": ticket.id, "author_id": identity.id}
        )

        payload = (await self.present([comment]))[0]
        await self._publish(comment.ticket_id, RealtimeEvent.NEW_COMMENT, payload)
        return payload

    async def edit_comment(
        self,
        identity: Optional[Identity],
        comment_id: str,
        content: Optional[str]
    ) -> dict:
        """Only the author may edit, whatever their role."""
        text = clean_content(content)

        comment = await self._comment_repo.get_by_id(comment_id)
        ensure_can_edit_comment(identity, comment)

        comment = await self._comment_repo.update_content(
            comment.id, text, datetime.now(timezone.utc)
        )
        if comment is None:
            raise ResourceNotFoundException("Comment", comment_id)
        logger.info("Comment edited", extra={"comment_id": comment.id, "ticket_id": comment.ticket_id})

        payload = (await self.present([comment]))[0]
        await self._publish(comment.ticket_id, RealtimeEvent.COMMENT_UPDATED, payload)
        return payload

    async def delete_comment(self, identity: Optional[Identity], comment_id: str) -> dict:
        comment = await self._comment_repo.get_by_id(comment_id)
        ensure_can_delete_comment(identity, comment)

        await self._comment_repo.delete(comment.id)
        logger.info(
            "Comment deleted",
            extra={"comment_id": comment.id, "ticket_id": comment.ticket_id, "deleted_by": identity.id}
        )

        payload = {"comment_id": comment.id, "ticket_id": comment.ticket_id}
        await self._publish(comment.ticket_id, RealtimeEvent.COMMENT_DELETED, payload)
        return payload

    async def present(self, comments: List[Comment]) -> List[dict]:
        """Attach each author's public profile (name, email, department, role)."""
        authors = await self._user_repo.get_many({c.author_id for c in comments})

        rows = []
        for comment in comments:
            row = comment.to_dict()
            author = authors.get(comment.author_id)
            row["author"] = author.public_profile() if author else None
            rows.append(row)
        return rows

    async def _publish(self, ticket_id: str, event: RealtimeEvent, payload: Any) -> None:
        try:
            await self._broadcaster.publish(ticket_room(ticket_id), event.value, payload)
        except Exception as e:
            logger.warning(
                "Realtime publish failed",
                extra={"ticket_id": ticket_id, "event": event.value, "error": str(e)}
            )
