"""
Comment Infrastructure Repositories
===================================
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from zordon_hub.comments.application.services import ICommentRepository
from zordon_hub.comments.domain import Comment
from zordon_hub.comments.infrastructure.models import CommentModel


def _to_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _to_entity(model: CommentModel) -> Comment:
    return Comment(
        id=str(model.id),
        ticket_id=str(model.ticket_id),
        author_id=str(model.author_id),
        content=model.content,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyCommentRepository(ICommentRepository):
    """SQLAlchemy implementation of comment repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, comment_id: str) -> Optional[CommentModel]:
        comment_uuid = _to_uuid(comment_id)
        if comment_uuid is None:
            return None
        return await self._session.get(CommentModel, comment_uuid)

    async def get_by_id(self, comment_id: str) -> Optional[Comment]:
        model = await self._get_model(comment_id)
        return _to_entity(model) if model else None

    async def list_for_ticket(self, ticket_id: str) -> List[Comment]:
        ticket_uuid = _to_uuid(ticket_id)
        if ticket_uuid is None:
            return []

        stmt = (
            select(CommentModel)
            .where(CommentModel.ticket_id == ticket_uuid)
            .order_by(CommentModel.created_at.asc(), CommentModel.id.asc())
        )
        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def create(self, comment: Comment) -> Comment:
        model = CommentModel(
            id=_to_uuid(comment.id),
            ticket_id=_to_uuid(comment.ticket_id),
            author_id=_to_uuid(comment.author_id),
            content=comment.content,
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
        self._session.add(model)
        await self._session.flush()
        return _to_entity(model)

    async def update_content(self, comment_id: str, content: str, updated_at: datetime) -> Optional[Comment]:
        model = await self._get_model(comment_id)
        if model is None:
            return None

        model.content = content
        model.updated_at = updated_at
        await self._session.flush()
        return _to_entity(model)

    async def delete(self, comment_id: str) -> bool:
        comment_uuid = _to_uuid(comment_id)
        if comment_uuid is None:
            return False
        result = await self._session.execute(delete(CommentModel).where(CommentModel.id == comment_uuid))
        return result.rowcount > 0
