"""
User Infrastructure Repositories
================================

Concrete user repository using async SQLAlchemy.

Workload increments are single UPDATE statements evaluated by the database,
so concurrent assignments never lose an update. Each runs in a savepoint so
a failed increment never aborts the request transaction.
"""

from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from zordon_hub.config import Department, Role
from zordon_hub.core import ConflictException
from zordon_hub.users.application.services import IUserRepository
from zordon_hub.users.domain import User
from zordon_hub.users.infrastructure.models import UserModel


def _to_uuid(value: Optional[str]) -> Optional[UUID]:
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _to_entity(model: UserModel) -> User:
    return User(
        id=str(model.id),
        name=model.name,
        email=model.email,
        role=Role(model.role),
        department=Department(model.department),
        is_online=model.is_online,
        workload_score=model.workload_score,
        skills=list(model.skills or []),
        password_hash=model.password_hash,
        refresh_token=model.refresh_token,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyUserRepository(IUserRepository):
    """SQLAlchemy implementation of user repository."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def _get_model(self, user_id: str) -> Optional[UserModel]:
        user_uuid = _to_uuid(user_id)
        if user_uuid is None:
            return None
        return await self._session.get(UserModel, user_uuid)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        model = await self._get_model(user_id)
        return _to_entity(model) if model else None

    async def get_many(self, user_ids: Iterable[str]) -> Dict[str, User]:
        uuids = {u for u in (_to_uuid(i) for i in user_ids) if u is not None}
        if not uuids:
            return {}

        result = await self._session.execute(select(UserModel).where(UserModel.id.in_(uuids)))
        return {str(m.id): _to_entity(m) for m in result.scalars().all()}

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(UserModel).where(UserModel.email == email.strip().lower())
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return _to_entity(model) if model else None

    async def create(self, user: User) -> User:
        model = UserModel(
            id=_to_uuid(user.id),
            name=user.name,
            email=user.email,
            role=user.role.value,
            department=user.department.value,
            skills=list(user.skills),
            is_online=user.is_online,
            workload_score=user.workload_score,
            password_hash=user.password_hash,
            refresh_token=user.refresh_token,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError:
            raise ConflictException(f"Email {user.email} is already registered")
        return _to_entity(model)

    async def list(self, role: Optional[Role] = None) -> List[User]:
        stmt = select(UserModel)
        if role is not None:
            stmt = stmt.where(UserModel.role == Role(role).value)
        stmt = stmt.order_by(UserModel.created_at.desc())

        result = await self._session.execute(stmt)
        return [_to_entity(m) for m in result.scalars().all()]

    async def count(self, role: Optional[Role] = None, is_online: Optional[bool] = None) -> int:
        stmt = select(func.count(UserModel.id))
        if role is not None:
            stmt = stmt.where(UserModel.role == Role(role).value)
        if is_online is not None:
            stmt = stmt.where(UserModel.is_online.is_(is_online))
        return await self._session.scalar(stmt) or 0

    async def update_fields(self, user_id: str, **fields) -> Optional[User]:
        model = await self._get_model(user_id)
        if model is None:
            return None

        for name, value in fields.items():
            if name in ("role", "department") and value is not None:
                value = value.value if hasattr(value, "value") else value
            setattr(model, name, value)
        model.updated_at = datetime.now(timezone.utc)

        await self._session.flush()
        return _to_entity(model)

    async def increment_workload(self, user_id: str, delta: int) -> None:
        user_uuid = _to_uuid(user_id)
        if user_uuid is None:
            return

        new_score = UserModel.workload_score + delta
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_uuid)
            .values(workload_score=case((new_score < 0, 0), else_=new_score))
            .execution_options(synchronize_session="fetch")
        )
        # Savepoint: a deadlock or lock timeout here only rolls back this statement
        async with self._session.begin_nested():
            await self._session.execute(stmt)
