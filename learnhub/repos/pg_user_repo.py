"""PostgreSQL implementation of UserRepo."""

from __future__ import annotations

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from learnhub.db.tables import UserRow
from learnhub.models.user import UserProfile


class PgUserRepo:
    """Satisfies the UserRepo Protocol using PostgreSQL via SQLAlchemy."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        stmt = select(UserRow).where(UserRow.id == user_id)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def get_by_email(self, email: str) -> UserProfile | None:
        stmt = select(UserRow).where(UserRow.email == email)
        row = (await self._session.execute(stmt)).scalar_one_or_none()
        if row is None:
            return None
        return _row_to_user(row)

    async def add(self, user: UserProfile) -> None:
        row = UserRow(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            password_hash=user.password_hash,
            created_at=user.created_at,
        )
        # Savepoint so a duplicate does not poison the request transaction.
        try:
            async with self._session.begin_nested():
                self._session.add(row)
        except IntegrityError:
            raise ValueError("email already exists") from None

    async def delete(self, user_id: str) -> bool:
        stmt = delete(UserRow).where(UserRow.id == user_id)
        result = await self._session.execute(stmt)
        return result.rowcount > 0

    async def update_password_hash(self, user_id: str, password_hash: str) -> None:
        stmt = (
            update(UserRow)
            .where(UserRow.id == user_id)
            .values(password_hash=password_hash)
        )
        await self._session.execute(stmt)


def _row_to_user(row: UserRow) -> UserProfile:
    return UserProfile(
        id=row.id,
        name=row.name or "",
        email=row.email,
        role=row.role,  # type: ignore[arg-type]
        password_hash=row.password_hash,
        created_at=row.created_at,
    )
