"""Data access helpers for users and their friend counters."""
from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.models import User

__all__ = ["UserRepository"]

# Credential type -> column; the only two ways to log in.
_CREDENTIAL_COLUMNS = {"email": User.email, "phone": User.phone}


class UserRepository:
    """Thin wrapper around database access for user rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, user_id: str) -> User | None:
        result = await self.session.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def exists(self, user_id: str) -> bool:
        result = await self.session.execute(select(User.id).where(User.id == user_id))
        return result.first() is not None

    async def get_by_credential(self, credential_type: str, value: str) -> User | None:
        column = _CREDENTIAL_COLUMNS[credential_type]
        result = await self.session.execute(select(User).where(column == value).limit(1))
        return result.scalar_one_or_none()

    async def create(
        self,
        *,
        name: str,
        password_hash: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> User:
        user = User(name=name, password_hash=password_hash, email=email, phone=phone)
        self.session.add(user)
        await self.session.flush()
        return user

    async def adjust_friend_counts(self, user_ids: list[str], delta: int) -> int:
        """
        Add *delta* to ``friend_count`` of every user in *user_ids* with a
        single UPDATE and return the number of rows touched.
        """
        result = await self.session.execute(
            update(User)
            .where(User.id.in_(user_ids))
            .values(friend_count=User.friend_count + delta)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
