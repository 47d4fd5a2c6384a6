"""Data access helpers for the friendship graph."""
from __future__ import annotations

from sqlalchemy import and_, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.models import Friendship, User

__all__ = ["FriendRepository", "SORTABLE_COLUMNS"]

# Columns the friend listing may be sorted by; guards against arbitrary
# attribute access.  The camelCase keys are the wire names older clients send.
SORTABLE_COLUMNS = {
    "friend_count": User.friend_count,
    "created_at": User.created_at,
    "friendCount": User.friend_count,
    "createdAt": User.created_at,
}


class FriendRepository:
    """Thin wrapper around database access for directed friendship rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def is_friend(self, user_id: str, friend_id: str) -> bool:
        """Return True when the directed row ``user_id -> friend_id`` exists."""
        result = await self.session.execute(
            select(
                exists().where(
                    Friendship.user_id == user_id,
                    Friendship.friend_id == friend_id,
                )
            )
        )
        return bool(result.scalar())

    async def edge_directions(self, user_id: str, friend_id: str) -> tuple[bool, bool]:
        """Return ``(forward, backward)`` presence of both directed rows."""
        result = await self.session.execute(
            select(Friendship.user_id).where(
                or_(
                    and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
                    and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
                )
            )
        )
        owners = set(result.scalars().all())
        return user_id in owners, friend_id in owners

    async def insert_pair(self, user_id: str, friend_id: str) -> None:
        self.session.add_all(
            [
                Friendship(user_id=user_id, friend_id=friend_id),
                Friendship(user_id=friend_id, friend_id=user_id),
            ]
        )
        await self.session.flush()

    async def delete_pair(self, user_id: str, friend_id: str) -> int:
        """Delete both directed rows and return how many rows went away."""
        result = await self.session.execute(
            delete(Friendship).where(
                or_(
                    and_(Friendship.user_id == user_id, Friendship.friend_id == friend_id),
                    and_(Friendship.user_id == friend_id, Friendship.friend_id == user_id),
                )
            )
        )
        return result.rowcount

    async def list_users(
        self,
        viewer_id: str,
        *,
        only_friend: bool,
        search: str | None,
        sort_by: str,
        descending: bool,
        limit: int,
        offset: int,
    ) -> tuple[list[User], int]:
        """
        Return one page of users other than *viewer_id* plus the total
        number of users matching the same predicate.

        Two SQL statements are issued:
        1. COUNT over the filtered set.
        2. SELECT with ORDER BY / LIMIT / OFFSET.
        """
        conditions = [User.id != viewer_id]
        if only_friend:
            conditions.append(
                User.id.in_(select(Friendship.friend_id).where(Friendship.user_id == viewer_id))
            )
        if search:
            conditions.append(
                or_(
                    User.name.icontains(search, autoescape=True),
                    User.email.icontains(search, autoescape=True),
                    User.phone.icontains(search, autoescape=True),
                )
            )

        count_q = select(func.count()).select_from(User).where(*conditions)
        total: int = (await self.session.execute(count_q)).scalar_one()

        sort_col = SORTABLE_COLUMNS[sort_by]
        if descending:
            order = (sort_col.desc(), User.id.desc())
        else:
            order = (sort_col.asc(), User.id.asc())
        page_q = select(User).where(*conditions).order_by(*order).limit(limit).offset(offset)
        users = (await self.session.execute(page_q)).scalars().all()
        return list(users), total
