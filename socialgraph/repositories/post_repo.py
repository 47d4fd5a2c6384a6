"""Data access helpers for posts, their tags and their comments."""
from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence

from sqlalchemy import Row, func, insert, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from socialgraph.models import Comment, Friendship, Post, PostTag, User

__all__ = ["PostRepository"]


class PostRepository:
    """Thin wrapper around database access for post entities."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def insert_post(self, *, post_id: str, user_id: str, post_in_html: str) -> Post:
        post = Post(id=post_id, user_id=user_id, post_in_html=post_in_html)
        self.session.add(post)
        await self.session.flush()
        return post

    async def insert_tags(self, post_id: str, tags: Sequence[str]) -> None:
        if not tags:
            return
        await self.session.execute(
            insert(PostTag),
            [{"post_id": post_id, "tag": tag} for tag in tags],
        )

    async def insert_comment(self, *, post_id: str, user_id: str, comment: str) -> Comment:
        row = Comment(post_id=post_id, user_id=user_id, comment=comment)
        self.session.add(row)
        await self.session.flush()
        return row

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, post_id: str) -> Post | None:
        result = await self.session.execute(select(Post).where(Post.id == post_id))
        return result.scalar_one_or_none()

    async def feed_page(
        self,
        viewer_id: str,
        *,
        search: str | None,
        tags: Sequence[str] | None,
        limit: int,
        offset: int,
    ) -> tuple[list[Row], int]:
        """
        Return one page of posts visible to *viewer_id*, joined with their
        author's public profile, plus the total over the same predicate.

        A post is visible when the viewer wrote it or the author is one of
        the viewer's friends.  The tag filter is a semi-join so a post
        matching several requested tags is still returned once.
        """
        friend_ids = select(Friendship.friend_id).where(Friendship.user_id == viewer_id)
        conditions = [or_(Post.user_id == viewer_id, Post.user_id.in_(friend_ids))]
        if tags:
            conditions.append(
                Post.id.in_(select(PostTag.post_id).where(PostTag.tag.in_(list(tags))))
            )
        if search:
            conditions.append(Post.post_in_html.icontains(search, autoescape=True))

        count_q = select(func.count()).select_from(Post).where(*conditions)
        total: int = (await self.session.execute(count_q)).scalar_one()

        page_q = (
            select(
                Post.id.label("post_id"),
                Post.post_in_html,
                Post.created_at.label("post_created_at"),
                User.id.label("user_id"),
                User.name,
                User.image_url,
                User.friend_count,
                User.created_at.label("user_created_at"),
            )
            .join(User, User.id == Post.user_id)
            .where(*conditions)
            .order_by(Post.created_at.desc(), Post.id.desc())
            .limit(limit)
            .offset(offset)
        )
        rows = (await self.session.execute(page_q)).all()
        return list(rows), total

    async def bulk_comments(self, post_ids: Sequence[str]) -> dict[str, list[Row]]:
        """
        Return the comments of every post in *post_ids*, newest first,
        each joined with its author's public profile and grouped by post.
        """
        q = (
            select(
                Comment.id.label("comment_id"),
                Comment.post_id,
                Comment.comment,
                Comment.created_at,
                User.id.label("user_id"),
                User.name,
                User.image_url,
                User.friend_count,
                User.created_at.label("user_created_at"),
            )
            .join(User, User.id == Comment.user_id)
            .where(Comment.post_id.in_(list(post_ids)))
            .order_by(Comment.created_at.desc(), Comment.id.desc())
        )
        grouped: dict[str, list[Row]] = defaultdict(list)
        for row in (await self.session.execute(q)).all():
            grouped[row.post_id].append(row)
        return dict(grouped)

    async def bulk_tags(self, post_ids: Sequence[str]) -> dict[str, list[str]]:
        """Return the tags of every post in *post_ids*, lexically ordered per post."""
        q = (
            select(PostTag.post_id, PostTag.tag)
            .where(PostTag.post_id.in_(list(post_ids)))
            .order_by(PostTag.post_id.asc(), PostTag.tag.asc())
        )
        grouped: dict[str, list[str]] = defaultdict(list)
        for post_id, tag in (await self.session.execute(q)).all():
            grouped[post_id].append(tag)
        return dict(grouped)
