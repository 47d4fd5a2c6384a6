"""
Post service: post creation, comments, and the feed.

Design notes
------------
- ``create_post`` checks the author exists, then writes the post row and
  its tag rows in one ``Database.transaction()``; a failed tag insert
  leaves no post behind.  The body is HTML-escaped before it is stored.
- ``list_feed`` issues the COUNT and the page SELECT on one session, closes
  it, then fetches comments and tags for the page's post ids concurrently,
  each on its own session (an AsyncSession cannot run two statements at
  once).  ``asyncio.gather`` waits for both; then the first failure, in
  argument order, fails the whole call and no partial page is assembled.
  Both fetches return fresh dicts keyed by post id, read only after the
  join.
- An empty page skips the bulk fetches entirely.
- Comments are single-row writes and need no transaction.  The friendship
  check happens once at creation time.
"""
import asyncio
import html
import logging
import uuid
from collections.abc import Sequence

from sqlalchemy import Row

from socialgraph.database import Database
from socialgraph.errors import (
    AuthorNotFriendError,
    InvalidArgumentError,
    PostNotFoundError,
    UserNotFoundError,
    storage_errors,
)
from socialgraph.repositories import FriendRepository, PostRepository, UserRepository
from socialgraph.schemas import (
    CommentCreated,
    CommentView,
    FeedItem,
    PaginatedResponse,
    PostContent,
    PostCreated,
    UserProfile,
)
from socialgraph.services.pagination import resolve_page

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _creator(row: Row) -> UserProfile:
    return UserProfile(
        user_id=row.user_id,
        name=row.name,
        image_url=row.image_url,
        friend_count=row.friend_count,
        created_at=row.user_created_at,
    )


def _comment_to_view(row: Row) -> CommentView:
    return CommentView(
        comment_id=row.comment_id,
        comment=row.comment,
        created_at=row.created_at,
        creator=_creator(row),
    )


def _dedupe(tags: Sequence[str]) -> list[str]:
    return list(dict.fromkeys(tags))


# ---------------------------------------------------------------------------
# Bulk fetches (each owns its session so both can run at once)
# ---------------------------------------------------------------------------

async def _fetch_comments(db: Database, post_ids: list[str]) -> dict[str, list[Row]]:
    with storage_errors("list_feed.comments"):
        async with db.session() as session:
            return await PostRepository(session).bulk_comments(post_ids)


async def _fetch_tags(db: Database, post_ids: list[str]) -> dict[str, list[str]]:
    with storage_errors("list_feed.tags"):
        async with db.session() as session:
            return await PostRepository(session).bulk_tags(post_ids)


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def create_post(
    db: Database,
    author_id: str,
    post_in_html: str,
    tags: Sequence[str],
) -> PostCreated:
    """Persist a post and its tags atomically and return the stored post."""
    post_id = str(uuid.uuid4())
    body = html.escape(post_in_html)
    tags = _dedupe(tags)

    with storage_errors("create_post"):
        async with db.transaction() as session:
            if not await UserRepository(session).exists(author_id):
                raise UserNotFoundError()
            posts = PostRepository(session)
            post = await posts.insert_post(post_id=post_id, user_id=author_id, post_in_html=body)
            await posts.insert_tags(post_id, tags)

    logger.info("Post %s created by %s with %d tag(s)", post_id, author_id, len(tags))
    return PostCreated(
        post_id=post.id,
        post_in_html=post.post_in_html,
        tags=tags,
        created_at=post.created_at,
    )


async def list_feed(
    db: Database,
    viewer_id: str,
    *,
    search: str | None = None,
    search_tags: Sequence[str] | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> PaginatedResponse[FeedItem]:
    """
    Return a page of the posts *viewer_id* may see, newest first.

    *search_tags* keeps posts carrying at least one of the tags; *search*
    matches the body case-insensitively.  ``total`` counts every match
    before pagination.
    """
    limit, offset = resolve_page(limit, offset)

    with storage_errors("list_feed"):
        async with db.session() as session:
            rows, total = await PostRepository(session).feed_page(
                viewer_id,
                search=search or None,
                tags=search_tags or None,
                limit=limit,
                offset=offset,
            )

    comments_by_post: dict[str, list[Row]] = {}
    tags_by_post: dict[str, list[str]] = {}
    if rows:
        post_ids = [row.post_id for row in rows]
        results = await asyncio.gather(
            _fetch_comments(db, post_ids),
            _fetch_tags(db, post_ids),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        comments_by_post, tags_by_post = results

    items = [
        FeedItem(
            post_id=row.post_id,
            post=PostContent(
                post_in_html=row.post_in_html,
                tags=tags_by_post.get(row.post_id, []),
                created_at=row.post_created_at,
            ),
            comments=[_comment_to_view(c) for c in comments_by_post.get(row.post_id, [])],
            creator=_creator(row),
        )
        for row in rows
    ]
    return PaginatedResponse[FeedItem](items=items, total=total, limit=limit, offset=offset)


async def add_comment(db: Database, author_id: str, post_id: str, comment: str) -> CommentCreated:
    """
    Append a comment to *post_id*.

    The author must have written the post or be a friend of its author;
    otherwise ``AuthorNotFriendError`` is raised.  ``PostNotFoundError`` is
    raised for an unknown post and ``UserNotFoundError`` for an unknown
    author.
    """
    if not post_id:
        raise InvalidArgumentError("post_id is required")

    with storage_errors("add_comment"):
        async with db.session() as session:
            posts = PostRepository(session)
            post = await posts.get_by_id(post_id)
            if post is None:
                raise PostNotFoundError()

            if not await UserRepository(session).exists(author_id):
                raise UserNotFoundError()
            if post.user_id != author_id:
                if not await FriendRepository(session).is_friend(author_id, post.user_id):
                    raise AuthorNotFriendError()

            row = await posts.insert_comment(post_id=post_id, user_id=author_id, comment=comment)
            await session.commit()

    return CommentCreated(
        comment_id=row.id,
        post_id=row.post_id,
        comment=row.comment,
        created_at=row.created_at,
    )
