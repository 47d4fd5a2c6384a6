"""
Post tests: creation, the friends-only feed, and comments.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import func, select

from socialgraph.database import Database
from socialgraph.errors import (
    AuthorNotFriendError,
    ErrorKind,
    InvalidArgumentError,
    PostNotFoundError,
    UserNotFoundError,
)
from socialgraph.models import Comment, Post, PostTag
from socialgraph.services import friend_service, post_service
from tests.conftest import auth_headers


# ---------------------------------------------------------------------------
# create_post
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_post_escapes_html(database: Database, make_user):
    author = await make_user()

    created = await post_service.create_post(database, author.id, "<b>bold & brave</b>", ["x"])

    assert created.post_in_html == "&lt;b&gt;bold &amp; brave&lt;/b&gt;"
    feed = await post_service.list_feed(database, author.id)
    assert feed.items[0].post.post_in_html == created.post_in_html


@pytest.mark.asyncio
async def test_create_post_without_tags(database: Database, make_user):
    author = await make_user()

    created = await post_service.create_post(database, author.id, "no tags here", [])

    assert created.tags == []
    feed = await post_service.list_feed(database, author.id)
    assert feed.total == 1
    assert feed.items[0].post.tags == []


@pytest.mark.asyncio
async def test_create_post_deduplicates_tags(database: Database, make_user):
    author = await make_user()

    created = await post_service.create_post(database, author.id, "tagged", ["go", "db", "go"])

    assert created.tags == ["go", "db"]
    async with database.session() as session:
        stored = (
            await session.execute(
                select(func.count()).select_from(PostTag).where(PostTag.post_id == created.post_id)
            )
        ).scalar_one()
    assert stored == 2


# ---------------------------------------------------------------------------
# list_feed
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_feed_comment_requires_friendship_then_shows_it(database: Database, make_user):
    u1 = await make_user("Author Person")
    u2 = await make_user("Reader Person")
    post = await post_service.create_post(database, u1.id, "hello world", ["go", "db"])

    with pytest.raises(AuthorNotFriendError) as exc_info:
        await post_service.add_comment(database, u2.id, post.post_id, "hi")
    assert exc_info.value.kind is ErrorKind.FORBIDDEN

    await friend_service.add_friend(database, u2.id, u1.id)
    await post_service.add_comment(database, u2.id, post.post_id, "hi")

    feed = await post_service.list_feed(database, u2.id)
    assert feed.total == 1
    item = feed.items[0]
    assert item.post_id == post.post_id
    assert item.post.tags == ["db", "go"]
    assert item.creator.user_id == u1.id
    assert item.creator.friend_count == 1
    assert [c.comment for c in item.comments] == ["hi"]
    assert item.comments[0].creator.user_id == u2.id
    assert item.comments[0].creator.name == "Reader Person"


@pytest.mark.asyncio
async def test_feed_visibility_follows_friendship(database: Database, make_user):
    viewer = await make_user()
    friend = await make_user()
    stranger = await make_user()
    own = await post_service.create_post(database, viewer.id, "mine", [])
    friends_post = await post_service.create_post(database, friend.id, "from a friend", [])
    await post_service.create_post(database, stranger.id, "from a stranger", [])

    feed = await post_service.list_feed(database, viewer.id)
    assert [i.post_id for i in feed.items] == [own.post_id]

    await friend_service.add_friend(database, viewer.id, friend.id)
    feed = await post_service.list_feed(database, viewer.id)
    assert [i.post_id for i in feed.items] == [friends_post.post_id, own.post_id]

    await friend_service.remove_friend(database, friend.id, viewer.id)
    feed = await post_service.list_feed(database, viewer.id)
    assert [i.post_id for i in feed.items] == [own.post_id]


@pytest.mark.asyncio
async def test_feed_comments_newest_first(database: Database, make_user):
    author = await make_user()
    friend = await make_user()
    await friend_service.add_friend(database, author.id, friend.id)
    post = await post_service.create_post(database, author.id, "discuss", [])

    await post_service.add_comment(database, friend.id, post.post_id, "first")
    await post_service.add_comment(database, author.id, post.post_id, "second")
    await post_service.add_comment(database, friend.id, post.post_id, "third")

    feed = await post_service.list_feed(database, friend.id)
    assert [c.comment for c in feed.items[0].comments] == ["third", "second", "first"]


@pytest.mark.asyncio
async def test_feed_tag_filter_returns_each_post_once(database: Database, make_user):
    author = await make_user()
    both = await post_service.create_post(database, author.id, "both tags", ["go", "db"])
    only_go = await post_service.create_post(database, author.id, "only go", ["go"])
    await post_service.create_post(database, author.id, "other tag", ["rust"])

    feed = await post_service.list_feed(database, author.id, search_tags=["go", "db"])

    assert feed.total == 2
    assert [i.post_id for i in feed.items] == [only_go.post_id, both.post_id]
    # Every tag of a matching post is returned, not only the matched ones.
    assert feed.items[1].post.tags == ["db", "go"]


@pytest.mark.asyncio
async def test_feed_search_matches_body(database: Database, make_user):
    author = await make_user()
    hit = await post_service.create_post(database, author.id, "Learning SQLAlchemy", [])
    await post_service.create_post(database, author.id, "Something else", [])

    feed = await post_service.list_feed(database, author.id, search="sqlalchemy")

    assert feed.total == 1
    assert feed.items[0].post_id == hit.post_id


@pytest.mark.asyncio
async def test_feed_pagination(database: Database, make_user):
    author = await make_user()
    ids = [
        (await post_service.create_post(database, author.id, f"post {n}", [])).post_id
        for n in range(5)
    ]
    newest_first = list(reversed(ids))

    page = await post_service.list_feed(database, author.id, limit=2, offset=1)
    assert page.total == 5
    assert [i.post_id for i in page.items] == newest_first[1:3]

    page = await post_service.list_feed(database, author.id, limit=-1, offset=-5)
    assert page.limit == 10
    assert page.offset == 0
    assert len(page.items) == 5

    page = await post_service.list_feed(database, author.id, offset=20)
    assert page.items == []
    assert page.total == 5


@pytest.mark.asyncio
async def test_feed_empty(database: Database, make_user):
    viewer = await make_user()
    feed = await post_service.list_feed(database, viewer.id)
    assert feed.items == []
    assert feed.total == 0


@pytest.mark.asyncio
async def test_feed_is_idempotent(database: Database, make_user):
    author = await make_user()
    post = await post_service.create_post(database, author.id, "stable", ["a", "b"])
    await post_service.add_comment(database, author.id, post.post_id, "note")

    first = await post_service.list_feed(database, author.id)
    second = await post_service.list_feed(database, author.id)

    assert first == second


# ---------------------------------------------------------------------------
# add_comment
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_author_can_comment_on_own_post(database: Database, make_user):
    author = await make_user()
    post = await post_service.create_post(database, author.id, "self talk", [])

    created = await post_service.add_comment(database, author.id, post.post_id, "me again")

    assert created.post_id == post.post_id
    assert created.comment == "me again"


@pytest.mark.asyncio
async def test_comment_on_missing_post(database: Database, make_user):
    author = await make_user()
    with pytest.raises(PostNotFoundError):
        await post_service.add_comment(database, author.id, "missing-post", "hello")
    with pytest.raises(InvalidArgumentError):
        await post_service.add_comment(database, author.id, "", "hello")


@pytest.mark.asyncio
async def test_unknown_author_cannot_post_or_comment(database: Database, make_user):
    author = await make_user()
    post = await post_service.create_post(database, author.id, "real post", [])

    with pytest.raises(UserNotFoundError):
        await post_service.create_post(database, "ghost", "orphan post", ["x"])
    with pytest.raises(UserNotFoundError):
        await post_service.add_comment(database, "ghost", post.post_id, "orphan comment")

    async with database.session() as session:
        posts = (await session.execute(select(func.count()).select_from(Post))).scalar_one()
        comments = (await session.execute(select(func.count()).select_from(Comment))).scalar_one()
    assert posts == 1
    assert comments == 0


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_post_endpoints_round_trip(async_client: AsyncClient, database: Database, make_user):
    author = await make_user()
    friend = await make_user()
    await friend_service.add_friend(database, author.id, friend.id)

    resp = await async_client.post(
        "/api/v1/posts",
        json={"post_in_html": "<i>hi</i>", "tags": ["go", "db"]},
        headers=auth_headers(author.id),
    )
    assert resp.status_code == 201
    post_id = resp.json()["post_id"]
    assert resp.json()["post_in_html"] == "&lt;i&gt;hi&lt;/i&gt;"

    resp = await async_client.post(
        "/api/v1/posts/comments",
        json={"post_id": post_id, "comment": "nice"},
        headers=auth_headers(friend.id),
    )
    assert resp.status_code == 201

    resp = await async_client.get(
        "/api/v1/posts",
        params=[("search_tag", "go"), ("search_tag", "db")],
        headers=auth_headers(friend.id),
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["total"] == 1
    assert body["items"][0]["post"]["tags"] == ["db", "go"]
    assert body["items"][0]["comments"][0]["comment"] == "nice"


@pytest.mark.asyncio
async def test_comment_endpoint_errors(async_client: AsyncClient, database: Database, make_user):
    author = await make_user()
    stranger = await make_user()
    post = await post_service.create_post(database, author.id, "private", [])

    resp = await async_client.post(
        "/api/v1/posts/comments",
        json={"post_id": post.post_id, "comment": "hey"},
        headers=auth_headers(stranger.id),
    )
    assert resp.status_code == 403
    assert resp.json() == {"kind": "forbidden", "message": "post creator is not a friend"}

    resp = await async_client.post(
        "/api/v1/posts/comments",
        json={"post_id": "nope", "comment": "hey"},
        headers=auth_headers(author.id),
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_post_validation(async_client: AsyncClient, make_user):
    author = await make_user()
    resp = await async_client.post(
        "/api/v1/posts",
        json={"post_in_html": "x", "tags": []},
        headers=auth_headers(author.id),
    )
    assert resp.status_code == 422
