"""
Friend service: maintenance of the friendship graph.

Design notes
------------
- An edge is two directed rows.  ``add_friend`` and ``remove_friend`` write
  both rows and both users' ``friend_count`` inside one
  ``Database.transaction()``, so a failure at any step leaves neither a
  half edge nor a counter out of step with the rows.
- Existence checks that decide a mutation run inside the same transaction
  as the mutation.  Races that slip past them are still caught: a second
  insert of the same pair trips the primary key, and a delete that removes
  fewer than two rows aborts.
- Mutations read both directions of the pair.  A pair with only one
  direction present is reported as ``InconsistentEdgeError`` and logged;
  it is never repaired or built upon here.
- Argument errors are raised before any storage access.
"""
import logging

from socialgraph.database import Database
from socialgraph.errors import (
    EdgeAlreadyExistsError,
    EdgeNotFoundError,
    InconsistentEdgeError,
    InvalidArgumentError,
    SelfReferenceError,
    UserNotFoundError,
    storage_errors,
)
from socialgraph.repositories import FriendRepository, UserRepository
from socialgraph.repositories.friend_repo import SORTABLE_COLUMNS
from socialgraph.schemas import PaginatedResponse, UserProfile
from socialgraph.services.pagination import resolve_page

logger = logging.getLogger(__name__)

_ORDERINGS = frozenset({"asc", "desc"})


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate_pair(requester_id: str, target_id: str) -> None:
    if not target_id:
        raise InvalidArgumentError("user_id is required")
    if requester_id == target_id:
        raise SelfReferenceError()


def _user_to_profile(user) -> UserProfile:
    """Serialise a User ORM instance to its public profile."""
    return UserProfile(
        user_id=user.id,
        name=user.name,
        image_url=user.image_url,
        friend_count=user.friend_count,
        created_at=user.created_at,
    )


async def _edge_state(friends: FriendRepository, requester_id: str, target_id: str) -> bool:
    """Return whether the edge exists, refusing to act on a one-sided pair."""
    forward, backward = await friends.edge_directions(requester_id, target_id)
    if forward != backward:
        logger.error(
            "Asymmetric friendship between %s and %s (forward=%s, backward=%s)",
            requester_id, target_id, forward, backward,
        )
        raise InconsistentEdgeError("friendship_edge_state")
    return forward


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def add_friend(db: Database, requester_id: str, target_id: str) -> None:
    """
    Befriend *requester_id* and *target_id*.

    Raises ``SelfReferenceError``, ``UserNotFoundError`` (for either user) or
    ``EdgeAlreadyExistsError``; on success both directed rows exist and
    both counters went up by exactly one.
    """
    _validate_pair(requester_id, target_id)

    with storage_errors("add_friend", on_integrity=EdgeAlreadyExistsError):
        async with db.transaction() as session:
            users = UserRepository(session)
            friends = FriendRepository(session)

            if not await users.exists(requester_id):
                raise UserNotFoundError("requesting user not found")
            if not await users.exists(target_id):
                raise UserNotFoundError()
            if await _edge_state(friends, requester_id, target_id):
                raise EdgeAlreadyExistsError()

            await friends.insert_pair(requester_id, target_id)
            if await users.adjust_friend_counts([requester_id, target_id], +1) != 2:
                raise UserNotFoundError()

    logger.info("Friendship added: %s <-> %s", requester_id, target_id)


async def remove_friend(db: Database, requester_id: str, target_id: str) -> None:
    """
    Remove the edge between *requester_id* and *target_id*.

    Raises ``SelfReferenceError`` or ``EdgeNotFoundError``; on success both
    directed rows are gone and both counters went down by exactly one.
    """
    _validate_pair(requester_id, target_id)

    with storage_errors("remove_friend"):
        async with db.transaction() as session:
            users = UserRepository(session)
            friends = FriendRepository(session)

            if not await _edge_state(friends, requester_id, target_id):
                raise EdgeNotFoundError()

            # A concurrent remove may have won between the check and here.
            if await friends.delete_pair(requester_id, target_id) != 2:
                raise EdgeNotFoundError()
            await users.adjust_friend_counts([requester_id, target_id], -1)

    logger.info("Friendship removed: %s <-> %s", requester_id, target_id)


async def is_friend(db: Database, user_id: str, friend_id: str) -> bool:
    """Return whether the directed row ``user_id -> friend_id`` exists."""
    with storage_errors("is_friend"):
        async with db.session() as session:
            return await FriendRepository(session).is_friend(user_id, friend_id)


async def list_friends(
    db: Database,
    viewer_id: str,
    *,
    only_friend: bool = False,
    search: str | None = None,
    sort_by: str = "created_at",
    order_by: str = "desc",
    limit: int | None = None,
    offset: int | None = None,
) -> PaginatedResponse[UserProfile]:
    """
    Return a page of users other than *viewer_id*.

    *only_friend* restricts the listing to the viewer's friends and
    *search* matches name, email or phone case-insensitively.  Sorting is by
    ``friend_count`` or ``created_at``; an unknown key falls back to
    ``created_at`` and an unknown ordering to descending.  ``total`` counts
    every match before pagination.
    """
    if sort_by not in SORTABLE_COLUMNS:
        sort_by = "created_at"
    order_by = (order_by or "").lower()
    if order_by not in _ORDERINGS:
        order_by = "desc"
    limit, offset = resolve_page(limit, offset)

    with storage_errors("list_friends"):
        async with db.session() as session:
            users, total = await FriendRepository(session).list_users(
                viewer_id,
                only_friend=only_friend,
                search=search or None,
                sort_by=sort_by,
                descending=order_by == "desc",
                limit=limit,
                offset=offset,
            )

    return PaginatedResponse[UserProfile](
        items=[_user_to_profile(u) for u in users],
        total=total,
        limit=limit,
        offset=offset,
    )
