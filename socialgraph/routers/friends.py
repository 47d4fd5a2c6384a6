from fastapi import APIRouter, Depends, Query

from socialgraph.dependencies import CurrentUserDep, DatabaseDep, PaginationParams
from socialgraph.schemas import FriendRequest, PaginatedResponse, UserProfile
from socialgraph.services import friend_service

router = APIRouter(prefix="/api/v1/friends", tags=["friends"])

@router.get("", response_model=PaginatedResponse[UserProfile])
async def list_friends(
    user_id: CurrentUserDep,
    db: DatabaseDep,
    pagination: PaginationParams = Depends(),
    sort_by: str = Query("created_at", description="'friend_count' or 'created_at'."),
    order_by: str = Query("desc", description="'asc' or 'desc'."),
    only_friend: bool = Query(False),
    search: str | None = Query(None),
):
    return await friend_service.list_friends(
        db,
        user_id,
        only_friend=only_friend,
        search=search,
        sort_by=sort_by,
        order_by=order_by,
        limit=pagination.limit,
        offset=pagination.offset,
    )

@router.post("")
async def add_friend(data: FriendRequest, user_id: CurrentUserDep, db: DatabaseDep):
    await friend_service.add_friend(db, user_id, data.user_id)
    return {"message": "user added as friend"}

@router.delete("")
async def remove_friend(data: FriendRequest, user_id: CurrentUserDep, db: DatabaseDep):
    await friend_service.remove_friend(db, user_id, data.user_id)
    return {"message": "user removed from friend"}
