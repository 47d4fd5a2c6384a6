from fastapi import APIRouter, Depends, Query

from socialgraph.dependencies import CurrentUserDep, DatabaseDep, PaginationParams
from socialgraph.schemas import CommentCreate, CommentCreated, FeedItem, PaginatedResponse, PostCreate, PostCreated
from socialgraph.services import post_service

router = APIRouter(prefix="/api/v1/posts", tags=["posts"])

@router.get("", response_model=PaginatedResponse[FeedItem])
async def list_feed(
    user_id: CurrentUserDep,
    db: DatabaseDep,
    pagination: PaginationParams = Depends(),
    search: str | None = Query(None),
    search_tag: list[str] | None = Query(None),
):
    return await post_service.list_feed(
        db,
        user_id,
        search=search,
        search_tags=search_tag,
        limit=pagination.limit,
        offset=pagination.offset,
    )

@router.post("", status_code=201, response_model=PostCreated)
async def create_post(data: PostCreate, user_id: CurrentUserDep, db: DatabaseDep):
    return await post_service.create_post(db, user_id, data.post_in_html, data.tags)

@router.post("/comments", status_code=201, response_model=CommentCreated)
async def add_comment(data: CommentCreate, user_id: CurrentUserDep, db: DatabaseDep):
    return await post_service.add_comment(db, user_id, data.post_id, data.comment)
