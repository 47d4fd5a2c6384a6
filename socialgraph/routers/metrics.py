from fastapi import APIRouter
from sqlalchemy import select, func

from socialgraph.dependencies import DatabaseDep
from socialgraph.errors import storage_errors
from socialgraph.models import Comment, Friendship, Post, User
from socialgraph.schemas import MetricsResponse

router = APIRouter(prefix="/api/v1/metrics", tags=["metrics"])

@router.get("", response_model=MetricsResponse)
async def get_metrics(db: DatabaseDep):
    with storage_errors("get_metrics"):
        async with db.session() as session:
            total_users = (await session.execute(select(func.count()).select_from(User))).scalar_one()

            # Each edge is stored as two directed rows.
            edge_rows = (await session.execute(select(func.count()).select_from(Friendship))).scalar_one()

            total_posts = (await session.execute(select(func.count()).select_from(Post))).scalar_one()

            total_comments = (await session.execute(select(func.count()).select_from(Comment))).scalar_one()

    avg_friends = edge_rows / total_users if total_users > 0 else 0
    avg_comments = total_comments / total_posts if total_posts > 0 else 0

    return MetricsResponse(
        total_users=total_users,
        total_friendships=edge_rows // 2,
        total_posts=total_posts,
        total_comments=total_comments,
        avg_friends_per_user=round(avg_friends, 2),
        avg_comments_per_post=round(avg_comments, 2),
    )
