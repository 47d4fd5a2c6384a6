from typing import Annotated

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from socialgraph.database import Database
from socialgraph.security import decode_access_token

# HTTP Bearer scheme for JWT authentication
bearer_scheme = HTTPBearer()


def get_database(request: Request) -> Database:
    """Return the ``Database`` the application was built with."""
    return request.app.state.db


def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
) -> str:
    """
    Resolve the Bearer token to the caller's user id.

    Invalid, expired or subject-less tokens raise ``UnauthenticatedError``,
    which the application's error handler turns into a 401.
    """
    return decode_access_token(credentials.credentials)


DatabaseDep = Annotated[Database, Depends(get_database)]
CurrentUserDep = Annotated[str, Depends(get_current_user_id)]


class PaginationParams:
    """
    Reusable FastAPI dependency that parses limit/offset query parameters.

    Usage in a router::

        @router.get("/posts")
        async def list_feed(pagination: PaginationParams = Depends()):
            ...

    Values are passed through as given; the service layer applies the
    defaults (non-positive limit -> default page size, negative offset -> 0)
    so the same rules hold for every caller, not only HTTP ones.
    """

    def __init__(
        self,
        limit: int = Query(
            10,
            description="Maximum number of items; values <= 0 use the default page size.",
        ),
        offset: int = Query(
            0,
            description="Number of items to skip; negative values are treated as 0.",
        ),
    ) -> None:
        self.limit = limit
        self.offset = offset
