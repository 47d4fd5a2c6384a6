import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from socialgraph.config import settings
from socialgraph.database import Database
from socialgraph.errors import ErrorKind, ServiceError
from socialgraph.middleware import TimingMiddleware
from socialgraph.routers import friends, metrics, posts, users

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INVALID_ARGUMENT: 400,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.UNAVAILABLE: 503,
    ErrorKind.UNAUTHENTICATED: 401,
}


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHENTICATED else None
    return JSONResponse(
        status_code=_STATUS_BY_KIND[exc.kind],
        content={"kind": exc.kind.value, "message": exc.message},
        headers=headers,
    )


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the application.

    When *database* is given (tests, embedding) it is used as is and left
    open on shutdown; otherwise one is built from settings at startup and
    disposed at shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        configure_logging()
        db = database or Database.from_settings(settings)
        app.state.db = db
        logger.info("Database engine ready (%s)", db.engine.url.render_as_string(hide_password=True))
        yield
        # Shutdown
        if database is None:
            await db.dispose()

    app = FastAPI(
        title="Social Graph API",
        description="Friendship graph and friends-only post feed",
        version="1.0.0",
        lifespan=lifespan,
    )
    if database is not None:
        app.state.db = database

    app.add_exception_handler(ServiceError, service_error_handler)

    # Middleware
    app.add_middleware(TimingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(users.router)
    app.include_router(friends.router)
    app.include_router(posts.router)
    app.include_router(metrics.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": "1.0.0"}

    return app


app = create_app()
