import time
from contextvars import ContextVar

from sqlalchemy import event
from starlette.types import ASGIApp, Receive, Scope, Send


# ---------------------------------------------------------------------------
# Per-request context variable
# ---------------------------------------------------------------------------

class QueryCounter:
    """Mutable per-request tally of executed SQL statements."""

    __slots__ = ("count",)

    def __init__(self) -> None:
        self.count = 0


# The counter is an object rather than an int: tasks spawned by
# ``asyncio.gather`` run on a copy of the context, so an int set there would
# never reach the request's own context.
query_counter_var: ContextVar[QueryCounter | None] = ContextVar("query_counter", default=None)


def install_query_counter(engine) -> None:
    """
    Register a ``before_cursor_execute`` event listener on *engine* that
    bumps the current request's ``QueryCounter`` for every SQL statement.

    Statements executed outside a request (scripts, tests calling services
    directly) find no counter and are ignored.
    """
    sync_engine = engine.sync_engine

    @event.listens_for(sync_engine, "before_cursor_execute")
    def _count_query(conn, cursor, statement, parameters, context, executemany):
        counter = query_counter_var.get()
        if counter is not None:
            counter.count += 1


# ---------------------------------------------------------------------------
# Middleware (pure ASGI, avoids BaseHTTPMiddleware ContextVar isolation)
# ---------------------------------------------------------------------------

class TimingMiddleware:
    """
    Pure ASGI middleware that adds two diagnostic response headers:

    - ``X-Response-Time-Ms``: wall-clock time for the entire request.
    - ``X-Query-Count``: total SQL statements executed during the request,
      including the ones issued by the feed's concurrent bulk fetches.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] not in ("http", "websocket"):
            await self.app(scope, receive, send)
            return

        counter = QueryCounter()
        token = query_counter_var.set(counter)
        start = time.perf_counter()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                duration_ms = round((time.perf_counter() - start) * 1000, 2)
                headers = list(message.get("headers", []))
                headers.append((b"x-response-time-ms", str(duration_ms).encode()))
                headers.append((b"x-query-count", str(counter.count).encode()))
                message["headers"] = headers
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            query_counter_var.reset(token)
