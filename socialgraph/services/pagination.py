from socialgraph.config import settings


def resolve_page(limit: int | None, offset: int | None) -> tuple[int, int]:
    """
    Return the effective ``(limit, offset)`` for a listing.

    A missing, zero or negative limit falls back to
    ``settings.DEFAULT_PAGE_SIZE``; a missing or negative offset becomes 0.
    """
    if limit is None or limit <= 0:
        limit = settings.DEFAULT_PAGE_SIZE
    if offset is None or offset < 0:
        offset = 0
    return limit, offset
