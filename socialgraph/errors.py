"""
Error taxonomy shared by the service layer and the HTTP error handler.

Every error carries a stable machine-readable ``kind`` and a human
``message``.  Routers never build error responses themselves; the handler
registered in ``main.py`` maps each kind to a status code.
"""
import logging
from contextlib import contextmanager
from enum import Enum
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_ARGUMENT = "invalid_argument"
    FORBIDDEN = "forbidden"
    UNAVAILABLE = "unavailable"
    UNAUTHENTICATED = "unauthenticated"


class ServiceError(Exception):
    kind: ErrorKind = ErrorKind.UNAVAILABLE
    message: str = "service error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------

class NotFoundError(ServiceError):
    kind = ErrorKind.NOT_FOUND
    message = "resource not found"


class ConflictError(ServiceError):
    kind = ErrorKind.CONFLICT
    message = "resource already exists"


class InvalidArgumentError(ServiceError):
    kind = ErrorKind.INVALID_ARGUMENT
    message = "request malformed"


class ForbiddenError(ServiceError):
    kind = ErrorKind.FORBIDDEN
    message = "request forbidden"


class UnauthenticatedError(ServiceError):
    kind = ErrorKind.UNAUTHENTICATED
    message = "could not validate credentials"


class UnavailableError(ServiceError):
    """Storage or transaction failure; *operation* names the failing step."""

    kind = ErrorKind.UNAVAILABLE
    message = "service temporarily unavailable"

    def __init__(self, operation: str, message: str | None = None) -> None:
        self.operation = operation
        super().__init__(message)


# ---------------------------------------------------------------------------
# Domain errors
# ---------------------------------------------------------------------------

class SelfReferenceError(InvalidArgumentError):
    message = "cannot add or remove yourself as a friend"


class UserNotFoundError(NotFoundError):
    message = "user not found"


class EdgeAlreadyExistsError(ConflictError):
    message = "user is already a friend"


class EdgeNotFoundError(NotFoundError):
    message = "user is not a friend"


class InconsistentEdgeError(UnavailableError):
    message = "friendship data is inconsistent"


class PostNotFoundError(NotFoundError):
    message = "post not found"


class AuthorNotFriendError(ForbiddenError):
    message = "post creator is not a friend"


class CredentialExistsError(ConflictError):
    message = "credential already used"


class CredentialLockedError(InvalidArgumentError):
    message = "an email or phone that is already set cannot be changed"


class WrongPasswordError(InvalidArgumentError):
    message = "wrong password entered"


# ---------------------------------------------------------------------------
# Storage error translation
# ---------------------------------------------------------------------------

@contextmanager
def storage_errors(
    operation: str,
    on_integrity: type[ServiceError] | None = None,
) -> Iterator[None]:
    """
    Translate ``SQLAlchemyError`` raised inside the block into
    ``UnavailableError(operation)``.

    When *on_integrity* is given, an ``IntegrityError`` is raised as that
    error instead (a uniqueness race lost to a concurrent writer).  The
    original exception is kept as ``__cause__`` and logged; it never reaches
    the response body.
    """
    try:
        yield
    except IntegrityError as exc:
        if on_integrity is not None:
            logger.info("%s: integrity violation mapped to %s", operation, on_integrity.__name__)
            raise on_integrity() from exc
        logger.exception("%s: storage error", operation)
        raise UnavailableError(operation) from exc
    except SQLAlchemyError as exc:
        logger.exception("%s: storage error", operation)
        raise UnavailableError(operation) from exc
