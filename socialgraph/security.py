"""Credential hashing and access-token helpers (identity collaborator)."""
from datetime import datetime, timedelta, timezone

import bcrypt
from jose import JWTError, jwt

from socialgraph.config import settings
from socialgraph.errors import UnauthenticatedError


def hash_password(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))


def create_access_token(user_id: str, extra_claims: dict[str, str | None] | None = None) -> str:
    """Return a signed JWT whose ``sub`` is *user_id*."""
    to_encode: dict[str, object] = {"sub": user_id}
    if extra_claims:
        to_encode.update(extra_claims)
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(
        minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
    )
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> str:
    """
    Return the user id carried by *token*.

    Raises ``UnauthenticatedError`` for a bad signature, an expired token or
    a token without a subject.
    """
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as err:
        raise UnauthenticatedError() from err
    subject = payload.get("sub")
    if not subject:
        raise UnauthenticatedError()
    return subject
