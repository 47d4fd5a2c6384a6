"""
User service: registration, login and profile maintenance.

This is plumbing around the graph: it hands out access tokens whose
subject is the caller's user id, which is all the friend and post services
ever consume.  Credential uniqueness is checked up front and enforced again
by the unique constraints on ``users.email`` / ``users.phone``; losing that
race surfaces as ``CredentialExistsError``.
"""
import logging

from socialgraph.database import Database
from socialgraph.errors import (
    CredentialExistsError,
    CredentialLockedError,
    UserNotFoundError,
    WrongPasswordError,
    storage_errors,
)
from socialgraph.models import User
from socialgraph.repositories import UserRepository
from socialgraph.schemas import (
    AccountResponse,
    AuthResponse,
    LoginRequest,
    ProfileUpdate,
    RegisterRequest,
)
from socialgraph.security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Serialisation helpers
# ---------------------------------------------------------------------------

def _auth_response(user: User) -> AuthResponse:
    token = create_access_token(
        user.id,
        {"name": user.name, "email": user.email, "phone": user.phone},
    )
    return AuthResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        access_token=token,
    )


def _account_to_response(user: User) -> AccountResponse:
    return AccountResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        phone=user.phone,
        image_url=user.image_url,
    )


# ---------------------------------------------------------------------------
# Public service functions
# ---------------------------------------------------------------------------

async def register_user(db: Database, data: RegisterRequest) -> AuthResponse:
    """Create a user identified by one email or phone and return a token."""
    password_hash = hash_password(data.password)

    with storage_errors("register_user", on_integrity=CredentialExistsError):
        async with db.transaction() as session:
            users = UserRepository(session)
            if await users.get_by_credential(data.credential_type, data.credential_value):
                raise CredentialExistsError()

            user = await users.create(
                name=data.name,
                password_hash=password_hash,
                **{data.credential_type: data.credential_value},
            )

    logger.info("User %s registered with %s", user.id, data.credential_type)
    return _auth_response(user)


async def authenticate_user(db: Database, data: LoginRequest) -> AuthResponse:
    """Check a credential/password pair and return a fresh token."""
    with storage_errors("authenticate_user"):
        async with db.session() as session:
            user = await UserRepository(session).get_by_credential(
                data.credential_type, data.credential_value
            )
    if user is None:
        raise UserNotFoundError("user with the specified credential not found")
    if not verify_password(data.password, user.password_hash):
        raise WrongPasswordError()
    return _auth_response(user)


async def link_credential(
    db: Database,
    user_id: str,
    credential_type: str,
    value: str,
) -> AccountResponse:
    """
    Attach an email or phone to an account that does not have one yet.

    A credential that is already set cannot be replaced
    (``CredentialLockedError``) and one owned by another account cannot be
    taken (``CredentialExistsError``).
    """
    with storage_errors("link_credential", on_integrity=CredentialExistsError):
        async with db.transaction() as session:
            users = UserRepository(session)
            user = await users.get_by_id(user_id)
            if user is None:
                raise UserNotFoundError()
            if getattr(user, credential_type):
                raise CredentialLockedError()
            if await users.get_by_credential(credential_type, value):
                raise CredentialExistsError()

            setattr(user, credential_type, value)
            await session.flush()

    return _account_to_response(user)


async def update_profile(db: Database, user_id: str, data: ProfileUpdate) -> AccountResponse:
    """Replace the account's display name and profile image reference."""
    with storage_errors("update_profile"):
        async with db.transaction() as session:
            user = await UserRepository(session).get_by_id(user_id)
            if user is None:
                raise UserNotFoundError()
            user.name = data.name
            user.image_url = str(data.image_url)
            await session.flush()

    return _account_to_response(user)
