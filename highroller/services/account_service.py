"""
highroller.services.account_service — Credential Store
======================================================

Registration, profile reads/updates, password changes and account removal.

Passwords are hashed with bcrypt (see :mod:`highroller.engine.passwords`).
Username uniqueness is pre-checked *and* backed by the unique constraint
on ``users.username``, so a registration that loses a race still surfaces
as ``ConflictError(code="duplicate_username")``.

Account removal is a hard delete: ownership rows, friend edges in both
directions and the account's game sessions go with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import Any

from sqlalchemy import delete, or_, select
from sqlalchemy.exc import IntegrityError

from highroller.constants import DEFAULT_PICTURE_PATH, UNSET
from highroller.database.engine import get_session
from highroller.database.models import Friendship, GameSession, User, UserCosmetic
from highroller.engine.passwords import PasswordHasher, get_hasher
from highroller.errors import (
    WRONG_CREDENTIALS,
    AuthError,
    ConflictError,
    ValidationError,
    account_not_found,
)
from highroller.services.views import AccountView, account_view

logger = logging.getLogger(__name__)

USERNAME_MAX_LENGTH = 50


@dataclass(frozen=True, slots=True)
class AccountUpdate:
    """Partial profile update — only fields that are not ``UNSET`` are written.

    Balance, password, ownership and friends are deliberately absent: each
    has its own operation with its own rules.
    """

    username: Any = UNSET
    email: Any = UNSET
    picture_path: Any = UNSET
    is_admin: Any = UNSET

    def provided(self) -> dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


def _require_text(value: object, name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(
            "Please provide a username, password and mail", code=f"missing_{name}"
        )
    return value


def _duplicate_username() -> ConflictError:
    return ConflictError("Username already taken", code="duplicate_username")


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------
def register(
    engine,
    username: str,
    password: str,
    email: str,
    *,
    picture_path: str | None = None,
    is_admin: bool = False,
    hasher: PasswordHasher | None = None,
) -> AccountView:
    """Create an account with default balance 0 and empty sets.

    Raises
    ------
    ValidationError
        If username, password or email is missing, or the username is too long.
    ConflictError
        ``duplicate_username`` if the username is already taken.
    """
    username = _require_text(username, "username")
    password = _require_text(password, "password")
    email = _require_text(email, "email")
    if len(username) > USERNAME_MAX_LENGTH:
        raise ValidationError(
            f"Username cannot exceed {USERNAME_MAX_LENGTH} characters",
            code="invalid_username",
        )

    hasher = hasher or get_hasher()
    password_hash = hasher.hash(password)

    try:
        with get_session(engine) as session:
            existing = session.scalar(select(User.id).where(User.username == username))
            if existing is not None:
                raise _duplicate_username()

            user = User(
                username=username,
                password_hash=password_hash,
                email=email,
                picture_path=picture_path or DEFAULT_PICTURE_PATH,
                is_admin=is_admin,
            )
            session.add(user)
            session.flush()
            session.refresh(user)
            view = account_view(session, user)
    except IntegrityError as exc:
        raise _duplicate_username() from exc

    logger.info("Registered account %s (%s)", view.id, view.username)
    return view


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_account(engine, user_id: str) -> AccountView:
    """Return the account or raise ``NotFoundError(code="account_not_found")``."""
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise account_not_found()
        return account_view(session, user)


def list_accounts(engine) -> list[AccountView]:
    with get_session(engine) as session:
        users = session.scalars(select(User).order_by(User.joined_at, User.id)).all()
        return [account_view(session, u) for u in users]


def verify_credentials(
    engine,
    username: str,
    password: str,
    *,
    hasher: PasswordHasher | None = None,
) -> AccountView:
    """Look up *username* and check *password* against the stored hash.

    Unknown usernames and wrong passwords raise the same
    ``AuthError(code="wrong_credentials")`` so callers cannot tell which
    half was wrong; an unknown username still runs a dummy bcrypt verify so
    the two failures take the same time.
    """
    if not username or not password:
        raise ValidationError(
            "Please provide a username and password", code="missing_credentials"
        )
    hasher = hasher or get_hasher()
    with get_session(engine) as session:
        user = session.scalar(select(User).where(User.username == username))
        if user is None:
            hasher.dummy_verify()
            raise AuthError(WRONG_CREDENTIALS, code="wrong_credentials")
        if not hasher.verify(password, user.password_hash):
            raise AuthError(WRONG_CREDENTIALS, code="wrong_credentials")
        return account_view(session, user)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------
def update_account(engine, user_id: str, changes: AccountUpdate) -> AccountView:
    """Apply *changes* to the account; untouched fields keep their value.

    Raises
    ------
    NotFoundError
        Unknown account.
    ValidationError
        A provided field has the wrong type or is blank.
    ConflictError
        ``duplicate_username`` if renaming onto a taken username.
    """
    values = changes.provided()
    if "username" in values:
        values["username"] = _require_text(values["username"], "username")
        if len(values["username"]) > USERNAME_MAX_LENGTH:
            raise ValidationError(
                f"Username cannot exceed {USERNAME_MAX_LENGTH} characters",
                code="invalid_username",
            )
    if "email" in values:
        values["email"] = _require_text(values["email"], "email")
    if "picture_path" in values:
        values["picture_path"] = values["picture_path"] or DEFAULT_PICTURE_PATH
    if "is_admin" in values and not isinstance(values["is_admin"], bool):
        raise ValidationError("is_admin must be a boolean", code="invalid_is_admin")

    try:
        with get_session(engine) as session:
            user = session.get(User, user_id)
            if user is None:
                raise account_not_found()

            new_name = values.get("username")
            if new_name is not None and new_name != user.username:
                taken = session.scalar(
                    select(User.id).where(User.username == new_name, User.id != user_id)
                )
                if taken is not None:
                    raise _duplicate_username()

            for key, value in values.items():
                setattr(user, key, value)
            session.flush()
            view = account_view(session, user)
    except IntegrityError as exc:
        raise _duplicate_username() from exc

    if values:
        logger.info("Updated account %s fields=%s", user_id, sorted(values))
    return view


def change_password(
    engine,
    user_id: str,
    old_password: str,
    new_password: str,
    *,
    hasher: PasswordHasher | None = None,
) -> None:
    """Replace the password after verifying the old one.

    Tokens issued before the change stay valid until they expire or are
    logged out.

    Raises
    ------
    ValidationError
        Either password missing.
    NotFoundError
        Unknown account.
    AuthError
        ``mismatch`` if *old_password* does not verify.
    """
    if not old_password or not new_password:
        raise ValidationError(
            "Please provide a old and new password", code="missing_password"
        )
    hasher = hasher or get_hasher()
    new_hash = hasher.hash(new_password)

    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise account_not_found()
        if not hasher.verify(old_password, user.password_hash):
            logger.info("Password change rejected for %s: old password mismatch", user_id)
            raise AuthError("Mismatched passwords.", code="mismatch")
        user.password_hash = new_hash

    logger.info("Password changed for account %s", user_id)


def delete_account(engine, user_id: str) -> None:
    """Hard-delete the account and everything that references it."""
    with get_session(engine) as session:
        user = session.get(User, user_id)
        if user is None:
            raise account_not_found()
        session.execute(
            delete(Friendship).where(
                or_(Friendship.user_id == user_id, Friendship.friend_id == user_id)
            )
        )
        session.execute(delete(UserCosmetic).where(UserCosmetic.user_id == user_id))
        session.execute(delete(GameSession).where(GameSession.owner_id == user_id))
        session.delete(user)

    logger.info("Deleted account %s", user_id)
