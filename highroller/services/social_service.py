"""
highroller.services.social_service — Friend List
================================================

Friend edges are one-directional: A adding B does not make A a friend of
B.  Adding an existing friend and removing a non-friend are both
successful no-ops.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from highroller.database.engine import get_session
from highroller.database.models import Friendship, User
from highroller.errors import ConflictError, NotFoundError, ValidationError, account_not_found
from highroller.services.views import AccountView, account_view

logger = logging.getLogger(__name__)


def _validate_pair(user_id: str, target_id: str | None, verb: str) -> str:
    if not target_id:
        raise ValidationError("Please provide a friend id", code="missing_target")
    if user_id == target_id:
        raise ConflictError(f"You cannot {verb} yourself as a friend", code="self_friend")
    return target_id


def _friend_ids(session: Session, user_id: str) -> list[str]:
    return list(
        session.scalars(
            select(Friendship.friend_id)
            .where(Friendship.user_id == user_id)
            .order_by(Friendship.created_at, Friendship.friend_id)
        ).all()
    )


def add_friend(engine, user_id: str, target_id: str | None) -> list[str]:
    """Add *target_id* to the caller's friend set; returns the new set.

    Raises
    ------
    ValidationError
        ``missing_target``.
    ConflictError
        ``self_friend``.
    NotFoundError
        Either account is unknown.
    """
    target_id = _validate_pair(user_id, target_id, "add")
    try:
        with get_session(engine) as session:
            if session.get(User, user_id) is None:
                raise account_not_found()
            if session.get(User, target_id) is None:
                raise NotFoundError("Friend not found", code="friend_not_found")
            if session.get(Friendship, (user_id, target_id)) is None:
                session.add(Friendship(user_id=user_id, friend_id=target_id))
                session.flush()
                logger.info("Account %s added friend %s", user_id, target_id)
            friends = _friend_ids(session, user_id)
    except IntegrityError:
        # Same edge inserted concurrently; the set already holds it.
        with get_session(engine) as session:
            friends = _friend_ids(session, user_id)
    return friends


def remove_friend(engine, user_id: str, target_id: str | None) -> list[str]:
    """Remove *target_id* from the caller's friend set; returns the new set."""
    target_id = _validate_pair(user_id, target_id, "remove")
    with get_session(engine) as session:
        if session.get(User, user_id) is None:
            raise account_not_found()
        removed = session.execute(
            delete(Friendship)
            .where(Friendship.user_id == user_id, Friendship.friend_id == target_id)
            .execution_options(synchronize_session=False)
        ).rowcount
        if removed:
            logger.info("Account %s removed friend %s", user_id, target_id)
        return _friend_ids(session, user_id)


def list_friends(engine, user_id: str) -> list[AccountView]:
    with get_session(engine) as session:
        if session.get(User, user_id) is None:
            raise account_not_found()
        ids = _friend_ids(session, user_id)
        friends = [session.get(User, fid) for fid in ids]
        return [account_view(session, f) for f in friends if f is not None]
