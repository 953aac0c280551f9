"""
highroller.api.deps — FastAPI dependency injection
==================================================
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy import Engine

from highroller.config import HighrollerConfig, load_config
from highroller.database.engine import create_db_engine
from highroller.engine.tokens import Identity, TokenAuthority
from highroller.errors import ForbiddenError, NotFoundError
from highroller.services import account_service, auth_service

_WEAK_SECRETS = frozenset({
    "highroller-dev-secret-change-me",
    "change-me",
    "secret",
    "dev",
    "",
})

_MIN_SECRET_LENGTH = 32


def _load_jwt_secret() -> str:
    """Load and validate JWT_SECRET from the environment.

    Raises RuntimeError at import time if the secret is missing, blank,
    too short (< 32 chars), or a known weak default.
    """
    secret = os.getenv("JWT_SECRET", "")
    if not secret:
        raise RuntimeError(
            "JWT_SECRET environment variable is not set. "
            "Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(64))\""
        )
    if secret in _WEAK_SECRETS:
        raise RuntimeError(
            f"JWT_SECRET is set to a known weak default ('{secret}'). "
            "Please set a strong, unique secret."
        )
    if len(secret) < _MIN_SECRET_LENGTH:
        raise RuntimeError(
            f"JWT_SECRET is too short ({len(secret)} chars). "
            f"Minimum length is {_MIN_SECRET_LENGTH} characters."
        )
    return secret


JWT_SECRET: str = _load_jwt_secret()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


@lru_cache(maxsize=1)
def get_config() -> HighrollerConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_authority() -> TokenAuthority:
    return auth_service.build_authority(get_config(), JWT_SECRET, get_engine())


def get_identity(
    authorization: Annotated[str | None, Header()] = None,
    authority: TokenAuthority = Depends(get_authority),
) -> Identity:
    """Resolve the caller from the bearer token.  Raises 401 if invalid."""
    return authority.authenticate(authorization)


def require_admin(
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
) -> Identity:
    """Like :func:`get_identity` but also requires the admin flag.

    The flag is read from the account row, not the token claim, so a
    demoted admin loses access before their token expires.
    """
    try:
        account = account_service.get_account(engine, identity.user_id)
    except NotFoundError:
        raise ForbiddenError("Admin access required", code="not_admin") from None
    if not account.is_admin:
        raise ForbiddenError("Admin access required", code="not_admin")
    return identity


def ensure_self_or_admin(identity: Identity, engine: Engine, target_id: str) -> None:
    """Raise 403 unless the caller is *target_id* or an admin."""
    if identity.user_id == target_id:
        return
    require_admin(identity, engine)
