"""
highroller.services.auth_service — Login / Logout
=================================================

Glue between the credential store and the token authority.  The HTTP layer
only ever calls these two functions plus :meth:`TokenAuthority.authenticate`.
"""

from __future__ import annotations

import logging
from datetime import timedelta

from sqlalchemy import Engine

from highroller.config import HighrollerConfig
from highroller.engine.passwords import PasswordHasher
from highroller.engine.tokens import (
    DatabaseRevocationSet,
    Identity,
    MemoryRevocationSet,
    RevocationStore,
    TokenAuthority,
)
from highroller.errors import AuthError
from highroller.services import account_service
from highroller.services.views import AccountView

logger = logging.getLogger(__name__)


def build_authority(cfg: HighrollerConfig, secret: str, engine: Engine) -> TokenAuthority:
    """Create the token authority with the revocation backend named in *cfg*."""
    revocations: RevocationStore
    if cfg.revocation_backend == "database":
        revocations = DatabaseRevocationSet(engine)
    else:
        revocations = MemoryRevocationSet()
    logger.info(
        "Token authority ready — ttl=%d min, revocations=%s",
        cfg.token_ttl_minutes, cfg.revocation_backend,
    )
    return TokenAuthority(
        secret, revocations, ttl=timedelta(minutes=cfg.token_ttl_minutes)
    )


def login(
    engine: Engine,
    authority: TokenAuthority,
    username: str,
    password: str,
    *,
    hasher: PasswordHasher | None = None,
) -> tuple[AccountView, str]:
    """Verify credentials and issue a fresh token.

    Raises
    ------
    AuthError
        ``wrong_credentials`` — deliberately the same for an unknown
        username and a wrong password.
    """
    try:
        account = account_service.verify_credentials(
            engine, username, password, hasher=hasher
        )
    except AuthError:
        logger.info("Failed login attempt for username %r", username)
        raise
    token = authority.issue_token(account.id, is_admin=account.is_admin)
    logger.info("Login: %s (%s)", account.username, account.id)
    return account, token


def logout(authority: TokenAuthority, identity: Identity) -> None:
    """Revoke the token the caller authenticated with."""
    authority.revoke(identity.token)
    logger.info("Logout: %s", identity.user_id)
