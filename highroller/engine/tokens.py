"""
highroller.engine.tokens — Bearer Token Authority
=================================================

Issues and validates HS256 JWTs and consults an injected revocation set.

Token lifecycle::

    Issued ──► Valid ──► Expired   (natural expiry, default 1 hour)
                  └────► Revoked   (explicit logout)

Both terminal states are final: a revoked token is rejected even while its
signature and expiry are still good.

Two revocation backends share the :class:`RevocationStore` protocol:

* :class:`MemoryRevocationSet` — lock-guarded in-process set, pruned by
  expiry.  Fine for a single API process.
* :class:`DatabaseRevocationSet` — ``revoked_tokens`` table, survives
  restarts and is shared by every worker.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol

import jwt
from jwt.exceptions import InvalidTokenError
from sqlalchemy import Engine, delete, select
from sqlalchemy.exc import IntegrityError

from highroller.database.engine import get_session
from highroller.database.models import RevokedToken
from highroller.errors import AuthError

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"
DEFAULT_TTL = timedelta(hours=1)
BEARER_PREFIX = "Bearer "

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _normalize_dt(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass(frozen=True, slots=True)
class Identity:
    """Who is calling — resolved from a valid, unrevoked token."""

    user_id: str
    is_admin: bool
    token: str
    expires_at: datetime


# ---------------------------------------------------------------------------
# Revocation stores
# ---------------------------------------------------------------------------
class RevocationStore(Protocol):
    def add(self, token: str, expires_at: datetime) -> None:
        ...

    def contains(self, token: str) -> bool:
        ...

    def prune(self) -> int:
        ...


class MemoryRevocationSet:
    """Thread-safe in-memory revocation set.

    Entries are dropped once the token's own expiry passes — by then the
    signature check rejects it anyway, so the set stays bounded by the
    number of logouts per token lifetime.
    """

    def __init__(self, clock: Clock = _utcnow) -> None:
        self._entries: dict[str, datetime] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def add(self, token: str, expires_at: datetime) -> None:
        with self._lock:
            self._prune_locked()
            # setdefault keeps the first revocation; a second call is a no-op
            self._entries.setdefault(token, _normalize_dt(expires_at))

    def contains(self, token: str) -> bool:
        with self._lock:
            return token in self._entries

    def prune(self) -> int:
        with self._lock:
            return self._prune_locked()

    def _prune_locked(self) -> int:
        now = self._clock()
        expired = [t for t, exp in self._entries.items() if exp <= now]
        for t in expired:
            del self._entries[t]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class DatabaseRevocationSet:
    """Revocation list persisted in ``revoked_tokens``.

    Tokens are stored as SHA-256 digests — the raw bearer string never hits
    the database.
    """

    def __init__(self, engine: Engine, clock: Clock = _utcnow) -> None:
        self.engine = engine
        self._clock = clock

    @staticmethod
    def _digest(token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()

    def add(self, token: str, expires_at: datetime) -> None:
        digest = self._digest(token)
        try:
            with get_session(self.engine) as session:
                session.execute(
                    delete(RevokedToken).where(RevokedToken.expires_at <= self._clock())
                )
                if session.get(RevokedToken, digest) is None:
                    session.add(RevokedToken(token_digest=digest, expires_at=expires_at))
                    session.flush()
        except IntegrityError:
            # A concurrent logout of the same token won the insert race.
            logger.debug("Token already revoked (concurrent insert)")

    def contains(self, token: str) -> bool:
        with get_session(self.engine) as session:
            found = session.scalar(
                select(RevokedToken.token_digest).where(
                    RevokedToken.token_digest == self._digest(token)
                )
            )
        return found is not None

    def prune(self) -> int:
        with get_session(self.engine) as session:
            result = session.execute(
                delete(RevokedToken).where(RevokedToken.expires_at <= self._clock())
            )
            return result.rowcount or 0


# ---------------------------------------------------------------------------
# Authority
# ---------------------------------------------------------------------------
class TokenAuthority:
    """Issues, validates and revokes bearer tokens.

    Parameters
    ----------
    secret:
        HMAC key for signing.  Validated by the API layer at startup.
    revocations:
        Any :class:`RevocationStore`.  Injected so tests and multi-worker
        deployments pick their own backend.
    ttl:
        Lifetime of newly issued tokens.
    """

    def __init__(
        self,
        secret: str,
        revocations: RevocationStore,
        *,
        ttl: timedelta = DEFAULT_TTL,
        clock: Clock = _utcnow,
    ) -> None:
        self._secret = secret
        self.revocations = revocations
        self.ttl = ttl
        self._clock = clock

    def issue_token(self, user_id: str, is_admin: bool = False) -> str:
        now = self._clock()
        payload = {
            "sub": user_id,
            "is_admin": bool(is_admin),
            "iat": now,
            "exp": now + self.ttl,
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret, algorithm=JWT_ALGORITHM)

    def authenticate(self, authorization: str | None) -> Identity:
        """Resolve the caller from an ``Authorization: Bearer <token>`` header.

        Raises
        ------
        AuthError
            ``missing_token`` — header absent or not a bearer header.
            ``revoked`` — token was logged out.
            ``invalid_or_expired`` — bad signature, malformed, or expired.
        """
        token = self._extract(authorization)
        if self.revocations.contains(token):
            raise AuthError("Token has been revoked", code="revoked")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[JWT_ALGORITHM],
                options={"require": ["exp", "sub"]},
            )
        except InvalidTokenError as exc:
            raise AuthError("Invalid JWT token", code="invalid_or_expired") from exc

        user_id = payload.get("sub")
        if not isinstance(user_id, str) or not user_id:
            raise AuthError("Invalid JWT token", code="invalid_or_expired")
        expires_at = datetime.fromtimestamp(payload["exp"], tz=UTC)
        return Identity(
            user_id=user_id,
            is_admin=bool(payload.get("is_admin", False)),
            token=token,
            expires_at=expires_at,
        )

    def revoke(self, token: str) -> None:
        """Add *token* to the revocation set.  Revoking twice is a no-op."""
        expires_at = self._expiry_of(token)
        self.revocations.add(token, expires_at)
        logger.info("Token revoked (natural expiry %s)", expires_at.isoformat())

    def _expiry_of(self, token: str) -> datetime:
        """Natural expiry of *token*, read without verifying the signature.

        Falls back to now + ttl for undecodable input so the entry still
        ages out eventually.
        """
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
            return datetime.fromtimestamp(int(claims["exp"]), tz=UTC)
        except (InvalidTokenError, KeyError, TypeError, ValueError):
            return self._clock() + self.ttl

    @staticmethod
    def _extract(authorization: str | None) -> str:
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise AuthError("Missing JWT token", code="missing_token")
        token = authorization[len(BEARER_PREFIX):].strip()
        if not token:
            raise AuthError("Missing JWT token", code="missing_token")
        return token
