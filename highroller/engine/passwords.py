"""
highroller.engine.passwords — Password Hashing
==============================================

Thin wrapper around a passlib :class:`CryptContext` configured for bcrypt.
Verification always goes through ``CryptContext.verify`` (constant-time
comparison inside bcrypt); hashes are never compared as strings.  Lookups
that find no hash still pay for one bcrypt round via :meth:`dummy_verify`,
so response time does not reveal whether a username exists.
"""

from __future__ import annotations

from passlib.context import CryptContext

DEFAULT_ROUNDS = 10


class PasswordHasher:
    """Salted adaptive hashing with a configurable bcrypt cost factor."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        self.rounds = rounds
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        return self._context.hash(password)

    def verify(self, password: str, password_hash: str | None) -> bool:
        """Return True if *password* matches *password_hash*.

        A missing or malformed hash is treated as a mismatch rather than an
        error, so a corrupt row can never be logged into.
        """
        if not password_hash:
            self.dummy_verify()
            return False
        try:
            return self._context.verify(password, password_hash)
        except ValueError:
            return False

    def dummy_verify(self) -> None:
        """Spend the same bcrypt work as a real verify, for a missing account."""
        self._context.dummy_verify()


_default_hasher = PasswordHasher()


def get_hasher() -> PasswordHasher:
    """Return the process-wide hasher (replaced by :func:`configure_hasher`)."""
    return _default_hasher


def configure_hasher(rounds: int) -> PasswordHasher:
    """Rebuild the process-wide hasher with a new cost factor."""
    global _default_hasher
    _default_hasher = PasswordHasher(rounds)
    return _default_hasher
