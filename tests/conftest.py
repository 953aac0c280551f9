"""
tests/conftest.py — Shared Test Fixtures
========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of highroller.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from decimal import Decimal  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from highroller.database.models import Base  # noqa: E402
from highroller.engine.passwords import PasswordHasher, configure_hasher  # noqa: E402
from highroller.engine.tokens import MemoryRevocationSet, TokenAuthority  # noqa: E402
from highroller.services import account_service, cosmetic_service, ledger_service  # noqa: E402

# bcrypt's minimum cost keeps the suite fast; production uses config.bcrypt_rounds
TEST_BCRYPT_ROUNDS = 4


@pytest.fixture(autouse=True, scope="session")
def _fast_hasher():
    """Swap the process-wide hasher for a cheap one for the whole run."""
    configure_hasher(TEST_BCRYPT_ROUNDS)
    yield


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Highroller tables.

    Uses StaticPool so all threads share the same in-memory database
    (required by ``asyncio.to_thread`` used in ``run_db``).
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def file_engine(tmp_path) -> Engine:
    """File-backed SQLite engine with a real connection pool.

    Each thread gets its own connection, so concurrent writers actually
    contend for the database lock.
    """
    engine = create_engine(
        f"sqlite:///{tmp_path / 'highroller.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a transactional session that rolls back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=TEST_BCRYPT_ROUNDS)


@pytest.fixture
def revocations() -> MemoryRevocationSet:
    return MemoryRevocationSet()


@pytest.fixture
def authority(revocations) -> TokenAuthority:
    return TokenAuthority(os.environ["JWT_SECRET"], revocations)


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------
def make_account(
    engine: Engine,
    username: str = "alice",
    *,
    password: str = "hunter22",
    balance: Decimal | int | str = 0,
    is_admin: bool = False,
):
    """Register an account and optionally fund it.  Returns the AccountView."""
    account = account_service.register(
        engine, username, password, f"{username}@example.com", is_admin=is_admin
    )
    if Decimal(str(balance)) > 0:
        ledger_service.credit(engine, account.id, balance)
        account = account_service.get_account(engine, account.id)
    return account


def make_cosmetic(
    engine: Engine,
    name: str = "Gold Frame",
    *,
    category: str = "frame",
    price: Decimal | int | str = 100,
):
    return cosmetic_service.create_cosmetic(
        engine,
        name=name,
        category=category,
        price=price,
        resource_path=f"/assets/{name.lower().replace(' ', '-')}.png",
    )


@pytest.fixture
def alice(db_engine):
    return make_account(db_engine, "alice")


@pytest.fixture
def bob(db_engine):
    return make_account(db_engine, "bob")


# ---------------------------------------------------------------------------
# API
# ---------------------------------------------------------------------------
@pytest.fixture
def client(db_engine, authority):
    """FastAPI TestClient wired to the test database and token authority."""
    from fastapi.testclient import TestClient

    from highroller.api.deps import get_authority, get_config, get_engine
    from highroller.api.main import app
    from highroller.config import HighrollerConfig

    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_authority] = lambda: authority
    app.dependency_overrides[get_config] = lambda: HighrollerConfig(
        leaderboard_default_count=5
    )
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


def auth_header(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}
