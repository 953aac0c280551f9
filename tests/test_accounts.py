"""
tests/test_accounts.py — Credential Store & Login
=================================================
Registration, login/logout, password change, partial profile updates and
hard deletion.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from conftest import make_account, make_cosmetic
from sqlalchemy import func, select

from highroller.database.models import Friendship, GameSession, User, UserCosmetic
from highroller.errors import AuthError, ConflictError, NotFoundError, ValidationError
from highroller.services import account_service, auth_service, ledger_service, social_service
from highroller.services.account_service import AccountUpdate
from highroller.services.game_service import GameRecord, record_session


# ===========================================================================
# Registration
# ===========================================================================
class TestRegister:
    def test_defaults(self, db_engine):
        account = account_service.register(db_engine, "alice", "pw123456", "a@example.com")
        assert account.username == "alice"
        assert account.balance == Decimal("0")
        assert account.is_admin is False
        assert account.picture_path == "default"
        assert account.cosmetic_ids == ()
        assert account.friend_ids == ()
        assert account.joined_at is not None

    def test_password_is_hashed(self, db_engine, db_session):
        account = account_service.register(db_engine, "alice", "pw123456", "a@example.com")
        stored = db_session.get(User, account.id).password_hash
        assert stored != "pw123456"
        assert stored.startswith("$2")

    def test_duplicate_username(self, db_engine):
        account_service.register(db_engine, "alice", "pw1", "a@example.com")
        with pytest.raises(ConflictError) as exc:
            account_service.register(db_engine, "alice", "pw2", "other@example.com")
        assert exc.value.code == "duplicate_username"
        assert exc.value.status_code == 409

    def test_usernames_are_case_sensitive(self, db_engine):
        account_service.register(db_engine, "alice", "pw1", "a@example.com")
        account_service.register(db_engine, "Alice", "pw1", "b@example.com")

    @pytest.mark.parametrize(
        ("username", "password", "email", "code"),
        [
            ("", "pw", "a@example.com", "missing_username"),
            (None, "pw", "a@example.com", "missing_username"),
            ("alice", "", "a@example.com", "missing_password"),
            ("alice", "pw", None, "missing_email"),
        ],
    )
    def test_missing_fields(self, db_engine, username, password, email, code):
        with pytest.raises(ValidationError) as exc:
            account_service.register(db_engine, username, password, email)
        assert exc.value.code == code

    def test_overlong_username(self, db_engine):
        with pytest.raises(ValidationError) as exc:
            account_service.register(db_engine, "x" * 51, "pw", "a@example.com")
        assert exc.value.code == "invalid_username"


# ===========================================================================
# Login / logout
# ===========================================================================
class TestLogin:
    def test_register_then_login(self, db_engine, authority):
        account_service.register(db_engine, "alice", "secret-pw", "a@example.com")
        account, token = auth_service.login(db_engine, authority, "alice", "secret-pw")
        identity = authority.authenticate(f"Bearer {token}")
        assert identity.user_id == account.id

    def test_wrong_password_and_unknown_user_look_the_same(self, db_engine, authority):
        account_service.register(db_engine, "alice", "secret-pw", "a@example.com")
        with pytest.raises(AuthError) as wrong_pw:
            auth_service.login(db_engine, authority, "alice", "nope")
        with pytest.raises(AuthError) as unknown:
            auth_service.login(db_engine, authority, "mallory", "secret-pw")
        assert wrong_pw.value.code == unknown.value.code == "wrong_credentials"
        assert wrong_pw.value.message == unknown.value.message == "Wrong username or password"

    def test_unknown_user_still_runs_a_bcrypt_verify(self, db_engine, hasher, monkeypatch):
        calls = []
        real_dummy = hasher.dummy_verify
        monkeypatch.setattr(hasher, "dummy_verify", lambda: calls.append("dummy") or real_dummy())

        with pytest.raises(AuthError):
            account_service.verify_credentials(db_engine, "ghost", "pw", hasher=hasher)
        assert calls == ["dummy"]

    def test_known_user_uses_the_stored_hash(self, db_engine, hasher, monkeypatch):
        account_service.register(db_engine, "alice", "secret-pw", "a@example.com", hasher=hasher)
        calls = []
        real_verify = hasher.verify
        monkeypatch.setattr(hasher, "dummy_verify", lambda: calls.append("dummy"))
        monkeypatch.setattr(
            hasher, "verify", lambda pw, h: calls.append("verify") or real_verify(pw, h)
        )

        with pytest.raises(AuthError):
            account_service.verify_credentials(db_engine, "alice", "nope", hasher=hasher)
        assert calls == ["verify"]

    def test_missing_credentials(self, db_engine, authority):
        with pytest.raises(ValidationError):
            auth_service.login(db_engine, authority, "", "")

    def test_admin_login_carries_flag(self, db_engine, authority):
        make_account(db_engine, "root", password="rootpw", is_admin=True)
        _, token = auth_service.login(db_engine, authority, "root", "rootpw")
        assert authority.authenticate(f"Bearer {token}").is_admin is True

    def test_logout_revokes_only_that_token(self, db_engine, authority):
        make_account(db_engine, "alice", password="pw")
        _, first = auth_service.login(db_engine, authority, "alice", "pw")
        _, second = auth_service.login(db_engine, authority, "alice", "pw")

        auth_service.logout(authority, authority.authenticate(f"Bearer {first}"))

        with pytest.raises(AuthError) as exc:
            authority.authenticate(f"Bearer {first}")
        assert exc.value.code == "revoked"
        authority.authenticate(f"Bearer {second}")


# ===========================================================================
# Password change
# ===========================================================================
class TestChangePassword:
    def test_change_then_login_with_new(self, db_engine, authority):
        alice = make_account(db_engine, "alice", password="old-pw")
        account_service.change_password(db_engine, alice.id, "old-pw", "new-pw")

        auth_service.login(db_engine, authority, "alice", "new-pw")
        with pytest.raises(AuthError):
            auth_service.login(db_engine, authority, "alice", "old-pw")

    def test_wrong_old_password(self, db_engine):
        alice = make_account(db_engine, "alice", password="old-pw")
        with pytest.raises(AuthError) as exc:
            account_service.change_password(db_engine, alice.id, "guess", "new-pw")
        assert exc.value.code == "mismatch"
        assert exc.value.message == "Mismatched passwords."

    def test_existing_tokens_stay_valid(self, db_engine, authority):
        alice = make_account(db_engine, "alice", password="old-pw")
        _, token = auth_service.login(db_engine, authority, "alice", "old-pw")
        account_service.change_password(db_engine, alice.id, "old-pw", "new-pw")
        assert authority.authenticate(f"Bearer {token}").user_id == alice.id

    def test_missing_new_password(self, db_engine, alice):
        with pytest.raises(ValidationError):
            account_service.change_password(db_engine, alice.id, "hunter22", "")

    def test_unknown_account(self, db_engine):
        with pytest.raises(NotFoundError):
            account_service.change_password(db_engine, "ghost", "a", "b")


# ===========================================================================
# Profile update
# ===========================================================================
class TestUpdateAccount:
    def test_only_provided_fields_change(self, db_engine, alice):
        updated = account_service.update_account(
            db_engine, alice.id, AccountUpdate(email="new@example.com")
        )
        assert updated.email == "new@example.com"
        assert updated.username == "alice"
        assert updated.picture_path == "default"

    def test_empty_update_is_a_noop(self, db_engine, alice):
        updated = account_service.update_account(db_engine, alice.id, AccountUpdate())
        assert updated == alice

    def test_rename_onto_taken_username(self, db_engine, alice, bob):
        with pytest.raises(ConflictError) as exc:
            account_service.update_account(db_engine, bob.id, AccountUpdate(username="alice"))
        assert exc.value.code == "duplicate_username"

    def test_rename_to_own_name_is_fine(self, db_engine, alice):
        account_service.update_account(db_engine, alice.id, AccountUpdate(username="alice"))

    def test_picture_reset_to_default(self, db_engine, alice):
        account_service.update_account(db_engine, alice.id, AccountUpdate(picture_path="/p.png"))
        updated = account_service.update_account(
            db_engine, alice.id, AccountUpdate(picture_path=None)
        )
        assert updated.picture_path == "default"

    def test_is_admin_must_be_bool(self, db_engine, alice):
        with pytest.raises(ValidationError):
            account_service.update_account(db_engine, alice.id, AccountUpdate(is_admin="yes"))

    def test_balance_is_not_patchable(self):
        with pytest.raises(TypeError):
            AccountUpdate(balance=100)


# ===========================================================================
# Deletion
# ===========================================================================
class TestDeleteAccount:
    def test_hard_delete_removes_everything(self, db_engine, db_session):
        alice = make_account(db_engine, "alice", balance=500)
        bob = make_account(db_engine, "bob")
        frame = make_cosmetic(db_engine, price=100)
        ledger_service.purchase(db_engine, alice.id, frame.id)
        social_service.add_friend(db_engine, alice.id, bob.id)
        social_service.add_friend(db_engine, bob.id, alice.id)
        record_session(
            db_engine,
            GameRecord(owner_id=alice.id, game_type="plinko",
                       balance_at_start=400, balance_at_end=450),
        )

        account_service.delete_account(db_engine, alice.id)

        with pytest.raises(NotFoundError):
            account_service.get_account(db_engine, alice.id)
        count = lambda model, *where: db_session.scalar(  # noqa: E731
            select(func.count()).select_from(model).where(*where)
        )
        assert count(UserCosmetic, UserCosmetic.user_id == alice.id) == 0
        assert count(GameSession, GameSession.owner_id == alice.id) == 0
        assert count(Friendship) == 0
        assert account_service.get_account(db_engine, bob.id).friend_ids == ()

    def test_delete_unknown(self, db_engine):
        with pytest.raises(NotFoundError):
            account_service.delete_account(db_engine, "ghost")

    def test_username_is_free_again(self, db_engine, alice):
        account_service.delete_account(db_engine, alice.id)
        make_account(db_engine, "alice")


def test_list_accounts(db_engine, alice, bob):
    names = {a.username for a in account_service.list_accounts(db_engine)}
    assert names == {"alice", "bob"}
