"""
highroller.api.routes.users — Account, wallet, inventory & friends
===================================================================

Everything under ``/users/me`` acts on the account behind the bearer
token.  Business rules live in the services; this module only maps
requests onto them.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from highroller.api.deps import (
    ensure_self_or_admin,
    get_authority,
    get_engine,
    get_identity,
    require_admin,
)
from highroller.constants import DEFAULT_RECENT_GAMES
from highroller.database.engine import run_db
from highroller.engine.tokens import Identity, TokenAuthority
from highroller.services import (
    account_service,
    auth_service,
    inventory_service,
    ledger_service,
    social_service,
    stats_service,
)

router = APIRouter(prefix="/users", tags=["users"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class RegisterRequest(BaseModel):
    username: str | None = None
    password: str | None = None
    email: str | None = None
    picture_path: str | None = None


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


class PasswordChange(BaseModel):
    old_password: str | None = None
    new_password: str | None = None


class AccountPatch(BaseModel):
    username: str | None = None
    email: str | None = None
    picture_path: str | None = None
    is_admin: bool | None = None


class AmountRequest(BaseModel):
    # Kept loose so "abc" or true reach the ledger and get invalid_amount
    amount: Any = None


class ItemRequest(BaseModel):
    item_id: str | None = None


class EquipRequest(BaseModel):
    slot: str
    item_id: str | None = None


class SlotRequest(BaseModel):
    slot: str


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
@router.post("/register", status_code=201)
async def register(body: RegisterRequest, engine: Engine = Depends(get_engine)):
    account = await run_db(
        account_service.register,
        engine,
        body.username,
        body.password,
        body.email,
        picture_path=body.picture_path,
    )
    return account.to_dict()


@router.post("/login")
async def login(
    body: LoginRequest,
    engine: Engine = Depends(get_engine),
    authority: TokenAuthority = Depends(get_authority),
):
    account, token = await run_db(
        auth_service.login, engine, authority, body.username, body.password
    )
    return {"token": token, "user": account.to_dict()}


@router.post("/logout")
async def logout(
    identity: Identity = Depends(get_identity),
    authority: TokenAuthority = Depends(get_authority),
):
    await run_db(auth_service.logout, authority, identity)
    return {"message": "Logged out"}


# ---------------------------------------------------------------------------
# Current account
# ---------------------------------------------------------------------------
@router.get("/me")
async def me(identity: Identity = Depends(get_identity), engine: Engine = Depends(get_engine)):
    account = await run_db(account_service.get_account, engine, identity.user_id)
    return account.to_dict()


@router.get("/me/stats")
async def my_stats(
    identity: Identity = Depends(get_identity), engine: Engine = Depends(get_engine)
):
    stats = await run_db(stats_service.compute_stats, engine, identity.user_id)
    return stats.to_dict()


@router.get("/me/games")
async def my_games(
    count: int = Query(DEFAULT_RECENT_GAMES),
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    games = await run_db(stats_service.recent_games, engine, identity.user_id, count)
    return [g.to_dict() for g in games]


@router.put("/me/password")
async def change_password(
    body: PasswordChange,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    await run_db(
        account_service.change_password,
        engine,
        identity.user_id,
        body.old_password,
        body.new_password,
    )
    return {"message": "Password updated"}


# ---------------------------------------------------------------------------
# Wallet
# ---------------------------------------------------------------------------
@router.get("/me/balance")
async def balance(
    identity: Identity = Depends(get_identity), engine: Engine = Depends(get_engine)
):
    value = await run_db(ledger_service.get_balance, engine, identity.user_id)
    return {"balance": float(value)}


@router.post("/me/balance/credit")
async def credit(
    body: AmountRequest,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    value = await run_db(ledger_service.credit, engine, identity.user_id, body.amount)
    return {"balance": float(value)}


@router.post("/me/balance/debit")
async def debit(
    body: AmountRequest,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    value = await run_db(ledger_service.debit, engine, identity.user_id, body.amount)
    return {"balance": float(value)}


@router.post("/me/purchase")
async def purchase(
    body: ItemRequest,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    value = await run_db(ledger_service.purchase, engine, identity.user_id, body.item_id)
    return {"balance": float(value), "item_id": body.item_id}


# ---------------------------------------------------------------------------
# Inventory
# ---------------------------------------------------------------------------
@router.get("/me/cosmetics")
async def my_cosmetics(
    identity: Identity = Depends(get_identity), engine: Engine = Depends(get_engine)
):
    items = await run_db(inventory_service.list_owned, engine, identity.user_id)
    return [i.to_dict() for i in items]


@router.post("/me/equip")
async def equip(
    body: EquipRequest,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    item_id = await run_db(
        inventory_service.equip, engine, identity.user_id, body.item_id, body.slot
    )
    return {"slot": body.slot, "item_id": item_id}


@router.post("/me/unequip")
async def unequip(
    body: SlotRequest,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    await run_db(inventory_service.unequip, engine, identity.user_id, body.slot)
    return {"slot": body.slot, "item_id": None}


# ---------------------------------------------------------------------------
# Friends
# ---------------------------------------------------------------------------
@router.get("/me/friends")
async def friends(
    identity: Identity = Depends(get_identity), engine: Engine = Depends(get_engine)
):
    accounts = await run_db(social_service.list_friends, engine, identity.user_id)
    return [a.to_dict() for a in accounts]


@router.post("/me/friends/{target_id}")
async def add_friend(
    target_id: str,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    ids = await run_db(social_service.add_friend, engine, identity.user_id, target_id)
    return {"friends": ids}


@router.delete("/me/friends/{target_id}")
async def remove_friend(
    target_id: str,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    ids = await run_db(social_service.remove_friend, engine, identity.user_id, target_id)
    return {"friends": ids}


# ---------------------------------------------------------------------------
# Directory & administration
# ---------------------------------------------------------------------------
@router.get("")
async def list_users(
    _: Identity = Depends(get_identity), engine: Engine = Depends(get_engine)
):
    accounts = await run_db(account_service.list_accounts, engine)
    return [a.to_dict() for a in accounts]


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    _: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    account = await run_db(account_service.get_account, engine, user_id)
    return account.to_dict()


@router.patch("/{user_id}")
async def update_user(
    user_id: str,
    body: AccountPatch,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
):
    """Partial profile update.  Only fields present in the body are written."""
    provided = body.model_dump(exclude_unset=True)
    if "is_admin" in provided:
        # Only admins may grant or revoke the flag, including on themselves
        await run_db(require_admin, identity, engine)
    else:
        await run_db(ensure_self_or_admin, identity, engine, user_id)
    account = await run_db(
        account_service.update_account,
        engine,
        user_id,
        account_service.AccountUpdate(**provided),
    )
    return account.to_dict()


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    identity: Identity = Depends(get_identity),
    engine: Engine = Depends(get_engine),
    authority: TokenAuthority = Depends(get_authority),
):
    await run_db(ensure_self_or_admin, identity, engine, user_id)
    await run_db(account_service.delete_account, engine, user_id)
    if identity.user_id == user_id:
        await run_db(authority.revoke, identity.token)
    return {"message": "User deleted"}
