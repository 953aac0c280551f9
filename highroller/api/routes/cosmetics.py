"""
highroller.api.routes.cosmetics — Catalogue endpoints
=====================================================

Reads are public; create/update/delete require an admin token.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from highroller.api.deps import get_engine, require_admin
from highroller.database.engine import run_db
from highroller.engine.tokens import Identity
from highroller.services import cosmetic_service

router = APIRouter(prefix="/cosmetics", tags=["cosmetics"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class CosmeticCreate(BaseModel):
    name: str | None = None
    category: str | None = None
    resource_path: str | None = None
    price: Any = 0


class CosmeticPatch(BaseModel):
    name: str | None = None
    category: str | None = None
    resource_path: str | None = None
    price: Any = None


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
@router.get("")
async def list_cosmetics(
    min_price: float | None = Query(None),
    max_price: float | None = Query(None),
    category: str | None = Query(None),
    engine: Engine = Depends(get_engine),
):
    items = await run_db(
        cosmetic_service.list_cosmetics,
        engine,
        min_price=min_price,
        max_price=max_price,
        category=category,
    )
    return [i.to_dict() for i in items]


@router.get("/name/{name}")
async def get_by_name(name: str, engine: Engine = Depends(get_engine)):
    item = await run_db(cosmetic_service.get_cosmetic_by_name, engine, name)
    return item.to_dict()


@router.get("/{item_id}")
async def get_cosmetic(item_id: str, engine: Engine = Depends(get_engine)):
    item = await run_db(cosmetic_service.get_cosmetic, engine, item_id)
    return item.to_dict()


# ---------------------------------------------------------------------------
# Admin mutations
# ---------------------------------------------------------------------------
@router.post("", status_code=201)
async def create_cosmetic(
    body: CosmeticCreate,
    admin: Identity = Depends(require_admin),
    engine: Engine = Depends(get_engine),
):
    item = await run_db(
        cosmetic_service.create_cosmetic,
        engine,
        name=body.name,
        category=body.category,
        price=body.price,
        resource_path=body.resource_path,
        actor_id=admin.user_id,
    )
    return item.to_dict()


@router.patch("/{item_id}")
async def update_cosmetic(
    item_id: str,
    body: CosmeticPatch,
    admin: Identity = Depends(require_admin),
    engine: Engine = Depends(get_engine),
):
    changes = cosmetic_service.CosmeticUpdate(**body.model_dump(exclude_unset=True))
    item = await run_db(
        cosmetic_service.update_cosmetic, engine, item_id, changes, actor_id=admin.user_id
    )
    return item.to_dict()


@router.delete("/{item_id}")
async def delete_cosmetic(
    item_id: str,
    admin: Identity = Depends(require_admin),
    engine: Engine = Depends(get_engine),
):
    await run_db(cosmetic_service.delete_cosmetic, engine, item_id, actor_id=admin.user_id)
    return {"message": "Cosmetic deleted"}
