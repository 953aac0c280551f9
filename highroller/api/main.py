"""
highroller.api.main — FastAPI application entry point
=====================================================

Run with::

    uvicorn highroller.api.main:app --reload --port 8000
"""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

load_dotenv()

from highroller import __version__  # noqa: E402
from highroller.api.deps import get_config, get_engine  # noqa: E402
from highroller.api.routes.cosmetics import router as cosmetics_router  # noqa: E402
from highroller.api.routes.games import router as games_router  # noqa: E402
from highroller.api.routes.leaderboard import router as leaderboard_router  # noqa: E402
from highroller.api.routes.users import router as users_router  # noqa: E402
from highroller.config import configure_logging  # noqa: E402
from highroller.database.engine import init_db  # noqa: E402
from highroller.engine.passwords import configure_hasher  # noqa: E402
from highroller.errors import HighrollerError  # noqa: E402

logger = logging.getLogger(__name__)


def _cors_origins() -> list[str]:
    """Resolve allowed CORS origins from env with safe defaults.

    Priority:
      1) CORS_ALLOW_ORIGINS (comma-separated)
      2) FRONTEND_URL (single origin)
    """
    raw = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if raw:
        return [origin.strip().rstrip("/") for origin in raw.split(",") if origin.strip()]

    frontend_url = os.getenv("FRONTEND_URL", "").strip()
    if frontend_url:
        return [frontend_url.rstrip("/")]

    return []


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — logging, hashing cost, schema."""
    cfg = get_config()
    configure_logging(cfg.log_level)
    configure_hasher(cfg.bcrypt_rounds)

    engine = get_engine()
    init_db(engine)
    logger.info("%s API started — engine ready (%s)", cfg.app_name, engine.url.database)
    yield
    logger.info("%s API shutting down", cfg.app_name)


app = FastAPI(
    title="Highroller API",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(HighrollerError)
async def highroller_error_handler(request: Request, exc: HighrollerError):
    if exc.status_code >= 500:
        logger.warning("%s %s failed: %s", request.method, request.url.path, exc.code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Mount routers
app.include_router(users_router, prefix="/api")
app.include_router(cosmetics_router, prefix="/api")
app.include_router(leaderboard_router, prefix="/api")
app.include_router(games_router, prefix="/api")


@app.get("/api/health")
def health():
    return {"status": "ok"}
