"""
highroller.config — YAML Configuration Loader
==============================================

**Why this file exists:**
This module reads ``config.yaml`` for the *soft* settings of the service
(token lifetime, hashing cost, which revocation backend to use, …).
Secrets (``JWT_SECRET``, ``DATABASE_URL``) never live here — they come from
the environment / ``.env``.

Usage::

    from highroller.config import load_config

    cfg = load_config()          # reads ./config.yaml by default
    print(cfg.token_ttl_minutes) # 60
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

REVOCATION_BACKENDS = ("memory", "database")
LOG_FORMAT = "%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class HighrollerConfig:
    """Immutable configuration loaded from ``config.yaml``.

    Every field has a default so a fresh checkout runs without a config
    file; the file only needs the keys you want to change.
    """

    app_name: str = "Highroller"

    # Auth
    token_ttl_minutes: int = 60
    bcrypt_rounds: int = 10
    revocation_backend: str = "memory"  # memory | database

    # Leaderboards
    leaderboard_default_count: int = 10

    # Logging
    log_level: str = "INFO"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path | None = None) -> HighrollerConfig:
    """Read *path* and return a :class:`HighrollerConfig` instance.

    Parameters
    ----------
    path:
        Filesystem path to the YAML configuration file.  Defaults to
        ``$HIGHROLLER_CONFIG`` or ``config.yaml`` in the working directory.
        A missing file is not an error — defaults are used.

    Raises
    ------
    ValueError
        If a value is present but invalid (e.g. unknown revocation backend,
        bcrypt cost outside 4..31).
    """
    config_path = Path(path or os.getenv("HIGHROLLER_CONFIG", "config.yaml"))
    if not config_path.exists():
        logger.warning(
            "Configuration file not found: %s — using defaults", config_path.resolve()
        )
        return HighrollerConfig()

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    defaults = HighrollerConfig()
    cfg = HighrollerConfig(
        app_name=str(raw.get("app_name", defaults.app_name)),
        token_ttl_minutes=int(raw.get("token_ttl_minutes", defaults.token_ttl_minutes)),
        bcrypt_rounds=int(raw.get("bcrypt_rounds", defaults.bcrypt_rounds)),
        revocation_backend=str(
            raw.get("revocation_backend", defaults.revocation_backend)
        ).lower(),
        leaderboard_default_count=int(
            raw.get("leaderboard_default_count", defaults.leaderboard_default_count)
        ),
        log_level=str(raw.get("log_level", defaults.log_level)).upper(),
    )
    _validate(cfg)
    return cfg


def _validate(cfg: HighrollerConfig) -> None:
    if cfg.revocation_backend not in REVOCATION_BACKENDS:
        raise ValueError(
            f"revocation_backend must be one of {REVOCATION_BACKENDS}, "
            f"got {cfg.revocation_backend!r}"
        )
    if not 4 <= cfg.bcrypt_rounds <= 31:
        raise ValueError(f"bcrypt_rounds must be within 4..31, got {cfg.bcrypt_rounds}")
    if cfg.token_ttl_minutes <= 0:
        raise ValueError("token_ttl_minutes must be positive")
    if cfg.leaderboard_default_count <= 0:
        raise ValueError("leaderboard_default_count must be positive")


def configure_logging(level: str = "INFO") -> None:
    """Install the project-wide log format on the root logger."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
    )
