"""
Highroller — Accounts, Currency & Cosmetics Backend for a Casino Web App
========================================================================
Owns player identities, virtual-currency balances, the cosmetic catalogue
and each player's inventory, plus simple statistics over recorded game
sessions.  Gameplay itself lives elsewhere; it only appends session
records here.

Package layout::

    highroller/
    ├── config.py          # YAML → typed Python config + logging setup
    ├── constants.py       # Cosmetic categories, equip slots, game types
    ├── errors.py          # Typed error taxonomy (code + message + status)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine, session helper, async bridge
    │   └── models.py      # ORM models (users, cosmetics, games, …)
    ├── engine/
    │   ├── money.py       # Amount parsing / validation
    │   ├── passwords.py   # bcrypt hashing via passlib
    │   ├── tokens.py      # JWT issuance/validation + revocation sets
    │   └── stats.py       # Pure win/loss aggregation
    ├── services/
    │   ├── account_service.py    # Registration, profile, password
    │   ├── auth_service.py       # Login / logout
    │   ├── ledger_service.py     # Credit, debit, purchase
    │   ├── inventory_service.py  # Equip / unequip
    │   ├── cosmetic_service.py   # Admin catalogue CRUD
    │   ├── social_service.py     # Friend list
    │   ├── stats_service.py      # Player stats + leaderboards
    │   ├── game_service.py       # Game-session records
    │   └── views.py              # Frozen read models returned by services
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Dependency injection (engine, config, identity)
        └── routes/        # users, cosmetics, leaderboard, games
"""

__version__ = "0.1.0"
