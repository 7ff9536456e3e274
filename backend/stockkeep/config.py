# backend/stockkeep/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key (also signs bearer tokens)
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockkeep.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///stockkeep.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # "sql" (structured database) or "document" (flat JSON documents)
    STORAGE_BACKEND = os.environ.get("STOCKKEEP_BACKEND", "sql")
    # Directory holding one JSON document per collection; empty keeps it in memory
    DOCUMENT_STORE_PATH = os.environ.get("DOCUMENT_STORE_PATH", "")

    # bcrypt cost factor for PIN digests
    PIN_HASH_ROUNDS = int(os.environ.get("PIN_HASH_ROUNDS", "12"))
    TOKEN_MAX_AGE_SECONDS = int(os.environ.get("TOKEN_MAX_AGE_SECONDS", str(12 * 60 * 60)))

    AUTO_CREATE_SCHEMA = _env_flag("AUTO_CREATE_SCHEMA", True)
    SEED_DEFAULT_DATA = _env_flag("SEED_DEFAULT_DATA", True)
    SEED_SAMPLE_ITEMS = _env_flag("SEED_SAMPLE_ITEMS", False)

    # When true, item creation and its initial-stock ledger entry commit together
    STRICT_INITIAL_STOCK = _env_flag("STRICT_INITIAL_STOCK", False)

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
