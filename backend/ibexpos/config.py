# backend/ibexpos/config.py
from __future__ import annotations
import os

from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def resolve_database_url(environ=None) -> str:
    """
    Pick the database URL the way the desktop and web builds do.

    DB_ENV=local prefers DATABASE_URL_LOCAL and falls back to DATABASE_URL when it is
    unset. Anything else uses DATABASE_URL. Without either, a local SQLite file is used.
    """
    environ = os.environ if environ is None else environ
    if environ.get("DB_ENV", "cloud").strip().lower() == "local":
        local_url = environ.get("DATABASE_URL_LOCAL")
        if local_url:
            return local_url
    return environ.get("DATABASE_URL") or "sqlite:///ibexpos.sqlite3"


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    SQLALCHEMY_DATABASE_URI = resolve_database_url()
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Cost factor for bcrypt password hashes
    BCRYPT_ROUNDS = int(os.environ.get("BCRYPT_ROUNDS", "10"))

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Apply backend/migrations/sql/*.sql on startup
    RUN_SQL_MIGRATIONS = _env_flag("RUN_SQL_MIGRATIONS")
    SQL_MIGRATIONS_DIR = os.environ.get(
        "SQL_MIGRATIONS_DIR",
        os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "migrations", "sql"),
    )

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:4173,http://127.0.0.1:4173",
        ).split(",")
        if origin.strip()
    ]

    # Flat delay between merchant registration attempts
    REGISTRATION_RETRY_DELAY = float(os.environ.get("REGISTRATION_RETRY_DELAY", "1.0"))
