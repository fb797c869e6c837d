from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import find_dotenv, load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./data/tasks.db"
DEFAULT_PORT = 3001


@dataclass(frozen=True)
class Settings:
    """
    Application settings loaded from environment variables.

    Env vars:
    - APP_ENV: 'development' (default), 'test' or 'production'. A local .env
      file is read unless this is 'production'.
    - PERSISTENCE_BACKEND: 'database' (default, SQLAlchemy) or 'memory'
    - DATABASE_URL: SQLAlchemy URL. Default 'sqlite:///./data/tasks.db'
    - DATABASE_ECHO: 'true' to log emitted SQL (default: false)
    - CORS_ALLOW_ORIGINS: comma-separated list of allowed origins; '*' by default
    - HOST / PORT: bind address for the server (default 0.0.0.0:3001)
    - LOG_LEVEL: console log level (default INFO)
    - LOG_FILE: optional path of a debug log file
    """

    app_env: str = "development"
    persistence_backend: str = "database"
    database_url: str = DEFAULT_DATABASE_URL
    database_url_from_env: bool = False
    database_echo: bool = False
    cors_allow_origins: List[str] = field(default_factory=lambda: ["*"])
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "INFO"
    log_file: Optional[str] = None


def _get_env(name: str, default: str) -> str:
    value = os.getenv(name, default)
    if value is None or value == "":
        return default
    return value


def _parse_bool(value: str, default: bool = False) -> bool:
    v = value.strip().lower()
    if v in {"1", "true", "yes", "on"}:
        return True
    if v in {"0", "false", "no", "off"}:
        return False
    return default


def _parse_int(value: str, default: int) -> int:
    try:
        return int(value.strip())
    except ValueError:
        return default


def _parse_origins(origins_value: str) -> List[str]:
    """
    Parse CORS origins from env. Supports:
    - '*' to allow all origins
    - Comma-separated list of origins
    """
    value = origins_value.strip()
    if value == "*":
        return ["*"]
    return [o.strip() for o in value.split(",") if o.strip()]


# PUBLIC_INTERFACE
def get_settings() -> Settings:
    """Return application settings loaded from environment variables (and .env outside production)."""
    app_env = _get_env("APP_ENV", "development").strip().lower()
    if app_env != "production":
        # Variables already set in the process environment take precedence
        load_dotenv(find_dotenv(usecwd=True), override=False)

    backend = _get_env("PERSISTENCE_BACKEND", "database").strip().lower()
    if backend not in {"database", "memory"}:
        logger.warning("Unsupported PERSISTENCE_BACKEND %r, using 'database'", backend)
        backend = "database"

    raw_url = os.getenv("DATABASE_URL")
    database_url = raw_url.strip() if raw_url and raw_url.strip() else DEFAULT_DATABASE_URL

    log_file = os.getenv("LOG_FILE")

    return Settings(
        app_env=app_env,
        persistence_backend=backend,
        database_url=database_url,
        database_url_from_env=bool(raw_url and raw_url.strip()),
        database_echo=_parse_bool(_get_env("DATABASE_ECHO", "false"), False),
        cors_allow_origins=_parse_origins(_get_env("CORS_ALLOW_ORIGINS", "*")),
        host=_get_env("HOST", "0.0.0.0").strip(),
        port=_parse_int(_get_env("PORT", str(DEFAULT_PORT)), DEFAULT_PORT),
        log_level=_get_env("LOG_LEVEL", "INFO").strip().upper(),
        log_file=log_file.strip() if log_file and log_file.strip() else None,
    )
