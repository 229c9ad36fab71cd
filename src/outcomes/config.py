from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Environment-driven settings, read once at import time."""

    # Free-form deployment label, reported by /api/v1/system/info.
    app_env: str = os.getenv("APP_ENV", "development")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # SQL document store; the in-memory repositories are used otherwise.
    database_url: Optional[str] = os.getenv("DATABASE_URL")
    use_sql_repos: bool = _flag("USE_SQL_REPOS")

    # X-API-Key authentication. API_KEYS is comma-separated; an entry written
    # as "key:username" acts as that stored user, a bare key as an admin.
    enable_api_auth: bool = _flag("ENABLE_API_AUTH")
    api_keys: Optional[str] = os.getenv("API_KEYS")

    # Comma-separated origins, "*" for any.
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    # Patient access codes: life once activated ("4h", "2d", "1w"), which a
    # department may override, and the largest batch created per request.
    default_code_life: str = os.getenv("DEFAULT_CODE_LIFE", "4h")
    access_code_batch_max: int = int(os.getenv("ACCESS_CODE_BATCH_MAX", "10"))

    registration_code_valid_days: int = int(os.getenv("REGISTRATION_CODE_VALID_DAYS", "30"))


settings = Settings()
