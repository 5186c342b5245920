# src/duelrank/config.py

"""Runtime configuration for DuelRank.

Values are read from the environment (prefix ``DUELRANK_``) or a local
``.env`` file. Nested validation rules use ``__`` as the delimiter, e.g.
``DUELRANK_VALIDATION__USERNAME_MAX_LENGTH=30``.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

RESERVED_USERNAMES = frozenset({"admin", "system", "anonymous", "guest", "moderator"})


class ValidationRules(BaseModel):
    """Validation constants injected into the validators and the update engine."""

    username_min_length: int = 3
    username_max_length: int = 50
    username_pattern: str = r"^[a-zA-Z0-9_-]+$"
    reserved_usernames: frozenset[str] = RESERVED_USERNAMES

    email_max_length: int = 100
    email_pattern: str = r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$"

    password_min_length: int = 8
    password_max_length: int = 128
    password_require_uppercase: bool = True
    password_require_lowercase: bool = True
    password_require_digit: bool = True
    password_require_special: bool = False

    rating_min: int = 0
    rating_max: int = 5000
    rating_default: int = 1000


class Settings(BaseSettings):
    model_config = {
        "env_prefix": "DUELRANK_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "env_nested_delimiter": "__",
        "extra": "ignore",
    }

    # Database
    database_url: str = "sqlite+aiosqlite:///./duelrank.db"
    db_echo: bool = False
    db_pool_size: int = 20
    db_max_overflow: int = 10
    db_pool_recycle: int = 3600
    create_tables_on_startup: bool = False

    # Elo rating system
    elo_k_factor: int = 32

    # Update engine leases and retries
    lock_timeout_seconds: float = 5.0
    update_max_retries: int = 3
    update_retry_backoff_seconds: float = 0.05

    # Query bounds
    leaderboard_default_limit: int = 50
    search_default_limit: int = 20
    match_history_default_limit: int = 10
    max_page_size: int = 100

    validation: ValidationRules = Field(default_factory=ValidationRules)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings instance."""
    return Settings()
