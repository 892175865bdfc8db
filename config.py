"""
config.py
Application settings, read from the environment (and .env) once at startup.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

DEFAULT_DB_FILE = Path(__file__).with_name("gym.db")
SEVEN_DAYS = 7 * 24 * 60 * 60


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in ("0", "false", "no", "off", "")


@dataclass(frozen=True)
class Config:
    database_path: Path = DEFAULT_DB_FILE
    secret_key: str = "dev-secret-change-me"
    token_max_age: int = SEVEN_DAYS
    bcrypt_rounds: int = 12
    frontend_url: str = "http://localhost:5173"
    auto_expire: bool = True
    currency_symbol: str = "₹"
    log_level: str = "INFO"
    port: int = 5000

    @classmethod
    def from_env(cls, env_file: str | None = None) -> "Config":
        """
        Build settings from environment variables.
        Values in a .env file are loaded first but never override real env vars.
        """
        load_dotenv(env_file)
        return cls(
            database_path=Path(os.getenv("GYM_DB_PATH", str(DEFAULT_DB_FILE))),
            secret_key=os.getenv("SECRET_KEY", "dev-secret-change-me"),
            token_max_age=int(os.getenv("TOKEN_MAX_AGE", str(SEVEN_DAYS))),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            frontend_url=os.getenv("FRONTEND_URL", "http://localhost:5173"),
            auto_expire=_env_bool("AUTO_EXPIRE", True),
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            port=int(os.getenv("PORT", "5000")),
        )
