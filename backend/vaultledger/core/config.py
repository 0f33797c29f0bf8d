# vaultledger/core/config.py

import os
from dataclasses import dataclass

# =========================
# DEFAULTS
# =========================

EDIT_WINDOW_SECONDS = 24 * 60 * 60
DEFAULT_RATE_LIMIT = "120/minute"


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _postgres_url() -> str:
    # Fallback when LEDGER_DATABASE_URL is not set
    db_user = os.getenv("DB_USER", "vaultledger_user")
    db_pass = os.getenv("DB_PASS", "vaultledger")
    db_host = os.getenv("DB_HOST", "localhost")
    db_port = os.getenv("DB_PORT", "5432")
    db_name = os.getenv("DB_NAME", "vaultledger")
    return f"postgresql://{db_user}:{db_pass}@{db_host}:{db_port}/{db_name}"


@dataclass(frozen=True)
class Settings:
    database_url: str
    admin: str
    edit_window_seconds: int = EDIT_WINDOW_SECONDS
    strict_expirable_reads: bool = False
    rate_limit: str = DEFAULT_RATE_LIMIT
    log_level: str = "INFO"
    echo_sql: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.
        LEDGER_DATABASE_URL wins over the DB_* variables.
        """
        return cls(
            database_url=os.getenv("LEDGER_DATABASE_URL") or _postgres_url(),
            admin=os.getenv("LEDGER_ADMIN", ""),
            edit_window_seconds=int(os.getenv("LEDGER_EDIT_WINDOW_SECONDS", EDIT_WINDOW_SECONDS)),
            strict_expirable_reads=_env_bool("LEDGER_STRICT_EXPIRABLE_READS"),
            rate_limit=os.getenv("LEDGER_RATE_LIMIT", DEFAULT_RATE_LIMIT),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            echo_sql=_env_bool("LEDGER_ECHO_SQL"),
        )
