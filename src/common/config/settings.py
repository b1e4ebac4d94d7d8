"""Application settings and environment variables."""

import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


class Settings:
    # Storage backend: "memory" keeps everything in-process, "mysql" uses the DB_* settings
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "memory")

    DB_HOST: str = os.getenv("DB_HOST", "localhost")
    DB_DATABASE: str = os.getenv("DB_NAME", "ppe_inventory_db")
    DB_USER: str = os.getenv("DB_USER", "user")
    DB_PASSWORD: str = os.getenv("DB_PASSWORD", "password")

    TIMEZONE: str = os.getenv("TIMEZONE", "America/Santiago")

    # Ledger defaults
    DEFAULT_MIN_STOCK: int = int(os.getenv("DEFAULT_MIN_STOCK", "10"))
    FALLBACK_CATEGORY: str = os.getenv("FALLBACK_CATEGORY", "Generales")

    # Alert windows (days)
    EXPIRATION_WARNING_DAYS: int = int(os.getenv("EXPIRATION_WARNING_DAYS", "30"))
    EXPIRATION_CRITICAL_DAYS: int = int(os.getenv("EXPIRATION_CRITICAL_DAYS", "5"))
    RENEWAL_WARNING_DAYS: int = int(os.getenv("RENEWAL_WARNING_DAYS", "30"))

    # "json" keeps drafts across restarts, "memory" only for the running process
    DRAFTS_BACKEND: str = os.getenv("DRAFTS_BACKEND", "json")
    # Bulk form drafts live here, one JSON file per draft
    DRAFTS_DIR: str = os.getenv("DRAFTS_DIR", os.path.join(os.path.expanduser("~"), ".ppe_inventory", "drafts"))

    SEED_DATA_PATH: Optional[str] = os.getenv(
        "SEED_DATA_PATH", os.path.join(os.path.dirname(__file__), "seed_inventory.json")
    )

    DASHBOARD_REPORT_TIME: str = os.getenv("DASHBOARD_REPORT_TIME", "08:00")
    DASHBOARD_SCHEDULE_ENABLED: bool = _env_bool("DASHBOARD_SCHEDULE_ENABLED", False)

    # Logging settings
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")  # INFO, DEBUG, WARNING, ERROR, CRITICAL


settings = Settings()
