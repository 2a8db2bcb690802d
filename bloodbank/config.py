"""Environment-driven settings, applied with ``app.config.from_object``."""

import logging
import os

from .constants import CRITICAL_THRESHOLD as DEFAULT_CRITICAL_THRESHOLD


def _env_bool(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///blood_bank.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "sql")
    SEED_ON_STARTUP = _env_bool("SEED_ON_STARTUP")
    CRITICAL_THRESHOLD = int(os.environ.get("CRITICAL_THRESHOLD", str(DEFAULT_CRITICAL_THRESHOLD)))
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    HOST = os.environ.get("HOST", "0.0.0.0")
    PORT = int(os.environ.get("PORT", "5000"))


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or Config.LOG_LEVEL).upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
