# app/config.py
"""
Runtime settings read from the environment (.env is loaded first).

Everything that varies between a laptop, the test suite and a hosted
deployment lives here so routers and services never call os.getenv
directly.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date, datetime
from functools import lru_cache
from typing import List, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if not raw:
        return list(default)
    return [p.strip() for p in raw.split(",") if p.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./churchconnect.db"
    sql_echo: bool = False
    timezone: str = "UTC"
    log_level: str = "INFO"
    api_key_pepper: str = ""
    public_base_url: str = "http://localhost:8000"
    cors_origins: List[str] = field(default_factory=list)

    # SMTP; an empty host selects the logging notifier
    smtp_host: Optional[str] = None
    smtp_port: int = 587
    smtp_user: Optional[str] = None
    smtp_password: Optional[str] = None
    smtp_from: str = "noreply@churchconnect.local"
    smtp_tls: bool = True
    follow_up_notify_to: Optional[str] = None

    # absence scan window used by the periodic job
    absence_weeks: int = 3


def load_settings() -> Settings:
    return Settings(
        database_url=os.getenv("DATABASE_URL") or "sqlite:///./churchconnect.db",
        sql_echo=_env_bool("SQL_ECHO", False),
        timezone=os.getenv("TZ", "UTC"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        api_key_pepper=os.getenv("API_KEY_PEPPER", ""),
        public_base_url=os.getenv("PUBLIC_BASE_URL", "http://localhost:8000").rstrip("/"),
        cors_origins=_env_list(
            "CORS_ORIGINS",
            [
                "http://localhost:3000", "http://127.0.0.1:3000",
                "http://localhost:5173", "http://127.0.0.1:5173",
            ],
        ),
        smtp_host=os.getenv("SMTP_HOST") or None,
        smtp_port=_env_int("SMTP_PORT", 587),
        smtp_user=os.getenv("SMTP_USER") or None,
        smtp_password=os.getenv("SMTP_PASSWORD") or None,
        smtp_from=os.getenv("SMTP_FROM", "noreply@churchconnect.local"),
        smtp_tls=_env_bool("SMTP_TLS", True),
        follow_up_notify_to=os.getenv("FOLLOW_UP_NOTIFY_TO") or None,
        absence_weeks=_env_int("ABSENCE_WEEKS", 3),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()


def local_tz() -> ZoneInfo:
    return ZoneInfo(get_settings().timezone)


def now_local() -> datetime:
    return datetime.now(local_tz())


def today() -> date:
    """Calendar day used for check-ins, in the configured church timezone."""
    return now_local().date()
