# app/api/system.py
from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text

from app.config import get_settings, now_local
from app.db import engine

router = APIRouter(tags=["ops"])


def _db_driver_from_url(url: str | None) -> str | None:
    if not url or "://" not in url:
        return None
    scheme = url.split("://", 1)[0]  # e.g., "postgresql+psycopg2"
    if "+" in scheme:
        return scheme.split("+", 1)[1]  # "psycopg2"
    return scheme  # "sqlite"


@router.get("/health")
def health():
    """Liveness check with a lightweight DB probe and local time."""
    settings = get_settings()
    db = {"status": "ok", "driver": _db_driver_from_url(settings.database_url)}
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        db["status"] = f"error: {type(e).__name__}"

    return {
        "status": "ok",
        "time": {"tz": settings.timezone, "now": now_local().isoformat()},
        "db": db,
    }


@router.get("/version")
def version():
    """Minimal runtime info; confirms DB driver for the UI."""
    settings = get_settings()
    return {
        "app": "ChurchConnect Backend",
        "version": "0.1.0",
        "db_driver": _db_driver_from_url(settings.database_url),
        "tz": settings.timezone,
    }
