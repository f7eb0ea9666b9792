# backend/app/models/__init__.py
"""
Central model registry.

Import this once at startup (e.g., in main.py) so SQLAlchemy sees all mapped
classes before relationships are configured, and so Alembic autogenerate and
`Base.metadata.create_all` see every table.
"""
from app.db import Base  # re-export Base

from .church import Church, ChurchUser  # noqa: F401
from .member import Member  # noqa: F401
from .visitor import Visitor  # noqa: F401
from .event import Event  # noqa: F401
from .attendance import AttendanceRecord, CheckInMethod  # noqa: F401
from .follow_up import FollowUpRecord  # noqa: F401
from .report import ReportConfig, ReportRun  # noqa: F401

__all__ = [
    "Base",
    "Church",
    "ChurchUser",
    "Member",
    "Visitor",
    "Event",
    "AttendanceRecord",
    "CheckInMethod",
    "FollowUpRecord",
    "ReportConfig",
    "ReportRun",
]
