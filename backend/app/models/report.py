from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class ReportConfig(Base):
    """Saved report definition an admin can re-run."""
    __tablename__ = "report_configs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    report_type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    frequency: Mapped[str] = mapped_column(String(20), nullable=False, server_default="on-demand")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true", default=True)
    created_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("church_users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ReportRun(Base):
    __tablename__ = "report_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )
    report_config_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("report_configs.id", ondelete="CASCADE"), nullable=True, index=True
    )
    run_by_id: Mapped[Optional[int]] = mapped_column(
        Integer, ForeignKey("church_users.id", ondelete="SET NULL"), nullable=True
    )
    parameters: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    file_path: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    generated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
