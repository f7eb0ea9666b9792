from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from app.db import Base


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    church_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text(), nullable=True)
    # sunday_service | prayer_meeting | bible_study | youth_group | special_event | other
    event_type: Mapped[str] = mapped_column(String(30), nullable=False, server_default="sunday_service")
    organizer: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    location: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    start_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    end_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    start_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)   # "HH:MM"
    end_time: Mapped[Optional[str]] = mapped_column(String(5), nullable=True)
    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false", default=False)
    recurring_pattern: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # weekly | monthly
    max_attendees: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true", default=True)

    # Public self-service check-in; url and pin are cleared whenever disabled
    external_check_in_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default="false", default=False
    )
    external_check_in_url: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, unique=True)
    external_check_in_pin: Mapped[Optional[str]] = mapped_column(String(6), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} name={self.name!r} church={self.church_id}>"
