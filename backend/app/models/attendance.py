# app/models/attendance.py
from __future__ import annotations

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
    func,
    text,
)
from sqlalchemy.orm import relationship

from app.db import Base


class CheckInMethod(str, enum.Enum):
    MANUAL = "manual"
    FINGERPRINT = "fingerprint"
    FAMILY = "family"
    VISITOR = "visitor"
    EXTERNAL = "external"


class AttendanceRecord(Base):
    """
    One row per check-in.

    Exactly one of member_id / visitor_id is set. Guest rows carry a
    snapshot of the visitor's name and demographics so reports stay
    stable when the Visitor row is edited later.
    """
    __tablename__ = "attendance_records"
    __table_args__ = (
        CheckConstraint(
            "(member_id IS NOT NULL AND visitor_id IS NULL) OR (member_id IS NULL AND visitor_id IS NOT NULL)",
            name="ck_attendance_one_person",
        ),
        UniqueConstraint("member_id", "attendance_date", name="uq_attendance_member_day"),
        UniqueConstraint("visitor_id", "attendance_date", name="uq_attendance_visitor_day"),
        Index("ix_attendance_church_date", "church_id", "attendance_date"),
    )

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=True, index=True)
    visitor_id = Column(Integer, ForeignKey("visitors.id", ondelete="CASCADE"), nullable=True, index=True)

    attendance_date = Column(Date, nullable=False)
    check_in_time = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    check_in_method = Column(String(20), nullable=False, server_default=text("'manual'"))
    is_guest = Column(Boolean, nullable=False, server_default=text("false"), default=False)

    visitor_name = Column(String(200), nullable=True)
    visitor_gender = Column(String(10), nullable=True)
    visitor_age_group = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    member = relationship("Member", lazy="joined")
    visitor = relationship("Visitor", lazy="joined")
    event = relationship("Event", lazy="joined")

    def __repr__(self) -> str:
        who = f"member={self.member_id}" if self.member_id else f"visitor={self.visitor_id}"
        return f"<AttendanceRecord id={self.id} {who} date={self.attendance_date} via={self.check_in_method}>"
