# app/models/visitor.py
from __future__ import annotations

from sqlalchemy import (
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
    text,
)

from app.db import Base


class Visitor(Base):
    """First-timer record; becomes a Member through promotion."""
    __tablename__ = "visitors"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True)
    # Set only by the attendance reconciliation job
    member_id = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String(200), nullable=False)
    gender = Column(String(10), nullable=True)
    age_group = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(40), nullable=True)
    whatsapp_number = Column(String(40), nullable=True)
    birthday = Column(Date, nullable=True)
    wedding_anniversary = Column(Date, nullable=True)

    prayer_points = Column(Text, nullable=True)
    how_did_you_hear_about_us = Column(String(100), nullable=True)
    comments = Column(Text, nullable=True)

    visit_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    # pending | contacted | member
    follow_up_status = Column(String(20), nullable=False, server_default=text("'pending'"), default="pending")
    assigned_to = Column(String(100), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
