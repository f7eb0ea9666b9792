# app/models/member.py
from __future__ import annotations

from sqlalchemy import (
    Boolean,
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
from sqlalchemy.orm import relationship

from app.db import Base


class Member(Base):
    __tablename__ = "members"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True)

    title = Column(String(20), nullable=True)
    first_name = Column(String(100), nullable=False)
    surname = Column(String(100), nullable=False)
    gender = Column(String(10), nullable=False)       # male | female
    age_group = Column(String(20), nullable=False)    # child | adolescent | adult

    phone = Column(String(40), nullable=True)
    email = Column(String(255), nullable=True)
    whatsapp_number = Column(String(40), nullable=True)
    address = Column(Text, nullable=True)
    date_of_birth = Column(Date, nullable=True)
    wedding_anniversary = Column(Date, nullable=True)

    is_current_member = Column(Boolean, nullable=False, server_default=text("true"), default=True)

    # Opaque id from the (mock) scanner; unique per church, checked in the service
    fingerprint_id = Column(String(100), nullable=True, index=True)

    # Parent/child link (depth 1 in practice)
    parent_id = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True, index=True)

    # Family unit grouping; independent of parent_id
    family_group_id = Column(String(64), nullable=True, index=True)
    relationship_to_head = Column(String(20), nullable=True)
    is_family_head = Column(Boolean, nullable=False, server_default=text("false"), default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())

    children = relationship(
        "Member",
        back_populates="parent",
        order_by="Member.first_name",
    )
    parent = relationship("Member", back_populates="children", remote_side=[id])

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.surname}".strip()

    def __repr__(self) -> str:
        return f"<Member id={self.id} name={self.full_name!r} church={self.church_id}>"
