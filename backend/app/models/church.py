# app/models/church.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    Boolean,
    DateTime,
    ForeignKey,
    func,
    text,
)
from sqlalchemy.orm import relationship

from app.db import Base


class Church(Base):
    """Tenant boundary; almost every other row carries a church_id."""
    __tablename__ = "churches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    subdomain = Column(String(63), nullable=True, unique=True, index=True)
    brand_color = Column(String(20), nullable=True, server_default=text("'#6366f1'"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    users = relationship(
        "ChurchUser",
        back_populates="church",
        cascade="all, delete-orphan",
    )


class ChurchUser(Base):
    """Staff account authenticated by a hashed API key."""
    __tablename__ = "church_users"

    id = Column(Integer, primary_key=True, index=True)
    church_id = Column(Integer, ForeignKey("churches.id", ondelete="CASCADE"), nullable=False, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    display_name = Column(String(100), nullable=True)
    # admin | volunteer | data_viewer
    role = Column(String(20), nullable=False, server_default=text("'volunteer'"))
    api_key_hash = Column(String(64), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, server_default=text("true"))
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    church = relationship("Church", back_populates="users")
