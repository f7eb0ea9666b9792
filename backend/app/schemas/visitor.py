# app/schemas/visitor.py
from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.schemas.member import AgeGroup, Gender, validate_phone

FollowUpStatus = Literal["pending", "contacted", "member"]


class VisitorBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    gender: Optional[Gender] = None
    age_group: Optional[AgeGroup] = None
    address: Optional[str] = None
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=40)
    whatsapp_number: Optional[str] = Field(None, max_length=40)
    birthday: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    prayer_points: Optional[str] = None
    how_did_you_hear_about_us: Optional[str] = Field(None, max_length=100)
    comments: Optional[str] = None
    assigned_to: Optional[str] = Field(None, max_length=100)

    model_config = ConfigDict(from_attributes=True)

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = " ".join(v.split())
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("phone", "whatsapp_number")
    @classmethod
    def _phone_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class VisitorCreate(VisitorBase):
    follow_up_status: FollowUpStatus = "pending"


class VisitorCheckIn(VisitorBase):
    """Visitor registration and attendance in one call."""
    event_id: Optional[int] = None


class VisitorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    gender: Optional[Gender] = None
    age_group: Optional[AgeGroup] = None
    address: Optional[str] = None
    email: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=40)
    whatsapp_number: Optional[str] = Field(None, max_length=40)
    birthday: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    prayer_points: Optional[str] = None
    how_did_you_hear_about_us: Optional[str] = Field(None, max_length=100)
    comments: Optional[str] = None
    follow_up_status: Optional[FollowUpStatus] = None
    assigned_to: Optional[str] = Field(None, max_length=100)

    @field_validator("phone", "whatsapp_number")
    @classmethod
    def _phone_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class VisitorRead(VisitorBase):
    id: int
    church_id: int
    member_id: Optional[int] = None
    follow_up_status: str
    visit_date: datetime
    created_at: datetime
    updated_at: datetime


class VisitorCheckInResult(BaseModel):
    visitor: VisitorRead
    attendance_id: int
    attendance_date: date
    message: str


class ReconcileResult(BaseModel):
    visitors_matched: int
    records_updated: int
    conflicts: int
    message: str
