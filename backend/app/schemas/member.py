# app/schemas/member.py
from __future__ import annotations

import re
from datetime import date, datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

Gender = Literal["male", "female"]
AgeGroup = Literal["child", "adolescent", "adult"]
Relationship = Literal["head", "spouse", "child", "parent", "sibling", "other"]

PHONE_RE = re.compile(r"^\+?[\d\s\-()]+$")


def validate_phone(v: Optional[str]) -> Optional[str]:
    """Blank -> None; otherwise digits, spaces, dashes, parens and a leading +."""
    if v is None:
        return None
    v = v.strip()
    if not v:
        return None
    if not PHONE_RE.match(v):
        raise ValueError("Invalid phone number format")
    return v


def require_adult_phone(age_group: Optional[str], phone: Optional[str]) -> None:
    if age_group == "adult" and not (phone or "").strip():
        raise ValueError("Phone number is required for adults")


class MemberBase(BaseModel):
    title: Optional[str] = Field(None, max_length=20)
    first_name: str = Field(..., min_length=1, max_length=100)
    surname: str = Field(..., min_length=1, max_length=100)
    gender: Gender
    age_group: AgeGroup
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    whatsapp_number: Optional[str] = Field(None, max_length=40)
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    is_current_member: bool = True
    fingerprint_id: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[int] = None
    family_group_id: Optional[str] = Field(None, max_length=64)
    relationship_to_head: Optional[Relationship] = None
    is_family_head: bool = False

    model_config = ConfigDict(from_attributes=True)

    @field_validator("first_name", "surname")
    @classmethod
    def _strip_names(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v

    @field_validator("phone", "whatsapp_number")
    @classmethod
    def _phone_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)

    @field_validator("email", "fingerprint_id", "family_group_id", "title", "address")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip()
        return v or None


class MemberCreate(MemberBase):
    """Registration payload; adults must leave a phone number."""

    @model_validator(mode="after")
    def _adult_needs_phone(self) -> "MemberCreate":
        require_adult_phone(self.age_group, self.phone)
        return self


class MemberUpdate(BaseModel):
    """Patch-style update; the service re-checks the merged row."""
    title: Optional[str] = Field(None, max_length=20)
    first_name: Optional[str] = Field(None, min_length=1, max_length=100)
    surname: Optional[str] = Field(None, min_length=1, max_length=100)
    gender: Optional[Gender] = None
    age_group: Optional[AgeGroup] = None
    phone: Optional[str] = Field(None, max_length=40)
    email: Optional[str] = Field(None, max_length=255)
    whatsapp_number: Optional[str] = Field(None, max_length=40)
    address: Optional[str] = None
    date_of_birth: Optional[date] = None
    wedding_anniversary: Optional[date] = None
    is_current_member: Optional[bool] = None
    fingerprint_id: Optional[str] = Field(None, max_length=100)
    parent_id: Optional[int] = None
    family_group_id: Optional[str] = Field(None, max_length=64)
    relationship_to_head: Optional[Relationship] = None
    is_family_head: Optional[bool] = None

    model_config = ConfigDict(from_attributes=True)

    @field_validator("phone", "whatsapp_number")
    @classmethod
    def _phone_format(cls, v: Optional[str]) -> Optional[str]:
        return validate_phone(v)


class MemberRead(MemberBase):
    id: int
    church_id: int
    created_at: datetime
    updated_at: datetime


class MemberWithChildren(MemberRead):
    children: List[MemberRead] = Field(default_factory=list)


class BulkUploadResult(BaseModel):
    created: int
    total: int
    errors: List[str] = Field(default_factory=list)


class MemberAttendanceEntry(BaseModel):
    id: int
    attendance_date: date
    check_in_time: datetime
    check_in_method: str
    event_id: Optional[int] = None

    model_config = ConfigDict(from_attributes=True)
