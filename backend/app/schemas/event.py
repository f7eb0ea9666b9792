from __future__ import annotations

import re
from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

EventType = Literal[
    "sunday_service",
    "prayer_meeting",
    "bible_study",
    "youth_group",
    "special_event",
    "other",
]

_HHMM = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


def _check_hhmm(v: Optional[str]) -> Optional[str]:
    if v is None or v == "":
        return None
    if not _HHMM.match(v):
        raise ValueError("Time must be HH:MM (24h)")
    return v


# ---------- Core DTOs ----------

class EventBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: EventType = "sunday_service"
    organizer: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_recurring: bool = False
    recurring_pattern: Optional[Literal["weekly", "monthly"]] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: Optional[str]) -> Optional[str]:
        return _check_hhmm(v)

    @model_validator(mode="after")
    def _end_after_start(self) -> "EventBase":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self


class EventCreate(EventBase):
    """Payload for creating an event."""


class EventUpdate(BaseModel):
    """Patch-style update; all fields optional."""
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    event_type: Optional[EventType] = None
    organizer: Optional[str] = Field(None, max_length=100)
    location: Optional[str] = Field(None, max_length=200)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    is_recurring: Optional[bool] = None
    recurring_pattern: Optional[Literal["weekly", "monthly"]] = None
    max_attendees: Optional[int] = Field(None, ge=1)
    is_active: Optional[bool] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def _hhmm(cls, v: Optional[str]) -> Optional[str]:
        return _check_hhmm(v)


class EventRead(EventBase):
    id: int
    church_id: int
    external_check_in_enabled: bool = False
    created_at: datetime
    updated_at: datetime


class EventAttendanceCount(BaseModel):
    event_id: int
    event_name: str
    total: int
    members: int
    visitors: int


class EventAttendanceStats(BaseModel):
    event_id: int
    total: int
    members: int
    visitors: int
    male: int
    female: int
    child: int
    adolescent: int
    adult: int
    dates: int


# ---------- External check-in ----------

class ExternalToggle(BaseModel):
    enabled: bool


class ExternalCheckInSettings(BaseModel):
    event_id: int
    event_name: str
    enabled: bool
    url: Optional[str] = None
    pin: Optional[str] = None
    full_url: Optional[str] = None


class PublicEventInfo(BaseModel):
    """What an unauthenticated kiosk sees for an enabled event."""
    event_id: int
    event_name: str
    description: Optional[str] = None
    location: Optional[str] = None
    start_date: Optional[date] = None
    start_time: Optional[str] = None
    church_id: int
    church_name: str
    brand_color: Optional[str] = None


class ExternalCheckInRequest(BaseModel):
    pin: str = Field(..., min_length=6, max_length=6)
    member_id: int

    @field_validator("pin")
    @classmethod
    def _digits(cls, v: str) -> str:
        if not (v.isascii() and v.isdigit()):
            raise ValueError("PIN must be 6 digits")
        return v


class ExternalCheckInResult(BaseModel):
    success: bool
    attendance_id: int
    member_name: str
    event_name: str
    message: str
