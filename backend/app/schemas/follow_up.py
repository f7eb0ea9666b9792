from __future__ import annotations

from datetime import date, datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

ContactMethod = Literal["sms", "email", "phone", "whatsapp", "visit"]


class FollowUpContact(BaseModel):
    method: ContactMethod
    message: Optional[str] = None


class FollowUpRead(BaseModel):
    id: int
    member_id: int
    last_contact_date: Optional[datetime] = None
    contact_method: Optional[str] = None
    consecutive_absences: int
    needs_follow_up: bool
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class FollowUpMember(BaseModel):
    """Member joined with follow-up state for the staff work list."""
    member_id: int
    first_name: str
    surname: str
    phone: Optional[str] = None
    email: Optional[str] = None
    whatsapp_number: Optional[str] = None
    consecutive_absences: int
    last_attendance: Optional[date] = None
    last_contact_date: Optional[datetime] = None
    contact_method: Optional[str] = None


class AbsenceScanResult(BaseModel):
    flagged: int
    weeks: int
    message: str


class ContactResult(BaseModel):
    follow_up: FollowUpRead
    notified: bool
    message: str
