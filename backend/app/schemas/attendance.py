# app/schemas/attendance.py
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.schemas.member import MemberRead

CheckInMethodName = Literal["manual", "fingerprint", "family", "visitor", "external"]


# ---------- Writes ----------

class AttendanceCreate(BaseModel):
    """Generic check-in: exactly one of member_id / visitor_id."""
    member_id: Optional[int] = None
    visitor_id: Optional[int] = None
    event_id: Optional[int] = None
    attendance_date: Optional[date] = None
    check_in_method: CheckInMethodName = "manual"
    is_guest: Optional[bool] = None

    @model_validator(mode="after")
    def _one_person(self) -> "AttendanceCreate":
        if (self.member_id is None) == (self.visitor_id is None):
            raise ValueError("Provide exactly one of member_id or visitor_id")
        return self


class AttendanceRead(BaseModel):
    id: int
    church_id: int
    event_id: Optional[int] = None
    member_id: Optional[int] = None
    visitor_id: Optional[int] = None
    attendance_date: date
    check_in_time: datetime
    check_in_method: str
    is_guest: bool
    visitor_name: Optional[str] = None
    visitor_gender: Optional[str] = None
    visitor_age_group: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class DuplicateCheckInBody(BaseModel):
    """409 body for a second check-in of the same person on the same day."""
    detail: str
    is_duplicate: bool = True
    existing_id: Optional[int] = None


# ---------- Mixed member / visitor rows ----------

class MemberAttendanceRow(BaseModel):
    kind: Literal["member"] = "member"
    id: int
    attendance_date: date
    check_in_time: datetime
    check_in_method: str
    event_id: Optional[int] = None
    event_name: Optional[str] = None
    member_id: int
    name: str
    gender: str
    age_group: str
    phone: Optional[str] = None
    email: Optional[str] = None
    is_current_member: bool = True


class VisitorAttendanceRow(BaseModel):
    kind: Literal["visitor"] = "visitor"
    id: int
    attendance_date: date
    check_in_time: datetime
    check_in_method: str
    event_id: Optional[int] = None
    event_name: Optional[str] = None
    visitor_id: int
    name: str
    gender: Optional[str] = None
    age_group: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None


AttendanceRow = Annotated[
    Union[MemberAttendanceRow, VisitorAttendanceRow],
    Field(discriminator="kind"),
]


# ---------- Stats ----------

class AttendanceStats(BaseModel):
    attendance_date: date
    total: int = 0
    male: int = 0
    female: int = 0
    child: int = 0
    adolescent: int = 0
    adult: int = 0


class AttendanceRangeStats(BaseModel):
    start_date: date
    end_date: date
    total_days: int
    total_attendance: int
    average_per_day: float
    member_attendance: int
    visitor_attendance: int
    gender: Dict[str, int]
    age_group: Dict[str, int]


class AttendanceDateRange(BaseModel):
    earliest: date
    latest: date


# ---------- Fingerprint ----------

class FingerprintEnroll(BaseModel):
    member_id: int
    fingerprint_id: Optional[str] = Field(None, max_length=100)
    event_id: Optional[int] = None
    check_in: bool = True


class FingerprintEnrollResult(BaseModel):
    member: MemberRead
    fingerprint_id: str
    check_in_success: bool
    is_duplicate: bool = False
    message: str


class FingerprintScan(BaseModel):
    fingerprint_id: Optional[str] = Field(None, max_length=100)
    device_id: str = Field("default", max_length=100)
    event_id: Optional[int] = None


class FingerprintScanResult(BaseModel):
    member: Optional[MemberRead] = None
    check_in_success: bool
    is_duplicate: bool = False
    scanned_fingerprint_id: Optional[str] = None
    message: str


# ---------- Family ----------

class FamilyCheckIn(BaseModel):
    parent_id: int
    # None -> every linked child; [] -> parent only
    children_ids: Optional[List[int]] = None
    event_id: Optional[int] = None


FamilyStatus = Literal["checked_in", "duplicate", "not_found", "not_linked"]


class FamilyMemberResult(BaseModel):
    member_id: int
    name: Optional[str] = None
    role: Literal["parent", "child"]
    status: FamilyStatus
    attendance_id: Optional[int] = None


class FamilyCheckInResult(BaseModel):
    parent_id: int
    attendance_date: date
    checked_in: int
    skipped: int
    results: List[FamilyMemberResult]
    message: str
