from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DateRange(BaseModel):
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _ordered(self) -> "DateRange":
        if self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self


# ---------- Matrix ----------

class MatrixCell(BaseModel):
    present: bool
    status: Literal["YES", "NO"]
    check_in_time: Optional[datetime] = None
    check_in_method: Optional[str] = None


class MatrixRow(BaseModel):
    member_id: int
    member_name: str
    first_name: str
    surname: str
    title: Optional[str] = None
    gender: str
    age_group: str
    phone: Optional[str] = None
    attendance: Dict[str, MatrixCell]
    total_present: int
    total_absent: int
    attendance_percentage: float


class MatrixSummary(BaseModel):
    total_members: int
    total_dates: int
    start_date: date
    end_date: date
    average_attendance_percentage: float


class MatrixReport(BaseModel):
    type: Literal["matrix"] = "matrix"
    attendance_dates: List[date]
    data: List[MatrixRow]
    summary: MatrixSummary


# ---------- Absence ----------

class MissedServicesRow(BaseModel):
    member_id: int
    first_name: str
    surname: str
    phone: Optional[str] = None
    email: Optional[str] = None
    gender: str
    age_group: str
    is_current_member: bool
    last_attendance: Optional[date] = None
    weeks_absent: Optional[int] = None


# ---------- Supplementary reports ----------

class WeeklyAttendanceRow(BaseModel):
    attendance_date: date
    gender: Optional[str] = None
    age_group: Optional[str] = None
    count: int


class GroupTrendRow(BaseModel):
    week_start: date
    age_group: Optional[str] = None
    count: int


class NewMemberRow(BaseModel):
    member_id: int
    first_name: str
    surname: str
    gender: str
    age_group: str
    phone: Optional[str] = None
    created_at: datetime


class FamilyCheckInSummaryRow(BaseModel):
    attendance_date: date
    parent_id: Optional[int] = None
    parent_name: Optional[str] = None
    members_checked_in: int


class FollowUpTrackerRow(BaseModel):
    member_id: int
    first_name: str
    surname: str
    phone: Optional[str] = None
    consecutive_absences: int
    needs_follow_up: bool
    last_contact_date: Optional[datetime] = None
    contact_method: Optional[str] = None


# ---------- Saved configs and runs ----------

class ReportConfigCreate(BaseModel):
    report_type: str = Field(..., max_length=50)
    title: str = Field(..., max_length=200)
    description: Optional[str] = None
    frequency: Literal["weekly", "monthly", "on-demand"] = "on-demand"
    is_active: bool = True


class ReportConfigRead(ReportConfigCreate):
    id: int
    church_id: int
    created_by_id: Optional[int] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReportRunCreate(BaseModel):
    report_config_id: Optional[int] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)
    file_path: Optional[str] = Field(None, max_length=500)


class ReportRunRead(ReportRunCreate):
    id: int
    church_id: int
    run_by_id: Optional[int] = None
    generated_at: datetime

    model_config = ConfigDict(from_attributes=True)
