# app/services/exports.py
"""CSV exports. Each function returns the text lines for a StreamingResponse."""
from __future__ import annotations

import calendar
import csv
import io
from datetime import date, datetime, timedelta
from typing import Any, Iterable, List, Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.visitor import Visitor
from app.schemas.report import MatrixReport
from app.services.attendance import get_attendance_counts_by_date, get_attendance_history
from app.services.members import list_members
from app.services.reports import get_attendance_stats_by_range, get_new_members_report

BOM = "\ufeff"

MEMBER_COLUMNS = [
    "Member Name", "Title", "First Name", "Surname", "Gender", "Age Group", "Phone", "Email",
    "WhatsApp Number", "Address", "Date of Birth", "Wedding Anniversary", "Current Member",
    "Fingerprint ID", "Parent ID", "Family Group ID", "Family Head", "Created At", "Updated At",
]

VISITOR_COLUMNS = [
    "ID", "Member ID", "Name", "Gender", "Age Group", "Address", "Email", "Phone", "WhatsApp",
    "Wedding Anniversary", "Birthday", "Prayer Points", "How Heard About Us", "Comments",
    "Visit Date", "Follow-up Status", "Assigned To", "Created At", "Updated At",
]

ATTENDANCE_COLUMNS = [
    "No.", "Name", "Gender", "Age Group", "Attendance Date", "Check-in Time", "Method",
    "Type", "Event", "Phone", "Email",
]

MATRIX_BASE_COLUMNS = ["No.", "Member Name", "First Name", "Surname", "Gender", "Age Group", "Phone", "Title"]


def _cell(v: Any) -> str:
    if v is None:
        return ""
    if isinstance(v, bool):
        return "Yes" if v else "No"
    if isinstance(v, datetime):
        return v.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(v, date):
        return v.isoformat()
    return str(v)


def _line(values: Sequence[Any]) -> str:
    buf = io.StringIO()
    csv.writer(buf, lineterminator="\n").writerow([_cell(v) for v in values])
    return buf.getvalue()


def _lines(header: Sequence[str], rows: Iterable[Sequence[Any]], bom: bool = False) -> List[str]:
    """Render eagerly; the session is gone by the time a streamed body is sent."""
    first = _line(header)
    return [(BOM + first) if bom else first] + [_line(row) for row in rows]


# ---------- members / visitors ----------

def members_csv(db: Session, church_id: int) -> List[str]:
    def rows():
        for m in list_members(db, church_id):
            yield [
                m.full_name, m.title, m.first_name, m.surname, m.gender, m.age_group, m.phone, m.email,
                m.whatsapp_number, m.address, m.date_of_birth, m.wedding_anniversary,
                bool(m.is_current_member), m.fingerprint_id, m.parent_id, m.family_group_id,
                bool(m.is_family_head), m.created_at, m.updated_at,
            ]
    return _lines(MEMBER_COLUMNS, rows())


def visitors_csv(db: Session, church_id: int) -> List[str]:
    stmt = select(Visitor).where(Visitor.church_id == church_id).order_by(Visitor.visit_date.desc(), Visitor.id.desc())

    def rows():
        for v in db.execute(stmt).scalars():
            yield [
                v.id, v.member_id, v.name, v.gender, v.age_group, v.address, v.email, v.phone,
                v.whatsapp_number, v.wedding_anniversary, v.birthday, v.prayer_points,
                v.how_did_you_hear_about_us, v.comments, v.visit_date, v.follow_up_status,
                v.assigned_to, v.created_at, v.updated_at,
            ]
    return _lines(VISITOR_COLUMNS, rows())


# ---------- attendance ----------

def attendance_csv(db: Session, church_id: int, start: date, end: date) -> List[str]:
    records = get_attendance_history(db, church_id, start, end)

    def rows():
        for i, r in enumerate(records, start=1):
            yield [
                i, r.name, r.gender, r.age_group, r.attendance_date,
                r.check_in_time.strftime("%H:%M:%S") if r.check_in_time else "",
                r.check_in_method, "Member" if r.kind == "member" else "Visitor",
                r.event_name, r.phone, r.email,
            ]
    return _lines(ATTENDANCE_COLUMNS, rows())


def month_bounds(year: int, month: int) -> tuple[date, date]:
    if not 1 <= month <= 12:
        raise ValueError("month must be between 1 and 12")
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def monthly_report_csv(db: Session, church_id: int, year: int, month: int) -> List[str]:
    """Summary block, new members block, then a week-by-week breakdown."""
    start, end = month_bounds(year, month)
    stats = get_attendance_stats_by_range(db, church_id, start, end)
    new_members = get_new_members_report(db, church_id, start, end)
    per_day = get_attendance_counts_by_date(db, church_id, start, end)

    out: List[List[Any]] = [
        [f"Monthly Report - {calendar.month_name[month]} {year}"],
        [],
        ["Summary"],
        ["Metric", "Value"],
        ["Total Service Days", stats.total_days],
        ["Total Attendance", stats.total_attendance],
        ["Average per Service", stats.average_per_day],
        ["Member Attendance", stats.member_attendance],
        ["Visitor Attendance", stats.visitor_attendance],
        ["Male", stats.gender["male"]],
        ["Female", stats.gender["female"]],
        ["Children", stats.age_group["child"]],
        ["Adolescents", stats.age_group["adolescent"]],
        ["Adults", stats.age_group["adult"]],
        ["New Members", len(new_members)],
        [],
        ["New Members"],
        ["Name", "Gender", "Age Group", "Phone", "Joined"],
    ]
    for m in new_members:
        out.append([f"{m.first_name} {m.surname}", m.gender, m.age_group, m.phone, m.created_at])

    out += [[], ["Weekly Breakdown"], ["Week", "Start", "End", "Attendance"]]
    week_start = start
    week_no = 1
    while week_start <= end:
        week_end = min(week_start + timedelta(days=6), end)
        total = sum(n for d, n in per_day.items() if week_start <= d <= week_end)
        out.append([f"Week {week_no}", week_start, week_end, total])
        week_start = week_end + timedelta(days=1)
        week_no += 1

    return [_line(r) for r in out]


# ---------- matrix ----------

def matrix_csv(report: MatrixReport) -> List[str]:
    header = (
        MATRIX_BASE_COLUMNS
        + [d.isoformat() for d in report.attendance_dates]
        + ["Total Present", "Total Absent", "Attendance %"]
    )

    def rows():
        for i, r in enumerate(report.data, start=1):
            yield (
                [i, r.member_name, r.first_name, r.surname, r.gender, r.age_group, r.phone, r.title]
                + [r.attendance[d.isoformat()].status for d in report.attendance_dates]
                + [r.total_present, r.total_absent, f"{r.attendance_percentage}%"]
            )
    return _lines(header, rows(), bom=True)
