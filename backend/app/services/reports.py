# app/services/reports.py
"""
Attendance statistics and admin reports.

Demographics for a row come from the linked member when there is one and
otherwise from the visitor snapshot stored on the attendance record, so a
guest's numbers do not move when the Visitor row is edited later.
"""
from __future__ import annotations

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import and_, func, or_, select
from sqlalchemy.orm import Session, aliased

from app.config import today
from app.models.attendance import AttendanceRecord, CheckInMethod
from app.models.follow_up import FollowUpRecord
from app.models.member import Member
from app.models.report import ReportConfig, ReportRun
from app.schemas.attendance import AttendanceRangeStats, AttendanceStats
from app.schemas.report import (
    FamilyCheckInSummaryRow,
    FollowUpTrackerRow,
    GroupTrendRow,
    MatrixCell,
    MatrixReport,
    MatrixRow,
    MatrixSummary,
    MissedServicesRow,
    NewMemberRow,
    ReportConfigCreate,
    ReportRunCreate,
    WeeklyAttendanceRow,
)
from app.services.members import list_members

logger = logging.getLogger(__name__)

GENDERS = ("male", "female")
AGE_GROUPS = ("child", "adolescent", "adult")


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _gender_expr():
    return func.coalesce(Member.gender, AttendanceRecord.visitor_gender)


def _age_expr():
    return func.coalesce(Member.age_group, AttendanceRecord.visitor_age_group)


def _in_range(start: date, end: date):
    return and_(AttendanceRecord.attendance_date >= start, AttendanceRecord.attendance_date <= end)


def _check_range(start: date, end: date) -> None:
    if end < start:
        raise ValueError("end_date must be on or after start_date")


def _week_start(d: date) -> date:
    return d - timedelta(days=d.weekday())


def _demographic_counts(db: Session, church_id: int, *conds) -> List[Tuple[Optional[str], Optional[str], bool, int]]:
    """(gender, age_group, is_member, count) buckets for the matching rows."""
    gender = _gender_expr()
    age = _age_expr()
    is_member = AttendanceRecord.member_id.isnot(None)
    stmt = (
        select(gender, age, is_member, func.count(AttendanceRecord.id))
        .select_from(AttendanceRecord)
        .join(Member, Member.id == AttendanceRecord.member_id, isouter=True)
        .where(and_(AttendanceRecord.church_id == church_id, *conds))
        .group_by(gender, age, is_member)
    )
    return [(g, a, bool(m), int(n)) for g, a, m, n in db.execute(stmt)]


# ─────────────────────────────────────────────────────────────────────────────
# Stats
# ─────────────────────────────────────────────────────────────────────────────

def get_attendance_stats(db: Session, church_id: int, day: date) -> AttendanceStats:
    stats = AttendanceStats(attendance_date=day)
    for gender, age, _is_member, n in _demographic_counts(db, church_id, AttendanceRecord.attendance_date == day):
        stats.total += n
        if gender in GENDERS:
            setattr(stats, gender, getattr(stats, gender) + n)
        if age in AGE_GROUPS:
            setattr(stats, age, getattr(stats, age) + n)
    return stats


def get_attendance_stats_by_range(db: Session, church_id: int, start: date, end: date) -> AttendanceRangeStats:
    _check_range(start, end)
    gender_counts = {g: 0 for g in GENDERS}
    age_counts = {a: 0 for a in AGE_GROUPS}
    total = members = visitors = 0
    for gender, age, is_member, n in _demographic_counts(db, church_id, _in_range(start, end)):
        total += n
        if is_member:
            members += n
        else:
            visitors += n
        if gender in gender_counts:
            gender_counts[gender] += n
        if age in age_counts:
            age_counts[age] += n

    total_days = db.execute(
        select(func.count(func.distinct(AttendanceRecord.attendance_date))).where(
            and_(AttendanceRecord.church_id == church_id, _in_range(start, end))
        )
    ).scalar_one()

    return AttendanceRangeStats(
        start_date=start,
        end_date=end,
        total_days=int(total_days or 0),
        total_attendance=total,
        average_per_day=round(total / total_days, 2) if total_days else 0.0,
        member_attendance=members,
        visitor_attendance=visitors,
        gender=gender_counts,
        age_group=age_counts,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Absence
# ─────────────────────────────────────────────────────────────────────────────

def _last_attendance_rows(
    db: Session, church_id: int, weeks: int, current_only: bool
) -> List[Tuple[Member, Optional[date]]]:
    cutoff = today() - timedelta(days=weeks * 7)
    last = func.max(AttendanceRecord.attendance_date)
    conds = [Member.church_id == church_id]
    if current_only:
        conds.append(Member.is_current_member == True)  # noqa: E712
    stmt = (
        select(Member, last.label("last_attendance"))
        .join(AttendanceRecord, AttendanceRecord.member_id == Member.id, isouter=True)
        .where(and_(*conds))
        .group_by(Member.id)
        .having(or_(last.is_(None), last < cutoff))
        .order_by(Member.first_name, Member.surname, Member.id)
    )
    return [(m, d) for m, d in db.execute(stmt)]


def get_missed_services_report(
    db: Session, church_id: int, weeks: int = 3, current_only: bool = False
) -> List[MissedServicesRow]:
    """Members with no attendance at all, or none within the last `weeks` weeks."""
    if weeks < 1:
        raise ValueError("weeks must be at least 1")
    now = today()
    out: List[MissedServicesRow] = []
    for m, last in _last_attendance_rows(db, church_id, weeks, current_only):
        out.append(
            MissedServicesRow(
                member_id=m.id,
                first_name=m.first_name,
                surname=m.surname,
                phone=m.phone,
                email=m.email,
                gender=m.gender,
                age_group=m.age_group,
                is_current_member=bool(m.is_current_member),
                last_attendance=last,
                weeks_absent=((now - last).days // 7) if last else None,
            )
        )
    return out


def get_inactive_members_report(db: Session, church_id: int, weeks: int = 3) -> List[MissedServicesRow]:
    return get_missed_services_report(db, church_id, weeks=weeks, current_only=True)


# ─────────────────────────────────────────────────────────────────────────────
# Matrix
# ─────────────────────────────────────────────────────────────────────────────

def get_member_attendance_matrix(db: Session, church_id: int, start: date, end: date) -> MatrixReport:
    """
    One row per member of the church and one cell per distinct attendance
    date in range. Built from a sparse (member, date) lookup, so the cost is
    members x dates with a single query for the records.
    """
    _check_range(start, end)

    dates = [
        d
        for (d,) in db.execute(
            select(AttendanceRecord.attendance_date)
            .where(and_(AttendanceRecord.church_id == church_id, _in_range(start, end)))
            .group_by(AttendanceRecord.attendance_date)
            .order_by(AttendanceRecord.attendance_date)
        )
    ]

    lookup: Dict[Tuple[int, date], Tuple[datetime, str]] = {}
    for member_id, d, t, method in db.execute(
        select(
            AttendanceRecord.member_id,
            AttendanceRecord.attendance_date,
            AttendanceRecord.check_in_time,
            AttendanceRecord.check_in_method,
        ).where(
            and_(
                AttendanceRecord.church_id == church_id,
                AttendanceRecord.member_id.isnot(None),
                _in_range(start, end),
            )
        )
    ):
        lookup[(member_id, d)] = (t, method)

    rows: List[MatrixRow] = []
    for m in list_members(db, church_id):
        cells: Dict[str, MatrixCell] = {}
        present = 0
        for d in dates:
            hit = lookup.get((m.id, d))
            if hit:
                present += 1
                cells[d.isoformat()] = MatrixCell(
                    present=True, status="YES", check_in_time=hit[0], check_in_method=hit[1]
                )
            else:
                cells[d.isoformat()] = MatrixCell(present=False, status="NO")
        rows.append(
            MatrixRow(
                member_id=m.id,
                member_name=m.full_name,
                first_name=m.first_name,
                surname=m.surname,
                title=m.title,
                gender=m.gender,
                age_group=m.age_group,
                phone=m.phone,
                attendance=cells,
                total_present=present,
                total_absent=len(dates) - present,
                attendance_percentage=round(present * 100.0 / len(dates), 1) if dates else 0.0,
            )
        )

    avg = round(sum(r.attendance_percentage for r in rows) / len(rows), 1) if rows else 0.0
    return MatrixReport(
        attendance_dates=dates,
        data=rows,
        summary=MatrixSummary(
            total_members=len(rows),
            total_dates=len(dates),
            start_date=start,
            end_date=end,
            average_attendance_percentage=avg,
        ),
    )


# ─────────────────────────────────────────────────────────────────────────────
# Other admin reports
# ─────────────────────────────────────────────────────────────────────────────

def get_weekly_attendance_summary(db: Session, church_id: int, start: date, end: date) -> List[WeeklyAttendanceRow]:
    _check_range(start, end)
    gender = _gender_expr()
    age = _age_expr()
    stmt = (
        select(AttendanceRecord.attendance_date, gender, age, func.count(AttendanceRecord.id))
        .select_from(AttendanceRecord)
        .join(Member, Member.id == AttendanceRecord.member_id, isouter=True)
        .where(and_(AttendanceRecord.church_id == church_id, _in_range(start, end)))
        .group_by(AttendanceRecord.attendance_date, gender, age)
        .order_by(AttendanceRecord.attendance_date)
    )
    return [
        WeeklyAttendanceRow(attendance_date=d, gender=g, age_group=a, count=int(n))
        for d, g, a, n in db.execute(stmt)
    ]


def get_group_attendance_trend(db: Session, church_id: int, start: date, end: date) -> List[GroupTrendRow]:
    """Weekly (Monday-based) attendance per age group."""
    buckets: Dict[Tuple[date, Optional[str]], int] = defaultdict(int)
    for row in get_weekly_attendance_summary(db, church_id, start, end):
        buckets[(_week_start(row.attendance_date), row.age_group)] += row.count
    return [
        GroupTrendRow(week_start=w, age_group=a, count=n)
        for (w, a), n in sorted(buckets.items(), key=lambda kv: (kv[0][0], kv[0][1] or ""))
    ]


def get_new_members_report(db: Session, church_id: int, start: date, end: date) -> List[NewMemberRow]:
    _check_range(start, end)
    lower = datetime.combine(start, time.min)
    upper = datetime.combine(end + timedelta(days=1), time.min)
    stmt = (
        select(Member)
        .where(and_(Member.church_id == church_id, Member.created_at >= lower, Member.created_at < upper))
        .order_by(Member.created_at.desc(), Member.id.desc())
    )
    return [
        NewMemberRow(
            member_id=m.id,
            first_name=m.first_name,
            surname=m.surname,
            gender=m.gender,
            age_group=m.age_group,
            phone=m.phone,
            created_at=m.created_at,
        )
        for m in db.execute(stmt).scalars().all()
    ]


def get_family_checkin_summary(db: Session, church_id: int, start: date, end: date) -> List[FamilyCheckInSummaryRow]:
    """Family check-ins grouped by day and household (the parent's id)."""
    _check_range(start, end)
    parent = aliased(Member)
    household = func.coalesce(Member.parent_id, Member.id)
    stmt = (
        select(
            AttendanceRecord.attendance_date,
            household.label("parent_id"),
            func.count(AttendanceRecord.id),
        )
        .join(Member, Member.id == AttendanceRecord.member_id)
        .where(
            and_(
                AttendanceRecord.church_id == church_id,
                AttendanceRecord.check_in_method == CheckInMethod.FAMILY.value,
                _in_range(start, end),
            )
        )
        .group_by(AttendanceRecord.attendance_date, household)
        .order_by(AttendanceRecord.attendance_date.desc())
    )
    rows = db.execute(stmt).all()
    names = {}
    ids = {pid for _, pid, _ in rows if pid is not None}
    if ids:
        for p in db.execute(select(parent).where(parent.id.in_(ids))).scalars():
            names[p.id] = p.full_name
    return [
        FamilyCheckInSummaryRow(
            attendance_date=d,
            parent_id=pid,
            parent_name=names.get(pid),
            members_checked_in=int(n),
        )
        for d, pid, n in rows
    ]


def get_follow_up_tracker(db: Session, church_id: int) -> List[FollowUpTrackerRow]:
    stmt = (
        select(FollowUpRecord, Member)
        .join(Member, Member.id == FollowUpRecord.member_id)
        .where(FollowUpRecord.church_id == church_id)
        .order_by(FollowUpRecord.needs_follow_up.desc(), FollowUpRecord.consecutive_absences.desc(), Member.first_name)
    )
    return [
        FollowUpTrackerRow(
            member_id=m.id,
            first_name=m.first_name,
            surname=m.surname,
            phone=m.phone,
            consecutive_absences=f.consecutive_absences,
            needs_follow_up=bool(f.needs_follow_up),
            last_contact_date=f.last_contact_date,
            contact_method=f.contact_method,
        )
        for f, m in db.execute(stmt)
    ]


# ─────────────────────────────────────────────────────────────────────────────
# Saved report configs / runs
# ─────────────────────────────────────────────────────────────────────────────

def create_report_config(db: Session, church_id: int, data: ReportConfigCreate, user_id: Optional[int]) -> ReportConfig:
    cfg = ReportConfig(church_id=church_id, created_by_id=user_id, **data.model_dump())
    db.add(cfg)
    db.commit()
    db.refresh(cfg)
    return cfg


def list_report_configs(db: Session, church_id: int) -> List[ReportConfig]:
    stmt = select(ReportConfig).where(ReportConfig.church_id == church_id).order_by(ReportConfig.created_at.desc())
    return list(db.execute(stmt).scalars().all())


def create_report_run(db: Session, church_id: int, data: ReportRunCreate, user_id: Optional[int]) -> ReportRun:
    if data.report_config_id is not None:
        cfg = db.get(ReportConfig, data.report_config_id)
        if cfg is None or cfg.church_id != church_id:
            raise ValueError(f"Report config {data.report_config_id} not found")
    run = ReportRun(church_id=church_id, run_by_id=user_id, **data.model_dump())
    db.add(run)
    db.commit()
    db.refresh(run)
    logger.info("report run recorded id=%s config=%s", run.id, run.report_config_id)
    return run


def list_report_runs(db: Session, church_id: int, config_id: Optional[int] = None) -> List[ReportRun]:
    conds = [ReportRun.church_id == church_id]
    if config_id is not None:
        conds.append(ReportRun.report_config_id == config_id)
    stmt = select(ReportRun).where(and_(*conds)).order_by(ReportRun.generated_at.desc(), ReportRun.id.desc())
    return list(db.execute(stmt).scalars().all())
