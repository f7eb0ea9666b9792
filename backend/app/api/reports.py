# backend/app/api/reports.py
from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.config import today
from app.db import get_db
from app.models.church import ChurchUser
from app.schemas.report import (
    DateRange,
    FamilyCheckInSummaryRow,
    FollowUpTrackerRow,
    GroupTrendRow,
    MatrixReport,
    MissedServicesRow,
    NewMemberRow,
    ReportConfigCreate,
    ReportConfigRead,
    ReportRunCreate,
    ReportRunRead,
    WeeklyAttendanceRow,
)
from app.services import reports as svc
from app.services.exports import matrix_csv

router = APIRouter(prefix="/reports", tags=["Reports"])


# ---------- helpers ----------
def _range(start_date: Optional[date], end_date: Optional[date], default_days: int = 30) -> tuple[date, date]:
    end = end_date or today()
    start = start_date or (end - timedelta(days=default_days))
    if end < start:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")
    return start, end


def _csv_response(lines, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter(lines),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------- /reports/weekly-attendance ----------
@router.get("/weekly-attendance", response_model=List[WeeklyAttendanceRow])
def weekly_attendance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    start, end = _range(start_date, end_date, default_days=6)
    return svc.get_weekly_attendance_summary(db, user.church_id, start, end)


# ---------- /reports/member-attendance-log ----------
@router.get("/member-attendance-log", response_model=MatrixReport)
def member_attendance_log(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    start, end = _range(start_date, end_date)
    return svc.get_member_attendance_matrix(db, user.church_id, start, end)


@router.get("/member-attendance-log.csv")
def member_attendance_log_csv(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    start, end = _range(start_date, end_date)
    report = svc.get_member_attendance_matrix(db, user.church_id, start, end)
    return _csv_response(matrix_csv(report), f"member-attendance-matrix-{start}-to-{end}.csv")


@router.post("/download-csv")
def download_matrix_csv(
    payload: DateRange,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    report = svc.get_member_attendance_matrix(db, user.church_id, payload.start_date, payload.end_date)
    return _csv_response(
        matrix_csv(report),
        f"member-attendance-matrix-{payload.start_date}-to-{payload.end_date}.csv",
    )


# ---------- absence ----------
@router.get("/missed-services", response_model=List[MissedServicesRow])
def missed_services(
    weeks: int = Query(3, ge=1, le=52),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    return svc.get_missed_services_report(db, user.church_id, weeks=weeks)


@router.get("/inactive-members", response_model=List[MissedServicesRow])
def inactive_members(
    weeks: int = Query(3, ge=1, le=52),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    return svc.get_inactive_members_report(db, user.church_id, weeks=weeks)


# ---------- other ----------
@router.get("/new-members", response_model=List[NewMemberRow])
def new_members(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    start, end = _range(start_date, end_date)
    return svc.get_new_members_report(db, user.church_id, start, end)


@router.get("/group-attendance-trend", response_model=List[GroupTrendRow])
def group_attendance_trend(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    start, end = _range(start_date, end_date, default_days=84)
    return svc.get_group_attendance_trend(db, user.church_id, start, end)


@router.get("/family-checkin-summary", response_model=List[FamilyCheckInSummaryRow])
def family_checkin_summary(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    start, end = _range(start_date, end_date)
    return svc.get_family_checkin_summary(db, user.church_id, start, end)


@router.get("/followup-action-tracker", response_model=List[FollowUpTrackerRow])
def followup_action_tracker(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    return svc.get_follow_up_tracker(db, user.church_id)


# ---------- saved configs / runs ----------
@router.get("/configs", response_model=List[ReportConfigRead])
def list_configs(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    return svc.list_report_configs(db, user.church_id)


@router.post("/configs", response_model=ReportConfigRead, status_code=status.HTTP_201_CREATED)
def create_config(
    payload: ReportConfigCreate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:write")),
):
    return svc.create_report_config(db, user.church_id, payload, user.id)


@router.get("/runs", response_model=List[ReportRunRead])
def list_runs(
    config_id: Optional[int] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:read")),
):
    return svc.list_report_runs(db, user.church_id, config_id)


@router.post("/runs", response_model=ReportRunRead, status_code=status.HTTP_201_CREATED)
def create_run(
    payload: ReportRunCreate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("reports:write")),
):
    try:
        return svc.create_report_run(db, user.church_id, payload, user.id)
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))
