# app/api/exports.py
from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.config import today
from app.db import get_db
from app.models.church import ChurchUser
from app.services import exports as svc

router = APIRouter(prefix="/export", tags=["Exports"])


def _csv(lines, filename: str) -> StreamingResponse:
    return StreamingResponse(
        iter(lines),
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


# ---------- /export/members ----------
@router.get("/members")
def export_members(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("exports:read")),
):
    return _csv(svc.members_csv(db, user.church_id), f"members-{today()}.csv")


# ---------- /export/visitors ----------
@router.get("/visitors")
def export_visitors(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("exports:read")),
):
    return _csv(svc.visitors_csv(db, user.church_id), f"visitors-{today()}.csv")


# ---------- /export/attendance ----------
@router.get("/attendance")
def export_attendance(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("exports:read")),
):
    end = end_date or today()
    start = start_date or end
    if end < start:
        raise HTTPException(status_code=400, detail="end_date must be on or after start_date")
    return _csv(svc.attendance_csv(db, user.church_id, start, end), f"attendance-{start}-to-{end}.csv")


# ---------- /export/monthly-report ----------
@router.get("/monthly-report")
def export_monthly_report(
    month: Optional[int] = Query(None, ge=1, le=12),
    year: Optional[int] = Query(None, ge=2000, le=2100),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("exports:read")),
):
    now = today()
    m = month or now.month
    y = year or now.year
    return _csv(svc.monthly_report_csv(db, user.church_id, y, m), f"monthly-report-{y}-{m:02d}.csv")
