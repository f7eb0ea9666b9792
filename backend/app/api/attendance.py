# app/api/attendance.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.config import today
from app.db import get_db
from app.models.church import ChurchUser
from app.schemas.attendance import (
    AttendanceCreate,
    AttendanceDateRange,
    AttendanceRangeStats,
    AttendanceRead,
    AttendanceRow,
    AttendanceStats,
    DuplicateCheckInBody,
    FamilyCheckIn,
    FamilyCheckInResult,
    FingerprintEnroll,
    FingerprintEnrollResult,
    FingerprintScan,
    FingerprintScanResult,
)
from app.schemas.visitor import ReconcileResult
from app.services import attendance as svc
from app.services.reports import get_attendance_stats, get_attendance_stats_by_range
from app.services.visitors import reconcile_visitor_attendance

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/attendance", tags=["Attendance"])
fingerprint_router = APIRouter(prefix="/fingerprint", tags=["Fingerprint"])


# ---------- check-in ----------

@router.post(
    "",
    response_model=AttendanceRead,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": DuplicateCheckInBody}},
)
def create_attendance(
    payload: AttendanceCreate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:write")),
):
    """Check in a member or a registered visitor. A second check-in the same day is 409."""
    return svc.record_attendance(db, user.church_id, payload)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_attendance(
    record_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:delete")),
):
    if not svc.delete_attendance_record(db, user.church_id, record_id):
        raise HTTPException(status_code=404, detail="Attendance record not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/selective-family-checkin", response_model=FamilyCheckInResult)
def selective_family_checkin(
    payload: FamilyCheckIn,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:write")),
):
    return svc.family_check_in(
        db, user.church_id, payload.parent_id, children_ids=payload.children_ids, event_id=payload.event_id
    )


@router.post("/family-checkin", response_model=FamilyCheckInResult)
def family_checkin(
    payload: FamilyCheckIn,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:write")),
):
    """Older client path: always checks in the parent with every linked child."""
    return svc.family_check_in(db, user.church_id, payload.parent_id, children_ids=None, event_id=payload.event_id)


@router.post("/fix-visitor-member-records", response_model=ReconcileResult)
def fix_visitor_member_records(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:reconcile")),
):
    return reconcile_visitor_attendance(db, user.church_id)


# ---------- reads ----------

@router.get("/today", response_model=List[AttendanceRow])
def attendance_today(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:read")),
):
    return svc.get_attendance_for_date(db, user.church_id, today())


@router.get("/stats", response_model=AttendanceStats)
def attendance_stats(
    date_: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:read")),
):
    return get_attendance_stats(db, user.church_id, date_ or today())


@router.get("/stats-range", response_model=AttendanceRangeStats)
def attendance_stats_range(
    start_date: date,
    end_date: date,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:read")),
):
    try:
        return get_attendance_stats_by_range(db, user.church_id, start_date, end_date)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/date-range", response_model=AttendanceDateRange)
def attendance_date_range(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:read")),
):
    return svc.get_attendance_date_range(db, user.church_id)


@router.get("/history", response_model=List[AttendanceRow])
def attendance_history(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    member_id: Optional[int] = None,
    event_id: Optional[int] = None,
    gender: Optional[str] = Query(None, pattern="^(male|female)$"),
    age_group: Optional[str] = Query(None, pattern="^(child|adolescent|adult)$"),
    is_current_member: Optional[bool] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:read")),
):
    end = end_date or today()
    start = start_date or end
    try:
        return svc.get_attendance_history(
            db,
            user.church_id,
            start,
            end,
            member_id=member_id,
            event_id=event_id,
            gender=gender,
            age_group=age_group,
            is_current_member=is_current_member,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# ---------- fingerprint (mock scanner) ----------

@fingerprint_router.post("/enroll", response_model=FingerprintEnrollResult)
def enroll_fingerprint(
    payload: FingerprintEnroll,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:write")),
):
    try:
        return svc.enroll_fingerprint(
            db,
            user.church_id,
            payload.member_id,
            fingerprint_id=payload.fingerprint_id,
            check_in=payload.check_in,
            event_id=payload.event_id,
        )
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))


@fingerprint_router.post("/scan", response_model=FingerprintScanResult)
def scan_fingerprint(
    payload: FingerprintScan,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:write")),
):
    return svc.scan_fingerprint(
        db, user.church_id, payload.fingerprint_id, device_id=payload.device_id, event_id=payload.event_id
    )
