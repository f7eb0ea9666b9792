from __future__ import annotations

from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.db import get_db
from app.models.church import ChurchUser
from app.schemas.event import (
    EventAttendanceCount,
    EventAttendanceStats,
    EventCreate,
    EventRead,
    EventUpdate,
)
from app.services import events as svc

router = APIRouter(prefix="/events", tags=["events"])


@router.get("", response_model=List[EventRead])
def list_events(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:read")),
):
    return svc.list_events(db, user.church_id)


@router.get("/active", response_model=List[EventRead])
def list_active_events(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:read")),
):
    return svc.list_events(db, user.church_id, active_only=True)


@router.get("/attendance-counts", response_model=List[EventAttendanceCount])
def event_attendance_counts(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:read")),
):
    return svc.get_event_attendance_counts(db, user.church_id, start_date, end_date)


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:write")),
):
    return svc.create_event(db, user.church_id, payload)


@router.put("/{event_id}", response_model=EventRead)
def update_event(
    event_id: int,
    payload: EventUpdate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:write")),
):
    try:
        event = svc.update_event(db, user.church_id, event_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not event:
        raise HTTPException(status_code=404, detail="Event not found")
    return event


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:write")),
):
    """Soft delete (is_active = false)."""
    if not svc.deactivate_event(db, user.church_id, event_id):
        raise HTTPException(status_code=404, detail="Event not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{event_id}/attendance-stats", response_model=EventAttendanceStats)
def event_attendance_stats(
    event_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("events:read")),
):
    stats = svc.get_event_attendance_stats(db, user.church_id, event_id)
    if stats is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return stats
