# app/api/external_checkin.py
"""
Public kiosk check-in.

The two /event and /check-in routes take no API key; the slug and PIN are
the only gate. Settings routes are admin-only.
"""
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.db import get_db
from app.models.church import ChurchUser
from app.schemas.event import (
    ExternalCheckInRequest,
    ExternalCheckInResult,
    ExternalCheckInSettings,
    ExternalToggle,
    PublicEventInfo,
)
from app.services import external_checkin as svc
from app.services.events import get_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/external-checkin", tags=["External check-in"])


@router.get("/event/{event_url}", response_model=PublicEventInfo)
def public_event(event_url: str, db: Session = Depends(get_db)):
    info = svc.get_public_event(db, event_url)
    if info is None:
        raise HTTPException(status_code=404, detail="Event not found or external check-in disabled")
    return info


@router.post("/check-in/{event_url}", response_model=ExternalCheckInResult)
def public_check_in(event_url: str, payload: ExternalCheckInRequest, db: Session = Depends(get_db)):
    event, record = svc.external_check_in(db, event_url, payload.pin, payload.member_id)
    name = record.member.full_name if record.member else ""
    return ExternalCheckInResult(
        success=True,
        attendance_id=record.id,
        member_name=name,
        event_name=event.name,
        message=f"Welcome, {name}! You are checked in to {event.name}.",
    )


@router.post("/events/{event_id}/toggle", response_model=ExternalCheckInSettings)
def toggle(
    event_id: int,
    payload: ExternalToggle,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("external_checkin:manage")),
):
    try:
        out = svc.toggle_external_check_in(db, user.church_id, event_id, payload.enabled)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if out is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return out


@router.get("/events/{event_id}", response_model=ExternalCheckInSettings)
def settings_view(
    event_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("external_checkin:manage")),
):
    event = get_event(db, user.church_id, event_id)
    if event is None:
        raise HTTPException(status_code=404, detail="Event not found")
    return svc.settings_for(event)
