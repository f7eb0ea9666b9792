# app/api/follow_up.py
from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.db import get_db
from app.dependencies import get_notifier
from app.models.church import ChurchUser
from app.schemas.follow_up import (
    AbsenceScanResult,
    ContactResult,
    FollowUpContact,
    FollowUpMember,
    FollowUpRead,
)
from app.services import follow_up as svc
from app.services.notifications import NotificationSender

router = APIRouter(prefix="/follow-up", tags=["Follow-up"])


@router.get("", response_model=List[FollowUpMember])
def members_needing_follow_up(
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("follow_up:read")),
):
    return svc.get_members_needing_follow_up(db, user.church_id)


@router.post("/update-absences", response_model=AbsenceScanResult)
def update_absences(
    weeks: int = Query(svc.ABSENCE_THRESHOLD_WEEKS, ge=1, le=52),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("follow_up:write")),
):
    flagged = svc.update_consecutive_absences(db, user.church_id, weeks=weeks)
    return AbsenceScanResult(
        flagged=flagged,
        weeks=weeks,
        message=f"{flagged} member(s) flagged for follow-up",
    )


@router.post("/{member_id}", response_model=ContactResult)
def record_contact(
    member_id: int,
    payload: FollowUpContact,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("follow_up:write")),
    notifier: NotificationSender = Depends(get_notifier),
):
    """Record a contact attempt. Delivery problems never fail the request."""
    record, notified = svc.record_contact(
        db, user.church_id, member_id, payload.method, notifier, message=payload.message
    )
    return ContactResult(
        follow_up=FollowUpRead.model_validate(record),
        notified=notified,
        message="Follow-up recorded" + ("" if notified else " (notification not sent)"),
    )
