# app/api/visitors.py
from __future__ import annotations

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.db import get_db
from app.models.church import ChurchUser
from app.schemas.visitor import (
    VisitorCheckIn,
    VisitorCheckInResult,
    VisitorCreate,
    VisitorRead,
    VisitorUpdate,
)
from app.services import visitors as svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/visitors", tags=["Visitors"])
checkin_router = APIRouter(tags=["Visitors"])


@checkin_router.post("/visitor-checkin", response_model=VisitorCheckInResult, status_code=status.HTTP_201_CREATED)
def visitor_checkin(
    payload: VisitorCheckIn,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("visitors:write")),
):
    """Register a first-timer and check them in for today in one step."""
    visitor, record = svc.check_in_visitor(db, user.church_id, payload)
    return VisitorCheckInResult(
        visitor=VisitorRead.model_validate(visitor),
        attendance_id=record.id,
        attendance_date=record.attendance_date,
        message=f"Welcome, {visitor.name}!",
    )


@router.post("", response_model=VisitorRead, status_code=status.HTTP_201_CREATED)
def create_visitor(
    payload: VisitorCreate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("visitors:write")),
):
    return svc.create_visitor(db, user.church_id, payload)


@router.get("", response_model=List[VisitorRead])
def list_visitors(
    status_: Optional[str] = Query(None, alias="status", pattern="^(pending|contacted|member)$"),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("visitors:read")),
):
    return svc.list_visitors(db, user.church_id, status_)


@router.get("/{visitor_id}", response_model=VisitorRead)
def get_visitor(
    visitor_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("visitors:read")),
):
    visitor = svc.get_visitor(db, user.church_id, visitor_id)
    if not visitor:
        raise HTTPException(status_code=404, detail="Visitor not found")
    return visitor


@router.patch("/{visitor_id}", response_model=VisitorRead)
def update_visitor(
    visitor_id: int,
    payload: VisitorUpdate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("visitors:write")),
):
    """General update; setting follow_up_status to "member" also promotes the visitor."""
    try:
        visitor = svc.update_visitor(db, user.church_id, visitor_id, payload)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    if not visitor:
        raise HTTPException(status_code=404, detail="Visitor not found")
    return visitor
