# app/api/members.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.api.rbac import require_permission
from app.db import get_db
from app.models.church import ChurchUser
from app.schemas.member import (
    BulkUploadResult,
    MemberAttendanceEntry,
    MemberCreate,
    MemberRead,
    MemberUpdate,
    MemberWithChildren,
)
from app.services import members as svc

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/members", tags=["Members"])


class BulkUpload(BaseModel):
    members: List[Dict[str, Any]] = Field(..., min_length=1, max_length=2000)


@router.post("", response_model=MemberRead, status_code=status.HTTP_201_CREATED)
def create_member(
    payload: MemberCreate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:write")),
):
    try:
        return svc.create_member(db, user.church_id, payload)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=List[MemberRead])
def list_members(
    search: Optional[str] = Query(None, max_length=100),
    group: Optional[str] = Query(None, description="male|female|child|adolescent|adult|all"),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:read")),
):
    if search or group:
        return svc.search_members(db, user.church_id, search, group)
    return svc.list_members(db, user.church_id)


@router.post("/bulk-upload", response_model=BulkUploadResult)
def bulk_upload(
    payload: BulkUpload,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:write")),
):
    return svc.bulk_create_members(db, user.church_id, payload.members)


@router.get("/family-groups/{family_group_id}", response_model=List[MemberRead])
def get_family_group(
    family_group_id: str,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:read")),
):
    return svc.get_family_group(db, user.church_id, family_group_id)


@router.get("/{member_id}", response_model=MemberWithChildren)
def get_member(
    member_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:read")),
):
    member = svc.get_member(db, user.church_id, member_id)
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


@router.put("/{member_id}", response_model=MemberRead)
def update_member(
    member_id: int,
    payload: MemberUpdate,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:write")),
):
    try:
        member = svc.update_member(db, user.church_id, member_id, payload)
    except ValueError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))
    if not member:
        raise HTTPException(status_code=404, detail="Member not found")
    return member


@router.get("/{member_id}/children", response_model=List[MemberRead])
def get_children(
    member_id: int,
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("members:read")),
):
    if not svc.get_member(db, user.church_id, member_id):
        raise HTTPException(status_code=404, detail="Member not found")
    return svc.get_members_by_parent(db, user.church_id, member_id)


@router.get("/{member_id}/attendance", response_model=List[MemberAttendanceEntry])
def get_member_attendance(
    member_id: int,
    limit: int = Query(10, ge=1, le=500),
    db: Session = Depends(get_db),
    user: ChurchUser = Depends(require_permission("attendance:read")),
):
    if not svc.get_member(db, user.church_id, member_id):
        raise HTTPException(status_code=404, detail="Member not found")
    return svc.get_member_attendance_history(db, user.church_id, member_id, limit=limit)
