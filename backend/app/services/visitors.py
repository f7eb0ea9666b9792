# app/services/visitors.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.models.attendance import AttendanceRecord
from app.models.member import Member
from app.models.visitor import Visitor
from app.schemas.visitor import ReconcileResult, VisitorCheckIn, VisitorCreate, VisitorUpdate
from app.services.attendance import check_in_existing_visitor, find_member_check_in

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Name matching
# ─────────────────────────────────────────────────────────────────────────────

def split_name(name: str) -> Tuple[str, str]:
    """First token is the first name; the rest, space-joined, is the surname."""
    parts = (name or "").split()
    if not parts:
        return "", ""
    return parts[0], " ".join(parts[1:])


def match_member_by_name(db: Session, church_id: int, name: str) -> Optional[Member]:
    """
    Best-effort visitor -> member match: exact first name and surname,
    case-insensitive, within one church.

    Two people with the same name will collide, and any spelling difference
    ("Jon" vs "John", a middle name) misses. Promotion and the attendance
    reconciliation job both rely on this exact rule.
    """
    first, last = split_name(name)
    if not first:
        return None
    stmt = (
        select(Member)
        .where(
            and_(
                Member.church_id == church_id,
                func.lower(Member.first_name) == first.lower(),
                func.lower(Member.surname) == last.lower(),
            )
        )
        .order_by(Member.id)
    )
    return db.execute(stmt).scalars().first()


# ─────────────────────────────────────────────────────────────────────────────
# CRUD
# ─────────────────────────────────────────────────────────────────────────────

def get_visitor(db: Session, church_id: int, visitor_id: int) -> Optional[Visitor]:
    visitor = db.get(Visitor, visitor_id)
    if visitor is None or visitor.church_id != church_id:
        return None
    return visitor


def list_visitors(db: Session, church_id: int, status: Optional[str] = None) -> List[Visitor]:
    conds = [Visitor.church_id == church_id]
    if status:
        conds.append(Visitor.follow_up_status == status)
    stmt = select(Visitor).where(and_(*conds)).order_by(Visitor.visit_date.desc(), Visitor.id.desc())
    return list(db.execute(stmt).scalars().all())


def create_visitor(db: Session, church_id: int, data: VisitorCreate) -> Visitor:
    visitor = Visitor(church_id=church_id, **data.model_dump())
    db.add(visitor)
    db.commit()
    db.refresh(visitor)
    logger.info("visitor created id=%s church=%s", visitor.id, church_id)
    if visitor.follow_up_status == "member":
        promote_visitor(db, visitor)
    return visitor


def check_in_visitor(
    db: Session, church_id: int, data: VisitorCheckIn
) -> Tuple[Visitor, AttendanceRecord]:
    """Register a first-timer and record today's attendance together."""
    values = data.model_dump(exclude={"event_id"})
    visitor = Visitor(church_id=church_id, follow_up_status="pending", **values)
    db.add(visitor)
    db.flush()
    # commit happens inside the check-in; a failure rolls back the visitor too
    record = check_in_existing_visitor(db, church_id, visitor, event_id=data.event_id)
    db.refresh(visitor)
    return visitor, record


def update_visitor(db: Session, church_id: int, visitor_id: int, patch: VisitorUpdate) -> Optional[Visitor]:
    visitor = get_visitor(db, church_id, visitor_id)
    if visitor is None:
        return None

    changes = patch.model_dump(exclude_unset=True)
    if "name" in changes:
        if not changes["name"] or not changes["name"].strip():
            raise ValueError("name cannot be blank")
        changes["name"] = " ".join(changes["name"].split())
    if "follow_up_status" in changes and changes["follow_up_status"] is None:
        raise ValueError("follow_up_status cannot be null")

    for key, value in changes.items():
        setattr(visitor, key, value)
    db.commit()
    db.refresh(visitor)
    logger.info("visitor updated id=%s fields=%s", visitor.id, sorted(changes))

    if changes.get("follow_up_status") == "member":
        promote_visitor(db, visitor)
    return visitor


# ─────────────────────────────────────────────────────────────────────────────
# Promotion and reconciliation
# ─────────────────────────────────────────────────────────────────────────────

def promote_visitor(db: Session, visitor: Visitor) -> Optional[Member]:
    """
    Create a Member from the visitor unless one with the same name exists.

    Returns the new Member, or None when a match already existed. The
    visitor's attendance rows are not touched here; see
    reconcile_visitor_attendance.
    """
    existing = match_member_by_name(db, visitor.church_id, visitor.name)
    if existing is not None:
        logger.info("promotion visitor=%s matched existing member=%s", visitor.id, existing.id)
        return None

    first, last = split_name(visitor.name)
    member = Member(
        church_id=visitor.church_id,
        first_name=first,
        surname=last,
        gender=visitor.gender or "male",
        age_group=visitor.age_group or "adult",
        phone=visitor.phone or None,
        email=visitor.email or None,
        whatsapp_number=visitor.whatsapp_number or None,
        address=visitor.address or None,
        is_current_member=True,
    )
    if visitor.birthday:
        member.date_of_birth = visitor.birthday
    if visitor.wedding_anniversary:
        member.wedding_anniversary = visitor.wedding_anniversary

    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("visitor promoted visitor=%s member=%s", visitor.id, member.id)
    return member


def reconcile_visitor_attendance(db: Session, church_id: int) -> ReconcileResult:
    """
    Repoint guest attendance rows to the member a visitor has become.

    Uses match_member_by_name. A row whose date already has a record for
    the matched member is left as is and counted as a conflict.
    """
    visitors = list(db.execute(select(Visitor).where(Visitor.church_id == church_id)).scalars().all())

    matched = 0
    updated = 0
    conflicts = 0
    for visitor in visitors:
        member = match_member_by_name(db, church_id, visitor.name)
        if member is None:
            continue
        matched += 1
        if visitor.member_id != member.id:
            visitor.member_id = member.id

        rows = db.execute(
            select(AttendanceRecord).where(
                and_(AttendanceRecord.church_id == church_id, AttendanceRecord.visitor_id == visitor.id)
            )
        ).scalars().all()
        seen_days: set[date] = set()
        for rec in rows:
            if rec.attendance_date in seen_days or find_member_check_in(db, member.id, rec.attendance_date):
                conflicts += 1
                continue
            rec.member_id = member.id
            rec.visitor_id = None
            rec.is_guest = False
            seen_days.add(rec.attendance_date)
            updated += 1
        db.flush()

    db.commit()
    logger.info(
        "reconcile church=%s visitors_matched=%s records_updated=%s conflicts=%s",
        church_id, matched, updated, conflicts,
    )
    return ReconcileResult(
        visitors_matched=matched,
        records_updated=updated,
        conflicts=conflicts,
        message=f"Linked {updated} attendance record(s) from {matched} visitor(s) to members",
    )
