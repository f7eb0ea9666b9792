# app/services/attendance.py
"""
Check-in engine.

Every path (manual, fingerprint, family, visitor, external) runs the same
pipeline: validate the person and event, look for an existing record for
that person on that calendar day, insert, commit. The unique constraints on
(member_id, attendance_date) and (visitor_id, attendance_date) back the
pre-check, so two racing requests still end with one row; the loser gets
DuplicateCheckIn.
"""
from __future__ import annotations

import logging
import time
from datetime import date
from typing import Dict, List, Optional, Sequence

from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import now_local, today
from app.models.attendance import AttendanceRecord, CheckInMethod
from app.models.member import Member
from app.models.visitor import Visitor
from app.schemas.attendance import (
    AttendanceCreate,
    AttendanceDateRange,
    FamilyCheckInResult,
    FamilyMemberResult,
    FingerprintEnrollResult,
    FingerprintScanResult,
    MemberAttendanceRow,
    VisitorAttendanceRow,
)
from app.schemas.member import MemberRead
from app.services.errors import DuplicateCheckIn, EventNotFound, PersonNotFound
from app.services.events import get_event
from app.services.members import get_member, get_member_by_fingerprint, get_members_by_parent

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Shared pipeline
# ─────────────────────────────────────────────────────────────────────────────

def _require_event(db: Session, church_id: int, event_id: Optional[int]) -> None:
    if event_id is not None and get_event(db, church_id, event_id) is None:
        raise EventNotFound(f"Event {event_id} not found")


def find_member_check_in(db: Session, member_id: int, on_date: date) -> Optional[AttendanceRecord]:
    stmt = select(AttendanceRecord).where(
        and_(AttendanceRecord.member_id == member_id, AttendanceRecord.attendance_date == on_date)
    )
    return db.execute(stmt).scalars().first()


def find_visitor_check_in(db: Session, visitor_id: int, on_date: date) -> Optional[AttendanceRecord]:
    stmt = select(AttendanceRecord).where(
        and_(AttendanceRecord.visitor_id == visitor_id, AttendanceRecord.attendance_date == on_date)
    )
    return db.execute(stmt).scalars().first()


def save_check_in(db: Session, record: AttendanceRecord, who: str) -> AttendanceRecord:
    """Insert and commit; a unique-constraint hit becomes DuplicateCheckIn."""
    db.add(record)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.info("duplicate check-in rejected by constraint who=%r date=%s", who, record.attendance_date)
        raise DuplicateCheckIn(who, record.attendance_date)
    db.refresh(record)
    return record


def check_in_member(
    db: Session,
    church_id: int,
    member_id: int,
    method: str = CheckInMethod.MANUAL.value,
    event_id: Optional[int] = None,
    on_date: Optional[date] = None,
) -> AttendanceRecord:
    member = get_member(db, church_id, member_id)
    if member is None:
        raise PersonNotFound(f"Member {member_id} not found")
    _require_event(db, church_id, event_id)
    return _check_in_loaded_member(db, member, method, event_id, on_date)


def _check_in_loaded_member(
    db: Session,
    member: Member,
    method: str,
    event_id: Optional[int],
    on_date: Optional[date],
) -> AttendanceRecord:
    day = on_date or today()
    existing = find_member_check_in(db, member.id, day)
    if existing is not None:
        raise DuplicateCheckIn(member.full_name, day, existing.id)

    record = AttendanceRecord(
        church_id=member.church_id,
        event_id=event_id,
        member_id=member.id,
        attendance_date=day,
        check_in_time=now_local(),
        check_in_method=method,
        is_guest=False,
    )
    record = save_check_in(db, record, member.full_name)
    logger.info("check-in member=%s date=%s method=%s", member.id, day, method)
    return record


def check_in_existing_visitor(
    db: Session,
    church_id: int,
    visitor: Visitor,
    method: str = CheckInMethod.VISITOR.value,
    event_id: Optional[int] = None,
    on_date: Optional[date] = None,
) -> AttendanceRecord:
    """Attendance row for a visitor, with the name and demographics copied onto it."""
    _require_event(db, church_id, event_id)
    day = on_date or today()
    existing = find_visitor_check_in(db, visitor.id, day)
    if existing is not None:
        raise DuplicateCheckIn(visitor.name, day, existing.id)

    record = AttendanceRecord(
        church_id=church_id,
        event_id=event_id,
        visitor_id=visitor.id,
        attendance_date=day,
        check_in_time=now_local(),
        check_in_method=method,
        is_guest=True,
        visitor_name=visitor.name,
        visitor_gender=visitor.gender,
        visitor_age_group=visitor.age_group,
    )
    record = save_check_in(db, record, visitor.name)
    logger.info("check-in visitor=%s date=%s", visitor.id, day)
    return record


def record_attendance(db: Session, church_id: int, payload: AttendanceCreate) -> AttendanceRecord:
    """Generic check-in for either a member or an already-registered visitor."""
    if payload.member_id is not None:
        return check_in_member(
            db,
            church_id,
            payload.member_id,
            method=payload.check_in_method,
            event_id=payload.event_id,
            on_date=payload.attendance_date,
        )

    visitor = db.get(Visitor, payload.visitor_id)
    if visitor is None or visitor.church_id != church_id:
        raise PersonNotFound(f"Visitor {payload.visitor_id} not found")
    return check_in_existing_visitor(
        db,
        church_id,
        visitor,
        method=payload.check_in_method,
        event_id=payload.event_id,
        on_date=payload.attendance_date,
    )


def delete_attendance_record(db: Session, church_id: int, record_id: int) -> bool:
    record = db.get(AttendanceRecord, record_id)
    if record is None or record.church_id != church_id:
        return False
    db.delete(record)
    db.commit()
    logger.info("attendance deleted id=%s church=%s", record_id, church_id)
    return True


# ─────────────────────────────────────────────────────────────────────────────
# Fingerprint (mock scanner)
# ─────────────────────────────────────────────────────────────────────────────

def scan_fingerprint(
    db: Session,
    church_id: int,
    fingerprint_id: Optional[str],
    device_id: str = "default",
    event_id: Optional[int] = None,
) -> FingerprintScanResult:
    """
    Look the scan up within the church. Unknown prints are echoed back as
    scanned_fingerprint_id so the client can offer enrollment.
    """
    scanned = (fingerprint_id or "").strip() or f"fp_mock_{device_id}"
    member = get_member_by_fingerprint(db, church_id, scanned)
    if member is None:
        return FingerprintScanResult(
            member=None,
            check_in_success=False,
            scanned_fingerprint_id=scanned,
            message="Fingerprint not recognized. Enroll it to a member to check in.",
        )

    _require_event(db, church_id, event_id)
    try:
        _check_in_loaded_member(db, member, CheckInMethod.FINGERPRINT.value, event_id, None)
    except DuplicateCheckIn as e:
        return FingerprintScanResult(
            member=MemberRead.model_validate(member),
            check_in_success=False,
            is_duplicate=True,
            scanned_fingerprint_id=scanned,
            message=str(e),
        )
    return FingerprintScanResult(
        member=MemberRead.model_validate(member),
        check_in_success=True,
        scanned_fingerprint_id=scanned,
        message=f"Welcome, {member.full_name}!",
    )


def enroll_fingerprint(
    db: Session,
    church_id: int,
    member_id: int,
    fingerprint_id: Optional[str] = None,
    check_in: bool = True,
    event_id: Optional[int] = None,
) -> FingerprintEnrollResult:
    member = get_member(db, church_id, member_id)
    if member is None:
        raise PersonNotFound(f"Member {member_id} not found")
    _require_event(db, church_id, event_id)

    fp = (fingerprint_id or "").strip() or f"fp_{member.id}_{int(time.time() * 1000)}"
    holder = get_member_by_fingerprint(db, church_id, fp)
    if holder is not None and holder.id != member.id:
        raise ValueError("Fingerprint is already enrolled for another member")

    member.fingerprint_id = fp
    db.commit()
    db.refresh(member)
    logger.info("fingerprint enrolled member=%s", member.id)

    if not check_in:
        return FingerprintEnrollResult(
            member=MemberRead.model_validate(member),
            fingerprint_id=fp,
            check_in_success=False,
            message="Fingerprint enrolled.",
        )

    try:
        _check_in_loaded_member(db, member, CheckInMethod.FINGERPRINT.value, event_id, None)
    except DuplicateCheckIn as e:
        return FingerprintEnrollResult(
            member=MemberRead.model_validate(member),
            fingerprint_id=fp,
            check_in_success=False,
            is_duplicate=True,
            message=f"Fingerprint enrolled. {e}",
        )
    return FingerprintEnrollResult(
        member=MemberRead.model_validate(member),
        fingerprint_id=fp,
        check_in_success=True,
        message=f"Fingerprint enrolled and {member.full_name} checked in.",
    )


# ─────────────────────────────────────────────────────────────────────────────
# Family check-in
# ─────────────────────────────────────────────────────────────────────────────

def _is_linked(parent: Member, child: Member) -> bool:
    if child.parent_id == parent.id:
        return True
    return bool(parent.family_group_id) and child.family_group_id == parent.family_group_id


def family_check_in(
    db: Session,
    church_id: int,
    parent_id: int,
    children_ids: Optional[Sequence[int]] = None,
    event_id: Optional[int] = None,
    on_date: Optional[date] = None,
) -> FamilyCheckInResult:
    """
    Check in a parent and the selected children, each on its own.

    children_ids=None means every child linked through parent_id. A person
    already checked in today is reported as "duplicate" and skipped; the
    batch never aborts part way.
    """
    parent = get_member(db, church_id, parent_id)
    if parent is None:
        raise PersonNotFound(f"Member {parent_id} not found")
    _require_event(db, church_id, event_id)
    day = on_date or today()

    if children_ids is None:
        selected = [c.id for c in get_members_by_parent(db, church_id, parent.id)]
    else:
        selected = list(dict.fromkeys(cid for cid in children_ids if cid != parent.id))

    results: List[FamilyMemberResult] = []

    def _attempt(person: Member, role: str) -> None:
        try:
            rec = _check_in_loaded_member(db, person, CheckInMethod.FAMILY.value, event_id, day)
        except DuplicateCheckIn:
            results.append(
                FamilyMemberResult(member_id=person.id, name=person.full_name, role=role, status="duplicate")
            )
            return
        results.append(
            FamilyMemberResult(
                member_id=person.id,
                name=person.full_name,
                role=role,
                status="checked_in",
                attendance_id=rec.id,
            )
        )

    _attempt(parent, "parent")
    for child_id in selected:
        child = get_member(db, church_id, child_id)
        if child is None:
            results.append(FamilyMemberResult(member_id=child_id, role="child", status="not_found"))
            continue
        if not _is_linked(parent, child):
            results.append(
                FamilyMemberResult(member_id=child.id, name=child.full_name, role="child", status="not_linked")
            )
            continue
        _attempt(child, "child")

    checked_in = sum(1 for r in results if r.status == "checked_in")
    skipped = len(results) - checked_in
    logger.info("family check-in parent=%s checked_in=%s skipped=%s", parent.id, checked_in, skipped)
    message = f"Checked in {checked_in} family member(s)"
    if skipped:
        message += f", skipped {skipped}"
    return FamilyCheckInResult(
        parent_id=parent.id,
        attendance_date=day,
        checked_in=checked_in,
        skipped=skipped,
        results=results,
        message=message,
    )


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────

def to_row(rec: AttendanceRecord):
    """Map a record to the member or visitor row shape."""
    event_name = rec.event.name if rec.event is not None else None
    if rec.member_id is not None and rec.member is not None:
        m = rec.member
        return MemberAttendanceRow(
            id=rec.id,
            attendance_date=rec.attendance_date,
            check_in_time=rec.check_in_time,
            check_in_method=rec.check_in_method,
            event_id=rec.event_id,
            event_name=event_name,
            member_id=m.id,
            name=m.full_name,
            gender=m.gender,
            age_group=m.age_group,
            phone=m.phone,
            email=m.email,
            is_current_member=bool(m.is_current_member),
        )
    v = rec.visitor
    return VisitorAttendanceRow(
        id=rec.id,
        attendance_date=rec.attendance_date,
        check_in_time=rec.check_in_time,
        check_in_method=rec.check_in_method,
        event_id=rec.event_id,
        event_name=event_name,
        visitor_id=rec.visitor_id,
        name=rec.visitor_name or (v.name if v is not None else "Visitor"),
        gender=rec.visitor_gender or (v.gender if v is not None else None),
        age_group=rec.visitor_age_group or (v.age_group if v is not None else None),
        phone=v.phone if v is not None else None,
        email=v.email if v is not None else None,
    )


def get_attendance_for_date(db: Session, church_id: int, day: date) -> list:
    stmt = (
        select(AttendanceRecord)
        .where(and_(AttendanceRecord.church_id == church_id, AttendanceRecord.attendance_date == day))
        .order_by(AttendanceRecord.check_in_time.desc(), AttendanceRecord.id.desc())
    )
    return [to_row(r) for r in db.execute(stmt).scalars().all()]


def get_attendance_history(
    db: Session,
    church_id: int,
    start: date,
    end: date,
    member_id: Optional[int] = None,
    event_id: Optional[int] = None,
    gender: Optional[str] = None,
    age_group: Optional[str] = None,
    is_current_member: Optional[bool] = None,
) -> list:
    if end < start:
        raise ValueError("end_date must be on or after start_date")

    conds = [
        AttendanceRecord.church_id == church_id,
        AttendanceRecord.attendance_date >= start,
        AttendanceRecord.attendance_date <= end,
    ]
    if member_id is not None:
        conds.append(AttendanceRecord.member_id == member_id)
    if event_id is not None:
        conds.append(AttendanceRecord.event_id == event_id)
    if gender:
        conds.append(func.coalesce(Member.gender, AttendanceRecord.visitor_gender) == gender)
    if age_group:
        conds.append(func.coalesce(Member.age_group, AttendanceRecord.visitor_age_group) == age_group)
    if is_current_member is not None:
        conds.append(Member.is_current_member == is_current_member)

    stmt = (
        select(AttendanceRecord)
        .join(Member, Member.id == AttendanceRecord.member_id, isouter=True)
        .where(and_(*conds))
        .order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.check_in_time.desc())
    )
    return [to_row(r) for r in db.execute(stmt).scalars().all()]


def get_attendance_date_range(db: Session, church_id: int) -> AttendanceDateRange:
    row = db.execute(
        select(
            func.min(AttendanceRecord.attendance_date),
            func.max(AttendanceRecord.attendance_date),
        ).where(AttendanceRecord.church_id == church_id)
    ).one()
    now = today()
    return AttendanceDateRange(earliest=row[0] or now, latest=row[1] or now)


def get_attendance_counts_by_date(db: Session, church_id: int, start: date, end: date) -> Dict[date, int]:
    stmt = (
        select(AttendanceRecord.attendance_date, func.count(AttendanceRecord.id))
        .where(
            and_(
                AttendanceRecord.church_id == church_id,
                AttendanceRecord.attendance_date >= start,
                AttendanceRecord.attendance_date <= end,
            )
        )
        .group_by(AttendanceRecord.attendance_date)
    )
    return {d: int(n) for d, n in db.execute(stmt)}
