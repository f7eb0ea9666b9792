# app/services/members.py
from __future__ import annotations

import logging
import secrets
from typing import Any, Dict, Iterable, List, Optional

from pydantic import ValidationError
from sqlalchemy import String, and_, func, or_, select
from sqlalchemy.orm import Session

from app.models.attendance import AttendanceRecord
from app.models.member import Member
from app.schemas.member import BulkUploadResult, MemberCreate, MemberUpdate, require_adult_phone

logger = logging.getLogger(__name__)

GENDER_GROUPS = {"male", "female"}
AGE_GROUPS = {"child", "adolescent", "adult"}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _new_family_group_id() -> str:
    return f"fam_{secrets.token_hex(6)}"


def _check_parent(db: Session, church_id: int, parent_id: Optional[int], member_id: Optional[int] = None) -> None:
    if parent_id is None:
        return
    if member_id is not None and parent_id == member_id:
        raise ValueError("A member cannot be their own parent")
    parent = get_member(db, church_id, parent_id)
    if parent is None:
        raise ValueError(f"Parent member {parent_id} not found")


def _check_fingerprint_free(
    db: Session, church_id: int, fingerprint_id: Optional[str], member_id: Optional[int] = None
) -> None:
    if not fingerprint_id:
        return
    holder = get_member_by_fingerprint(db, church_id, fingerprint_id)
    if holder is not None and holder.id != member_id:
        raise ValueError("Fingerprint is already enrolled for another member")


# ─────────────────────────────────────────────────────────────────────────────
# Reads
# ─────────────────────────────────────────────────────────────────────────────

def get_member(db: Session, church_id: int, member_id: int) -> Optional[Member]:
    """Return the member only if it belongs to the church."""
    member = db.get(Member, member_id)
    if member is None or member.church_id != church_id:
        return None
    return member


def get_member_by_fingerprint(db: Session, church_id: int, fingerprint_id: str) -> Optional[Member]:
    return (
        db.execute(
            select(Member).where(
                and_(Member.church_id == church_id, Member.fingerprint_id == fingerprint_id)
            )
        )
        .scalars()
        .first()
    )


def list_members(db: Session, church_id: int) -> List[Member]:
    stmt = (
        select(Member)
        .where(Member.church_id == church_id)
        .order_by(Member.first_name, Member.surname, Member.id)
    )
    return list(db.execute(stmt).scalars().all())


def search_members(
    db: Session,
    church_id: int,
    query: Optional[str] = None,
    group: Optional[str] = None,
) -> List[Member]:
    """
    Case-insensitive substring search over first name, surname and the
    full name in either order ("Jane Doe" / "Doe Jane").

    `group` narrows by gender (male/female) or age group
    (child/adolescent/adult); "all" or empty leaves it open.
    """
    conds = [Member.church_id == church_id]

    q = (query or "").strip().lower()
    if q:
        full = Member.first_name + " " + Member.surname
        reverse = Member.surname + " " + Member.first_name
        conds.append(
            or_(
                *(
                    func.lower(col, type_=String).contains(q, autoescape=True)
                    for col in (Member.first_name, Member.surname, full, reverse)
                )
            )
        )

    g = (group or "").strip().lower()
    if g in GENDER_GROUPS:
        conds.append(Member.gender == g)
    elif g in AGE_GROUPS:
        conds.append(Member.age_group == g)

    stmt = select(Member).where(and_(*conds)).order_by(Member.first_name, Member.surname, Member.id)
    return list(db.execute(stmt).scalars().all())


def get_members_by_parent(db: Session, church_id: int, parent_id: int) -> List[Member]:
    stmt = (
        select(Member)
        .where(and_(Member.church_id == church_id, Member.parent_id == parent_id))
        .order_by(Member.first_name, Member.surname, Member.id)
    )
    return list(db.execute(stmt).scalars().all())


def get_family_group(db: Session, church_id: int, family_group_id: str) -> List[Member]:
    """Members sharing a family group, head first."""
    stmt = (
        select(Member)
        .where(and_(Member.church_id == church_id, Member.family_group_id == family_group_id))
        .order_by(Member.is_family_head.desc(), Member.first_name, Member.surname)
    )
    return list(db.execute(stmt).scalars().all())


def get_member_attendance_history(
    db: Session, church_id: int, member_id: int, limit: int = 10
) -> List[AttendanceRecord]:
    stmt = (
        select(AttendanceRecord)
        .where(and_(AttendanceRecord.church_id == church_id, AttendanceRecord.member_id == member_id))
        .order_by(AttendanceRecord.attendance_date.desc(), AttendanceRecord.check_in_time.desc())
        .limit(limit)
    )
    return list(db.execute(stmt).scalars().all())


# ─────────────────────────────────────────────────────────────────────────────
# Writes
# ─────────────────────────────────────────────────────────────────────────────

def _build_member(db: Session, church_id: int, data: MemberCreate) -> Member:
    _check_parent(db, church_id, data.parent_id)
    _check_fingerprint_free(db, church_id, data.fingerprint_id)

    values = data.model_dump()
    if values.get("relationship_to_head") == "head":
        values["is_family_head"] = True
    if values.get("is_family_head") and not values.get("family_group_id"):
        values["family_group_id"] = _new_family_group_id()
    return Member(church_id=church_id, **values)


def create_member(db: Session, church_id: int, data: MemberCreate) -> Member:
    member = _build_member(db, church_id, data)
    db.add(member)
    db.commit()
    db.refresh(member)
    logger.info("member created id=%s church=%s", member.id, church_id)
    return member


def update_member(db: Session, church_id: int, member_id: int, patch: MemberUpdate) -> Optional[Member]:
    """Partial update; returns None when the member is not in this church."""
    member = get_member(db, church_id, member_id)
    if member is None:
        return None

    changes: Dict[str, Any] = patch.model_dump(exclude_unset=True)
    for name in ("first_name", "surname", "gender", "age_group", "is_current_member", "is_family_head"):
        if name in changes and changes[name] is None:
            raise ValueError(f"{name} cannot be null")

    if "parent_id" in changes:
        _check_parent(db, church_id, changes["parent_id"], member_id=member.id)
    if "fingerprint_id" in changes:
        changes["fingerprint_id"] = (changes["fingerprint_id"] or "").strip() or None
        _check_fingerprint_free(db, church_id, changes["fingerprint_id"], member_id=member.id)

    # promoted visitors may be adults without a phone; only re-check when the edit touches it
    if "age_group" in changes or "phone" in changes:
        age_group = changes.get("age_group", member.age_group)
        phone = changes["phone"] if "phone" in changes else member.phone
        require_adult_phone(age_group, phone)

    for key, value in changes.items():
        setattr(member, key, value)
    if member.is_family_head and not member.family_group_id:
        member.family_group_id = _new_family_group_id()

    db.commit()
    db.refresh(member)
    logger.info("member updated id=%s fields=%s", member.id, sorted(changes))
    return member


def bulk_create_members(db: Session, church_id: int, rows: Iterable[Dict[str, Any]]) -> BulkUploadResult:
    """Validate each row on its own; valid rows are inserted, bad rows reported by index."""
    created = 0
    total = 0
    errors: List[str] = []
    for idx, raw in enumerate(rows, start=1):
        total += 1
        try:
            data = MemberCreate.model_validate(raw)
            member = _build_member(db, church_id, data)
        except ValidationError as e:
            first = e.errors()[0]
            loc = ".".join(str(p) for p in first.get("loc", ())) or "row"
            errors.append(f"Row {idx}: {loc}: {first.get('msg')}")
            continue
        except ValueError as e:
            errors.append(f"Row {idx}: {e}")
            continue
        db.add(member)
        db.flush()
        created += 1
    db.commit()
    logger.info("bulk upload church=%s created=%s total=%s errors=%s", church_id, created, total, len(errors))
    return BulkUploadResult(created=created, total=total, errors=errors)
