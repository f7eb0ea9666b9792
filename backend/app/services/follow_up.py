# app/services/follow_up.py
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, List, Optional, Tuple

from sqlalchemy import and_, func, select
from sqlalchemy.orm import Session

from app.config import get_settings, today
from app.models.attendance import AttendanceRecord
from app.models.follow_up import FollowUpRecord
from app.models.member import Member
from app.schemas.follow_up import FollowUpMember
from app.services.errors import PersonNotFound
from app.services.members import get_member
from app.services.notifications import NotificationSender, notify_safely
from app.services.reports import get_missed_services_report

logger = logging.getLogger(__name__)

ABSENCE_THRESHOLD_WEEKS = 3


def get_follow_up(db: Session, member_id: int) -> Optional[FollowUpRecord]:
    return db.execute(select(FollowUpRecord).where(FollowUpRecord.member_id == member_id)).scalars().first()


def upsert_follow_up(db: Session, church_id: int, member_id: int, commit: bool = True, **fields: Any) -> FollowUpRecord:
    """One row per member: update it when present, insert otherwise."""
    record = get_follow_up(db, member_id)
    if record is None:
        record = FollowUpRecord(church_id=church_id, member_id=member_id)
        db.add(record)
    for key, value in fields.items():
        setattr(record, key, value)
    if commit:
        db.commit()
        db.refresh(record)
    return record


def get_members_needing_follow_up(db: Session, church_id: int) -> List[FollowUpMember]:
    last = (
        select(func.max(AttendanceRecord.attendance_date))
        .where(AttendanceRecord.member_id == Member.id)
        .correlate(Member)
        .scalar_subquery()
    )
    stmt = (
        select(Member, FollowUpRecord, last.label("last_attendance"))
        .join(FollowUpRecord, FollowUpRecord.member_id == Member.id)
        .where(and_(Member.church_id == church_id, FollowUpRecord.needs_follow_up == True))  # noqa: E712
        .order_by(FollowUpRecord.consecutive_absences.desc(), Member.first_name, Member.surname)
    )
    return [
        FollowUpMember(
            member_id=m.id,
            first_name=m.first_name,
            surname=m.surname,
            phone=m.phone,
            email=m.email,
            whatsapp_number=m.whatsapp_number,
            consecutive_absences=f.consecutive_absences,
            last_attendance=last_day,
            last_contact_date=f.last_contact_date,
            contact_method=f.contact_method,
        )
        for m, f, last_day in db.execute(stmt)
    ]


def update_consecutive_absences(db: Session, church_id: int, weeks: int = ABSENCE_THRESHOLD_WEEKS) -> int:
    """
    Flag every member who has not attended within `weeks` weeks.

    consecutive_absences is the number of whole weeks since the last
    attendance, never below `weeks`; members who never attended get `weeks`.
    Returns how many members were flagged.
    """
    now = today()
    flagged = 0
    for row in get_missed_services_report(db, church_id, weeks=weeks):
        absences = weeks
        if row.last_attendance is not None:
            absences = max(weeks, (now - row.last_attendance).days // 7)
        upsert_follow_up(
            db,
            church_id,
            row.member_id,
            commit=False,
            consecutive_absences=absences,
            needs_follow_up=True,
        )
        flagged += 1
    db.commit()
    logger.info("absence scan church=%s weeks=%s flagged=%s", church_id, weeks, flagged)
    return flagged


def _contact_message(member: Member, method: str, message: Optional[str]) -> Tuple[Optional[str], str, str]:
    """(recipient, subject, body) for the chosen channel."""
    body = message or (
        f"Hello {member.first_name}, we have missed you at church lately. "
        "We would love to see you again soon!"
    )
    subject = f"We miss you, {member.first_name}"
    if method == "email":
        return member.email, subject, body
    if method == "sms":
        return member.phone, subject, body
    if method == "whatsapp":
        return member.whatsapp_number or member.phone, subject, body
    # phone calls and visits are logged by staff; send the team a note instead
    inbox = get_settings().follow_up_notify_to
    note = f"Follow-up ({method}) recorded for {member.full_name}. Phone: {member.phone or '-'}"
    return inbox, f"Follow-up recorded: {member.full_name}", note


def record_contact(
    db: Session,
    church_id: int,
    member_id: int,
    method: str,
    notifier: NotificationSender,
    message: Optional[str] = None,
) -> Tuple[FollowUpRecord, bool]:
    """
    Mark the member as contacted and reset the absence counter, then try to
    notify. The contact is saved even when the notification fails.
    """
    member = get_member(db, church_id, member_id)
    if member is None:
        raise PersonNotFound(f"Member {member_id} not found")

    record = upsert_follow_up(
        db,
        church_id,
        member.id,
        last_contact_date=datetime.now(timezone.utc),
        contact_method=method,
        needs_follow_up=False,
        consecutive_absences=0,
    )
    logger.info("follow-up contact member=%s method=%s", member.id, method)

    to, subject, body = _contact_message(member, method, message)
    if not to:
        logger.info("follow-up member=%s: no recipient for %s, nothing sent", member.id, method)
        return record, False
    channel = "sms" if method in {"sms", "whatsapp"} else "email"
    return record, notify_safely(notifier, channel, to, subject, body)
