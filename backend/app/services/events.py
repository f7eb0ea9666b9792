# app/services/events.py
from __future__ import annotations

import logging
from datetime import date
from typing import List, Optional

from sqlalchemy import and_, case, func, select
from sqlalchemy.orm import Session

from app.models.attendance import AttendanceRecord
from app.models.event import Event
from app.models.member import Member
from app.schemas.event import EventAttendanceCount, EventAttendanceStats, EventCreate, EventUpdate

logger = logging.getLogger(__name__)


def get_event(db: Session, church_id: int, event_id: int) -> Optional[Event]:
    event = db.get(Event, event_id)
    if event is None or event.church_id != church_id:
        return None
    return event


def list_events(db: Session, church_id: int, active_only: bool = False) -> List[Event]:
    conds = [Event.church_id == church_id]
    if active_only:
        conds.append(Event.is_active == True)  # noqa: E712
    stmt = select(Event).where(and_(*conds)).order_by(Event.start_date.desc(), Event.name)
    return list(db.execute(stmt).scalars().all())


def create_event(db: Session, church_id: int, data: EventCreate) -> Event:
    event = Event(church_id=church_id, **data.model_dump())
    db.add(event)
    db.commit()
    db.refresh(event)
    logger.info("event created id=%s church=%s", event.id, church_id)
    return event


def update_event(db: Session, church_id: int, event_id: int, patch: EventUpdate) -> Optional[Event]:
    event = get_event(db, church_id, event_id)
    if event is None:
        return None
    changes = patch.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(event, key, value)
    if event.start_date and event.end_date and event.end_date < event.start_date:
        db.rollback()
        raise ValueError("end_date must be on or after start_date.")
    if changes.get("is_active") is False and event.external_check_in_enabled:
        # an inactive event cannot keep a live public check-in link
        event.external_check_in_enabled = False
        event.external_check_in_url = None
        event.external_check_in_pin = None
    db.commit()
    db.refresh(event)
    return event


def deactivate_event(db: Session, church_id: int, event_id: int) -> bool:
    """Soft delete; attendance keeps pointing at the row."""
    event = get_event(db, church_id, event_id)
    if event is None:
        return False
    event.is_active = False
    event.external_check_in_enabled = False
    event.external_check_in_url = None
    event.external_check_in_pin = None
    db.commit()
    logger.info("event deactivated id=%s", event_id)
    return True


def get_event_attendance_counts(
    db: Session, church_id: int, start: Optional[date] = None, end: Optional[date] = None
) -> List[EventAttendanceCount]:
    conds = [Event.church_id == church_id]
    join_conds = [AttendanceRecord.event_id == Event.id]
    if start is not None:
        join_conds.append(AttendanceRecord.attendance_date >= start)
    if end is not None:
        join_conds.append(AttendanceRecord.attendance_date <= end)

    stmt = (
        select(
            Event.id,
            Event.name,
            func.count(AttendanceRecord.id).label("total"),
            func.count(AttendanceRecord.member_id).label("members"),
            func.count(AttendanceRecord.visitor_id).label("visitors"),
        )
        .select_from(Event)
        .join(AttendanceRecord, and_(*join_conds), isouter=True)
        .where(and_(*conds))
        .group_by(Event.id, Event.name)
        .order_by(Event.name)
    )
    return [
        EventAttendanceCount(
            event_id=r.id,
            event_name=r.name,
            total=int(r.total or 0),
            members=int(r.members or 0),
            visitors=int(r.visitors or 0),
        )
        for r in db.execute(stmt)
    ]


def get_event_attendance_stats(db: Session, church_id: int, event_id: int) -> Optional[EventAttendanceStats]:
    if get_event(db, church_id, event_id) is None:
        return None

    gender = func.coalesce(Member.gender, AttendanceRecord.visitor_gender)
    age = func.coalesce(Member.age_group, AttendanceRecord.visitor_age_group)

    def _count(cond):
        return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)

    stmt = (
        select(
            func.count(AttendanceRecord.id).label("total"),
            func.count(AttendanceRecord.member_id).label("members"),
            func.count(AttendanceRecord.visitor_id).label("visitors"),
            _count(gender == "male").label("male"),
            _count(gender == "female").label("female"),
            _count(age == "child").label("child"),
            _count(age == "adolescent").label("adolescent"),
            _count(age == "adult").label("adult"),
            func.count(func.distinct(AttendanceRecord.attendance_date)).label("dates"),
        )
        .select_from(AttendanceRecord)
        .join(Member, Member.id == AttendanceRecord.member_id, isouter=True)
        .where(and_(AttendanceRecord.church_id == church_id, AttendanceRecord.event_id == event_id))
    )
    r = db.execute(stmt).one()
    return EventAttendanceStats(
        event_id=event_id,
        total=int(r.total or 0),
        members=int(r.members or 0),
        visitors=int(r.visitors or 0),
        male=int(r.male or 0),
        female=int(r.female or 0),
        child=int(r.child or 0),
        adolescent=int(r.adolescent or 0),
        adult=int(r.adult or 0),
        dates=int(r.dates or 0),
    )
