# app/services/external_checkin.py
"""Public kiosk check-in gated by a per-event random slug and 6-digit PIN."""
from __future__ import annotations

import hmac
import logging
import secrets
import string
from typing import Optional, Tuple

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from app.config import get_settings
from app.models.attendance import AttendanceRecord, CheckInMethod
from app.models.church import Church
from app.models.event import Event
from app.schemas.event import ExternalCheckInSettings, PublicEventInfo
from app.services.attendance import check_in_member
from app.services.errors import EventNotFound, InvalidPin
from app.services.events import get_event

logger = logging.getLogger(__name__)

_SLUG_ALPHABET = string.ascii_letters + string.digits + "_-"
SLUG_LENGTH = 16


def generate_slug() -> str:
    return "".join(secrets.choice(_SLUG_ALPHABET) for _ in range(SLUG_LENGTH))


def generate_pin() -> str:
    return str(100000 + secrets.randbelow(900000))


def _full_url(slug: Optional[str]) -> Optional[str]:
    if not slug:
        return None
    return f"{get_settings().public_base_url}/external-checkin/{slug}"


def settings_for(event: Event) -> ExternalCheckInSettings:
    return ExternalCheckInSettings(
        event_id=event.id,
        event_name=event.name,
        enabled=bool(event.external_check_in_enabled),
        url=event.external_check_in_url,
        pin=event.external_check_in_pin,
        full_url=_full_url(event.external_check_in_url),
    )


def toggle_external_check_in(
    db: Session, church_id: int, event_id: int, enabled: bool
) -> Optional[ExternalCheckInSettings]:
    """
    Enabling issues a fresh slug and PIN every time; disabling clears both
    so an old link or PIN can never be replayed.
    """
    event = get_event(db, church_id, event_id)
    if event is None:
        return None
    if enabled and not event.is_active:
        raise ValueError("Cannot enable external check-in for an inactive event")

    if enabled:
        slug = generate_slug()
        while db.execute(select(Event.id).where(Event.external_check_in_url == slug)).first():
            slug = generate_slug()
        event.external_check_in_enabled = True
        event.external_check_in_url = slug
        event.external_check_in_pin = generate_pin()
    else:
        event.external_check_in_enabled = False
        event.external_check_in_url = None
        event.external_check_in_pin = None

    db.commit()
    db.refresh(event)
    logger.info("external check-in event=%s enabled=%s", event.id, enabled)
    return settings_for(event)


def _live_event(db: Session, slug: str) -> Optional[Event]:
    stmt = select(Event).where(
        and_(
            Event.external_check_in_url == slug,
            Event.external_check_in_enabled == True,  # noqa: E712
            Event.is_active == True,  # noqa: E712
        )
    )
    return db.execute(stmt).scalars().first()


def get_public_event(db: Session, slug: str) -> Optional[PublicEventInfo]:
    event = _live_event(db, slug)
    if event is None:
        return None
    church = db.get(Church, event.church_id)
    return PublicEventInfo(
        event_id=event.id,
        event_name=event.name,
        description=event.description,
        location=event.location,
        start_date=event.start_date,
        start_time=event.start_time,
        church_id=event.church_id,
        church_name=church.name if church else "",
        brand_color=church.brand_color if church else None,
    )


def external_check_in(db: Session, slug: str, pin: str, member_id: int) -> Tuple[Event, AttendanceRecord]:
    """
    Raises EventNotFound for an unknown or disabled slug, InvalidPin for a
    wrong PIN, PersonNotFound for a member outside the event's church and
    DuplicateCheckIn for a second check-in on the same day.
    """
    event = _live_event(db, slug)
    if event is None:
        raise EventNotFound("Event not found or external check-in disabled")
    if not event.external_check_in_pin or not hmac.compare_digest(event.external_check_in_pin, pin):
        logger.warning("external check-in bad pin event=%s", event.id)
        raise InvalidPin("Invalid PIN")

    record = check_in_member(
        db,
        event.church_id,
        member_id,
        method=CheckInMethod.EXTERNAL.value,
        event_id=event.id,
    )
    return event, record
