# app/services/errors.py
"""
Check-in failures.

Plain business-rule violations are raised as ValueError (-> 400) like the
rest of the services; these carry their own HTTP mapping, registered as
exception handlers in app.main.
"""
from __future__ import annotations

from datetime import date
from typing import Optional


class CheckInError(Exception):
    status_code = 400


class DuplicateCheckIn(CheckInError):
    status_code = 409

    def __init__(self, name: str, on_date: date, existing_id: Optional[int] = None):
        self.name = name
        self.on_date = on_date
        self.existing_id = existing_id
        super().__init__(f"{name} has already been checked in on {on_date.isoformat()}")


class PersonNotFound(CheckInError):
    status_code = 404


class EventNotFound(CheckInError):
    status_code = 404


class InvalidPin(CheckInError):
    status_code = 401
