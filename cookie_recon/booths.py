"""
Booth distribution status.

Reservation dates are local calendar dates ("YYYY-MM-DD"). They are compared
against the local date of `now` and never converted through UTC, so a booth on
the 14th stays on the 14th regardless of the machine's timezone.
"""
from __future__ import annotations

import re
from datetime import date, datetime
from typing import Iterable, Optional

import pytz

from .models import BoothReservation, BoothStatus
from .settings import DEFAULT_SETTINGS, ReconSettings

_DATE_RE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})")
_TIME_24_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2})?$")
_TIME_12_RE = re.compile(r"^(\d{1,2}):(\d{2})\s*(AM|PM)$", re.IGNORECASE)


def local_now(settings: ReconSettings = DEFAULT_SETTINGS) -> datetime:
    tz = pytz.timezone(settings.timezone)
    return datetime.now(tz)


def parse_local_date(value: Optional[str]) -> Optional[date]:
    """Calendar date from "YYYY-MM-DD" (a trailing time part is ignored)"""
    if not value:
        return None
    m = _DATE_RE.match(str(value))
    if not m:
        return None
    try:
        return date(int(m.group(1)), int(m.group(2)), int(m.group(3)))
    except ValueError:
        return None


def parse_time_to_minutes(value: Optional[str]) -> Optional[int]:
    """Minutes since midnight for "16:00" or "4:00 PM"; None if unparseable"""
    s = (value or "").strip()
    m = _TIME_24_RE.match(s)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))
    m = _TIME_12_RE.match(s)
    if m:
        hours = int(m.group(1))
        period = m.group(3).upper()
        if period == "PM" and hours != 12:
            hours += 12
        if period == "AM" and hours == 12:
            hours = 0
        return hours * 60 + int(m.group(2))
    return None


def booth_status(reservation: BoothReservation, now: datetime) -> BoothStatus:
    if reservation.is_distributed:
        return BoothStatus.DISTRIBUTED

    booth_day = parse_local_date(reservation.date)
    if booth_day is None:
        return BoothStatus.NEEDS_DISTRIBUTION

    today = now.date()
    if booth_day > today:
        return BoothStatus.UPCOMING
    if booth_day < today:
        return BoothStatus.NEEDS_DISTRIBUTION

    minutes = now.hour * 60 + now.minute
    start = parse_time_to_minutes(reservation.start_time)
    end = parse_time_to_minutes(reservation.end_time)
    if start is not None and minutes < start:
        return BoothStatus.TODAY
    if end is None or minutes < end:
        return BoothStatus.IN_PROGRESS
    return BoothStatus.NEEDS_DISTRIBUTION


def count_booths_needing_distribution(reservations: Iterable[BoothReservation], now: datetime) -> int:
    """Physical booths whose time has passed without a distribution"""
    return sum(
        1 for r in reservations
        if not r.is_virtual and booth_status(r, now) == BoothStatus.NEEDS_DISTRIBUTION
    )
