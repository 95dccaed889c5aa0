"""
Date-range predicates used by the booking overlap checks.

All ranges are half-open: [check_in, check_out). A stay checking out on the
day another checks in does not overlap it.

The week guard limits a user to one booking per Monday-Sunday week. A stay's
week window covers every week containing at least one of its nights, so a
check-out on Monday morning does not claim that week.
"""

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional
from uuid import UUID

ONE_DAY = timedelta(days=1)


@dataclass(frozen=True)
class DateRange:
    start: date
    end: date  # exclusive

    def overlaps(self, other: "DateRange") -> bool:
        return ranges_overlap(self.start, self.end, other.start, other.end)


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    return not (a_end <= b_start or a_start >= b_end)


def week_start(day: date) -> date:
    """Monday on or before `day`."""
    return day - timedelta(days=day.weekday())


def week_end(day: date) -> date:
    """Sunday on or after `day`."""
    return week_start(day) + timedelta(days=6)


def week_window(check_in: date, check_out: date) -> DateRange:
    last_night = max(check_in, check_out - ONE_DAY)
    return DateRange(week_start(check_in), week_end(last_night) + ONE_DAY)


def stay_range(booking) -> DateRange:
    return DateRange(booking.check_in_date, booking.check_out_date)


def find_overlap(candidate: DateRange, bookings: Iterable, exclude_id: Optional[UUID] = None):
    """First booking whose stay intersects `candidate`, skipping the booking being edited."""
    for booking in bookings:
        if exclude_id is not None and booking.id == exclude_id:
            continue
        if stay_range(booking).overlaps(candidate):
            return booking
    return None
