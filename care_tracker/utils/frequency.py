"""
Date/frequency normalization

Tracking dates travel as MM-DD-YYYY strings. A bucket date is the canonical
date of a tracking period: the day itself (daily), the Monday of its ISO week
(weekly) or the first of its month (monthly).
"""

import re
from datetime import date, datetime, timedelta
from typing import Union

from care_tracker.exceptions import ValidationError
from care_tracker.models.track import TrackingFrequency

DateLike = Union[str, date]

_ISO_PREFIX = re.compile(r"^(\d{4})-(\d{2})-(\d{2})")


def _to_frequency(frequency: Union[str, TrackingFrequency]) -> TrackingFrequency:
    try:
        return TrackingFrequency(frequency)
    except ValueError:
        raise ValidationError(
            message=f"Unknown tracking frequency '{frequency}'",
            field="frequency",
            value=frequency
        )


def parse_track_date(value: DateLike) -> date:
    """
    Parse a tracking date.

    Accepts MM-DD-YYYY, any string starting with YYYY-MM-DD (ISO dates and
    timestamps) and date/datetime objects. Missing month or day parts of the
    MM-DD-YYYY form default to 1.

    Raises:
        ValidationError: If the value is not a recognizable calendar date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value

    text = str(value).strip()
    try:
        iso = _ISO_PREFIX.match(text)
        if iso:
            year, month, day = (int(part) for part in iso.groups())
            return date(year, month, day)

        parts = text.split("-")
        if len(parts) != 3:
            raise ValueError("expected MM-DD-YYYY")
        month = int(parts[0]) if parts[0] else 1
        day = int(parts[1]) if parts[1] else 1
        year = int(parts[2])
        return date(year, month or 1, day or 1)
    except ValueError as e:
        raise ValidationError(
            message=f"Invalid tracking date '{value}': {e}",
            field="date",
            value=value
        )


def format_track_date(value: date) -> str:
    """Format a date as MM-DD-YYYY"""
    return f"{value.month:02d}-{value.day:02d}-{value.year:04d}"


def normalize_bucket_date(value: DateLike, frequency: Union[str, TrackingFrequency]) -> str:
    """
    Map a date to the bucket date of its tracking period.

    daily -> the date itself, weekly -> Monday of the week (Sunday maps back
    six days), monthly -> the first of the month. Idempotent.
    """
    freq = _to_frequency(frequency)
    day = parse_track_date(value)

    if freq is TrackingFrequency.WEEKLY:
        day = day - timedelta(days=day.weekday())
    elif freq is TrackingFrequency.MONTHLY:
        day = day.replace(day=1)
    return format_track_date(day)


def is_bucket_boundary(value: DateLike, frequency: Union[str, TrackingFrequency]) -> bool:
    """Whether a date opens a new bucket: always (daily), Mondays (weekly), the 1st (monthly)"""
    freq = _to_frequency(frequency)
    day = parse_track_date(value)

    if freq is TrackingFrequency.DAILY:
        return True
    if freq is TrackingFrequency.WEEKLY:
        return day.weekday() == 0
    return day.day == 1


def bucket_dates_for(value: DateLike) -> dict[str, str]:
    """Bucket date of one calendar date under every frequency"""
    return {freq.value: normalize_bucket_date(value, freq) for freq in TrackingFrequency}
