"""
Time parsing and calculations for appointment windows.

Timestamps are stored as naive UTC. Wall-clock input ("2025-06-01" + "10:00")
is interpreted in the salon's business time zone.
"""

import re
from datetime import date, datetime, time, timedelta

import pytz

from ...config import BUSINESS_TIME_ZONE
from .errors import InvalidDateTime, ValidationError

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
TIME_PATTERN = re.compile(r"^\d{1,2}:\d{2}(:\d{2})?$")


def business_tz():
    return pytz.timezone(BUSINESS_TIME_ZONE)


def parse_date(value: str, field_name: str = "date") -> date:
    """Parse a YYYY-MM-DD calendar date"""
    value = str(value).strip()
    if not DATE_PATTERN.match(value):
        raise InvalidDateTime(f"Invalid {field_name} format. Use YYYY-MM-DD")
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError as e:
        raise InvalidDateTime(f"Invalid {field_name}: {value}") from e


def parse_wall_time(value: str, field_name: str = "startTime") -> time:
    """Parse an HH:mm (or HH:mm:ss) wall-clock time"""
    value = str(value).strip()
    if not TIME_PATTERN.match(value):
        raise InvalidDateTime(f"Invalid {field_name} format. Use HH:mm")
    parts = [int(p) for p in value.split(":")]
    try:
        return time(*parts)
    except ValueError as e:
        raise InvalidDateTime(f"Invalid {field_name}: {value}") from e


def compose_local(day: date, wall_time: time) -> datetime:
    """Combine a business-local date and time into a naive UTC instant"""
    local = business_tz().localize(datetime.combine(day, wall_time))
    return local.astimezone(pytz.UTC).replace(tzinfo=None)


def parse_timestamp(value: str, field_name: str = "timestamp") -> datetime:
    """
    Parse an ISO-8601 timestamp into naive UTC.
    Values without an offset are read as business-local wall-clock time.
    """
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError as e:
            raise InvalidDateTime(f"Invalid {field_name}: {value}") from e

    if parsed.tzinfo is None:
        parsed = business_tz().localize(parsed)
    return parsed.astimezone(pytz.UTC).replace(tzinfo=None)


def to_business_time(value: datetime) -> datetime:
    """Naive UTC → aware business-local datetime"""
    return pytz.UTC.localize(value).astimezone(business_tz())


def to_utc_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is not None:
        return value.astimezone(pytz.UTC)
    return pytz.UTC.localize(value)


def add_minutes(start: datetime, minutes: int) -> datetime:
    return start + timedelta(minutes=minutes)


def pin_hours_to_day(anchor: datetime, start_hhmm: str, end_hhmm: str) -> tuple[datetime, datetime]:
    """
    Keep the business-local calendar date of ``anchor`` but take the
    time-of-day from an explicit hour selection.

    Used when a garden block is dragged to another day and its exact hours
    were refined separately: the date travels with the drag target, the hours
    stay pinned to the selection.
    """
    day = to_business_time(anchor).date()
    start = compose_local(day, parse_wall_time(start_hhmm, "selectedHours.start"))
    end = compose_local(day, parse_wall_time(end_hhmm, "selectedHours.end"))
    if end <= start:
        raise ValidationError("selectedHours.end must be after selectedHours.start")
    return start, end


def business_day_bounds(day: date) -> tuple[datetime, datetime]:
    """UTC bounds [start, end) of a business-local calendar day"""
    start = compose_local(day, time.min)
    end = compose_local(day + timedelta(days=1), time.min)
    return start, end


def business_date_of(value: datetime) -> date:
    return to_business_time(value).date()
