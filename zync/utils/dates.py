"""
Helpers for the `YYYY-MM-DD` / `HH:MM` string formats used on the wire and in
storage. Stored strings in these formats sort lexicographically in
chronological order, which the range queries rely on.
"""
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"
DAY_LABELS = ["Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"]


def utcnow() -> datetime:
    """Naive UTC timestamp, matching what the Mongo driver hands back."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_date(value: str) -> date:
    return datetime.strptime(value, DATE_FORMAT).date()


def format_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


def parse_time(value: str) -> time:
    return datetime.strptime(value, TIME_FORMAT).time()


def time_to_minutes(value: str) -> int:
    parsed = parse_time(value)
    return parsed.hour * 60 + parsed.minute


def minutes_to_time(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def sunday_based_weekday(value: date) -> int:
    """0 = Sunday ... 6 = Saturday."""
    return (value.weekday() + 1) % 7


def week_bounds(today: date) -> Tuple[date, date]:
    """Sunday..Saturday week containing `today`."""
    start = today - timedelta(days=sunday_based_weekday(today))
    return start, start + timedelta(days=6)


def month_bounds(today: date) -> Tuple[date, date]:
    start = today.replace(day=1)
    next_month = (start + timedelta(days=32)).replace(day=1)
    return start, next_month - timedelta(days=1)


def previous_month_bounds(today: date) -> Tuple[date, date]:
    this_month_start, _ = month_bounds(today)
    return month_bounds(this_month_start - timedelta(days=1))


def duration_hours(start_time: str, end_time: str) -> float:
    return (time_to_minutes(end_time) - time_to_minutes(start_time)) / 60


def hours_until(appointment_date: str, start_time: str, now: datetime) -> float:
    starts_at = datetime.combine(parse_date(appointment_date), parse_time(start_time))
    return (starts_at - now).total_seconds() / 3600
