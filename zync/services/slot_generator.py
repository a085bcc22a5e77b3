"""
Expansion of weekly recurring availability rules into concrete dated slots.

For each calendar day in the requested range, every active rule whose
`day_of_week` matches that day is walked from its start time in steps of
`duration + buffer` minutes. A slot of `duration` minutes is emitted at each
step whose end does not pass the rule's end time.
"""
from datetime import date, timedelta
from typing import Any, Dict, Iterable, Iterator, List

from zync.utils.dates import (
    format_date,
    minutes_to_time,
    sunday_based_weekday,
    time_to_minutes,
)


def iter_days(start: date, end: date) -> Iterator[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def expand_rule(rule: Dict[str, Any], day: date) -> List[Dict[str, Any]]:
    """Concrete slots a single rule produces on `day` (weekday not checked)."""
    duration = rule["duration_minutes"]
    buffer_time = rule.get("buffer_time_minutes") or 0
    window_start = time_to_minutes(rule["start_time"])
    window_end = time_to_minutes(rule["end_time"])

    slots = []
    cursor = window_start
    while cursor + duration <= window_end:
        slots.append({
            "date": format_date(day),
            "start_time": minutes_to_time(cursor),
            "end_time": minutes_to_time(cursor + duration),
            "duration_minutes": duration,
            "buffer_time_minutes": buffer_time,
        })
        cursor += duration + buffer_time
    return slots


def generate_slots(rules: Iterable[Dict[str, Any]], start: date, end: date) -> List[Dict[str, Any]]:
    """
    Slots produced by `rules` for every day in [start, end], ordered by date
    then by rule order. Inactive rules are skipped.
    """
    by_weekday: Dict[int, List[Dict[str, Any]]] = {}
    for rule in rules:
        if rule.get("is_active", True):
            by_weekday.setdefault(rule["day_of_week"], []).append(rule)

    slots: List[Dict[str, Any]] = []
    if not by_weekday:
        return slots

    for day in iter_days(start, end):
        for rule in by_weekday.get(sunday_based_weekday(day), []):
            slots.extend(expand_rule(rule, day))
    return slots
