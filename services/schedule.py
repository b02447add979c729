"""
Slot generation for the event schedule.

Candidates are derived from the event window, the daily operating hours,
the lunch break and the meeting length. Nothing here touches the database.
"""
from collections import namedtuple
from datetime import date, datetime, timedelta

from utils.validators import TIME_RE

SlotCandidate = namedtuple("SlotCandidate", ["day", "start"])


def parse_hhmm(value: str) -> int:
    """Convert "HH:MM" to minutes after midnight."""
    if not isinstance(value, str) or not TIME_RE.match(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def format_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def _daily_starts(op_start: int, op_end: int, lunch_start: int, lunch_end: int, duration: int):
    starts = []
    start = op_start
    while start + duration <= op_end:
        # [start, start+duration) against [lunch_start, lunch_end)
        overlaps_lunch = start < lunch_end and start + duration > lunch_start
        if not overlaps_lunch:
            starts.append(start)
        start += duration
    return starts


def generate_slot_candidates(
    start_date,
    end_date,
    operation_start: str,
    operation_end: str,
    lunch_start: str,
    lunch_end: str,
    meeting_duration: int,
):
    """
    Return the ordered list of bookable (day, "HH:MM") candidates.

    For each day in [start_date, end_date], steps by meeting_duration from
    operation_start. A step is kept while it ends no later than operation_end
    and does not overlap the lunch break.
    """
    if not isinstance(meeting_duration, int) or meeting_duration <= 0:
        raise ValueError("meeting_duration must be a positive number of minutes")

    first_day = _as_date(start_date)
    last_day = _as_date(end_date)
    if last_day < first_day:
        raise ValueError("end_date must not be before start_date")

    op_start = parse_hhmm(operation_start)
    op_end = parse_hhmm(operation_end)
    if op_end <= op_start:
        raise ValueError("operation_end must be after operation_start")

    lunch_from = parse_hhmm(lunch_start)
    lunch_to = parse_hhmm(lunch_end)
    if lunch_to < lunch_from:
        raise ValueError("lunch_end must not be before lunch_start")

    starts = [format_hhmm(m) for m in _daily_starts(op_start, op_end, lunch_from, lunch_to, meeting_duration)]

    candidates = []
    day = first_day
    while day <= last_day:
        candidates.extend(SlotCandidate(day, s) for s in starts)
        day += timedelta(days=1)
    return candidates


def candidate_bounds(candidate: SlotCandidate, meeting_duration: int):
    """(start, end) datetimes for a candidate."""
    start = datetime.combine(candidate.day, datetime.min.time()) + timedelta(
        minutes=parse_hhmm(candidate.start)
    )
    return start, start + timedelta(minutes=meeting_duration)


def candidates_for_event(event):
    return generate_slot_candidates(
        event.start_date,
        event.end_date,
        event.operation_start_time,
        event.operation_end_time,
        event.lunch_start_time,
        event.lunch_end_time,
        event.meeting_duration,
    )
