from flask import current_app

from models import db
from models.event import Event, EVENT_ACTIVE, EVENT_STATUSES, EVENT_UPCOMING
from models.meeting import Meeting
from models.notification import Notification, MEETING_NOTIFICATION_TYPES
from models.time_slot import TimeSlot
from utils.errors import NotFound, ValidationError
from utils.validators import is_valid_time, parse_iso_datetime

# request key -> (column, label used in error messages)
_TIME_FIELDS = {
    "operationStartTime": ("operation_start_time", "operation start time"),
    "operationEndTime": ("operation_end_time", "operation end time"),
    "lunchStartTime": ("lunch_start_time", "lunch start time"),
    "lunchEndTime": ("lunch_end_time", "lunch end time"),
}
_TEXT_FIELDS = {
    "name": "name",
    "description": "description",
    "venue": "venue",
    "headerImage": "header_image",
    "headerText": "header_text",
}


def get_active_event():
    return Event.query.filter_by(status=EVENT_ACTIVE).first()


def get_editable_event():
    return (
        Event.query
        .filter(Event.status.in_((EVENT_UPCOMING, EVENT_ACTIVE)))
        .order_by(Event.id.desc())
        .first()
    )


def _clean_event_changes(data: dict, current: Event) -> dict:
    changes = {}

    for key, (column, label) in _TIME_FIELDS.items():
        if data.get(key):
            if not is_valid_time(data[key]):
                raise ValidationError(f"Invalid {label} format (HH:MM)")
            changes[column] = data[key]

    if data.get("meetingDuration") is not None:
        duration = data["meetingDuration"]
        low = current_app.config.get("MEETING_DURATION_MIN", 15)
        high = current_app.config.get("MEETING_DURATION_MAX", 120)
        if isinstance(duration, bool) or not isinstance(duration, int) or not low <= duration <= high:
            raise ValidationError(f"Meeting duration must be between {low} and {high} minutes")
        changes["meeting_duration"] = duration

    for key, column in _TEXT_FIELDS.items():
        if key in data:
            value = data[key]
            if value is not None and not isinstance(value, str):
                raise ValidationError(f"Invalid {key}")
            if key == "name" and not (value or "").strip():
                raise ValidationError("Event name is required")
            changes[column] = value.strip() if isinstance(value, str) else None

    if data.get("startDate"):
        changes["start_date"] = parse_iso_datetime(data["startDate"], "startDate")
    if data.get("endDate"):
        changes["end_date"] = parse_iso_datetime(data["endDate"], "endDate")

    if data.get("status"):
        status = str(data["status"]).strip().upper()
        if status not in EVENT_STATUSES:
            raise ValidationError("status must be UPCOMING, ACTIVE or ENDED")
        changes["status"] = status

    start = changes.get("start_date", current.start_date)
    end = changes.get("end_date", current.end_date)
    if end < start:
        raise ValidationError("endDate must not be before startDate")

    op_start = changes.get("operation_start_time", current.operation_start_time)
    op_end = changes.get("operation_end_time", current.operation_end_time)
    if _minutes(op_end) <= _minutes(op_start):
        raise ValidationError("Operation end time must be after operation start time")

    lunch_start = changes.get("lunch_start_time", current.lunch_start_time)
    lunch_end = changes.get("lunch_end_time", current.lunch_end_time)
    if _minutes(lunch_end) < _minutes(lunch_start):
        raise ValidationError("Lunch end time must not be before lunch start time")

    return changes


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(":")
    return int(hours) * 60 + int(minutes)


def update_event(data: dict):
    """
    Applies an admin update to the UPCOMING/ACTIVE event.

    Changing meetingDuration invalidates every slot: meetings, time slots and
    meeting notifications are deleted in the same transaction.
    Returns (event, reset_message or None).
    """
    event = get_editable_event()
    if not event:
        raise NotFound("No event to update")

    changes = _clean_event_changes(data, event)
    duration_changed = (
        "meeting_duration" in changes and changes["meeting_duration"] != event.meeting_duration
    )

    reset_message = None
    if duration_changed:
        deleted_meetings = Meeting.query.delete(synchronize_session="fetch")
        deleted_slots = TimeSlot.query.delete(synchronize_session="fetch")
        Notification.query.filter(
            Notification.type.in_(MEETING_NOTIFICATION_TYPES)
        ).delete(synchronize_session="fetch")
        reset_message = (
            f"Meeting duration changed: {deleted_meetings} meetings and "
            f"{deleted_slots} time slots were reset."
        )

    for column, value in changes.items():
        setattr(event, column, value)
    db.session.commit()

    if reset_message:
        current_app.logger.warning(reset_message)
    return event, reset_message
