"""
Meeting booking and slot lifecycle.

TimeSlot.status moves OPEN -> HELD when a buyer requests it, HELD -> BOOKED
when the company confirms and HELD -> OPEN when it rejects. Every move that
touches a meeting and its slot commits both rows together.
"""
from datetime import datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from models import db
from models.meeting import (
    Meeting,
    ACTIVE_MEETING_STATUSES,
    MEETING_CONFIRMED,
    MEETING_PENDING,
    MEETING_REJECTED,
)
from models.time_slot import TimeSlot, SLOT_BOOKED, SLOT_DISABLED, SLOT_HELD, SLOT_OPEN
from models.user import ROLE_COMPANY
from services.notifications import (
    notify_meeting_approved,
    notify_meeting_rejected,
    notify_meeting_request,
)
from services.schedule import candidate_bounds, candidates_for_event
from utils.errors import Conflict, NotFound, ValidationError

RESOLUTIONS = (MEETING_CONFIRMED, MEETING_REJECTED)


def _active_meeting(slot_id: int):
    return (
        Meeting.query
        .filter(Meeting.time_slot_id == slot_id, Meeting.status.in_(ACTIVE_MEETING_STATUSES))
        .first()
    )


def _claim_slot(slot_id: int, from_status: str, to_status: str) -> bool:
    # conditional update: only one concurrent caller sees rowcount == 1
    updated = (
        TimeSlot.query
        .filter(TimeSlot.id == slot_id, TimeSlot.status == from_status)
        .update({TimeSlot.status: to_status}, synchronize_session=False)
    )
    return updated == 1


def _own_slot(company, slot_id: int) -> TimeSlot:
    slot = TimeSlot.query.filter_by(id=slot_id, user_id=company.id).first()
    if not slot:
        raise NotFound("Time slot not found")
    return slot


# ---------- buyers: request a meeting ----------
def request_meeting(time_slot_id: int, buyer, message=None) -> Meeting:
    slot = db.session.get(TimeSlot, time_slot_id)
    if not slot:
        raise NotFound("Time slot not found")

    if slot.status != SLOT_OPEN or _active_meeting(slot.id):
        raise Conflict("Time slot already booked")

    try:
        if not _claim_slot(slot.id, SLOT_OPEN, SLOT_HELD):
            db.session.rollback()
            raise Conflict("Time slot already booked")

        meeting = Meeting(
            company_id=slot.user_id,
            buyer_id=buyer.id,
            time_slot_id=slot.id,
            message=(message or "").strip() or None,
            status=MEETING_PENDING,
        )
        db.session.add(meeting)
        db.session.commit()
    except IntegrityError:
        # uq_meeting_active_slot: another request won the slot
        db.session.rollback()
        raise Conflict("Time slot already booked")

    current_app.logger.info("Meeting %s requested by buyer %s on slot %s", meeting.id, buyer.id, slot.id)
    notify_meeting_request(meeting)
    return meeting


# ---------- companies/admins: approve or reject ----------
def resolve_meeting(meeting_id: int, decision: str, actor) -> Meeting:
    if decision not in RESOLUTIONS:
        raise ValidationError("status must be CONFIRMED or REJECTED")

    q = Meeting.query.filter_by(id=meeting_id)
    if actor.role == ROLE_COMPANY:
        q = q.filter_by(company_id=actor.id)
    meeting = q.first()
    if not meeting:
        raise NotFound("Meeting not found")

    if meeting.status != MEETING_PENDING:
        raise ValidationError("Meeting has already been processed")

    updated = (
        Meeting.query
        .filter(Meeting.id == meeting.id, Meeting.status == MEETING_PENDING)
        .update({Meeting.status: decision, Meeting.updated_at: datetime.utcnow()}, synchronize_session=False)
    )
    if updated != 1:
        db.session.rollback()
        raise ValidationError("Meeting has already been processed")

    slot_status = SLOT_BOOKED if decision == MEETING_CONFIRMED else SLOT_OPEN
    TimeSlot.query.filter_by(id=meeting.time_slot_id).update(
        {TimeSlot.status: slot_status}, synchronize_session=False
    )
    db.session.commit()

    current_app.logger.info("Meeting %s %s by user %s", meeting.id, decision, actor.id)
    if decision == MEETING_CONFIRMED:
        notify_meeting_approved(meeting)
    else:
        notify_meeting_rejected(meeting)
    return meeting


# ---------- companies: manage own slots ----------
def _overlapping_slot(company_id: int, start: datetime, end: datetime, exclude_id=None):
    q = TimeSlot.query.filter(
        TimeSlot.user_id == company_id,
        TimeSlot.start_time < end,
        TimeSlot.end_time > start,
    )
    if exclude_id is not None:
        q = q.filter(TimeSlot.id != exclude_id)
    return q.first()


def create_time_slot(company, start: datetime, end: datetime) -> TimeSlot:
    if end <= start:
        raise ValidationError("endTime must be after startTime")
    if start < datetime.utcnow():
        raise ValidationError("Cannot create a time slot in the past")
    if _overlapping_slot(company.id, start, end):
        raise ValidationError("Time slot overlaps an existing slot")

    slot = TimeSlot(user_id=company.id, start_time=start, end_time=end, status=SLOT_OPEN)
    db.session.add(slot)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Time slot already exists")
    return slot


def generate_time_slots(company, event, dates=None):
    """
    Create OPEN slots for the event candidates, optionally only for the given
    dates. Past candidates and candidates overlapping an existing slot of the
    company are skipped. Returns (created_slots, skipped_count).
    """
    try:
        candidates = candidates_for_event(event)
    except ValueError as exc:
        raise ValidationError(str(exc))

    if dates is not None:
        wanted = set(dates)
        candidates = [c for c in candidates if c.day in wanted]

    now = datetime.utcnow()
    taken = [
        (s.start_time, s.end_time)
        for s in TimeSlot.query.filter_by(user_id=company.id).all()
    ]

    created, skipped = [], 0
    for candidate in candidates:
        start, end = candidate_bounds(candidate, event.meeting_duration)
        if start < now or any(s < end and e > start for s, e in taken):
            skipped += 1
            continue
        slot = TimeSlot(user_id=company.id, start_time=start, end_time=end, status=SLOT_OPEN)
        db.session.add(slot)
        created.append(slot)
        taken.append((start, end))

    db.session.commit()
    current_app.logger.info(
        "Generated %s slots for company %s (%s skipped)", len(created), company.id, skipped
    )
    return created, skipped


def disable_time_slot(company, slot_id: int) -> TimeSlot:
    slot = _own_slot(company, slot_id)
    if slot.status == SLOT_BOOKED:
        raise ValidationError("A time slot with a confirmed meeting cannot be disabled")
    if slot.status == SLOT_DISABLED:
        return slot

    pending = _active_meeting(slot.id) if slot.status == SLOT_HELD else None
    if pending:
        pending.status = MEETING_REJECTED
    slot.status = SLOT_DISABLED
    db.session.commit()

    if pending:
        notify_meeting_rejected(pending)
    return slot


def enable_time_slot(company, slot_id: int) -> TimeSlot:
    slot = _own_slot(company, slot_id)
    if slot.status == SLOT_BOOKED:
        raise ValidationError("A time slot with a confirmed meeting cannot be changed")
    if slot.status == SLOT_HELD:
        raise ValidationError("Time slot has a pending meeting request")
    if slot.start_time < datetime.utcnow():
        raise ValidationError("Past time slots cannot be reopened")
    if slot.status == SLOT_OPEN:
        return slot

    slot.status = SLOT_OPEN
    db.session.commit()
    return slot


def release_buyer_slots(buyer) -> int:
    """Reopen the slots held or booked by a buyer's active meetings (caller commits)."""
    count = 0
    for meeting in buyer.buyer_meetings:
        if meeting.status in ACTIVE_MEETING_STATUSES and meeting.time_slot:
            meeting.time_slot.status = SLOT_OPEN
            count += 1
    return count
