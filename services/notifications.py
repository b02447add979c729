from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from models import db
from models.notification import (
    Notification,
    NOTIFY_MEETING_APPROVED,
    NOTIFY_MEETING_REJECTED,
    NOTIFY_MEETING_REQUEST,
)

def _when(meeting) -> str:
    return meeting.time_slot.start_time.strftime("%Y-%m-%d %H:%M")

def create_notification(user_id: int, type_: str, title: str, message: str, related_id=None):
    """
    Writes one Notification row in its own commit.

    Fire-and-forget: a failure is rolled back and logged, never raised.
    Returns the row or None.
    """
    row = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        message=message,
        related_id=str(related_id) if related_id is not None else None,
        is_read=False,
    )
    try:
        db.session.add(row)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Notification %s for user %s failed", type_, user_id)
        return None

    current_app.logger.debug("Notification %s created for user %s", row.id, user_id)
    return row

def notify_meeting_request(meeting):
    return create_notification(
        meeting.company_id,
        NOTIFY_MEETING_REQUEST,
        "New meeting request",
        f"{meeting.buyer.name} requested a meeting at {_when(meeting)}.",
        related_id=meeting.id,
    )

def notify_meeting_approved(meeting):
    return create_notification(
        meeting.buyer_id,
        NOTIFY_MEETING_APPROVED,
        "Meeting approved",
        f"{meeting.company.name} approved your meeting at {_when(meeting)}.",
        related_id=meeting.id,
    )

def notify_meeting_rejected(meeting):
    return create_notification(
        meeting.buyer_id,
        NOTIFY_MEETING_REJECTED,
        "Meeting request rejected",
        f"{meeting.company.name} rejected your meeting request. Please pick another time slot.",
        related_id=meeting.id,
    )
