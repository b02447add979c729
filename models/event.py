from datetime import datetime
from models.db import db

EVENT_UPCOMING = "UPCOMING"
EVENT_ACTIVE = "ACTIVE"
EVENT_ENDED = "ENDED"
EVENT_STATUSES = (EVENT_UPCOMING, EVENT_ACTIVE, EVENT_ENDED)

class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(160), nullable=False)
    description = db.Column(db.Text, nullable=True)

    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    venue = db.Column(db.String(160), nullable=True)

    header_image = db.Column(db.String(255), nullable=True)
    header_text = db.Column(db.String(255), nullable=True)

    meeting_duration = db.Column(db.Integer, nullable=False, default=30)  # minutes

    # daily hours, "HH:MM"
    operation_start_time = db.Column(db.String(5), nullable=False, default="09:00")
    operation_end_time = db.Column(db.String(5), nullable=False, default="18:00")
    lunch_start_time = db.Column(db.String(5), nullable=False, default="12:00")
    lunch_end_time = db.Column(db.String(5), nullable=False, default="13:00")

    # Only one ACTIVE event is expected at a time (not enforced by the DB)
    status = db.Column(db.String(20), nullable=False, default=EVENT_UPCOMING, index=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
