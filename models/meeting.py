from datetime import datetime
from models.db import db

MEETING_PENDING = "PENDING"
MEETING_CONFIRMED = "CONFIRMED"
MEETING_REJECTED = "REJECTED"
MEETING_CANCELLED = "CANCELLED"
MEETING_STATUSES = (MEETING_PENDING, MEETING_CONFIRMED, MEETING_REJECTED, MEETING_CANCELLED)
ACTIVE_MEETING_STATUSES = (MEETING_PENDING, MEETING_CONFIRMED)

_ACTIVE_ONLY = db.text("status IN ('PENDING', 'CONFIRMED')")

class Meeting(db.Model):
    __tablename__ = "meetings"

    id = db.Column(db.Integer, primary_key=True)

    company_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    buyer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    time_slot_id = db.Column(db.Integer, db.ForeignKey("time_slots.id"), nullable=False, index=True)

    status = db.Column(db.String(20), nullable=False, default=MEETING_PENDING)
    message = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    company = db.relationship("User", foreign_keys=[company_id], back_populates="company_meetings")
    buyer = db.relationship("User", foreign_keys=[buyer_id], back_populates="buyer_meetings")
    time_slot = db.relationship("TimeSlot", back_populates="meetings")

    __table_args__ = (
        # At most one PENDING/CONFIRMED meeting per slot
        db.Index(
            "uq_meeting_active_slot",
            "time_slot_id",
            unique=True,
            sqlite_where=_ACTIVE_ONLY,
            postgresql_where=_ACTIVE_ONLY,
        ),
    )
