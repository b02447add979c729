from datetime import datetime
from models.db import db

SLOT_OPEN = "OPEN"          # free for new requests
SLOT_DISABLED = "DISABLED"  # switched off by the company
SLOT_HELD = "HELD"          # a PENDING meeting references it
SLOT_BOOKED = "BOOKED"      # a CONFIRMED meeting references it

class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id = db.Column(db.Integer, primary_key=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=SLOT_OPEN)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    company = db.relationship("User", back_populates="time_slots")
    meetings = db.relationship(
        "Meeting", back_populates="time_slot", cascade="all, delete-orphan", lazy=True
    )

    __table_args__ = (
        db.UniqueConstraint("user_id", "start_time", "end_time", name="uq_company_timeslot"),
    )

    @property
    def is_booked(self) -> bool:
        return self.status != SLOT_OPEN
