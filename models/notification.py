from datetime import datetime
from models.db import db

NOTIFY_MEETING_REQUEST = "MEETING_REQUEST"
NOTIFY_MEETING_APPROVED = "MEETING_APPROVED"
NOTIFY_MEETING_REJECTED = "MEETING_REJECTED"
NOTIFY_MEETING_CANCELLED = "MEETING_CANCELLED"
MEETING_NOTIFICATION_TYPES = (
    NOTIFY_MEETING_REQUEST,
    NOTIFY_MEETING_APPROVED,
    NOTIFY_MEETING_REJECTED,
    NOTIFY_MEETING_CANCELLED,
)

class Notification(db.Model):
    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    type = db.Column(db.String(40), nullable=False)
    title = db.Column(db.String(160), nullable=False)
    message = db.Column(db.Text, nullable=False)
    related_id = db.Column(db.String(80), nullable=True)  # e.g. meeting id

    is_read = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
