import json
from datetime import datetime
from models.db import db

class AuditLog(db.Model):
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)  # null for anonymous actions
    action = db.Column(db.String(80), nullable=False, index=True)  # e.g. MEETING_REQUEST, RESET_DATA
    entity = db.Column(db.String(80), nullable=True)   # e.g. meeting, time_slot
    entity_id = db.Column(db.String(80), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False, index=True)

    @property
    def details(self):
        return json.loads(self.metadata_json) if self.metadata_json else None
