from datetime import datetime
from models.db import db

ROLE_COMPANY = "COMPANY"
ROLE_BUYER = "BUYER"
ROLE_ADMIN = "ADMIN"

class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)

    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # COMPANY, BUYER or ADMIN; fixed at creation
    role = db.Column(db.String(20), nullable=False, index=True)

    description = db.Column(db.Text, nullable=True)
    website = db.Column(db.String(255), nullable=True)

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    time_slots = db.relationship(
        "TimeSlot", back_populates="company", cascade="all, delete-orphan", lazy=True
    )
    company_meetings = db.relationship(
        "Meeting", foreign_keys="Meeting.company_id", back_populates="company",
        cascade="all, delete-orphan", lazy=True,
    )
    buyer_meetings = db.relationship(
        "Meeting", foreign_keys="Meeting.buyer_id", back_populates="buyer",
        cascade="all, delete-orphan", lazy=True,
    )
    notifications = db.relationship("Notification", cascade="all, delete-orphan", lazy=True)
    sessions = db.relationship("Session", back_populates="user", cascade="all, delete-orphan", lazy=True)
