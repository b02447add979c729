from datetime import datetime, timedelta

from flask import current_app

from models import db
from models.event import Event, EVENT_ACTIVE
from models.meeting import Meeting
from models.notification import Notification
from models.session import Session
from models.time_slot import TimeSlot, SLOT_OPEN
from models.user import User, ROLE_ADMIN, ROLE_BUYER, ROLE_COMPANY
from security.password import hash_password

SEED_EVENT = {
    "name": "2025 Tech Innovation Fair",
    "description": "Matching innovative technology companies with investors",
    "start_date": datetime(2025, 9, 15, 9, 0),
    "end_date": datetime(2025, 9, 17, 18, 0),
    "venue": "COEX Convention Center",
    "header_image": "https://example.com/header-image.jpg",
    "header_text": "Meet the future of innovation",
    "meeting_duration": 30,
    "operation_start_time": "09:00",
    "operation_end_time": "18:00",
    "lunch_start_time": "12:00",
    "lunch_end_time": "13:00",
    "status": EVENT_ACTIVE,
}

SEED_COMPANIES = [
    {
        "name": "AI Startup",
        "email": "contact@aistartup.com",
        "description": "AI-based solution development",
        "website": "https://aistartup.com",
        "password": "company123!",
    },
    {
        "name": "Green Tech",
        "email": "info@greentech.com",
        "description": "Eco-friendly energy solutions",
        "website": "https://greentech.com",
        "password": "company123!",
    },
]

SEED_BUYERS = [
    {
        "name": "Kim Investor",
        "email": "investor1@example.com",
        "description": "Seed-stage investment",
        "website": "https://vcfund.com",
        "password": "buyer123!",
    },
    {
        "name": "Park Venture",
        "email": "investor2@example.com",
        "description": "Startup accelerator",
        "website": "https://accelerator.com",
        "password": "buyer123!",
    },
]

# one-hour sample slots per company on the first event day
SEED_SLOT_DAY = datetime(2025, 9, 15)
SEED_SLOT_HOURS = (10, 12, 14, 16)


def _create_user(data: dict, role: str) -> User:
    user = User(
        name=data["name"],
        email=data["email"],
        description=data.get("description"),
        website=data.get("website"),
        password_hash=hash_password(data["password"]),
        role=role,
    )
    db.session.add(user)
    return user


def create_seed_data():
    """Adds the fixed seed set to the session (caller commits)."""
    event = Event(**SEED_EVENT)
    db.session.add(event)

    for data in SEED_COMPANIES:
        company = _create_user(data, ROLE_COMPANY)
        db.session.flush()
        for hour in SEED_SLOT_HOURS:
            start = SEED_SLOT_DAY + timedelta(hours=hour)
            db.session.add(TimeSlot(
                user_id=company.id,
                start_time=start,
                end_time=start + timedelta(hours=1),
                status=SLOT_OPEN,
            ))

    for data in SEED_BUYERS:
        _create_user(data, ROLE_BUYER)

    return event


def reset_data() -> dict:
    """
    Deletes every notification, meeting, time slot, non-admin user and event,
    then recreates the seed set. One transaction.
    """
    non_admin_ids = db.select(User.id).where(User.role != ROLE_ADMIN)

    counts = {
        "notifications": Notification.query.delete(synchronize_session="fetch"),
        "meetings": Meeting.query.delete(synchronize_session="fetch"),
        "timeSlots": TimeSlot.query.delete(synchronize_session="fetch"),
    }
    Session.query.filter(Session.user_id.in_(non_admin_ids)).delete(synchronize_session="fetch")
    counts["users"] = User.query.filter(User.role != ROLE_ADMIN).delete(synchronize_session="fetch")
    counts["events"] = Event.query.delete(synchronize_session="fetch")

    try:
        create_seed_data()
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.warning("Data reset: %s", counts)
    return counts


def ensure_admin(email: str, password: str) -> User:
    email = email.strip().lower()
    admin = User.query.filter_by(email=email).first()
    if admin:
        return admin
    admin = User(
        name="System Administrator",
        email=email,
        password_hash=hash_password(password),
        role=ROLE_ADMIN,
    )
    db.session.add(admin)
    db.session.commit()
    return admin
