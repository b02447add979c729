from datetime import datetime, timedelta

import pytest

from app import create_app
from config import Config
from models import db
from models.event import Event, EVENT_ACTIVE
from models.time_slot import TimeSlot, SLOT_OPEN
from models.user import User, ROLE_ADMIN, ROLE_BUYER, ROLE_COMPANY
from security.password import hash_password

PASSWORD = "secret123"


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    BCRYPT_ROUNDS = 4
    LOG_LEVEL = "WARNING"


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig)
    app.config["UPLOAD_FOLDER"] = str(tmp_path / "headers")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def _make_user(role, email, name):
    user = User(name=name, email=email, password_hash=hash_password(PASSWORD), role=role)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def factory(role=ROLE_BUYER, email=None, name=None):
        counter["n"] += 1
        n = counter["n"]
        return _make_user(role, email or f"{role.lower()}{n}@example.com", name or f"{role.title()} {n}")
    return factory


@pytest.fixture
def company(make_user):
    return make_user(ROLE_COMPANY, "acme@example.com", "Acme")


@pytest.fixture
def buyer(make_user):
    return make_user(ROLE_BUYER, "investor@example.com", "Investor")


@pytest.fixture
def admin(make_user):
    return make_user(ROLE_ADMIN, "admin@example.com", "Admin")


@pytest.fixture
def login(app):
    """Returns a logged-in test client that echoes the CSRF cookie."""
    def do_login(user, password=PASSWORD):
        c = app.test_client()
        resp = c.post("/auth/login", json={"email": user.email, "password": password})
        assert resp.status_code == 200, resp.get_json()
        c.environ_base["HTTP_X_CSRF_TOKEN"] = c.get_cookie("csrf_token").value
        return c
    return do_login


@pytest.fixture
def make_slot(app):
    def factory(company, start=None, minutes=30, status=SLOT_OPEN):
        start = start or (datetime.utcnow() + timedelta(days=2)).replace(microsecond=0)
        slot = TimeSlot(
            user_id=company.id,
            start_time=start,
            end_time=start + timedelta(minutes=minutes),
            status=status,
        )
        db.session.add(slot)
        db.session.commit()
        return slot
    return factory


@pytest.fixture
def event(app):
    day = (datetime.utcnow() + timedelta(days=10)).replace(hour=0, minute=0, second=0, microsecond=0)
    ev = Event(
        name="Future Fair",
        start_date=day,
        end_date=day + timedelta(days=1),
        meeting_duration=30,
        operation_start_time="09:00",
        operation_end_time="11:00",
        lunch_start_time="10:00",
        lunch_end_time="10:30",
        status=EVENT_ACTIVE,
    )
    db.session.add(ev)
    db.session.commit()
    return ev


@pytest.fixture
def file_app(tmp_path):
    """App on a SQLite file so several threads can share one database."""
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = "sqlite:///" + str(tmp_path / "matchday.db")
        SQLALCHEMY_ENGINE_OPTIONS = {"connect_args": {"timeout": 30}}

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()
