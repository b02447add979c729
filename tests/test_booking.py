import threading
from datetime import datetime, timedelta

import pytest

from models import db
from models.meeting import Meeting
from models.notification import Notification
from models.time_slot import TimeSlot, SLOT_BOOKED, SLOT_HELD, SLOT_OPEN, SLOT_DISABLED
from models.user import User, ROLE_BUYER, ROLE_COMPANY
from services.booking import request_meeting, resolve_meeting
from utils.errors import Conflict, NotFound, ValidationError


def _notifications(user, type_):
    return Notification.query.filter_by(user_id=user.id, type=type_).all()


def test_request_meeting_holds_slot_and_notifies_company(company, buyer, make_slot):
    slot = make_slot(company)

    meeting = request_meeting(slot.id, buyer, "  Let's talk  ")

    assert meeting.status == "PENDING"
    assert meeting.company_id == company.id
    assert meeting.message == "Let's talk"
    assert db.session.get(TimeSlot, slot.id).status == SLOT_HELD
    assert len(_notifications(company, "MEETING_REQUEST")) == 1


def test_request_meeting_twice_conflicts(company, buyer, make_user, make_slot):
    slot = make_slot(company)
    request_meeting(slot.id, buyer)

    other = make_user(ROLE_BUYER)
    with pytest.raises(Conflict):
        request_meeting(slot.id, other)

    assert Meeting.query.filter_by(time_slot_id=slot.id).count() == 1


def test_request_unknown_slot(buyer):
    with pytest.raises(NotFound):
        request_meeting(9999, buyer)


def test_disabled_slot_cannot_be_requested(company, buyer, make_slot):
    slot = make_slot(company, status=SLOT_DISABLED)
    with pytest.raises(Conflict):
        request_meeting(slot.id, buyer)


def test_confirm_books_slot(company, buyer, make_slot):
    slot = make_slot(company)
    meeting = request_meeting(slot.id, buyer)

    resolved = resolve_meeting(meeting.id, "CONFIRMED", company)

    assert resolved.status == "CONFIRMED"
    assert db.session.get(TimeSlot, slot.id).status == SLOT_BOOKED
    assert db.session.get(TimeSlot, slot.id).is_booked is True
    assert len(_notifications(buyer, "MEETING_APPROVED")) == 1


def test_reject_reopens_slot_and_allows_rebooking(company, buyer, make_user, make_slot):
    slot = make_slot(company)
    meeting = request_meeting(slot.id, buyer)

    resolved = resolve_meeting(meeting.id, "REJECTED", company)

    assert resolved.status == "REJECTED"
    assert db.session.get(TimeSlot, slot.id).status == SLOT_OPEN
    assert db.session.get(TimeSlot, slot.id).is_booked is False
    assert len(_notifications(buyer, "MEETING_REJECTED")) == 1

    second = request_meeting(slot.id, make_user(ROLE_BUYER))
    assert second.status == "PENDING"


def test_resolved_meeting_cannot_be_resolved_again(company, buyer, make_slot):
    meeting = request_meeting(make_slot(company).id, buyer)
    resolve_meeting(meeting.id, "CONFIRMED", company)

    with pytest.raises(ValidationError):
        resolve_meeting(meeting.id, "REJECTED", company)


def test_other_company_cannot_resolve(company, buyer, make_user, make_slot):
    meeting = request_meeting(make_slot(company).id, buyer)
    with pytest.raises(NotFound):
        resolve_meeting(meeting.id, "CONFIRMED", make_user(ROLE_COMPANY))


def test_admin_can_resolve(company, buyer, admin, make_slot):
    meeting = request_meeting(make_slot(company).id, buyer)
    assert resolve_meeting(meeting.id, "REJECTED", admin).status == "REJECTED"


def test_invalid_decision(company, buyer, make_slot):
    meeting = request_meeting(make_slot(company).id, buyer)
    with pytest.raises(ValidationError):
        resolve_meeting(meeting.id, "CANCELLED", company)


# ---------- HTTP ----------
def test_post_meeting_endpoint(company, buyer, make_slot, login, client):
    slot = make_slot(company)
    c = login(buyer)

    resp = c.post("/api/meetings", json={"timeSlotId": slot.id, "message": "hi"})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["status"] == "PENDING"
    assert body["timeSlot"]["isBooked"] is True

    detail = client.get(f"/api/companies/{company.id}").get_json()
    assert [s["isBooked"] for s in detail["timeSlots"]] == [True]

    again = c.post("/api/meetings", json={"timeSlotId": slot.id})
    assert again.status_code == 409


def test_post_meeting_requires_buyer(company, make_slot, login, client):
    slot = make_slot(company)

    assert client.post("/api/meetings", json={"timeSlotId": slot.id}).status_code == 401

    resp = login(company).post("/api/meetings", json={"timeSlotId": slot.id})
    assert resp.status_code == 401
    assert resp.get_json() == {"error": "Unauthorized"}


def test_post_meeting_validation(buyer, login):
    c = login(buyer)
    assert c.post("/api/meetings", json={}).status_code == 400
    assert c.post("/api/meetings", json={"timeSlotId": 12345}).status_code == 404


def test_csrf_header_required(company, buyer, make_slot, login):
    slot = make_slot(company)
    c = login(buyer)
    del c.environ_base["HTTP_X_CSRF_TOKEN"]

    resp = c.post("/api/meetings", json={"timeSlotId": slot.id})
    assert resp.status_code == 403


def test_patch_meeting_flow(company, buyer, make_slot, login):
    slot = make_slot(company)
    meeting_id = login(buyer).post("/api/meetings", json={"timeSlotId": slot.id}).get_json()["id"]
    c = login(company)

    assert c.patch(f"/api/meetings/{meeting_id}", json={"status": "MAYBE"}).status_code == 400

    resp = c.patch(f"/api/meetings/{meeting_id}", json={"status": "REJECTED"})
    assert resp.status_code == 200
    assert resp.get_json()["status"] == "REJECTED"
    assert resp.get_json()["timeSlot"]["isBooked"] is False

    again = c.patch(f"/api/meetings/{meeting_id}", json={"status": "CONFIRMED"})
    assert again.status_code == 400
    assert again.get_json()["error"] == "Meeting has already been processed"


def test_list_meetings_is_scoped(company, buyer, make_user, make_slot, login):
    other_buyer = make_user(ROLE_BUYER)
    start = datetime.utcnow() + timedelta(days=3)
    request_meeting(make_slot(company, start=start).id, buyer)
    request_meeting(make_slot(company, start=start + timedelta(hours=1)).id, other_buyer)

    assert len(login(buyer).get("/api/meetings").get_json()) == 1
    assert len(login(company).get("/api/meetings").get_json()) == 2
    assert len(login(company).get("/api/meetings?status=CONFIRMED").get_json()) == 0
    assert login(company).get("/api/meetings?status=NOPE").status_code == 400


def test_get_meeting_only_for_participants(company, buyer, make_user, make_slot, login):
    meeting = request_meeting(make_slot(company).id, buyer)

    assert login(buyer).get(f"/api/meetings/{meeting.id}").status_code == 200
    assert login(make_user(ROLE_BUYER)).get(f"/api/meetings/{meeting.id}").status_code == 404


def test_concurrent_requests_book_slot_once(file_app):
    with file_app.app_context():
        owner = User(name="Race Co", email="race@example.com", password_hash="x", role=ROLE_COMPANY)
        db.session.add(owner)
        db.session.flush()
        buyers = [
            User(name=f"Buyer {i}", email=f"race-buyer{i}@example.com", password_hash="x", role=ROLE_BUYER)
            for i in range(8)
        ]
        db.session.add_all(buyers)
        start = datetime.utcnow() + timedelta(days=1)
        slot = TimeSlot(user_id=owner.id, start_time=start, end_time=start + timedelta(minutes=30))
        db.session.add(slot)
        db.session.commit()
        slot_id = slot.id
        buyer_ids = [b.id for b in buyers]

    barrier = threading.Barrier(len(buyer_ids))
    outcomes = []
    lock = threading.Lock()

    def book(buyer_id):
        with file_app.app_context():
            buyer = db.session.get(User, buyer_id)
            barrier.wait()
            try:
                request_meeting(slot_id, buyer)
                outcome = "ok"
            except Conflict:
                outcome = "conflict"
            except Exception as exc:
                outcome = type(exc).__name__
            finally:
                db.session.remove()
        with lock:
            outcomes.append(outcome)

    threads = [threading.Thread(target=book, args=(bid,)) for bid in buyer_ids]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert sorted(outcomes) == ["conflict"] * 7 + ["ok"]
    with file_app.app_context():
        assert Meeting.query.filter_by(time_slot_id=slot_id).count() == 1
        assert db.session.get(TimeSlot, slot_id).status == SLOT_HELD


def test_active_meeting_index_blocks_second_meeting(company, buyer, make_user, make_slot, monkeypatch):
    slot = make_slot(company)
    db.session.add(Meeting(company_id=company.id, buyer_id=buyer.id, time_slot_id=slot.id, status="PENDING"))
    db.session.commit()

    # skip the read-side check so the insert reaches uq_meeting_active_slot
    monkeypatch.setattr("services.booking._active_meeting", lambda slot_id: None)

    with pytest.raises(Conflict):
        request_meeting(slot.id, make_user(ROLE_BUYER))

    assert Meeting.query.filter_by(time_slot_id=slot.id).count() == 1
    assert db.session.get(TimeSlot, slot.id).status == SLOT_OPEN
