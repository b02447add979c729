from models import db
from models.event import Event
from models.meeting import Meeting
from models.notification import Notification
from models.time_slot import TimeSlot
from services.booking import request_meeting


def test_get_event(client, event):
    resp = client.get("/api/event")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["name"] == "Future Fair"
    assert body["meetingDuration"] == 30
    assert body["lunchStartTime"] == "10:00"


def test_get_event_without_active(client):
    assert client.get("/api/event").status_code == 404


def test_schedule(client, event):
    resp = client.get("/api/event/schedule")
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["meetingDuration"] == 30
    assert len(body["slots"]) == 6
    day = event.start_date.date().isoformat()
    assert [s["startTime"] for s in body["slots"] if s["date"] == day] == ["09:00", "09:30", "10:30"]


def test_patch_requires_admin(event, buyer, login, client):
    assert client.patch("/api/event", json={"name": "x"}).status_code == 401
    assert login(buyer).patch("/api/event", json={"name": "x"}).status_code == 401


def test_patch_validation(event, admin, login):
    c = login(admin)
    assert c.patch("/api/event", json={"operationStartTime": "25:00"}).status_code == 400
    assert c.patch("/api/event", json={"meetingDuration": 10}).status_code == 400
    assert c.patch("/api/event", json={"meetingDuration": 121}).status_code == 400
    assert c.patch("/api/event", json={"meetingDuration": "30"}).status_code == 400
    assert c.patch("/api/event", json={"status": "PAUSED"}).status_code == 400
    assert c.patch("/api/event", json={"startDate": "not a date"}).status_code == 400
    assert c.patch("/api/event", json={"operationStartTime": "12:00", "operationEndTime": "11:00"}).status_code == 400
    assert c.patch("/api/event", json={"lunchStartTime": "13:00", "lunchEndTime": "12:00"}).status_code == 400
    assert c.patch("/api/event", json={"lunchStartTime": "10:45"}).status_code == 400


def test_patch_updates_fields(event, admin, login):
    resp = login(admin).patch("/api/event", json={
        "name": "Renamed Fair",
        "venue": "Hall B",
        "lunchStartTime": "12:00",
        "lunchEndTime": "13:00",
    })
    assert resp.status_code == 200
    body = resp.get_json()
    assert body["name"] == "Renamed Fair"
    assert body["venue"] == "Hall B"
    assert body["resetMessage"] is None
    assert db.session.get(Event, event.id).lunch_start_time == "12:00"


def test_duration_change_resets_slots_and_meetings(event, admin, company, buyer, make_slot, login):
    slot = make_slot(company)
    request_meeting(slot.id, buyer)
    assert Notification.query.count() == 1

    resp = login(admin).patch("/api/event", json={"meetingDuration": 60})
    assert resp.status_code == 200
    assert "1 meetings" in resp.get_json()["resetMessage"]

    assert Meeting.query.count() == 0
    assert TimeSlot.query.count() == 0
    assert Notification.query.count() == 0
    assert db.session.get(Event, event.id).meeting_duration == 60


def test_same_duration_keeps_slots(event, admin, company, make_slot, login):
    make_slot(company)
    resp = login(admin).patch("/api/event", json={"meetingDuration": 30})
    assert resp.get_json()["resetMessage"] is None
    assert TimeSlot.query.count() == 1
