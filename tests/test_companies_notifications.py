from datetime import datetime, timedelta

from models.time_slot import SLOT_DISABLED
from models.user import ROLE_COMPANY
from services.booking import request_meeting, resolve_meeting


def test_list_companies_with_open_future_slots(client, company, make_user, make_slot):
    other = make_user(ROLE_COMPANY, "zeta@example.com", "Zeta Labs")
    start = datetime.utcnow() + timedelta(days=2)
    make_slot(company, start=start)
    make_slot(company, start=start + timedelta(hours=1), status=SLOT_DISABLED)
    make_slot(company, start=datetime.utcnow() - timedelta(days=1))

    body = client.get("/api/companies").get_json()
    assert [c["name"] for c in body] == ["Acme", "Zeta Labs"]
    assert len(body[0]["timeSlots"]) == 1
    assert body[1]["timeSlots"] == []
    assert "email" not in body[0]
    assert other.id == body[1]["id"]

    found = client.get("/api/companies?search=zeta").get_json()
    assert [c["name"] for c in found] == ["Zeta Labs"]


def test_company_detail(client, company, buyer, make_slot):
    slot = make_slot(company)
    meeting = request_meeting(slot.id, buyer)
    resolve_meeting(meeting.id, "CONFIRMED", company)

    body = client.get(f"/api/companies/{company.id}").get_json()
    assert body["confirmedMeetings"] == 1
    assert body["timeSlots"][0]["isBooked"] is True

    assert client.get(f"/api/companies/{buyer.id}").status_code == 404


def test_notifications_list_and_mark_read(company, buyer, make_slot, login):
    first = request_meeting(make_slot(company).id, buyer)
    request_meeting(make_slot(company, start=datetime.utcnow() + timedelta(days=3)).id, buyer)
    resolve_meeting(first.id, "REJECTED", company)

    c = login(company)
    body = c.get("/api/notifications").get_json()
    assert body["unreadCount"] == 2
    assert {n["type"] for n in body["notifications"]} == {"MEETING_REQUEST"}

    one_id = body["notifications"][0]["id"]
    resp = c.patch("/api/notifications", json={"notificationIds": [one_id]})
    assert resp.get_json()["updated"] == 1
    assert len(c.get("/api/notifications?unread=true").get_json()["notifications"]) == 1

    assert c.patch("/api/notifications", json={"markAllAsRead": True}).get_json()["updated"] == 1
    assert c.get("/api/notifications").get_json()["unreadCount"] == 0

    assert c.patch("/api/notifications", json={}).status_code == 400

    buyer_view = login(buyer).get("/api/notifications").get_json()
    assert [n["type"] for n in buyer_view["notifications"]] == ["MEETING_REJECTED"]
