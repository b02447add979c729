from flask import Blueprint, request, jsonify, g

from models.user import ROLE_ADMIN
from security.rbac import require_roles
from services.events import get_active_event, update_event
from services.schedule import candidates_for_event
from utils.audit import log_event
from utils.serializers import event_json

event_bp = Blueprint("event", __name__, url_prefix="/api/event")


@event_bp.get("")
def get_event():
    event = get_active_event()
    if not event:
        return jsonify(error="No active event"), 404
    return jsonify(event_json(event)), 200


@event_bp.patch("")
@require_roles(ROLE_ADMIN)
def patch_event():
    data = request.get_json(silent=True) or {}
    if not data:
        return jsonify(error="No fields to update"), 400

    event, reset_message = update_event(data)

    log_event("EVENT_UPDATE", user_id=g.user.id, entity="event", entity_id=event.id,
              metadata={"fields": sorted(data), "reset": bool(reset_message)})
    out = event_json(event)
    out["resetMessage"] = reset_message
    return jsonify(out), 200


@event_bp.get("/schedule")
def get_schedule():
    event = get_active_event()
    if not event:
        return jsonify(error="No active event"), 404

    try:
        candidates = candidates_for_event(event)
    except ValueError as exc:
        return jsonify(error=str(exc)), 400

    return jsonify(
        eventId=event.id,
        meetingDuration=event.meeting_duration,
        slots=[
            {"date": c.day.isoformat(), "startTime": c.start}
            for c in candidates
        ],
    ), 200
