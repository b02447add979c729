from datetime import datetime

from flask import Blueprint, request, jsonify, g

from models.time_slot import TimeSlot, SLOT_OPEN
from models.user import ROLE_COMPANY
from security.rbac import require_roles
from services.booking import create_time_slot, disable_time_slot, enable_time_slot, generate_time_slots
from services.events import get_active_event
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import time_slot_json
from utils.validators import parse_iso_datetime

timeslots_bp = Blueprint("timeslots", __name__, url_prefix="/api/timeslots")


@timeslots_bp.get("")
@login_required
def list_time_slots():
    # companies see their own slots; everyone else picks a company
    available = request.args.get("available") == "true"

    if g.user.role == ROLE_COMPANY:
        company_id = g.user.id
    else:
        company_id = request.args.get("companyId", type=int)
        if not company_id:
            return jsonify(error="companyId is required"), 400

    q = TimeSlot.query.filter_by(user_id=company_id)
    if available:
        q = q.filter(TimeSlot.status == SLOT_OPEN, TimeSlot.start_time > datetime.utcnow())

    # requester details stay with the owning company
    own = g.user.role == ROLE_COMPANY
    slots = q.order_by(TimeSlot.start_time.asc()).all()
    return jsonify([time_slot_json(s, include_meeting=own) for s in slots]), 200


@timeslots_bp.post("")
@require_roles(ROLE_COMPANY)
def create_slot():
    data = request.get_json(silent=True) or {}
    if not data.get("startTime") or not data.get("endTime"):
        return jsonify(error="startTime and endTime are required"), 400

    start = parse_iso_datetime(data.get("startTime"), "startTime")
    end = parse_iso_datetime(data.get("endTime"), "endTime")
    slot = create_time_slot(g.user, start, end)

    log_event("SLOT_CREATE", user_id=g.user.id, entity="time_slot", entity_id=slot.id)
    return jsonify(time_slot_json(slot)), 201


@timeslots_bp.post("/generate")
@require_roles(ROLE_COMPANY)
def generate_slots():
    """
    Creates slots for the active event schedule.
    Body (optional): {"dates": ["2025-09-15", ...]}
    """
    event = get_active_event()
    if not event:
        return jsonify(error="No active event"), 404

    data = request.get_json(silent=True) or {}
    dates = None
    if data.get("dates") is not None:
        if not isinstance(data["dates"], list):
            return jsonify(error="dates must be a list of YYYY-MM-DD strings"), 400
        try:
            dates = [datetime.strptime(str(d), "%Y-%m-%d").date() for d in data["dates"]]
        except ValueError:
            return jsonify(error="Invalid date. Use YYYY-MM-DD"), 400

    created, skipped = generate_time_slots(g.user, event, dates)

    log_event("SLOT_GENERATE", user_id=g.user.id, entity="event", entity_id=event.id,
              metadata={"created": len(created), "skipped": skipped})
    return jsonify(
        created=len(created),
        skipped=skipped,
        timeSlots=[time_slot_json(s) for s in created],
    ), 201


# ---------- COMPANY: switch a slot off ----------
@timeslots_bp.delete("/<int:slot_id>")
@require_roles(ROLE_COMPANY)
def disable_slot(slot_id: int):
    slot = disable_time_slot(g.user, slot_id)

    log_event("SLOT_DISABLE", user_id=g.user.id, entity="time_slot", entity_id=slot.id)
    return jsonify(message="Time slot disabled", timeSlot=time_slot_json(slot)), 200


# ---------- COMPANY: reopen a disabled slot ----------
@timeslots_bp.put("/<int:slot_id>")
@require_roles(ROLE_COMPANY)
def enable_slot(slot_id: int):
    slot = enable_time_slot(g.user, slot_id)

    log_event("SLOT_ENABLE", user_id=g.user.id, entity="time_slot", entity_id=slot.id)
    return jsonify(message="Time slot reopened", timeSlot=time_slot_json(slot)), 200
