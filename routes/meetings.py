from flask import Blueprint, request, jsonify, g
from sqlalchemy import or_

from models.meeting import Meeting, MEETING_STATUSES
from models.user import ROLE_ADMIN, ROLE_BUYER, ROLE_COMPANY
from security.rbac import require_roles
from services.booking import request_meeting, resolve_meeting
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import meeting_json

meetings_bp = Blueprint("meetings", __name__, url_prefix="/api/meetings")


# ---------- BUYER: request a meeting on a slot ----------
@meetings_bp.post("")
@require_roles(ROLE_BUYER)
def create_meeting():
    data = request.get_json(silent=True) or {}
    time_slot_id = data.get("timeSlotId")
    message = data.get("message")

    if isinstance(time_slot_id, bool) or not isinstance(time_slot_id, int):
        return jsonify(error="timeSlotId is required"), 400
    if message is not None and not isinstance(message, str):
        return jsonify(error="message must be a string"), 400

    meeting = request_meeting(time_slot_id, g.user, message)

    log_event("MEETING_REQUEST", user_id=g.user.id, entity="meeting", entity_id=meeting.id,
              metadata={"time_slot_id": time_slot_id})
    return jsonify(meeting_json(meeting)), 200


# ---------- any role: meetings I take part in ----------
@meetings_bp.get("")
@login_required
def list_meetings():
    status = (request.args.get("status") or "").strip().upper()

    q = Meeting.query
    if g.user.role == ROLE_BUYER:
        q = q.filter_by(buyer_id=g.user.id)
    elif g.user.role == ROLE_COMPANY:
        q = q.filter_by(company_id=g.user.id)

    if status:
        if status not in MEETING_STATUSES:
            return jsonify(error="Invalid status filter"), 400
        q = q.filter_by(status=status)

    rows = q.order_by(Meeting.created_at.desc(), Meeting.id.desc()).all()
    return jsonify([meeting_json(m) for m in rows]), 200


@meetings_bp.get("/<int:meeting_id>")
@login_required
def get_meeting(meeting_id: int):
    q = Meeting.query.filter_by(id=meeting_id)
    if g.user.role != ROLE_ADMIN:
        q = q.filter(or_(Meeting.company_id == g.user.id, Meeting.buyer_id == g.user.id))

    meeting = q.first()
    if not meeting:
        return jsonify(error="Meeting not found"), 404
    return jsonify(meeting_json(meeting)), 200


# ---------- COMPANY/ADMIN: approve or reject ----------
@meetings_bp.patch("/<int:meeting_id>")
@require_roles(ROLE_COMPANY, ROLE_ADMIN)
def update_meeting(meeting_id: int):
    data = request.get_json(silent=True) or {}
    status = data.get("status")
    decision = status.strip().upper() if isinstance(status, str) else ""

    meeting = resolve_meeting(meeting_id, decision, g.user)

    log_event("MEETING_" + meeting.status, user_id=g.user.id, entity="meeting", entity_id=meeting.id)
    return jsonify(meeting_json(meeting)), 200
