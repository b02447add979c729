from datetime import datetime

from flask import Blueprint, request, jsonify

from models.meeting import Meeting, MEETING_CONFIRMED
from models.time_slot import TimeSlot, SLOT_OPEN
from models.user import User, ROLE_COMPANY
from utils.serializers import time_slot_json, user_json

companies_bp = Blueprint("companies", __name__, url_prefix="/api/companies")


def _confirmed_count(company_id: int) -> int:
    return Meeting.query.filter_by(company_id=company_id, status=MEETING_CONFIRMED).count()


@companies_bp.get("")
def list_companies():
    search = (request.args.get("search") or "").strip()

    q = User.query.filter_by(role=ROLE_COMPANY)
    if search:
        like = f"%{search}%"
        q = q.filter(User.name.ilike(like) | User.description.ilike(like))

    now = datetime.utcnow()
    out = []
    for company in q.order_by(User.name.asc()).all():
        slots = (
            TimeSlot.query
            .filter(TimeSlot.user_id == company.id, TimeSlot.status == SLOT_OPEN, TimeSlot.start_time > now)
            .order_by(TimeSlot.start_time.asc())
            .all()
        )
        row = user_json(company, include_email=False)
        row["timeSlots"] = [time_slot_json(s) for s in slots]
        row["confirmedMeetings"] = _confirmed_count(company.id)
        out.append(row)
    return jsonify(out), 200


@companies_bp.get("/<int:company_id>")
def get_company(company_id: int):
    company = User.query.filter_by(id=company_id, role=ROLE_COMPANY).first()
    if not company:
        return jsonify(error="Company not found"), 404

    slots = (
        TimeSlot.query
        .filter(TimeSlot.user_id == company.id, TimeSlot.start_time > datetime.utcnow())
        .order_by(TimeSlot.start_time.asc())
        .all()
    )
    out = user_json(company)
    out["timeSlots"] = [time_slot_json(s) for s in slots]
    out["confirmedMeetings"] = _confirmed_count(company.id)
    return jsonify(out), 200
