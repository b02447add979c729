from flask import Blueprint, jsonify, g, request, send_file
from sqlalchemy import func, or_

from models import db
from models.audit_log import AuditLog
from models.meeting import Meeting
from models.time_slot import TimeSlot
from models.user import User, ROLE_ADMIN, ROLE_BUYER
from security.password import hash_password
from security.rbac import require_roles
from security.session import revoke_all_sessions
from services.booking import release_buyer_slots
from services.excel import build_template, import_users
from services.seed import reset_data
from utils.audit import log_event
from utils.serializers import user_json
from utils.validators import MANAGED_ROLES, clean_user_fields

admin_bp = Blueprint("admin", __name__, url_prefix="/api/admin")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
EDITABLE_FIELDS = ("name", "email", "password", "description", "website")


def _managed_user_or_error(user_id: int):
    user = db.session.get(User, user_id)
    if not user:
        return None, (jsonify(error="User not found"), 404)
    if user.role == ROLE_ADMIN:
        return None, (jsonify(error="Admin accounts cannot be managed here"), 400)
    return user, None


def _user_row(u, meeting_counts, slot_counts):
    out = user_json(u)
    out["updatedAt"] = u.updated_at.isoformat() if u.updated_at else None
    out["meetingCount"] = meeting_counts.get(u.id, 0)
    out["timeSlotCount"] = slot_counts.get(u.id, 0)
    return out


# ---------- users ----------
@admin_bp.get("/users")
@require_roles(ROLE_ADMIN)
def list_users():
    role_filter = (request.args.get("role") or "").strip().upper()
    search = (request.args.get("search") or "").strip()
    page = max(request.args.get("page", type=int) or 1, 1)
    limit = request.args.get("limit", type=int) or 20
    limit = max(1, min(limit, 100))

    q = User.query
    if role_filter:
        q = q.filter(User.role == role_filter)
    if search:
        like = f"%{search}%"
        q = q.filter(or_(User.name.ilike(like), User.email.ilike(like)))

    total = q.count()
    users = q.order_by(User.created_at.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()

    ids = [u.id for u in users]
    meeting_counts, slot_counts = {}, {}
    if ids:
        for column in (Meeting.company_id, Meeting.buyer_id):
            rows = db.session.query(column, func.count(Meeting.id)).filter(column.in_(ids)).group_by(column).all()
            for uid, count in rows:
                meeting_counts[uid] = meeting_counts.get(uid, 0) + count
        slot_counts = dict(
            db.session.query(TimeSlot.user_id, func.count(TimeSlot.id))
            .filter(TimeSlot.user_id.in_(ids))
            .group_by(TimeSlot.user_id)
            .all()
        )

    return jsonify(
        users=[_user_row(u, meeting_counts, slot_counts) for u in users],
        pagination={
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    ), 200


@admin_bp.post("/users")
@require_roles(ROLE_ADMIN)
def create_user():
    data = request.get_json(silent=True) or {}
    fields = clean_user_fields(data)

    if User.query.filter_by(email=fields["email"]).first():
        return jsonify(error="Email already registered"), 409

    user = User(
        name=fields["name"],
        email=fields["email"],
        password_hash=hash_password(fields["password"]),
        role=fields["role"],
        description=fields.get("description"),
        website=fields.get("website"),
    )
    db.session.add(user)
    db.session.commit()

    log_event("ADMIN_USER_CREATE", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"role": user.role, "email": user.email})
    return jsonify(user_json(user)), 201


@admin_bp.patch("/users/<int:user_id>")
@require_roles(ROLE_ADMIN)
def update_user(user_id: int):
    user, failure = _managed_user_or_error(user_id)
    if failure:
        return failure

    data = request.get_json(silent=True) or {}
    if "role" in data and data["role"] != user.role:
        return jsonify(error="Role cannot be changed"), 400

    changes = {k: data[k] for k in EDITABLE_FIELDS if k in data}
    if not changes:
        return jsonify(error="No fields to update"), 400
    fields = clean_user_fields(changes, partial=True)

    if "email" in fields and fields["email"] != user.email:
        if User.query.filter(User.email == fields["email"], User.id != user.id).first():
            return jsonify(error="Email already registered"), 409

    password_changed = "password" in fields
    if password_changed:
        user.password_hash = hash_password(fields.pop("password"))
    for key, value in fields.items():
        setattr(user, key, value)
    db.session.commit()

    if password_changed:
        revoke_all_sessions(user.id)

    log_event("ADMIN_USER_UPDATE", user_id=g.user.id, entity="user", entity_id=user.id,
              metadata={"fields": sorted(changes)})
    return jsonify(user_json(user)), 200


@admin_bp.delete("/users/<int:user_id>")
@require_roles(ROLE_ADMIN)
def delete_user(user_id: int):
    user, failure = _managed_user_or_error(user_id)
    if failure:
        return failure

    released = release_buyer_slots(user) if user.role == ROLE_BUYER else 0
    email, role = user.email, user.role
    db.session.delete(user)
    db.session.commit()

    log_event("ADMIN_USER_DELETE", user_id=g.user.id, entity="user", entity_id=user_id,
              metadata={"email": email, "role": role, "released_slots": released})
    return jsonify(message="User deleted", releasedTimeSlots=released), 200


# ---------- data reset ----------
@admin_bp.post("/reset-data")
@require_roles(ROLE_ADMIN)
def reset():
    deleted = reset_data()

    log_event("ADMIN_RESET_DATA", user_id=g.user.id, metadata=deleted)
    return jsonify(message="Data has been reset to the seed set", deleted=deleted), 200


# ---------- excel import ----------
@admin_bp.post("/upload-excel")
@require_roles(ROLE_ADMIN)
def upload_excel():
    file = request.files.get("excel-file")
    role = (request.form.get("type") or "").strip().upper()

    if file is None or not file.filename:
        return jsonify(error="No file uploaded"), 400
    if role not in MANAGED_ROLES:
        return jsonify(error="type must be COMPANY or BUYER"), 400

    outcome = import_users(file.stream, role)

    log_event("ADMIN_EXCEL_IMPORT", user_id=g.user.id, metadata={"type": role, **outcome["summary"]})
    return jsonify(outcome), 200


@admin_bp.get("/excel-template")
@require_roles(ROLE_ADMIN)
def excel_template():
    role = (request.args.get("type") or "").strip().upper()
    if role not in MANAGED_ROLES:
        return jsonify(error="type must be COMPANY or BUYER"), 400

    return send_file(
        build_template(role),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=f"{role.lower()}_template.xlsx",
    )


# ---------- audit trail ----------
@admin_bp.get("/audit-logs")
@require_roles(ROLE_ADMIN)
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    action = request.args.get("action")
    user_id = request.args.get("user_id", type=int)

    q = AuditLog.query
    if action:
        q = q.filter(AuditLog.action == action)
    if user_id is not None:
        q = q.filter(AuditLog.user_id == user_id)

    rows = q.order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit).all()
    return jsonify([
        {
            "id": r.id,
            "created_at": r.created_at.isoformat(),
            "user_id": r.user_id,
            "action": r.action,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "ip": r.ip,
            "user_agent": r.user_agent,
            "metadata": r.details,
        }
        for r in rows
    ]), 200
