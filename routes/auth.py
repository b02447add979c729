from flask import Blueprint, request, jsonify, current_app, g

from models import db
from models.user import User
from security.csrf import issue_csrf_token
from security.lockout import is_locked, register_failure, reset_attempts
from security.password import hash_password, verify_password
from security.session import create_session, revoke_session, revoke_all_sessions
from utils.audit import log_event
from utils.auth_context import login_required
from utils.errors import ValidationError
from utils.serializers import user_json
from utils.validators import clean_user_fields, normalize_email


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _cookie_name():
    return current_app.config.get("AUTH_COOKIE_NAME", "matchday_session")


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    try:
        fields = clean_user_fields(data)
    except ValidationError as exc:
        return jsonify(error=exc.message), 400

    if User.query.filter_by(email=fields["email"]).first():
        log_event("REGISTER_FAIL_EMAIL_EXISTS", metadata={"email": fields["email"]})
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

    log_event("REGISTER_SUCCESS", user_id=user.id, metadata={"role": user.role})
    return jsonify(user_json(user)), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    email = normalize_email(data.get("email") if isinstance(data.get("email"), str) else "")
    password = data.get("password") if isinstance(data.get("password"), str) else ""

    locked, seconds_left = is_locked(email)
    if locked:
        log_event("LOGIN_LOCKED", metadata={"email": email, "seconds_left": seconds_left})
        return jsonify(error="Account temporarily locked. Try again later.", retry_after_seconds=seconds_left), 429

    user = User.query.filter_by(email=email).first()
    if not user or not verify_password(password, user.password_hash):
        fail_count, locked_now = register_failure(email)
        log_event(
            "LOGIN_FAIL",
            user_id=user.id if user else None,
            metadata={"email": email, "fail_count": fail_count, "locked_now": locked_now}
        )
        if locked_now:
            return jsonify(error="Too many failed attempts. Account locked.",
                           lockout_minutes=current_app.config.get("LOCKOUT_MINUTES", 1)), 429
        return jsonify(error="Invalid credentials"), 401

    reset_attempts(email)

    # one live session per user
    revoked_count = revoke_all_sessions(user.id)
    raw_token = create_session(user.id)

    resp = jsonify(message="Login OK", user=user_json(user))
    resp.set_cookie(
        _cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    resp = issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user_json(g.user)), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(request.cookies.get(_cookie_name()))
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(_cookie_name(), path="/")
    return resp, 200
