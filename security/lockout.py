from datetime import datetime, timedelta
from flask import request, current_app

from models import db
from models.login_attempt import LoginAttempt

def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr) or "unknown"

def _attempt_row(email: str):
    return LoginAttempt.query.filter_by(email=email, ip=_client_ip()).first()

def is_locked(email: str) -> tuple[bool, int]:
    """
    Returns (locked, seconds_remaining) for this email from the caller's IP.
    """
    row = _attempt_row(email)
    if not row:
        return False, 0
    seconds = row.seconds_locked(datetime.utcnow())
    return seconds > 0, seconds

def register_failure(email: str) -> tuple[int, bool]:
    """
    Counts a failed login. Returns (fail_count, locked_now).
    """
    now = datetime.utcnow()
    row = _attempt_row(email)
    if not row:
        row = LoginAttempt(email=email, ip=_client_ip(), fail_count=0)
        db.session.add(row)

    row.fail_count += 1
    row.last_fail_at = now

    fail_count = row.fail_count
    locked_now = fail_count >= current_app.config.get("MAX_LOGIN_ATTEMPTS", 5)
    if locked_now:
        row.locked_until = now + timedelta(minutes=current_app.config.get("LOCKOUT_MINUTES", 1))
        # next window starts from zero once the lock expires
        row.fail_count = 0

    db.session.commit()
    return fail_count, locked_now

def reset_attempts(email: str):
    row = _attempt_row(email)
    if not row:
        return
    row.fail_count = 0
    row.last_fail_at = None
    row.locked_until = None
    db.session.commit()
