from functools import wraps
from flask import g, jsonify

def has_role(*role_names: str) -> bool:
    user = getattr(g, "user", None)
    return user is not None and user.role in role_names

def require_roles(*role_names: str):
    """
    Single authorization guard for every protected endpoint.
    Usage: @require_roles("COMPANY") or @require_roles("COMPANY", "ADMIN")

    A missing session and a role mismatch both answer 401.
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            if not has_role(*role_names):
                return jsonify(error="Unauthorized"), 401
            return fn(*args, **kwargs)
        return wrapper
    return decorator
