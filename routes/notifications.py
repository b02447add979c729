from flask import Blueprint, request, jsonify, g

from models import db
from models.notification import Notification
from utils.auth_context import login_required
from utils.serializers import notification_json

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")

LIST_LIMIT = 50


@notifications_bp.get("")
@login_required
def list_notifications():
    unread_only = request.args.get("unread") == "true"

    q = Notification.query.filter_by(user_id=g.user.id)
    if unread_only:
        q = q.filter_by(is_read=False)

    rows = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(LIST_LIMIT).all()
    unread_count = Notification.query.filter_by(user_id=g.user.id, is_read=False).count()
    return jsonify(notifications=[notification_json(n) for n in rows], unreadCount=unread_count), 200


@notifications_bp.patch("")
@login_required
def mark_read():
    data = request.get_json(silent=True) or {}
    ids = data.get("notificationIds")
    mark_all = data.get("markAllAsRead") is True

    q = Notification.query.filter_by(user_id=g.user.id, is_read=False)
    if not mark_all:
        if not isinstance(ids, list) or not ids or not all(isinstance(i, int) for i in ids):
            return jsonify(error="notificationIds must be a non-empty list of ids"), 400
        q = q.filter(Notification.id.in_(ids))

    updated = q.update({Notification.is_read: True}, synchronize_session=False)
    db.session.commit()
    return jsonify(message="Notifications marked as read", updated=updated), 200
