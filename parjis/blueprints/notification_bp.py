"""
Notification Blueprint.

Routes:
  GET    /users/<uid>/notifications                    – list (?is_read=, ?limit=, ?offset=)
  GET    /users/<uid>/notifications/unread-count       – unread badge count
  POST   /users/<uid>/notifications/<nid>/read         – mark one read
  POST   /users/<uid>/notifications/read-all           – mark all read
"""

from flask import Blueprint, jsonify

from parjis.blueprints import bool_arg, paginate_args
from parjis.services.notification import NotificationService

notification_bp = Blueprint("notification", __name__, url_prefix="/api/v1")


@notification_bp.route("/users/<int:user_id>/notifications", methods=["GET"])
def list_notifications(user_id):
    limit, offset = paginate_args()
    items, total = NotificationService.list_for_user(
        user_id, is_read=bool_arg("is_read"), limit=limit, offset=offset,
    )
    return jsonify({
        "items": [n.to_dict() for n in items],
        "total": total,
        "limit": limit,
        "offset": offset,
    })


@notification_bp.route("/users/<int:user_id>/notifications/unread-count", methods=["GET"])
def unread_count(user_id):
    return jsonify({"user_id": user_id, "unread_count": NotificationService.unread_count(user_id)})


@notification_bp.route(
    "/users/<int:user_id>/notifications/<int:notification_id>/read", methods=["POST"],
)
def mark_read(user_id, notification_id):
    notif = NotificationService.mark_read(notification_id, user_id)
    return jsonify(notif.to_dict())


@notification_bp.route("/users/<int:user_id>/notifications/read-all", methods=["POST"])
def mark_all_read(user_id):
    count = NotificationService.mark_all_read(user_id)
    return jsonify({"marked_read": count})
