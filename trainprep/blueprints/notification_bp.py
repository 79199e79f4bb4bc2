"""
Notification blueprint.

Routes:
  GET   /api/v1/notifications                 – caller's notifications (query: unread=true)
  POST  /api/v1/notifications/<id>/read       – mark one read
  POST  /api/v1/notifications/read-all        – mark all read
"""

from flask import Blueprint, jsonify, request

from trainprep.auth import current_actor, require_auth
from trainprep.services.notification import NotificationService
from trainprep.utils.helpers import parse_int

notification_bp = Blueprint("notification_bp", __name__, url_prefix="/api/v1/notifications")


@notification_bp.route("", methods=["GET"])
@require_auth
def list_notifications():
    actor = current_actor()
    limit = min(max(parse_int(request.args.get("limit"), default=50), 1), 200)
    offset = max(parse_int(request.args.get("offset"), default=0), 0)
    items, total = NotificationService.list_for_recipient(
        actor.user_id,
        unread_only=request.args.get("unread") == "true",
        limit=limit,
        offset=offset,
    )
    return jsonify({
        "items": [n.to_dict() for n in items],
        "total": total,
        "unread": NotificationService.unread_count(actor.user_id),
    }), 200


@notification_bp.route("/<int:notification_id>/read", methods=["POST"])
@require_auth
def mark_read(notification_id):
    notif = NotificationService.mark_read(notification_id, current_actor().user_id)
    return jsonify(notif.to_dict()), 200


@notification_bp.route("/read-all", methods=["POST"])
@require_auth
def mark_all_read():
    count = NotificationService.mark_all_read(current_actor().user_id)
    return jsonify({"marked": count}), 200
