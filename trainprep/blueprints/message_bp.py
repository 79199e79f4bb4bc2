"""
Messaging blueprint.

Routes:
  GET   /api/v1/conversations                    – conversations (query: kind=private|group)
  POST  /api/v1/conversations                    – start a conversation
  GET   /api/v1/conversations/unread-count       – unread messages across conversations
  GET   /api/v1/conversations/<id>/messages      – messages (marks read)
  POST  /api/v1/conversations/<id>/messages      – send a message
  PUT   /api/v1/conversations/<id>/pin           – pin / unpin
"""

from flask import Blueprint, jsonify, request

from trainprep.auth import current_actor, require_auth
from trainprep.blueprints import json_body, json_flag
from trainprep.services import messaging_service

message_bp = Blueprint("message_bp", __name__, url_prefix="/api/v1/conversations")


@message_bp.route("", methods=["GET"])
@require_auth
def list_conversations():
    actor = current_actor()
    items = messaging_service.list_conversations(actor.user_id, kind=request.args.get("kind") or None)
    return jsonify({"items": items, "total": len(items)}), 200


@message_bp.route("", methods=["POST"])
@require_auth
def create_conversation():
    """Body: { "participant_ids": [..], "is_group": false, "name": "..." }"""
    actor = current_actor()
    data = json_body()
    ids = data.get("participant_ids") or []
    if not isinstance(ids, list):
        ids = [ids]
    conversation = messaging_service.create_conversation(
        actor.user_id, ids, name=data.get("name"), is_group=json_flag(data, "is_group"),
    )
    return jsonify(conversation), 201


@message_bp.route("/unread-count", methods=["GET"])
@require_auth
def unread_count():
    return jsonify({"unread": messaging_service.unread_count(current_actor().user_id)}), 200


@message_bp.route("/<int:conversation_id>/messages", methods=["GET"])
@require_auth
def get_messages(conversation_id):
    items = messaging_service.get_messages(current_actor().user_id, conversation_id)
    return jsonify({"items": items, "total": len(items)}), 200


@message_bp.route("/<int:conversation_id>/messages", methods=["POST"])
@require_auth
def send_message(conversation_id):
    """Body: { "content": "...", "media_url": "...", "media_type": "image|pdf|voice" }"""
    data = json_body()
    message = messaging_service.send_message(
        current_actor().user_id,
        conversation_id,
        content=data.get("content"),
        media_url=data.get("media_url"),
        media_type=data.get("media_type"),
    )
    return jsonify(message), 201


@message_bp.route("/<int:conversation_id>/pin", methods=["PUT"])
@require_auth
def pin(conversation_id):
    """Body: { "pinned": true }"""
    data = json_body()
    summary = messaging_service.set_pinned(
        current_actor().user_id, conversation_id, json_flag(data, "pinned", default=True),
    )
    return jsonify(summary), 200
