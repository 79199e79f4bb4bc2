"""
Auth Blueprint: login by user code, token refresh, logout, profile.

Routes:
  POST /api/v1/auth/login     – code + password → JWT pair
  POST /api/v1/auth/refresh   – rotate refresh token
  POST /api/v1/auth/logout    – revoke refresh token (or all sessions)
  GET  /api/v1/auth/me        – current user, role label and capabilities
"""

import logging

from flask import Blueprint, jsonify, request

from trainprep.auth import current_actor, require_auth
from trainprep.blueprints import json_body
from trainprep.core.roles import ROLE_CAPABILITIES, actions_for, role_label, step_count
from trainprep.services.jwt_service import close_sessions, open_session, refresh_session
from trainprep.services.user_service import authenticate_user, get_user_by_id, update_last_login
from trainprep.utils.errors import E, api_error

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate with user code + password, return JWT pair.

    Body: { "code": "SV-001", "password": "..." }
    """
    data = json_body()
    code = str(data.get("code") or "").strip()
    password = str(data.get("password") or "")
    if not code or not password:
        return api_error(E.VALIDATION_REQUIRED, "User code and password are required")

    user = authenticate_user(code, password)
    update_last_login(user)
    tokens = open_session(user, request.remote_addr, request.headers.get("User-Agent"))
    logger.info("User %s logged in", user.code, extra={"user_id": user.id, "role": user.role})
    return jsonify({**tokens, "user": user.to_dict()}), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/refresh
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """
    Exchange a refresh token for a new token pair (token rotation).

    Body: { "refresh_token": "..." }
    """
    refresh_token = json_body().get("refresh_token", "")
    if not refresh_token or not isinstance(refresh_token, str):
        return api_error(E.VALIDATION_REQUIRED, "Refresh token is required")

    tokens = refresh_session(refresh_token, request.remote_addr, request.headers.get("User-Agent"))
    return jsonify(tokens), 200


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """
    Revoke the given refresh token, or every session of the caller.

    Body: { "refresh_token": "..." }  (optional)
    """
    refresh_token = json_body().get("refresh_token") or None
    if refresh_token is not None and not isinstance(refresh_token, str):
        return api_error(E.VALIDATION_INVALID, "refresh_token must be a string")
    close_sessions(current_actor().user_id, refresh_token)
    return jsonify({"message": "Logged out successfully"}), 200


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    actor = current_actor()
    user = get_user_by_id(actor.user_id)
    return jsonify({
        "user": user.to_dict(),
        "role_label": role_label(actor.role),
        "capabilities": sorted(c.value for c in ROLE_CAPABILITIES[actor.role]),
        "actions": sorted(actions_for(actor.role)),
        "wizard_steps": step_count(actor.role),
    }), 200
