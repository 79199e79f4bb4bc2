"""
Dashboard blueprint.

Routes:
  GET /api/v1/dashboard   – summary counters, recent requests, available trainers
"""

from flask import Blueprint, jsonify

from trainprep.auth import current_actor, require_auth
from trainprep.services.dashboard_service import get_dashboard

dashboard_bp = Blueprint("dashboard_bp", __name__, url_prefix="/api/v1/dashboard")


@dashboard_bp.route("", methods=["GET"])
@require_auth
def dashboard():
    return jsonify(get_dashboard(current_actor())), 200
