"""
Trainer directory blueprint.

Routes:
  GET /api/v1/trainers          – list / search trainers
  GET /api/v1/trainers/<id>     – trainer profile
"""

from flask import Blueprint, jsonify, request

from trainprep.auth import require_auth
from trainprep.blueprints import paginate_query
from trainprep.services import trainer_service

trainer_bp = Blueprint("trainer_bp", __name__, url_prefix="/api/v1/trainers")


@trainer_bp.route("", methods=["GET"])
@require_auth
def list_trainers():
    """Query: search, availability, specialization, limit, offset."""
    items, total = paginate_query(trainer_service.trainers_query(
        search=request.args.get("search") or None,
        availability=request.args.get("availability") or None,
        specialization=request.args.get("specialization") or None,
    ))
    return jsonify({"items": [p.to_dict() for p in items], "total": total}), 200


@trainer_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def get_trainer(user_id):
    return jsonify(trainer_service.get_trainer(user_id).to_dict()), 200
