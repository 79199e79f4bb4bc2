"""
Training Request Blueprint.

Routes:
  GET    /training-requests                              – list visible requests
  POST   /training-requests                              – create (DV), optionally submit
  GET    /training-requests/wizard                       – new-request wizard descriptor
  POST   /training-requests/wizard/validate              – validate one wizard step
  POST   /training-requests/batch-transition             – transition many requests
  GET    /training-requests/<id>                         – request detail
  PUT    /training-requests/<id>                         – edit descriptive payload
  POST   /training-requests/<id>/transition              – submit / approve / reject / complete
  GET    /training-requests/<id>/history                 – audit trail
  GET    /training-requests/<id>/wizard                  – wizard descriptor for this request
  GET    /training-requests/<id>/recommended-trainers    – trainer suggestions (SV, PM, CC)
"""

from flask import Blueprint, jsonify, request

from trainprep.auth import current_actor, require_auth, require_roles
from trainprep.blueprints import iso_values, json_body, json_flag, json_object
from trainprep.services import request_lifecycle, training_request_service, trainer_service, wizard
from trainprep.utils.errors import E, api_error
from trainprep.utils.helpers import parse_int

training_request_bp = Blueprint("training_request_bp", __name__, url_prefix="/api/v1/training-requests")

# Body keys forwarded to transition_request
_TRANSITION_INPUTS = ("rejection_reason", "trainer_id", "attendance_count", "completion_notes", "documents")


def _serialize(req, actor):
    data = req.to_dict()
    data["available_actions"] = request_lifecycle.get_available_transitions(req, actor)
    return data


def _transition_kwargs(data):
    return {key: data[key] for key in _TRANSITION_INPUTS if key in data}


# ═════════════════════════════════════════════════════════════════════════════
# COLLECTION
# ═════════════════════════════════════════════════════════════════════════════

@training_request_bp.route("", methods=["GET"])
@require_auth
def list_requests():
    """List requests visible to the caller. Query: status (tab group), search."""
    actor = current_actor()
    items = training_request_service.list_requests(
        actor,
        status_group=request.args.get("status") or None,
        search=request.args.get("search") or None,
    )
    return jsonify({"items": [_serialize(r, actor) for r in items], "total": len(items)}), 200


@training_request_bp.route("", methods=["POST"])
@require_roles("DV")
def create_request():
    """Create a draft. Body: payload fields, plus ``submit: true`` to submit at once."""
    actor = current_actor()
    data = json_body()
    req = training_request_service.create_request(actor, data, submit=json_flag(data, "submit"))
    return jsonify(_serialize(req, actor)), 201


@training_request_bp.route("/wizard", methods=["GET"])
@require_auth
def new_request_wizard():
    actor = current_actor()
    return jsonify(wizard.build_wizard(actor.role)), 200


@training_request_bp.route("/wizard/validate", methods=["POST"])
@require_auth
def validate_wizard_step():
    """Body: { "step": 1, "data": {...} }"""
    actor = current_actor()
    data = json_body()
    step = data.get("step")
    if step is None:
        return api_error(E.VALIDATION_REQUIRED, "step is required")
    cleaned = wizard.validate_step(actor.role, parse_int(step, default=step), json_object(data, "data"))
    return jsonify({"valid": True, "step": step, "data": iso_values(cleaned)}), 200


@training_request_bp.route("/batch-transition", methods=["POST"])
@require_auth
def batch_transition():
    """Body: { "request_ids": [...], "action": "...", ...transition inputs }"""
    actor = current_actor()
    data = json_body()
    ids = data.get("request_ids")
    action = data.get("action")
    if not action:
        return api_error(E.VALIDATION_REQUIRED, "action is required")
    if not isinstance(ids, list) or not ids:
        return api_error(E.VALIDATION_REQUIRED, "request_ids must be a non-empty list")
    result = request_lifecycle.batch_transition(
        [str(i) for i in ids], action, actor, **_transition_kwargs(data),
    )
    return jsonify(result), 200


# ═════════════════════════════════════════════════════════════════════════════
# SINGLE REQUEST
# ═════════════════════════════════════════════════════════════════════════════

@training_request_bp.route("/<request_id>", methods=["GET"])
@require_auth
def get_request(request_id):
    actor = current_actor()
    req = training_request_service.get_request(actor, request_id)
    return jsonify(_serialize(req, actor)), 200


@training_request_bp.route("/<request_id>", methods=["PUT"])
@require_auth
def update_request(request_id):
    actor = current_actor()
    req = training_request_service.update_request(actor, request_id, json_body())
    return jsonify(_serialize(req, actor)), 200


@training_request_bp.route("/<request_id>/transition", methods=["POST"])
@require_auth
def transition(request_id):
    """Body: { "action": "approve", "trainer_id": 7 } etc."""
    actor = current_actor()
    data = json_body()
    action = data.get("action")
    if not action:
        return api_error(E.VALIDATION_REQUIRED, "action is required")
    result = request_lifecycle.transition_request(
        request_id, action, actor, **_transition_kwargs(data),
    )
    return jsonify(result), 200


@training_request_bp.route("/<request_id>/history", methods=["GET"])
@require_auth
def history(request_id):
    actor = current_actor()
    req = training_request_service.get_request(actor, request_id)
    return jsonify({"request_id": req.id, "items": request_lifecycle.list_history(req.id)}), 200


@training_request_bp.route("/<request_id>/wizard", methods=["GET"])
@require_auth
def request_wizard(request_id):
    actor = current_actor()
    req = training_request_service.get_request(actor, request_id)
    descriptor = wizard.build_wizard(
        actor.role, req, actions=request_lifecycle.get_available_transitions(req, actor),
    )
    descriptor["request"] = req.to_dict()
    return jsonify(descriptor), 200


@training_request_bp.route("/<request_id>/recommended-trainers", methods=["GET"])
@require_roles("SV", "PM", "CC")
def recommended_trainers(request_id):
    actor = current_actor()
    req = training_request_service.get_request(actor, request_id)
    limit = parse_int(request.args.get("limit"), default=trainer_service.DEFAULT_RECOMMENDATION_LIMIT)
    items = trainer_service.recommend_trainers(req, limit=max(limit, 1))
    return jsonify({"items": [p.to_dict() for p in items], "total": len(items)}), 200
