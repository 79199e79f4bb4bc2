"""
Training Request Service: create, list, read and edit requests.

Visibility per role:
    DV      own requests
    SV      requests they supervise, plus unclaimed ones awaiting SV
    PM      requests they manage, plus unclaimed ones awaiting PM
    TR      requests they are the trainer of
    CC, MB  everything

A request outside the actor's visibility is reported as not found.
"""

import logging

from sqlalchemy import and_, or_

from trainprep.core.exceptions import InvalidTransition, NotFoundError, UnauthorizedRole, ValidationError
from trainprep.core.roles import Role, has_full_visibility
from trainprep.core.transitions import (
    STATUS_GROUPS,
    RequestStatus,
    bound_role,
    is_terminal,
)
from trainprep.models import db
from trainprep.models.audit import write_audit
from trainprep.models.training import PAYLOAD_FIELDS, SPECIALIZATIONS, TrainingRequest, next_request_code
from trainprep.services.calendar_service import sync_event_for_request
from trainprep.services.request_lifecycle import transition_request
from trainprep.services.request_store import fetch_request, save_request
from trainprep.services.request_validation import validate_payload

logger = logging.getLogger(__name__)


def _own(actor):
    return TrainingRequest.requested_by_id == actor.user_id


def _supervised(actor):
    return or_(
        TrainingRequest.supervisor_id == actor.user_id,
        and_(
            TrainingRequest.supervisor_id.is_(None),
            TrainingRequest.status == RequestStatus.PENDING_SV_APPROVAL.value,
        ),
    )


def _managed(actor):
    return or_(
        TrainingRequest.program_manager_id == actor.user_id,
        and_(
            TrainingRequest.program_manager_id.is_(None),
            TrainingRequest.status == RequestStatus.PENDING_PM_APPROVAL.value,
        ),
    )


def _trained(actor):
    return TrainingRequest.trainer_id == actor.user_id


_VISIBILITY = {
    Role.DV: _own,
    Role.SV: _supervised,
    Role.PM: _managed,
    Role.TR: _trained,
}


def visible_requests(actor):
    """Query of the requests ``actor`` may see."""
    if has_full_visibility(actor.role):
        return TrainingRequest.query
    return TrainingRequest.query.filter(_VISIBILITY[actor.role](actor))


def list_requests(actor, *, status_group=None, search=None, limit=None):
    """Visible requests, newest first, optionally narrowed by tab and search text."""
    q = visible_requests(actor)
    if status_group:
        members = STATUS_GROUPS.get(status_group)
        if members is None:
            raise ValidationError(
                "Invalid status filter",
                details={"status": f"must be one of {list(STATUS_GROUPS)}"},
            )
        q = q.filter(TrainingRequest.status.in_([s.value for s in members]))
    if search:
        term = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            db.func.lower(TrainingRequest.code).like(term),
            db.func.lower(TrainingRequest.title).like(term),
            db.func.lower(TrainingRequest.location).like(term),
            db.func.lower(TrainingRequest.specialization).like(term),
        ))
    q = q.order_by(TrainingRequest.created_at.desc(), TrainingRequest.code.desc())
    if limit:
        q = q.limit(limit)
    return q.all()


def get_request(actor, request_id: str) -> TrainingRequest:
    req = visible_requests(actor).filter(TrainingRequest.id == str(request_id)).first()
    if req is None:
        raise NotFoundError(resource="TrainingRequest", resource_id=request_id)
    return req


def create_request(actor, data: dict, *, submit: bool = False) -> TrainingRequest:
    """
    Create a draft on behalf of a DV; with ``submit`` send it straight to
    the supervisor through the normal submit transition.
    """
    if actor.role is not Role.DV:
        raise UnauthorizedRole(actor.role, RequestStatus.DRAFT, "create",
                               "only development officers create requests")

    cleaned = validate_payload(data)
    if not cleaned.get("title"):
        cleaned["title"] = SPECIALIZATIONS[cleaned["specialization"]]

    req = TrainingRequest(
        code=next_request_code(),
        status=RequestStatus.DRAFT.value,
        requested_by_id=actor.user_id,
        region=actor.region,
        department=actor.department,
        documents=[],
        **cleaned,
    )
    db.session.add(req)
    db.session.flush()
    write_audit(
        entity_type="training_request",
        entity_id=req.id,
        action="training_request.create",
        actor_user_id=actor.user_id,
        actor_role=actor.role.value,
        diff={k: {"old": None, "new": v} for k, v in cleaned.items()},
    )
    db.session.commit()
    logger.info("Training request %s created by user %d", req.code, actor.user_id,
                extra={"request_code": req.code, "user_id": actor.user_id})

    if submit:
        transition_request(req.id, "submit", actor)
        req = fetch_request(req.id)
    return req


def update_request(actor, request_id: str, data: dict) -> TrainingRequest:
    """
    Edit the descriptive payload.

    Only the role bound to the current status may edit, and never once the
    request is rejected or completed.
    """
    req = get_request(actor, request_id)
    if is_terminal(req.status):
        raise InvalidTransition(actor.role, req.status, "update", "status is terminal")
    owner = bound_role(req.status)
    if actor.role is not owner:
        raise UnauthorizedRole(actor.role, req.status, "update", f"stage is owned by {owner}")

    cleaned = validate_payload(data, partial=True)
    if not cleaned:
        raise ValidationError("No editable fields supplied",
                              details={"fields": list(PAYLOAD_FIELDS)})

    diff = {
        key: {"old": getattr(req, key), "new": value}
        for key, value in cleaned.items()
        if getattr(req, key) != value
    }
    req = save_request(req.id, cleaned, commit=False)
    write_audit(
        entity_type="training_request",
        entity_id=req.id,
        action="training_request.update",
        actor_user_id=actor.user_id,
        actor_role=actor.role.value,
        diff=diff,
    )
    sync_event_for_request(req)
    db.session.commit()
    logger.info("Training request %s updated by user %d (%s)", req.code, actor.user_id,
                ", ".join(diff) or "no changes")
    return req
