"""
Training Request Lifecycle Service

Moves a training request through the approval workflow:
  - Transition validation (trainprep.core.transitions.next_status)
  - Stage assignment (who holds the SV / PM / TR stage of this request)
  - Action preconditions (reject needs a reason, final approval needs a trainer)
  - Side effects (decision timestamps, trainer assignment, completion record)
  - Audit trail, calendar event sync, notifications

Every invocation re-reads the stored status; nothing is cached between
calls. A failed transition leaves the stored request untouched.

Usage:
    from trainprep.services.request_lifecycle import transition_request

    result = transition_request(
        request_id="abc",
        action="approve",
        actor=actor,
        trainer_id=7,
    )
"""

import logging
from datetime import datetime, timezone

from trainprep.core.exceptions import (
    NotFoundError,
    UnauthorizedRole,
    ValidationError,
    WorkflowError,
)
from trainprep.core.transitions import Action, RequestStatus, available_actions, next_status
from trainprep.models import db
from trainprep.models.audit import AuditLog, write_audit
from trainprep.services.calendar_service import sync_event_for_request
from trainprep.services.notification import NotificationService
from trainprep.services.request_store import fetch_request, save_request
from trainprep.services.request_validation import validate_fields
from trainprep.services.trainer_service import is_trainer

logger = logging.getLogger(__name__)

# Request column holding the user assigned to each stage
_STAGE_ASSIGNEE = {
    RequestStatus.PENDING_SV_APPROVAL: "supervisor_id",
    RequestStatus.PENDING_PM_APPROVAL: "program_manager_id",
    RequestStatus.APPROVED: "trainer_id",
}

# Stages an unassigned actor of the bound role may claim by acting on them
_CLAIMABLE = frozenset({RequestStatus.PENDING_SV_APPROVAL, RequestStatus.PENDING_PM_APPROVAL})

# Decision timestamp column per stage
_DECIDED_AT = {
    RequestStatus.DRAFT: "submitted_at",
    RequestStatus.PENDING_SV_APPROVAL: "sv_decided_at",
    RequestStatus.PENDING_PM_APPROVAL: "pm_decided_at",
    RequestStatus.APPROVED: "completed_at",
}

# Extra inputs each action accepts
_ACTION_INPUTS = {
    Action.SUBMIT: (),
    Action.APPROVE: ("trainer_id",),
    Action.REJECT: ("rejection_reason",),
    Action.COMPLETE: ("attendance_count", "completion_notes", "documents"),
}


def _stage_assignment(req, status: RequestStatus, act: Action, actor) -> dict:
    """
    Check the actor holds this request's stage; return the claim patch.

    Raises UnauthorizedRole when the stage belongs to another user.
    """
    if status is RequestStatus.DRAFT:
        if req.requested_by_id != actor.user_id:
            raise UnauthorizedRole(actor.role, status, act, "only the requester may submit a draft")
        return {}

    field = _STAGE_ASSIGNEE[status]
    assignee = getattr(req, field)
    if assignee is None:
        if status in _CLAIMABLE:
            return {field: actor.user_id}
        raise UnauthorizedRole(actor.role, status, act, "no user is assigned to this stage")
    if assignee != actor.user_id:
        raise UnauthorizedRole(actor.role, status, act, "request is assigned to another user")
    return {}


def _action_patch(req, status: RequestStatus, act: Action, inputs: dict) -> dict:
    """Preconditions and field changes specific to the action."""
    patch = {}
    if act is Action.REJECT:
        if inputs.get("rejection_reason"):
            patch["rejection_reason"] = inputs["rejection_reason"]

    elif act is Action.APPROVE:
        trainer_id = inputs.get("trainer_id")
        if trainer_id is not None:
            if not is_trainer(trainer_id):
                raise ValidationError(
                    "Selected trainer does not exist",
                    details={"trainer_id": f"user {trainer_id} is not an active trainer"},
                )
            patch["trainer_id"] = trainer_id
        if status is RequestStatus.PENDING_PM_APPROVAL and (trainer_id or req.trainer_id) is None:
            raise ValidationError(
                "A trainer must be assigned before final approval",
                details={"trainer_id": "Trainer is required"},
            )

    elif act is Action.COMPLETE:
        for key in ("attendance_count", "completion_notes", "documents"):
            if key in inputs:
                patch[key] = inputs[key]
    return patch


def transition_request(
    request_id: str,
    action: str,
    actor,
    *,
    rejection_reason: str | None = None,
    trainer_id: int | None = None,
    attendance_count: int | None = None,
    completion_notes: str | None = None,
    documents: list | None = None,
) -> dict:
    """
    Execute a training request transition on behalf of ``actor``.

    Args:
        request_id: UUID of the training request
        action: submit, approve, reject or complete
        actor: trainprep.auth.Actor performing the action
        rejection_reason: Required for 'reject'
        trainer_id: Trainer recommended by SV / confirmed by PM on 'approve'
        attendance_count, completion_notes, documents: Recorded on 'complete'

    Returns:
        {"request_id", "code", "previous_status", "new_status", "action"}

    Raises:
        NotFoundError, InvalidTransition, UnauthorizedRole, ValidationError
    """
    req = fetch_request(request_id)
    previous_status = req.status

    # 1. Transition table
    new_status = next_status(actor.role, previous_status, action)
    status, act = RequestStatus(previous_status), Action(action)

    # 2. Stage assignment
    patch = _stage_assignment(req, status, act, actor)

    # 3. Action inputs and preconditions
    raw = {
        "rejection_reason": rejection_reason,
        "trainer_id": trainer_id,
        "attendance_count": attendance_count,
        "completion_notes": completion_notes,
        "documents": documents,
    }
    inputs = validate_fields(raw, _ACTION_INPUTS[act])
    patch.update(_action_patch(req, status, act, inputs))

    # 4. Execute transition
    now = datetime.now(timezone.utc)
    patch["status"] = new_status.value
    patch[_DECIDED_AT[status]] = now
    req = save_request(req.id, patch, commit=False)

    # 5. Audit log + calendar
    diff = {"status": {"old": previous_status, "new": req.status}}
    for key in ("rejection_reason", "trainer_id", "supervisor_id", "program_manager_id",
                "attendance_count", "completion_notes", "documents"):
        if key in patch:
            diff[key] = {"old": None, "new": patch[key]}
    write_audit(
        entity_type="training_request",
        entity_id=req.id,
        action=f"training_request.{act.value}",
        actor_user_id=actor.user_id,
        actor_role=actor.role.value,
        diff=diff,
    )
    sync_event_for_request(req)
    db.session.commit()

    logger.info(
        "Training request %s: %s → %s by user %d (%s)",
        req.code, previous_status, req.status, actor.user_id, actor.role,
        extra={"request_code": req.code, "user_id": actor.user_id, "role": actor.role.value},
    )

    # 6. Notifications (fire-and-forget)
    NotificationService.notify_transition(req, act.value, actor.user_id)

    return {
        "request_id": req.id,
        "code": req.code,
        "previous_status": previous_status,
        "new_status": req.status,
        "action": act.value,
    }


def batch_transition(request_ids: list[str], action: str, actor, **kwargs) -> dict:
    """
    Batch transition for multiple requests. Partial success allowed.

    Returns:
        {"success": [...], "errors": [...]}
    """
    results = {"success": [], "errors": []}

    for req_id in request_ids:
        try:
            results["success"].append(transition_request(req_id, action, actor, **kwargs))
        except (WorkflowError, ValidationError, NotFoundError) as e:
            db.session.rollback()
            results["errors"].append({
                "request_id": req_id,
                "error": str(e),
                "error_type": type(e).__name__,
            })

    logger.info("Batch %s by user %d: %d ok, %d failed", action, actor.user_id,
                len(results["success"]), len(results["errors"]))
    return results


def get_available_transitions(request, actor) -> list[str]:
    """
    Actions ``actor`` may invoke on ``request`` right now.

    Table actions for the actor's role, narrowed to the user holding the
    stage (requester for drafts, assignee or unclaimed for SV / PM).
    """
    actions = available_actions(actor.role, request.status)
    if not actions:
        return []
    try:
        _stage_assignment(request, RequestStatus(request.status), Action(actions[0]), actor)
    except UnauthorizedRole:
        return []
    return actions


def list_history(request_id: str) -> list[dict]:
    """Audit entries for a request, oldest first."""
    entries = (
        AuditLog.query
        .filter_by(entity_type="training_request", entity_id=str(request_id))
        .order_by(AuditLog.timestamp.asc(), AuditLog.id.asc())
        .all()
    )
    return [e.to_dict() for e in entries]

