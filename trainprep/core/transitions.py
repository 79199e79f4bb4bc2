"""
Training request transition engine.

Pure state machine over request statuses: given the acting role, the
request's current status and an action, compute the next status or raise.
No database access and no side effects; callers re-evaluate it from the
persisted status on every invocation.

    draft ──DV submit──▶ pending_sv_approval ──SV approve──▶ pending_pm_approval
                              │                                  │
                          SV reject                     PM approve / PM reject
                              ▼                                  ▼
                          rejected ◀──────────────────── approved ──TR complete──▶ completed

Usage:
    from trainprep.core.transitions import next_status

    new = next_status("SV", "pending_sv_approval", "approve")
"""

from enum import Enum
from typing import NamedTuple

from trainprep.core.exceptions import InvalidTransition, UnauthorizedRole
from trainprep.core.roles import READ_ONLY_ROLES, Role, parse_role


class RequestStatus(str, Enum):
    DRAFT = "draft"
    PENDING_SV_APPROVAL = "pending_sv_approval"
    PENDING_PM_APPROVAL = "pending_pm_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"

    def __str__(self) -> str:
        return self.value


class Action(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"
    COMPLETE = "complete"

    def __str__(self) -> str:
        return self.value


class Transition(NamedTuple):
    role: Role
    to: RequestStatus


TERMINAL_STATUSES = frozenset({RequestStatus.REJECTED, RequestStatus.COMPLETED})

# Role that owns each non-terminal stage
STAGE_ROLES = {
    RequestStatus.DRAFT: Role.DV,
    RequestStatus.PENDING_SV_APPROVAL: Role.SV,
    RequestStatus.PENDING_PM_APPROVAL: Role.PM,
    RequestStatus.APPROVED: Role.TR,
}

TRANSITIONS = {
    (RequestStatus.DRAFT, Action.SUBMIT): Transition(Role.DV, RequestStatus.PENDING_SV_APPROVAL),
    (RequestStatus.PENDING_SV_APPROVAL, Action.APPROVE): Transition(Role.SV, RequestStatus.PENDING_PM_APPROVAL),
    (RequestStatus.PENDING_SV_APPROVAL, Action.REJECT): Transition(Role.SV, RequestStatus.REJECTED),
    (RequestStatus.PENDING_PM_APPROVAL, Action.APPROVE): Transition(Role.PM, RequestStatus.APPROVED),
    (RequestStatus.PENDING_PM_APPROVAL, Action.REJECT): Transition(Role.PM, RequestStatus.REJECTED),
    (RequestStatus.APPROVED, Action.COMPLETE): Transition(Role.TR, RequestStatus.COMPLETED),
}

STATUS_LABELS = {
    RequestStatus.DRAFT: "Draft",
    RequestStatus.PENDING_SV_APPROVAL: "Pending Supervisor Approval",
    RequestStatus.PENDING_PM_APPROVAL: "Pending Program Manager Approval",
    RequestStatus.APPROVED: "Approved",
    RequestStatus.REJECTED: "Rejected",
    RequestStatus.COMPLETED: "Completed",
}

# Tab grouping used by request lists (All / Pending / Approved / Completed)
STATUS_GROUPS = {
    "draft": frozenset({RequestStatus.DRAFT}),
    "pending": frozenset({RequestStatus.PENDING_SV_APPROVAL, RequestStatus.PENDING_PM_APPROVAL}),
    "approved": frozenset({RequestStatus.APPROVED}),
    "rejected": frozenset({RequestStatus.REJECTED}),
    "completed": frozenset({RequestStatus.COMPLETED}),
}


def _parse_status(value) -> RequestStatus | None:
    try:
        return RequestStatus(value)
    except ValueError:
        return None


def _parse_action(value) -> Action | None:
    try:
        return Action(value)
    except ValueError:
        return None


def next_status(role, current_status, action) -> RequestStatus:
    """
    Compute the status a request moves to when ``role`` performs ``action``.

    Raises:
        UnauthorizedRole: role is read-only or unknown, or is not the role
            bound to the current status.
        InvalidTransition: status or action unknown, status terminal, or no
            table entry for (status, action).
    """
    try:
        acting = parse_role(role)
    except ValueError:
        raise UnauthorizedRole(role, current_status, action, "unknown role") from None
    if acting in READ_ONLY_ROLES:
        raise UnauthorizedRole(acting, current_status, action, "role is read-only")

    status = _parse_status(current_status)
    if status is None:
        raise InvalidTransition(acting, current_status, action, "unknown status")
    act = _parse_action(action)
    if act is None:
        raise InvalidTransition(acting, status, action, "unknown action")

    if status in TERMINAL_STATUSES:
        raise InvalidTransition(acting, status, act, "status is terminal")

    owner = STAGE_ROLES[status]
    if acting is not owner:
        raise UnauthorizedRole(acting, status, act, f"stage is owned by {owner}")

    rule = TRANSITIONS.get((status, act))
    if rule is None:
        raise InvalidTransition(acting, status, act, "no such transition")
    return rule.to


def available_actions(role, status) -> list[str]:
    """Actions ``role`` may invoke on a request in ``status`` (table order)."""
    try:
        acting = parse_role(role)
    except ValueError:
        return []
    current = _parse_status(status)
    return [
        act.value
        for (from_status, act), rule in TRANSITIONS.items()
        if from_status is current and rule.role is acting
    ]


def bound_role(status) -> Role | None:
    """Role that owns ``status``; None for terminal or unknown statuses."""
    current = _parse_status(status)
    return STAGE_ROLES.get(current) if current else None


def is_terminal(status) -> bool:
    return _parse_status(status) in TERMINAL_STATUSES


def status_label(status) -> str:
    current = _parse_status(status)
    return STATUS_LABELS.get(current, "Unknown") if current else "Unknown"


def status_group(status) -> str | None:
    current = _parse_status(status)
    for group, members in STATUS_GROUPS.items():
        if current in members:
            return group
    return None
