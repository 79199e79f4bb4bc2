"""
Role / permission model.

Six actor roles, each with a fixed capability set, the workflow actions it
may invoke, and the number of wizard steps its form shows.

Usage:
    from trainprep.core.roles import Role, can_perform

    if can_perform(Role.SV, "approve"):
        ...
"""

from enum import Enum


class Role(str, Enum):
    DV = "DV"
    SV = "SV"
    PM = "PM"
    TR = "TR"
    CC = "CC"
    MB = "MB"

    def __str__(self) -> str:
        return self.value


class Capability(str, Enum):
    CREATE = "create"
    APPROVE = "approve"
    EXECUTE = "execute"
    OBSERVE = "observe"


ROLE_LABELS = {
    Role.DV: "Development Officer",
    Role.SV: "Supervisor",
    Role.PM: "Program Manager",
    Role.TR: "Trainer",
    Role.CC: "Coordinator",
    Role.MB: "Board Member",
}

ROLE_CAPABILITIES = {
    Role.DV: frozenset({Capability.CREATE, Capability.OBSERVE}),
    Role.SV: frozenset({Capability.APPROVE, Capability.OBSERVE}),
    Role.PM: frozenset({Capability.APPROVE, Capability.OBSERVE}),
    Role.TR: frozenset({Capability.EXECUTE, Capability.OBSERVE}),
    Role.CC: frozenset({Capability.OBSERVE}),
    Role.MB: frozenset({Capability.OBSERVE}),
}

# Workflow actions each role may invoke (action names match transitions.Action)
ROLE_ACTIONS = {
    Role.DV: frozenset({"submit"}),
    Role.SV: frozenset({"approve", "reject"}),
    Role.PM: frozenset({"approve", "reject"}),
    Role.TR: frozenset({"complete"}),
    Role.CC: frozenset(),
    Role.MB: frozenset(),
}

# Wizard pages shown per role; roles without a form get a single read-only view
ROLE_STEP_COUNT = {
    Role.DV: 3,
    Role.SV: 2,
    Role.PM: 2,
    Role.TR: 3,
    Role.CC: 1,
    Role.MB: 1,
}

FULL_VISIBILITY_ROLES = frozenset({Role.CC, Role.MB})
READ_ONLY_ROLES = frozenset(r for r, acts in ROLE_ACTIONS.items() if not acts)


def parse_role(value) -> Role:
    """Return the Role for a code such as "sv" or "SV"; raise ValueError if unknown."""
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value or "").strip().upper())
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


def actions_for(role) -> frozenset:
    return ROLE_ACTIONS[parse_role(role)]


def can_perform(role, action: str) -> bool:
    return action in actions_for(role)


def has_capability(role, capability) -> bool:
    return Capability(capability) in ROLE_CAPABILITIES[parse_role(role)]


def is_read_only(role) -> bool:
    return parse_role(role) in READ_ONLY_ROLES


def has_full_visibility(role) -> bool:
    return parse_role(role) in FULL_VISIBILITY_ROLES


def step_count(role) -> int:
    return ROLE_STEP_COUNT[parse_role(role)]


def role_label(role) -> str:
    return ROLE_LABELS[parse_role(role)]
