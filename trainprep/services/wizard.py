"""
Approval wizard descriptors.

Each role sees the request through a fixed multi-step form. ``build_wizard``
returns a JSON-ready description of that form (titles, steps, fields, the
submit button label and the actions currently available) and
``validate_step`` checks the fields of one step before the client moves on.
"""

from trainprep.core.exceptions import ValidationError
from trainprep.core.roles import Role, is_read_only, parse_role, role_label, step_count
from trainprep.core.transitions import RequestStatus, available_actions, status_label
from trainprep.models.training import SPECIALIZATIONS
from trainprep.services.request_validation import validate_fields

FIELD_SPECS = {
    "training_date": {"label": "Training Date", "type": "date"},
    "location": {"label": "Location", "type": "text"},
    "specialization": {
        "label": "Specialization",
        "type": "select",
        "options": [{"value": k, "label": v} for k, v in SPECIALIZATIONS.items()],
    },
    "trainee_count": {"label": "Number of Trainees", "type": "number"},
    "title": {"label": "Title", "type": "text"},
    "description": {"label": "Additional Details", "type": "textarea"},
    "rejection_reason": {"label": "Approval Comments", "type": "textarea"},
    "trainer_id": {"label": "Recommended Trainer", "type": "trainer"},
    "attendance_count": {"label": "Attendance", "type": "number"},
    "completion_notes": {"label": "Execution Notes", "type": "textarea"},
    "documents": {"label": "Upload Documentation", "type": "files"},
}

# (key, title, fields, required fields) per step
_STEPS = {
    Role.DV: (
        ("date_location", "Date & Location", ("training_date", "location"),
         ("training_date", "location")),
        ("specialization", "Specialization & Trainees", ("specialization", "trainee_count"),
         ("specialization", "trainee_count")),
        ("details", "Additional Details", ("title", "description"), ()),
    ),
    Role.SV: (
        ("review", "Request Details", ("rejection_reason",), ()),
        ("recommend_trainer", "AI Recommended Trainers", ("trainer_id",), ()),
    ),
    Role.PM: (
        ("review", "Final Approval", ("rejection_reason", "trainer_id"), ()),
        ("confirm", "Next Steps", (), ()),
    ),
    Role.TR: (
        ("assignment", "Training Assignment", (), ()),
        ("execution", "Training Execution", ("attendance_count", "completion_notes"), ()),
        ("documentation", "Upload Documentation", ("documents",), ()),
    ),
    Role.CC: (("overview", "Request Details", (), ()),),
    Role.MB: (("overview", "Request Details", (), ()),),
}

_HEADINGS = {
    Role.DV: ("Create Training Request",
              "Fill out the form to request a new training session", "Submit Request"),
    Role.SV: ("Review Training Request",
              "Review and suggest trainers for this request", "Approve & Suggest Trainer"),
    Role.PM: ("Approve Training Request",
              "Review and give final approval for this training", "Approve Request"),
    Role.TR: ("Training Assignment",
              "Manage your assigned training and upload documentation", "Complete Documentation"),
}
_DEFAULT_HEADING = ("Training Request", "View training request details", "Submit")


def _field(name: str, required) -> dict:
    return {"name": name, "required": name in required, **FIELD_SPECS[name]}


def _steps_for(role: Role) -> list[dict]:
    return [
        {
            "number": number,
            "key": key,
            "title": title,
            "fields": [_field(name, required) for name in fields],
        }
        for number, (key, title, fields, required) in enumerate(_STEPS[role], start=1)
    ]


def build_wizard(role, request=None, actions=None) -> dict:
    """
    Describe the wizard ``role`` sees for ``request`` (None for a new request).

    ``actions`` overrides the table actions, e.g. when the caller has
    already narrowed them to the user holding the stage.
    """
    role = parse_role(role)
    title, description, submit_label = _HEADINGS.get(role, _DEFAULT_HEADING)
    status = request.status if request is not None else RequestStatus.DRAFT.value
    if actions is None:
        actions = available_actions(role, status)
    return {
        "role": role.value,
        "role_label": role_label(role),
        "title": title,
        "description": description,
        "steps": _steps_for(role),
        "max_steps": step_count(role),
        "submit_label": submit_label,
        "read_only": is_read_only(role),
        "request_id": request.id if request is not None else None,
        "status": status,
        "status_label": status_label(status),
        "available_actions": list(actions),
    }


def validate_step(role, step, data: dict) -> dict:
    """Validate the fields of wizard ``step`` (1-based); returns the cleaned values."""
    role = parse_role(role)
    steps = _STEPS[role]
    if isinstance(step, bool) or not isinstance(step, int) or not 1 <= step <= len(steps):
        raise ValidationError(
            "Invalid wizard step",
            details={"step": f"must be between 1 and {len(steps)}"},
        )
    _key, _title, fields, required = steps[step - 1]
    return validate_fields(data or {}, fields, required=required)
