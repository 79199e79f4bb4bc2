"""
Training request persistence.

``fetch_request`` / ``save_request`` are the only way the workflow layer
reads and writes a TrainingRequest row. The patch applied by
``save_request`` is restricted to known columns.
"""

from trainprep.core.exceptions import NotFoundError, ValidationError
from trainprep.models import db
from trainprep.models.training import TrainingRequest

# Columns a patch may touch; id, code and timestamps managed by the model are excluded
PATCHABLE_FIELDS = frozenset({
    "title", "status",
    "requested_by_id", "supervisor_id", "program_manager_id", "trainer_id",
    "training_date", "location", "specialization", "trainee_count", "description",
    "region", "department",
    "rejection_reason", "attendance_count", "completion_notes", "documents",
    "submitted_at", "sv_decided_at", "pm_decided_at", "completed_at",
})


def fetch_request(request_id: str) -> TrainingRequest:
    req = db.session.get(TrainingRequest, str(request_id)) if request_id else None
    if req is None:
        raise NotFoundError(resource="TrainingRequest", resource_id=request_id)
    return req


def save_request(request_id: str, patch: dict, *, commit: bool = True) -> TrainingRequest:
    """
    Apply ``patch`` to the stored request.

    With ``commit=False`` the change is only flushed, so the caller can add
    audit rows and related records to the same transaction.
    """
    unknown = sorted(set(patch) - PATCHABLE_FIELDS)
    if unknown:
        raise ValidationError(
            "Unknown training request fields",
            details={field: "not a patchable field" for field in unknown},
        )
    req = fetch_request(request_id)
    for field, value in patch.items():
        setattr(req, field, value)
    if commit:
        db.session.commit()
    else:
        db.session.flush()
    return req
