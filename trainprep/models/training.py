"""
Training domain models.

Models:
    - TrainingRequest: a request for a training session, moved through the
      approval workflow (see trainprep.core.transitions).
    - TrainingEvent: a scheduled session shown on the calendar, optionally
      linked to the request it came from.
"""

import uuid
from datetime import datetime, timezone

from trainprep.core.transitions import RequestStatus, status_label
from trainprep.models import db

SPECIALIZATIONS = {
    "leadership": "Leadership",
    "communication": "Communication",
    "project-management": "Project Management",
    "technical-skills": "Technical Skills",
    "soft-skills": "Soft Skills",
}


# Columns the descriptive payload covers (editable until terminal status)
PAYLOAD_FIELDS = ("title", "training_date", "location", "specialization", "trainee_count", "description")


def _iso(value):
    return value.isoformat() if value else None


class TrainingRequest(db.Model):
    """
    Training request raised by a DV and approved by SV then PM before a
    trainer delivers it.

    Code auto-generated: TRN-{year}-{seq} (3-digit, per year).
    """

    __tablename__ = "training_requests"
    __table_args__ = (
        db.Index("idx_treq_status", "status"),
        db.Index("idx_treq_requested_by", "requested_by_id"),
        db.Index("idx_treq_supervisor", "supervisor_id"),
        db.Index("idx_treq_program_manager", "program_manager_id"),
        db.Index("idx_treq_trainer", "trainer_id"),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    code = db.Column(db.String(20), unique=True, nullable=False)
    title = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(30), nullable=False, default=RequestStatus.DRAFT.value)

    # Role holders (weak references)
    requested_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    supervisor_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    program_manager_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    trainer_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Descriptive payload
    training_date = db.Column(db.Date, nullable=False)
    location = db.Column(db.String(200), nullable=False)
    specialization = db.Column(db.String(50), nullable=False)
    trainee_count = db.Column(db.Integer, nullable=False)
    description = db.Column(db.Text, default="")
    region = db.Column(db.String(100), default="")
    department = db.Column(db.String(100), default="")

    # Workflow results
    rejection_reason = db.Column(db.Text)
    attendance_count = db.Column(db.Integer)
    completion_notes = db.Column(db.Text)
    documents = db.Column(db.JSON, default=list)

    submitted_at = db.Column(db.DateTime(timezone=True))
    sv_decided_at = db.Column(db.DateTime(timezone=True))
    pm_decided_at = db.Column(db.DateTime(timezone=True))
    completed_at = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    requested_by = db.relationship("User", foreign_keys=[requested_by_id])
    supervisor = db.relationship("User", foreign_keys=[supervisor_id])
    program_manager = db.relationship("User", foreign_keys=[program_manager_id])
    trainer = db.relationship("User", foreign_keys=[trainer_id])

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "title": self.title,
            "status": self.status,
            "status_label": status_label(self.status),
            "requested_by_id": self.requested_by_id,
            "requested_by_name": self.requested_by.name if self.requested_by else None,
            "supervisor_id": self.supervisor_id,
            "program_manager_id": self.program_manager_id,
            "trainer_id": self.trainer_id,
            "trainer_name": self.trainer.name if self.trainer else None,
            "training_date": _iso(self.training_date),
            "location": self.location,
            "specialization": self.specialization,
            "specialization_label": SPECIALIZATIONS.get(self.specialization, self.specialization),
            "trainee_count": self.trainee_count,
            "description": self.description or "",
            "region": self.region,
            "department": self.department,
            "rejection_reason": self.rejection_reason,
            "attendance_count": self.attendance_count,
            "completion_notes": self.completion_notes,
            "documents": self.documents or [],
            "submitted_at": _iso(self.submitted_at),
            "sv_decided_at": _iso(self.sv_decided_at),
            "pm_decided_at": _iso(self.pm_decided_at),
            "completed_at": _iso(self.completed_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self):
        return f"<TrainingRequest {self.code} [{self.status}]>"


class TrainingEvent(db.Model):
    """Calendar entry for a training session."""

    __tablename__ = "training_events"
    __table_args__ = (
        db.Index("idx_tevent_starts_at", "starts_at"),
        db.Index("idx_tevent_region", "region"),
    )

    id = db.Column(db.Integer, primary_key=True)
    request_id = db.Column(
        db.String(36), db.ForeignKey("training_requests.id", ondelete="CASCADE"),
        nullable=True, unique=True,
    )
    title = db.Column(db.String(200), nullable=False)
    starts_at = db.Column(db.DateTime, nullable=False)
    duration_hours = db.Column(db.Float, default=3.0)
    location = db.Column(db.String(200), default="")
    region = db.Column(db.String(100), default="")
    department = db.Column(db.String(100), default="")
    status = db.Column(db.String(20), default="pending")
    trainees = db.Column(db.Integer, default=0)
    trainer_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    trainer = db.relationship("User", foreign_keys=[trainer_id])

    def to_dict(self):
        return {
            "id": self.id,
            "request_id": self.request_id,
            "title": self.title,
            "starts_at": _iso(self.starts_at),
            "duration_hours": self.duration_hours,
            "location": self.location,
            "region": self.region,
            "department": self.department,
            "status": self.status,
            "trainees": self.trainees,
            "trainer_id": self.trainer_id,
            "trainer_name": self.trainer.name if self.trainer else None,
        }


def next_request_code(year: int | None = None) -> str:
    """Return the next free TRN-{year}-{seq} code."""
    year = year or datetime.now(timezone.utc).year
    prefix = f"TRN-{year}-"
    last = (
        db.session.query(TrainingRequest.code)
        .filter(TrainingRequest.code.like(f"{prefix}%"))
        .order_by(TrainingRequest.code.desc())
        .first()
    )
    seq = 1
    if last:
        try:
            seq = int(last[0].rsplit("-", 1)[1]) + 1
        except (IndexError, ValueError):
            seq = TrainingRequest.query.filter(TrainingRequest.code.like(f"{prefix}%")).count() + 1
    return f"{prefix}{seq:03d}"
