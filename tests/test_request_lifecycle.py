"""
Training request lifecycle service tests:
  - Happy path draft → completed with timestamps, assignment and audit
  - Stage assignment (requester-only submit, claims, other assignees)
  - Action preconditions (trainer on final approval) and the optional rejection reason
  - Failed transitions leave the stored request untouched
  - Calendar sync, notifications, batch transition, available transitions
"""

import pytest

from trainprep.core.exceptions import (
    InvalidTransition,
    NotFoundError,
    UnauthorizedRole,
    ValidationError,
)
from trainprep.models import db
from trainprep.models.audit import AuditLog
from trainprep.models.notification import Notification
from trainprep.models.training import TrainingEvent, TrainingRequest
from trainprep.services.notification import NotificationService
from trainprep.services.request_lifecycle import (
    batch_transition,
    get_available_transitions,
    list_history,
    transition_request,
)


def _walk_to_approved(req, actors, users):
    transition_request(req.id, "submit", actors["DV-001"])
    transition_request(req.id, "approve", actors["SV-001"], trainer_id=users["TR-001"].id)
    transition_request(req.id, "approve", actors["PM-001"])


# ═══════════════════════════════════════════════════════════════════════════
# Happy path
# ═══════════════════════════════════════════════════════════════════════════


class TestHappyPath:

    def test_submit_returns_summary(self, make_request, actors):
        req = make_request()
        result = transition_request(req.id, "submit", actors["DV-001"])
        assert result == {
            "request_id": req.id,
            "code": req.code,
            "previous_status": "draft",
            "new_status": "pending_sv_approval",
            "action": "submit",
        }
        assert db.session.get(TrainingRequest, req.id).submitted_at is not None

    def test_full_lifecycle(self, make_request, actors, users):
        req = make_request()
        _walk_to_approved(req, actors, users)
        result = transition_request(
            req.id, "complete", actors["TR-001"],
            attendance_count=18, completion_notes="Went well",
            documents=[{"name": "attendance.pdf", "url": "https://files.example/a.pdf"}],
        )
        assert result["new_status"] == "completed"

        stored = db.session.get(TrainingRequest, req.id)
        assert stored.supervisor_id == users["SV-001"].id
        assert stored.program_manager_id == users["PM-001"].id
        assert stored.trainer_id == users["TR-001"].id
        assert stored.attendance_count == 18
        assert stored.completion_notes == "Went well"
        assert stored.documents == [{"name": "attendance.pdf", "url": "https://files.example/a.pdf"}]
        assert stored.sv_decided_at and stored.pm_decided_at and stored.completed_at

    def test_history_records_each_step(self, make_request, actors, users):
        req = make_request()
        _walk_to_approved(req, actors, users)
        history = list_history(req.id)
        assert [h["action"] for h in history] == [
            "training_request.submit",
            "training_request.approve",
            "training_request.approve",
        ]
        assert history[0]["diff"]["status"] == {"old": "draft", "new": "pending_sv_approval"}
        assert history[1]["actor_role"] == "SV"
        assert history[1]["diff"]["trainer_id"]["new"] == users["TR-001"].id

    def test_numeric_strings_are_coerced(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval")
        transition_request(req.id, "approve", actors["SV-001"], trainer_id=str(users["TR-001"].id))
        assert db.session.get(TrainingRequest, req.id).trainer_id == users["TR-001"].id


# ═══════════════════════════════════════════════════════════════════════════
# Stage assignment
# ═══════════════════════════════════════════════════════════════════════════


class TestStageAssignment:

    def test_only_requester_may_submit(self, make_request, actors):
        req = make_request(requester="DV-001")
        with pytest.raises(UnauthorizedRole):
            transition_request(req.id, "submit", actors["DV-002"])

    def test_unassigned_sv_stage_is_claimed(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval")
        transition_request(req.id, "approve", actors["SV-002"], trainer_id=users["TR-001"].id)
        assert db.session.get(TrainingRequest, req.id).supervisor_id == users["SV-002"].id

    def test_assigned_supervisor_only(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval", supervisor_id=users["SV-001"].id)
        with pytest.raises(UnauthorizedRole) as exc:
            transition_request(req.id, "approve", actors["SV-002"])
        assert "assigned to another user" in exc.value.reason

    def test_other_trainer_cannot_complete(self, make_request, actors, users):
        req = make_request(status="approved", trainer_id=users["TR-001"].id)
        with pytest.raises(UnauthorizedRole):
            transition_request(req.id, "complete", actors["TR-002"])

    def test_wrong_role_refused_by_engine(self, make_request, actors):
        req = make_request()
        with pytest.raises(UnauthorizedRole):
            transition_request(req.id, "approve", actors["PM-001"])

    @pytest.mark.parametrize("code", ["CC-001", "MB-001"])
    def test_read_only_roles_refused(self, make_request, actors, code):
        req = make_request(status="pending_sv_approval")
        with pytest.raises(UnauthorizedRole):
            transition_request(req.id, "approve", actors[code])


# ═══════════════════════════════════════════════════════════════════════════
# Preconditions and failure atomicity
# ═══════════════════════════════════════════════════════════════════════════


class TestPreconditions:

    def test_reject_without_reason(self, make_request, actors):
        req = make_request(status="pending_sv_approval")
        result = transition_request(req.id, "reject", actors["SV-001"])
        assert result["new_status"] == "rejected"
        stored = db.session.get(TrainingRequest, req.id)
        assert stored.rejection_reason is None
        assert stored.sv_decided_at is not None

    def test_blank_reason_is_not_stored(self, make_request, actors):
        req = make_request(status="pending_pm_approval")
        transition_request(req.id, "reject", actors["PM-001"], rejection_reason="   ")
        stored = db.session.get(TrainingRequest, req.id)
        assert stored.status == "rejected"
        assert stored.rejection_reason is None

    def test_reject_with_reason(self, make_request, actors):
        req = make_request(status="pending_sv_approval")
        result = transition_request(req.id, "reject", actors["SV-001"], rejection_reason="Budget freeze")
        assert result["new_status"] == "rejected"
        assert db.session.get(TrainingRequest, req.id).rejection_reason == "Budget freeze"

    def test_sv_trainer_must_be_trainer(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval")
        with pytest.raises(ValidationError):
            transition_request(req.id, "approve", actors["SV-001"], trainer_id=users["PM-001"].id)

    def test_pm_approval_needs_trainer(self, make_request, actors):
        req = make_request(status="pending_pm_approval")
        with pytest.raises(ValidationError) as exc:
            transition_request(req.id, "approve", actors["PM-001"])
        assert "trainer_id" in exc.value.details

    def test_pm_can_supply_trainer(self, make_request, actors, users):
        req = make_request(status="pending_pm_approval")
        transition_request(req.id, "approve", actors["PM-001"], trainer_id=users["TR-002"].id)
        assert db.session.get(TrainingRequest, req.id).trainer_id == users["TR-002"].id

    def test_negative_attendance_rejected(self, make_request, actors, users):
        req = make_request(status="approved", trainer_id=users["TR-001"].id)
        with pytest.raises(ValidationError):
            transition_request(req.id, "complete", actors["TR-001"], attendance_count=-1)

    def test_unknown_request(self, actors, users):
        with pytest.raises(NotFoundError):
            transition_request("00000000-0000-0000-0000-000000000000", "submit", actors["DV-001"])

    def test_failed_transition_leaves_request_untouched(self, make_request, actors):
        req = make_request(status="rejected", rejection_reason="No budget")
        with pytest.raises(InvalidTransition):
            transition_request(req.id, "approve", actors["PM-001"])
        db.session.expire_all()
        stored = db.session.get(TrainingRequest, req.id)
        assert stored.status == "rejected"
        assert AuditLog.query.count() == 0

    def test_no_claim_when_precondition_fails(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval")
        with pytest.raises(ValidationError):
            transition_request(req.id, "approve", actors["SV-001"], trainer_id=users["PM-001"].id)
        db.session.rollback()
        assert db.session.get(TrainingRequest, req.id).supervisor_id is None


# ═══════════════════════════════════════════════════════════════════════════
# Side effects
# ═══════════════════════════════════════════════════════════════════════════


class TestSideEffects:

    def test_calendar_event_follows_workflow(self, make_request, actors, users):
        req = make_request()
        transition_request(req.id, "submit", actors["DV-001"])
        event = TrainingEvent.query.filter_by(request_id=req.id).one()
        assert event.status == "pending"
        assert event.starts_at.date() == req.training_date

        transition_request(req.id, "approve", actors["SV-001"], trainer_id=users["TR-001"].id)
        transition_request(req.id, "approve", actors["PM-001"])
        event = TrainingEvent.query.filter_by(request_id=req.id).one()
        assert event.status == "approved"
        assert event.trainer_id == users["TR-001"].id

    def test_rejection_cancels_event(self, make_request, actors):
        req = make_request()
        transition_request(req.id, "submit", actors["DV-001"])
        transition_request(req.id, "reject", actors["SV-001"], rejection_reason="Duplicate")
        assert TrainingEvent.query.filter_by(request_id=req.id).one().status == "cancelled"

    def test_notifications_sent_to_requester_and_next_assignee(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval")
        transition_request(req.id, "approve", actors["SV-001"], trainer_id=users["TR-001"].id)
        transition_request(req.id, "approve", actors["PM-001"])
        recipients = {n.recipient_id for n in Notification.query.all()}
        assert users["DV-001"].id in recipients
        assert users["TR-001"].id in recipients
        assert users["PM-001"].id not in recipients

    def test_notification_failure_does_not_fail_transition(self, make_request, actors, users, monkeypatch):
        def _boom(**kwargs):
            raise RuntimeError("mail relay down")

        monkeypatch.setattr(NotificationService, "broadcast", staticmethod(_boom))
        req = make_request(status="pending_sv_approval")
        result = transition_request(req.id, "approve", actors["SV-001"], trainer_id=users["TR-001"].id)
        assert result["new_status"] == "pending_pm_approval"
        assert db.session.get(TrainingRequest, req.id).status == "pending_pm_approval"
        assert Notification.query.count() == 0


# ═══════════════════════════════════════════════════════════════════════════
# Batch + available transitions
# ═══════════════════════════════════════════════════════════════════════════


class TestBatchAndAvailability:

    def test_batch_partial_success(self, make_request, actors):
        ok = make_request(status="pending_sv_approval")
        terminal = make_request(status="completed")
        result = batch_transition(
            [ok.id, terminal.id, "missing-id"], "reject", actors["SV-001"],
            rejection_reason="Out of budget",
        )
        assert [r["request_id"] for r in result["success"]] == [ok.id]
        errors = {e["request_id"]: e["error_type"] for e in result["errors"]}
        assert errors == {terminal.id: "InvalidTransition", "missing-id": "NotFoundError"}

    def test_available_transitions_respect_assignment(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval", supervisor_id=users["SV-001"].id)
        assert get_available_transitions(req, actors["SV-001"]) == ["approve", "reject"]
        assert get_available_transitions(req, actors["SV-002"]) == []
        assert get_available_transitions(req, actors["CC-001"]) == []

    def test_available_transitions_for_requester_only(self, make_request, actors):
        req = make_request()
        assert get_available_transitions(req, actors["DV-001"]) == ["submit"]
        assert get_available_transitions(req, actors["DV-002"]) == []
