"""
Approval wizard tests: per-role descriptors and step validation,
at the service level and through the /wizard endpoints.
"""

import pytest

from trainprep.core.exceptions import ValidationError
from trainprep.core.roles import Role, step_count
from trainprep.services.wizard import build_wizard, validate_step

WIZARD_URL = "/api/v1/training-requests/wizard"


# ═══════════════════════════════════════════════════════════════════════════
# Descriptor
# ═══════════════════════════════════════════════════════════════════════════


class TestDescriptor:

    @pytest.mark.parametrize("role", list(Role))
    def test_step_count_matches_role(self, role):
        wiz = build_wizard(role)
        assert wiz["max_steps"] == step_count(role)
        assert len(wiz["steps"]) == wiz["max_steps"]
        assert [s["number"] for s in wiz["steps"]] == list(range(1, wiz["max_steps"] + 1))

    def test_dv_new_request(self):
        wiz = build_wizard("DV")
        assert wiz["title"] == "Create Training Request"
        assert wiz["submit_label"] == "Submit Request"
        assert wiz["status"] == "draft"
        assert wiz["available_actions"] == ["submit"]
        assert wiz["read_only"] is False
        first = wiz["steps"][0]["fields"]
        assert [f["name"] for f in first] == ["training_date", "location"]
        assert all(f["required"] for f in first)

    def test_specialization_options(self):
        wiz = build_wizard("DV")
        field = wiz["steps"][1]["fields"][0]
        assert field["type"] == "select"
        assert {"value": "leadership", "label": "Leadership"} in field["options"]

    @pytest.mark.parametrize("role,title,label", [
        ("SV", "Review Training Request", "Approve & Suggest Trainer"),
        ("PM", "Approve Training Request", "Approve Request"),
        ("TR", "Training Assignment", "Complete Documentation"),
        ("CC", "Training Request", "Submit"),
    ])
    def test_headings(self, role, title, label):
        wiz = build_wizard(role)
        assert wiz["title"] == title
        assert wiz["submit_label"] == label

    @pytest.mark.parametrize("role", ["CC", "MB"])
    def test_observers_read_only(self, role, make_request):
        req = make_request(status="pending_sv_approval")
        wiz = build_wizard(role, req)
        assert wiz["read_only"] is True
        assert wiz["available_actions"] == []
        assert wiz["request_id"] == req.id
        assert wiz["status_label"] == "Pending Supervisor Approval"

    def test_actions_override(self, make_request):
        req = make_request(status="pending_sv_approval")
        assert build_wizard("SV", req, actions=[])["available_actions"] == []

    def test_unknown_role(self):
        with pytest.raises(ValueError):
            build_wizard("XX")


# ═══════════════════════════════════════════════════════════════════════════
# Step validation
# ═══════════════════════════════════════════════════════════════════════════


class TestValidateStep:

    def test_valid_first_step(self):
        cleaned = validate_step("DV", 1, {"training_date": "2030-05-01", "location": "Cairo HQ"})
        assert cleaned["location"] == "Cairo HQ"
        assert cleaned["training_date"].isoformat() == "2030-05-01"

    def test_required_fields(self):
        with pytest.raises(ValidationError) as exc:
            validate_step("DV", 2, {})
        assert set(exc.value.details) == {"specialization", "trainee_count"}

    def test_optional_step_accepts_empty(self):
        assert validate_step("DV", 3, {}) == {}

    def test_other_steps_fields_ignored(self):
        assert validate_step("DV", 3, {"location": "x"}) == {}

    @pytest.mark.parametrize("step", [0, 4, "1", True, None])
    def test_invalid_step(self, step):
        with pytest.raises(ValidationError):
            validate_step("DV", step, {})

    def test_non_object_data(self):
        with pytest.raises(ValidationError):
            validate_step("DV", 1, "Cairo HQ")

    def test_trainer_execution_step(self):
        with pytest.raises(ValidationError) as exc:
            validate_step("TR", 2, {"attendance_count": -3})
        assert "attendance_count" in exc.value.details


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════


class TestWizardEndpoints:

    def test_get_wizard(self, client, headers):
        res = client.get(WIZARD_URL, headers=headers["SV-001"])
        assert res.status_code == 200
        data = res.get_json()
        assert data["role"] == "SV"
        assert data["max_steps"] == 2

    def test_validate_ok(self, client, headers):
        res = client.post(f"{WIZARD_URL}/validate", json={
            "step": 1, "data": {"training_date": "2030-05-01", "location": "Giza"},
        }, headers=headers["DV-001"])
        assert res.status_code == 200
        data = res.get_json()
        assert data["valid"] is True
        assert data["data"]["training_date"] == "2030-05-01"

    def test_validate_step_as_string(self, client, headers):
        res = client.post(f"{WIZARD_URL}/validate", json={
            "step": "2", "data": {"specialization": "Leadership", "trainee_count": "12"},
        }, headers=headers["DV-001"])
        assert res.status_code == 200
        assert res.get_json()["data"] == {"specialization": "leadership", "trainee_count": 12}

    def test_validate_errors(self, client, headers):
        res = client.post(f"{WIZARD_URL}/validate", json={
            "step": 1, "data": {"location": "HQ"},
        }, headers=headers["DV-001"])
        assert res.status_code == 422
        assert set(res.get_json()["details"]) == {"training_date", "location"}

    def test_validate_missing_step(self, client, headers):
        res = client.post(f"{WIZARD_URL}/validate", json={"data": {}}, headers=headers["DV-001"])
        assert res.status_code == 400

    @pytest.mark.parametrize("payload", ["x", ["location"], 5])
    def test_validate_data_must_be_object(self, client, headers, payload):
        res = client.post(f"{WIZARD_URL}/validate", json={"step": 1, "data": payload},
                          headers=headers["DV-001"])
        assert res.status_code == 422
        assert res.get_json()["details"] == {"data": "expected an object"}
