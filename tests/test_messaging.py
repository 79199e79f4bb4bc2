"""
Messaging tests: private and group conversations, unread counters,
pinning and participant-only access.
"""

import pytest

from trainprep.core.exceptions import NotFoundError, ValidationError
from trainprep.services import messaging_service as ms

CONV_URL = "/api/v1/conversations"


def _private(users, a="DV-001", b="SV-001"):
    return ms.create_conversation(users[a].id, [users[b].id])


# ═══════════════════════════════════════════════════════════════════════════
# Conversations
# ═══════════════════════════════════════════════════════════════════════════


class TestConversations:

    def test_private_named_after_other_participant(self, users):
        conv = _private(users)
        assert conv["is_group"] is False
        assert conv["name"] == "Mona Fathy"
        assert {p["id"] for p in conv["participants"]} == {users["DV-001"].id, users["SV-001"].id}

    def test_private_is_reused(self, users):
        first = _private(users)
        again = _private(users, a="SV-001", b="DV-001")
        assert again["id"] == first["id"]

    def test_private_needs_exactly_one_other(self, users):
        with pytest.raises(ValidationError):
            ms.create_conversation(users["DV-001"].id, [users["SV-001"].id, users["PM-001"].id])
        with pytest.raises(ValidationError):
            ms.create_conversation(users["DV-001"].id, [users["DV-001"].id])

    def test_group_needs_name(self, users):
        with pytest.raises(ValidationError) as exc:
            ms.create_conversation(users["DV-001"].id, [users["SV-001"].id, users["PM-001"].id],
                                   is_group=True)
        assert "name" in exc.value.details

    def test_group(self, users):
        conv = ms.create_conversation(users["CC-001"].id, [users["DV-001"].id, users["TR-001"].id],
                                      name="Cairo Training Team", is_group=True)
        assert conv["name"] == "Cairo Training Team"
        assert len(conv["participants"]) == 3

    def test_unknown_participant(self, users):
        with pytest.raises(ValidationError) as exc:
            ms.create_conversation(users["DV-001"].id, [99999])
        assert exc.value.details["participant_ids"] == [99999]

    def test_non_numeric_participant(self, users):
        with pytest.raises(ValidationError):
            ms.create_conversation(users["DV-001"].id, ["abc"])

    def test_kind_filter(self, users):
        _private(users)
        ms.create_conversation(users["DV-001"].id, [users["SV-001"].id, users["PM-001"].id],
                               name="Approvals", is_group=True)
        assert [c["name"] for c in ms.list_conversations(users["DV-001"].id, kind="group")] == ["Approvals"]
        assert len(ms.list_conversations(users["DV-001"].id, kind="private")) == 1
        with pytest.raises(ValidationError):
            ms.list_conversations(users["DV-001"].id, kind="channel")

    def test_pinned_first(self, users):
        older = _private(users)
        ms.create_conversation(users["DV-001"].id, [users["PM-001"].id])
        ms.set_pinned(users["DV-001"].id, older["id"], True)
        listed = ms.list_conversations(users["DV-001"].id)
        assert listed[0]["id"] == older["id"]
        assert listed[0]["is_pinned"] is True


# ═══════════════════════════════════════════════════════════════════════════
# Messages
# ═══════════════════════════════════════════════════════════════════════════


class TestMessages:

    def test_send_and_read(self, users):
        conv = _private(users)
        ms.send_message(users["SV-001"].id, conv["id"], content="Please add an agenda")
        assert ms.unread_count(users["DV-001"].id) == 1
        assert ms.unread_count(users["SV-001"].id) == 0

        messages = ms.get_messages(users["DV-001"].id, conv["id"])
        assert [m["content"] for m in messages] == ["Please add an agenda"]
        assert messages[0]["sender_name"] == "Mona Fathy"
        assert ms.unread_count(users["DV-001"].id) == 0

    def test_last_message_in_summary(self, users):
        conv = _private(users)
        ms.send_message(users["DV-001"].id, conv["id"], content="Hello")
        summary = ms.list_conversations(users["SV-001"].id)[0]
        assert summary["last_message"]["content"] == "Hello"
        assert summary["unread_count"] == 1

    def test_media_message(self, users):
        conv = _private(users)
        msg = ms.send_message(users["DV-001"].id, conv["id"],
                              media_url="https://files.example/agenda.pdf", media_type="pdf")
        assert msg["media_type"] == "pdf"
        assert msg["content"] == ""

    @pytest.mark.parametrize("kwargs", [
        {},
        {"content": "   "},
        {"media_url": "https://files.example/x.bin"},
        {"content": "hi", "media_type": "video"},
        {"content": 123},
        {"content": "hi", "media_type": ["image"], "media_url": "https://files.example/a.png"},
        {"media_url": {"href": "x"}, "media_type": "image"},
    ])
    def test_invalid_messages(self, users, kwargs):
        conv = _private(users)
        with pytest.raises(ValidationError):
            ms.send_message(users["DV-001"].id, conv["id"], **kwargs)

    def test_outsider_cannot_read_or_post(self, users):
        conv = _private(users)
        with pytest.raises(NotFoundError):
            ms.get_messages(users["PM-001"].id, conv["id"])
        with pytest.raises(NotFoundError):
            ms.send_message(users["PM-001"].id, conv["id"], content="hi")


# ═══════════════════════════════════════════════════════════════════════════
# Endpoints
# ═══════════════════════════════════════════════════════════════════════════


class TestMessagingEndpoints:

    def test_conversation_flow(self, client, headers, users):
        res = client.post(CONV_URL, json={"participant_ids": [users["SV-001"].id]},
                          headers=headers["DV-001"])
        assert res.status_code == 201
        conv_id = res.get_json()["id"]

        res = client.post(f"{CONV_URL}/{conv_id}/messages", json={"content": "Hi"},
                          headers=headers["DV-001"])
        assert res.status_code == 201

        unread = client.get(f"{CONV_URL}/unread-count", headers=headers["SV-001"]).get_json()
        assert unread == {"unread": 1}

        res = client.get(f"{CONV_URL}/{conv_id}/messages", headers=headers["SV-001"])
        assert res.get_json()["total"] == 1

    def test_pin(self, client, headers, users):
        conv = _private(users)
        res = client.put(f"{CONV_URL}/{conv['id']}/pin", json={"pinned": True},
                         headers=headers["DV-001"])
        assert res.status_code == 200
        assert res.get_json()["is_pinned"] is True

    def test_outsider_gets_404(self, client, headers, users):
        conv = _private(users)
        res = client.get(f"{CONV_URL}/{conv['id']}/messages", headers=headers["MB-001"])
        assert res.status_code == 404

    def test_list(self, client, headers, users):
        _private(users)
        res = client.get(CONV_URL, headers=headers["SV-001"])
        assert res.status_code == 200
        assert res.get_json()["total"] == 1

    @pytest.mark.parametrize("body", [
        {"content": 123},
        {"content": "hi", "media_type": ["image"], "media_url": "https://files.example/a.png"},
    ])
    def test_malformed_message_is_422(self, client, headers, users, body):
        conv = _private(users)
        res = client.post(f"{CONV_URL}/{conv['id']}/messages", json=body, headers=headers["DV-001"])
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_is_group_must_be_boolean(self, client, headers, users):
        res = client.post(CONV_URL, json={
            "participant_ids": [users["SV-001"].id], "is_group": "false",
        }, headers=headers["DV-001"])
        assert res.status_code == 422
        assert res.get_json()["details"] == {"is_group": "expected a boolean"}

    def test_is_group_false_starts_private_conversation(self, client, headers, users):
        res = client.post(CONV_URL, json={
            "participant_ids": [users["SV-001"].id], "is_group": False,
        }, headers=headers["DV-001"])
        assert res.status_code == 201
        assert res.get_json()["is_group"] is False

    def test_pinned_must_be_boolean(self, client, headers, users):
        conv = _private(users)
        res = client.put(f"{CONV_URL}/{conv['id']}/pin", json={"pinned": "no"},
                         headers=headers["DV-001"])
        assert res.status_code == 422

    def test_group_name_must_be_text(self, client, headers, users):
        res = client.post(CONV_URL, json={
            "participant_ids": [users["SV-001"].id, users["PM-001"].id],
            "is_group": True, "name": 42,
        }, headers=headers["DV-001"])
        assert res.status_code == 422
