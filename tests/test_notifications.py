"""
Notification tests: workflow notifications, listing, mark read.
"""

import pytest

from trainprep.core.exceptions import NotFoundError
from trainprep.models.notification import Notification
from trainprep.services.notification import NotificationService
from trainprep.services.request_lifecycle import transition_request

NOTIF_URL = "/api/v1/notifications"


def _notify(user, n=1):
    return [
        NotificationService.broadcast(recipient_ids=[user.id], title=f"Note {i}")[0]
        for i in range(n)
    ]


class TestNotificationService:

    def test_broadcast_dedupes_and_skips_none(self, users):
        created = NotificationService.broadcast(
            recipient_ids=[users["DV-001"].id, None, users["DV-001"].id, users["SV-001"].id],
            title="Reminder",
        )
        assert len(created) == 2

    def test_submit_notifies_nobody_when_unassigned(self, make_request, actors):
        req = make_request()
        transition_request(req.id, "submit", actors["DV-001"])
        assert Notification.query.count() == 0

    def test_rejection_reaches_requester(self, make_request, actors, users):
        req = make_request(status="pending_sv_approval")
        transition_request(req.id, "reject", actors["SV-001"], rejection_reason="No budget")
        notif = Notification.query.one()
        assert notif.recipient_id == users["DV-001"].id
        assert notif.severity == "warning"
        assert notif.message.endswith("No budget")
        assert notif.entity_id == req.id

    def test_mark_read_checks_owner(self, users):
        notif = _notify(users["DV-001"])[0]
        with pytest.raises(NotFoundError):
            NotificationService.mark_read(notif.id, users["SV-001"].id)
        assert NotificationService.mark_read(notif.id, users["DV-001"].id).is_read is True

    def test_unread_and_mark_all(self, users):
        _notify(users["DV-001"], n=3)
        assert NotificationService.unread_count(users["DV-001"].id) == 3
        assert NotificationService.mark_all_read(users["DV-001"].id) == 3
        assert NotificationService.unread_count(users["DV-001"].id) == 0


class TestNotificationEndpoints:

    def test_list(self, client, headers, users):
        _notify(users["DV-001"], n=2)
        res = client.get(NOTIF_URL, headers=headers["DV-001"])
        assert res.status_code == 200
        data = res.get_json()
        assert data["total"] == 2
        assert data["unread"] == 2

    def test_list_unread_only(self, client, headers, users):
        first, _ = _notify(users["DV-001"], n=2)
        NotificationService.mark_read(first.id, users["DV-001"].id)
        res = client.get(f"{NOTIF_URL}?unread=true", headers=headers["DV-001"])
        assert res.get_json()["total"] == 1

    def test_mark_read(self, client, headers, users):
        notif = _notify(users["DV-001"])[0]
        res = client.post(f"{NOTIF_URL}/{notif.id}/read", headers=headers["DV-001"])
        assert res.status_code == 200
        assert res.get_json()["is_read"] is True

    def test_mark_someone_elses(self, client, headers, users):
        notif = _notify(users["DV-001"])[0]
        res = client.post(f"{NOTIF_URL}/{notif.id}/read", headers=headers["SV-001"])
        assert res.status_code == 404

    def test_read_all(self, client, headers, users):
        _notify(users["DV-001"], n=2)
        res = client.post(f"{NOTIF_URL}/read-all", headers=headers["DV-001"])
        assert res.get_json() == {"marked": 2}
