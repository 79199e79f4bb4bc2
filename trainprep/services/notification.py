"""
Notification Service: in-app notifications.

Workflow notifications are fire-and-forget: ``notify_transition`` logs and
rolls back its own failure instead of raising.
"""

import logging
from datetime import datetime, timezone

from trainprep.core.exceptions import NotFoundError
from trainprep.core.transitions import RequestStatus, status_label
from trainprep.models import db
from trainprep.models.notification import (
    NOTIFICATION_CATEGORIES,
    NOTIFICATION_SEVERITIES,
    Notification,
)

logger = logging.getLogger(__name__)

_SEVERITY_BY_STATUS = {
    RequestStatus.REJECTED.value: "warning",
    RequestStatus.APPROVED.value: "success",
    RequestStatus.COMPLETED.value: "success",
}


class NotificationService:
    """Stateless service class for notification operations."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def broadcast(*, recipient_ids, title, message="", category="system",
                  severity="info", entity_type="", entity_id=None):
        """
        Send one notification per recipient id (duplicates and None skipped).

        Returns:
            List of created Notification instances (committed).
        """
        if category not in NOTIFICATION_CATEGORIES or severity not in NOTIFICATION_SEVERITIES:
            raise ValueError(f"Unknown notification category/severity: {category}/{severity}")
        notifications = []
        for rid in dict.fromkeys(r for r in recipient_ids if r is not None):
            notif = Notification(
                recipient_id=rid,
                title=title,
                message=message,
                category=category,
                severity=severity,
                entity_type=entity_type,
                entity_id=entity_id,
            )
            db.session.add(notif)
            notifications.append(notif)
        db.session.commit()
        return notifications

    @staticmethod
    def notify_transition(request, action, actor_user_id):
        """
        Tell the next stage's assignee and the requester about a transition.

        Never raises; failures are logged.
        """
        recipients = [request.requested_by_id]
        if request.status == RequestStatus.PENDING_SV_APPROVAL.value:
            recipients.append(request.supervisor_id)
        elif request.status == RequestStatus.PENDING_PM_APPROVAL.value:
            recipients.append(request.program_manager_id)
        elif request.status == RequestStatus.APPROVED.value:
            recipients.append(request.trainer_id)
        recipients = [r for r in recipients if r is not None and r != actor_user_id]
        if not recipients:
            return []

        message = f"{request.code} is now {status_label(request.status)}"
        if request.status == RequestStatus.REJECTED.value and request.rejection_reason:
            message += f": {request.rejection_reason}"
        try:
            return NotificationService.broadcast(
                recipient_ids=recipients,
                title=f"Training request {action}",
                message=message,
                category="workflow",
                severity=_SEVERITY_BY_STATUS.get(request.status, "info"),
                entity_type="training_request",
                entity_id=request.id,
            )
        except Exception:
            db.session.rollback()
            logger.exception("Notification delivery failed for %s (%s)", request.code, action)
            return []

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_for_recipient(recipient_id, unread_only=False, limit=50, offset=0):
        """Retrieve notifications for a recipient, newest first."""
        q = Notification.query.filter_by(recipient_id=recipient_id)
        if unread_only:
            q = q.filter_by(is_read=False)
        total = q.count()
        items = (
            q.order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset).limit(limit).all()
        )
        return items, total

    @staticmethod
    def unread_count(recipient_id):
        return Notification.query.filter_by(recipient_id=recipient_id, is_read=False).count()

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(notification_id, recipient_id):
        """Mark one of the recipient's notifications as read."""
        notif = db.session.get(Notification, notification_id)
        if notif is None or notif.recipient_id != recipient_id:
            raise NotFoundError(resource="Notification", resource_id=notification_id)
        notif.mark_read()
        db.session.commit()
        return notif

    @staticmethod
    def mark_all_read(recipient_id):
        now = datetime.now(timezone.utc)
        count = (
            Notification.query.filter_by(recipient_id=recipient_id, is_read=False)
            .update({"is_read": True, "read_at": now}, synchronize_session="fetch")
        )
        db.session.commit()
        return count
