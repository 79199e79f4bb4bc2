"""
Dashboard Service: per-actor summary shown on the home screen.
"""

import logging
from datetime import date, datetime, time, timedelta

from flask import current_app

from trainprep.core.roles import Role
from trainprep.core.transitions import STATUS_GROUPS
from trainprep.models.training import TrainingEvent
from trainprep.services import messaging_service, trainer_service
from trainprep.services.calendar_service import events_query
from trainprep.services.request_lifecycle import get_available_transitions
from trainprep.services.training_request_service import list_requests, visible_requests

logger = logging.getLogger(__name__)

RECENT_REQUESTS = 5
FEATURED_TRAINERS = 6

_PENDING = frozenset(s.value for s in STATUS_GROUPS["pending"])


def _pending_for(actor, requests) -> int:
    """
    Requests waiting on the actor: in-flight own requests for DV, the whole
    approval queue for observers, actionable ones for everybody else.
    """
    if actor.role is Role.DV or actor.role in (Role.CC, Role.MB):
        return sum(1 for r in requests if r.status in _PENDING)
    return sum(1 for r in requests if get_available_transitions(r, actor))


def get_dashboard(actor, today: date | None = None) -> dict:
    today = today or date.today()
    window_days = current_app.config.get("UPCOMING_WINDOW_DAYS", 30)
    start = datetime.combine(today, time.min)
    end = start + timedelta(days=window_days)

    requests = visible_requests(actor).all()
    upcoming = (
        events_query(actor)
        .filter(TrainingEvent.starts_at >= start, TrainingEvent.starts_at < end,
                TrainingEvent.status != "cancelled")
        .count()
    )
    summary = {
        "total_trainings": len(requests),
        "pending_approvals": _pending_for(actor, requests),
        "upcoming_trainings": upcoming,
        "unread_messages": messaging_service.unread_count(actor.user_id),
        "recent_requests": [r.to_dict() for r in list_requests(actor, limit=RECENT_REQUESTS)],
        "available_trainers": [
            p.to_dict()
            for p in trainer_service.list_trainers(availability="available", limit=FEATURED_TRAINERS)
        ],
    }
    logger.debug("Dashboard for user %d: %d request(s), %d pending",
                 actor.user_id, summary["total_trainings"], summary["pending_approvals"])
    return summary
