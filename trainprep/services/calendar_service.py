"""
Calendar Service: training events and the request → event sync.

Each training request that has left draft owns at most one TrainingEvent;
``sync_event_for_request`` keeps that event in step with the workflow.
"""

import calendar as _calendar
import logging
from datetime import date, datetime, time, timedelta

from trainprep.core.exceptions import ValidationError
from trainprep.core.roles import Role
from trainprep.core.transitions import RequestStatus
from trainprep.models import db
from trainprep.models.training import TrainingEvent

logger = logging.getLogger(__name__)

CALENDAR_VIEWS = ("month", "week", "day")
DEFAULT_START_TIME = time(9, 0)

_EVENT_STATUS_BY_REQUEST = {
    RequestStatus.PENDING_SV_APPROVAL.value: "pending",
    RequestStatus.PENDING_PM_APPROVAL.value: "pending",
    RequestStatus.APPROVED.value: "approved",
    RequestStatus.COMPLETED.value: "completed",
    RequestStatus.REJECTED.value: "cancelled",
}

# Roles whose calendar is confined to a single region
_REGION_SCOPED = frozenset({Role.DV, Role.SV})


def calendar_window(anchor: date, view: str = "month") -> tuple[datetime, datetime]:
    """
    Half-open [start, end) datetime range shown by a calendar view.

    month: whole calendar month; week: Sunday-starting week; day: the day.
    """
    if view not in CALENDAR_VIEWS:
        raise ValidationError(
            "Invalid calendar view", details={"view": f"must be one of {list(CALENDAR_VIEWS)}"},
        )
    if view == "month":
        first = anchor.replace(day=1)
        days = _calendar.monthrange(anchor.year, anchor.month)[1]
        start, end = first, first + timedelta(days=days)
    elif view == "week":
        start = anchor - timedelta(days=(anchor.weekday() + 1) % 7)
        end = start + timedelta(days=7)
    else:
        start, end = anchor, anchor + timedelta(days=1)
    return datetime.combine(start, time.min), datetime.combine(end, time.min)


def events_query(actor, *, region=None, department=None):
    """Events the actor may see, before any date filtering."""
    q = TrainingEvent.query
    if actor.role is Role.TR:
        q = q.filter(TrainingEvent.trainer_id == actor.user_id)
    elif actor.role in _REGION_SCOPED:
        q = q.filter(TrainingEvent.region == (region or actor.region))
    elif region:
        q = q.filter(TrainingEvent.region == region)
    if department:
        q = q.filter(TrainingEvent.department == department)
    return q


def list_events(actor, *, region=None, department=None, start=None, end=None):
    """Visible events ordered by start time, optionally within [start, end)."""
    q = events_query(actor, region=region, department=department)
    if start is not None:
        q = q.filter(TrainingEvent.starts_at >= start)
    if end is not None:
        q = q.filter(TrainingEvent.starts_at < end)
    return q.order_by(TrainingEvent.starts_at.asc(), TrainingEvent.id.asc()).all()


def sync_event_for_request(request) -> TrainingEvent | None:
    """
    Create or update the calendar event for ``request``.

    Drafts have no event. Flushes only; the caller commits.
    """
    event_status = _EVENT_STATUS_BY_REQUEST.get(request.status)
    event = TrainingEvent.query.filter_by(request_id=request.id).first()
    if event_status is None:
        return event

    if event is None:
        event = TrainingEvent(request_id=request.id)
        db.session.add(event)

    event.title = request.title
    event.starts_at = datetime.combine(request.training_date, DEFAULT_START_TIME)
    event.location = request.location
    event.region = request.region or ""
    event.department = request.department or ""
    event.trainees = request.attendance_count if request.attendance_count is not None \
        else request.trainee_count
    event.trainer_id = request.trainer_id
    event.status = event_status
    db.session.flush()
    logger.debug("Synced event for %s → %s", request.code, event_status)
    return event
