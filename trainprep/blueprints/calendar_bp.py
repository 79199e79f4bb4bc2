"""
Calendar blueprint.

Routes:
  GET /api/v1/calendar/events   – events visible to the caller

Query params:
  view        month | week | day (default month)
  date        anchor date of the view (default today)
  region      region filter (DV / SV: defaults to their own region)
  department  department filter
"""

from datetime import date

from flask import Blueprint, jsonify, request

from trainprep.auth import current_actor, require_auth
from trainprep.core.exceptions import ValidationError
from trainprep.services import calendar_service
from trainprep.utils.helpers import parse_date_input

calendar_bp = Blueprint("calendar_bp", __name__, url_prefix="/api/v1/calendar")


@calendar_bp.route("/events", methods=["GET"])
@require_auth
def list_events():
    actor = current_actor()
    view = request.args.get("view", "month")
    try:
        anchor = parse_date_input(request.args.get("date")) or date.today()
    except ValueError as exc:
        raise ValidationError(str(exc), details={"date": str(exc)}) from None

    start, end = calendar_service.calendar_window(anchor, view)
    events = calendar_service.list_events(
        actor,
        region=request.args.get("region") or None,
        department=request.args.get("department") or None,
        start=start,
        end=end,
    )
    return jsonify({
        "view": view,
        "start": start.isoformat(),
        "end": end.isoformat(),
        "items": [e.to_dict() for e in events],
        "total": len(events),
    }), 200
