"""
TrainPrep blueprint registry helpers.
"""

from datetime import date, datetime

from flask import request

from trainprep.core.exceptions import ValidationError


def paginate_query(query, default_limit=100, max_limit=500):
    """Apply limit/offset pagination to a SQLAlchemy query.

    Query params:
        limit: max items (default 100, capped at max_limit)
        offset: starting position (default 0)

    Returns:
        (items_list, total_count)
    """
    total = query.count()
    try:
        limit = min(int(request.args.get("limit", default_limit)), max_limit)
    except (ValueError, TypeError):
        limit = default_limit
    try:
        offset = max(int(request.args.get("offset", 0)), 0)
    except (ValueError, TypeError):
        offset = 0
    items = query.limit(limit).offset(offset).all()
    return items, total


def json_body() -> dict:
    """Request JSON object; anything else is a 422."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def iso_values(data: dict) -> dict:
    """Render date/datetime values as ISO strings for JSON responses."""
    return {
        key: value.isoformat() if isinstance(value, (date, datetime)) else value
        for key, value in data.items()
    }


def json_flag(data: dict, key: str, default: bool = False) -> bool:
    """A JSON boolean field; strings such as "false" are rejected."""
    value = data.get(key, default)
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{key} must be true or false", details={key: "expected a boolean"})
    return value


def json_object(data: dict, key: str) -> dict:
    """A nested JSON object field; missing or null reads as ``{}``."""
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValidationError(f"{key} must be a JSON object", details={key: "expected an object"})
    return value
