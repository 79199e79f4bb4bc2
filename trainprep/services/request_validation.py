"""
Field rules for training request payloads and workflow inputs.

Every cleaner takes the raw JSON value and returns the stored value or
raises ValueError with a user-facing message. ``validate_fields`` collects
all field errors into one ValidationError.
"""

from trainprep.core.exceptions import ValidationError
from trainprep.models.training import SPECIALIZATIONS
from trainprep.utils.helpers import parse_date_input

MIN_LOCATION_LENGTH = 3
MIN_DESCRIPTION_LENGTH = 10
MAX_TITLE_LENGTH = 200

# Required on creation; the rest of PAYLOAD_FIELDS is optional
REQUIRED_PAYLOAD_FIELDS = ("training_date", "location", "specialization", "trainee_count")
OPTIONAL_PAYLOAD_FIELDS = ("title", "description")


def _text(value) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError("must be a string")
    return value.strip()


def _integer(value, *, minimum: int, message: str) -> int:
    if isinstance(value, bool):
        raise ValueError(message)
    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(message)
        value = int(value)
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValueError(message) from None
    if number < minimum:
        raise ValueError(message)
    return number


def clean_training_date(value):
    try:
        parsed = parse_date_input(value)
    except (TypeError, ValueError):
        raise ValueError("Training date must be a date (YYYY-MM-DD)") from None
    if parsed is None:
        raise ValueError("Training date is required")
    return parsed


def clean_location(value):
    text = _text(value)
    if len(text) < MIN_LOCATION_LENGTH:
        raise ValueError(f"Location must be at least {MIN_LOCATION_LENGTH} characters")
    return text


def clean_specialization(value):
    text = _text(value).lower()
    if not text:
        raise ValueError("Please select a specialization")
    if text not in SPECIALIZATIONS:
        raise ValueError(f"Specialization must be one of {', '.join(SPECIALIZATIONS)}")
    return text


def clean_trainee_count(value):
    return _integer(value, minimum=1, message="Trainee count must be a positive number")


def clean_description(value):
    text = _text(value)
    if text and len(text) < MIN_DESCRIPTION_LENGTH:
        raise ValueError(f"Description must be at least {MIN_DESCRIPTION_LENGTH} characters")
    return text


def clean_title(value):
    text = _text(value)
    if len(text) > MAX_TITLE_LENGTH:
        raise ValueError(f"Title must be at most {MAX_TITLE_LENGTH} characters")
    return text


def clean_trainer_id(value):
    return _integer(value, minimum=1, message="Trainer must be a user id")


def clean_rejection_reason(value):
    return _text(value)


def clean_attendance_count(value):
    return _integer(value, minimum=0, message="Attendance must be a non-negative number")


def clean_completion_notes(value):
    return _text(value)


def clean_documents(value):
    """A list of {name, url} records (url optional)."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError("Documents must be a list")
    docs = []
    for item in value:
        if isinstance(item, str):
            item = {"name": item}
        if not isinstance(item, dict) or not _text(item.get("name")):
            raise ValueError("Each document needs a name")
        docs.append({"name": _text(item["name"]), "url": _text(item.get("url")) or None})
    return docs


FIELD_CLEANERS = {
    "training_date": clean_training_date,
    "location": clean_location,
    "specialization": clean_specialization,
    "trainee_count": clean_trainee_count,
    "description": clean_description,
    "title": clean_title,
    "trainer_id": clean_trainer_id,
    "rejection_reason": clean_rejection_reason,
    "attendance_count": clean_attendance_count,
    "completion_notes": clean_completion_notes,
    "documents": clean_documents,
}


def _missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_fields(data: dict, fields, required=()) -> dict:
    """
    Clean ``fields`` present in ``data``.

    Absent optional fields are left out of the result; absent required
    fields are errors. Raises ValidationError with per-field details.
    """
    data = data or {}
    if not isinstance(data, dict):
        raise ValidationError("Training request data must be a JSON object")
    cleaned, errors = {}, {}
    for name in fields:
        value = data.get(name)
        if _missing(value):
            if name in required:
                errors[name] = f"{name.replace('_', ' ').capitalize()} is required"
            continue
        try:
            cleaned[name] = FIELD_CLEANERS[name](value)
        except ValueError as exc:
            errors[name] = str(exc)
    if errors:
        raise ValidationError("Invalid training request data", details=errors)
    return cleaned


def validate_payload(data: dict, *, partial: bool = False) -> dict:
    """Clean the descriptive payload; ``partial`` drops the required set (edits)."""
    fields = REQUIRED_PAYLOAD_FIELDS + OPTIONAL_PAYLOAD_FIELDS
    return validate_fields(data, fields, required=() if partial else REQUIRED_PAYLOAD_FIELDS)
