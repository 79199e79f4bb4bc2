"""
Trainer directory: search, detail and recommendation for a request.
"""

import logging

from sqlalchemy import or_

from trainprep.core.exceptions import NotFoundError, ValidationError
from trainprep.core.roles import Role
from trainprep.models import db
from trainprep.models.auth import TRAINER_AVAILABILITY, TrainerProfile, User
from trainprep.models.training import SPECIALIZATIONS

logger = logging.getLogger(__name__)

DEFAULT_RECOMMENDATION_LIMIT = 5


def _trainer_query():
    return (
        TrainerProfile.query
        .join(User, TrainerProfile.user_id == User.id)
        .filter(User.role == Role.TR.value, User.status == "active")
    )


def trainers_query(search=None, availability=None, specialization=None):
    """
    Query of trainer profiles, best rated first.

    ``search`` matches name, specialization (value or label) and location,
    case-insensitively.
    """
    q = _trainer_query()
    if availability:
        if availability not in TRAINER_AVAILABILITY:
            raise ValidationError(
                "Invalid availability filter",
                details={"availability": f"must be one of {sorted(TRAINER_AVAILABILITY)}"},
            )
        q = q.filter(TrainerProfile.availability == availability)
    if specialization:
        q = q.filter(TrainerProfile.specialization == specialization)
    if search:
        term = f"%{search.strip().lower()}%"
        label_matches = [
            value for value, label in SPECIALIZATIONS.items()
            if search.strip().lower() in label.lower()
        ]
        clauses = [
            db.func.lower(User.name).like(term),
            db.func.lower(TrainerProfile.specialization).like(term),
            db.func.lower(TrainerProfile.location).like(term),
        ]
        if label_matches:
            clauses.append(TrainerProfile.specialization.in_(label_matches))
        q = q.filter(or_(*clauses))
    return q.order_by(TrainerProfile.rating.desc(), User.name.asc())


def list_trainers(search=None, availability=None, specialization=None, limit=None):
    q = trainers_query(search, availability, specialization)
    if limit:
        q = q.limit(limit)
    return q.all()


def get_trainer(user_id: int) -> TrainerProfile:
    profile = _trainer_query().filter(TrainerProfile.user_id == user_id).first()
    if profile is None:
        raise NotFoundError(resource="Trainer", resource_id=user_id)
    return profile


def is_trainer(user_id) -> bool:
    if user_id is None:
        return False
    user = db.session.get(User, user_id)
    return bool(user and user.role == Role.TR.value and user.is_active)


def recommend_trainers(request, limit: int = DEFAULT_RECOMMENDATION_LIMIT):
    """
    Trainers suited to ``request``.

    Only trainers with the request's specialization who are not unavailable.
    Trainers located where the training happens (or in the request's
    region) come first, then by rating.
    """
    candidates = (
        _trainer_query()
        .filter(
            TrainerProfile.specialization == request.specialization,
            TrainerProfile.availability != "unavailable",
        )
        .all()
    )
    places = {p.strip().lower() for p in (request.location, request.region) if p}

    def _rank(profile):
        nearby = (profile.location or "").strip().lower() in places or \
            (profile.user.region or "").strip().lower() in places
        return (0 if nearby else 1, -(profile.rating or 0.0), profile.user.name)

    ranked = sorted(candidates, key=_rank)[:limit]
    logger.debug("Recommended %d trainer(s) for %s", len(ranked), request.code)
    return ranked
