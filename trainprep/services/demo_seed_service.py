"""
Demo data loader used by ``flask seed-demo`` and scripts/seed_demo_data.py.

Requests are walked through the real workflow services so audit rows,
calendar events and notifications match what users would produce.
"""

import logging
from datetime import date, timedelta

from trainprep.auth import Actor
from trainprep.models import db
from trainprep.models.audit import AuditLog
from trainprep.models.auth import TrainerProfile, User, UserSession
from trainprep.models.messaging import Conversation, ConversationParticipant, Message
from trainprep.models.notification import Notification
from trainprep.models.training import TrainingEvent, TrainingRequest
from trainprep.seed_data import CONVERSATIONS, DEMO_PASSWORD, REQUESTS, TRAINERS, USERS
from trainprep.services import messaging_service
from trainprep.services.request_lifecycle import transition_request
from trainprep.services.training_request_service import create_request
from trainprep.services.user_service import create_user

logger = logging.getLogger(__name__)

# Child tables first
_DEMO_TABLES = (
    Message, ConversationParticipant, Conversation, Notification, AuditLog,
    TrainingEvent, TrainingRequest, UserSession, TrainerProfile, User,
)


def clear_all():
    for model in _DEMO_TABLES:
        model.query.delete()
    db.session.commit()


def _existing(code: str):
    return User.query.filter_by(code=code).first()


def seed_all(append: bool = False, verbose: bool = False, today: date | None = None) -> dict:
    """
    Load the demo dataset.

    Without ``append`` existing data is wiped first. Returns row counts.
    """
    today = today or date.today()
    if not append:
        clear_all()

    users = {}
    for entry in USERS:
        users[entry["code"]] = _existing(entry["code"]) or create_user(password=DEMO_PASSWORD, **entry)
    for entry in TRAINERS:
        users[entry["code"]] = _existing(entry["code"]) or create_user(
            code=entry["code"], name=entry["name"], email=entry["email"],
            password=DEMO_PASSWORD, role="TR", region=entry["region"],
            department="Training", avatar_url=entry["avatar_url"],
            trainer_profile=entry["profile"],
        )
    if verbose:
        logger.info("Seeded %d users", len(users))

    actors = {code: Actor.from_user(user) for code, user in users.items()}
    for entry in REQUESTS:
        payload = dict(entry["payload"], training_date=today + timedelta(days=entry["day_offset"]))
        req = create_request(actors[entry["requester"]], payload)
        for code, action, inputs in entry["steps"]:
            inputs = dict(inputs)
            trainer_code = inputs.pop("trainer", None)
            if trainer_code:
                inputs["trainer_id"] = users[trainer_code].id
            transition_request(req.id, action, actors[code], **inputs)
        if verbose:
            logger.info("Seeded request %s (%d step(s))", req.code, len(entry["steps"]))

    for entry in CONVERSATIONS:
        owner, *others = entry["members"]
        conv = messaging_service.create_conversation(
            users[owner].id, [users[c].id for c in others],
            name=entry.get("name"), is_group=entry["is_group"],
        )
        for sender, content in entry["messages"]:
            messaging_service.send_message(users[sender].id, conv["id"], content=content)

    counts = {
        "users": User.query.count(),
        "training_requests": TrainingRequest.query.count(),
        "training_events": TrainingEvent.query.count(),
        "conversations": Conversation.query.count(),
        "messages": Message.query.count(),
    }
    logger.info("Demo seed complete: %s", counts)
    return counts
