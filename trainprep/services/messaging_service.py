"""
Messaging Service: private and group conversations.

Only participants can read or post in a conversation; anyone else gets a
NotFoundError so conversation ids cannot be enumerated.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy import func

from trainprep.core.exceptions import NotFoundError, ValidationError
from trainprep.models import db
from trainprep.models.auth import User
from trainprep.models.messaging import (
    MEDIA_TYPES,
    Conversation,
    ConversationParticipant,
    Message,
)

logger = logging.getLogger(__name__)

CONVERSATION_KINDS = ("private", "group")


def _participation(user_id: int, conversation_id: int) -> ConversationParticipant:
    part = ConversationParticipant.query.filter_by(
        conversation_id=conversation_id, user_id=user_id,
    ).first()
    if part is None:
        raise NotFoundError(resource="Conversation", resource_id=conversation_id)
    return part


def _unread_query(part: ConversationParticipant):
    q = Message.query.filter(
        Message.conversation_id == part.conversation_id,
        Message.sender_id != part.user_id,
    )
    if part.last_read_at is not None:
        q = q.filter(Message.created_at > part.last_read_at)
    return q


def _summary(part: ConversationParticipant) -> dict:
    conv = part.conversation
    last = conv.messages.order_by(Message.created_at.desc(), Message.id.desc()).first()
    members = [p.user for p in conv.participants if p.user is not None]
    if conv.is_group:
        name = conv.name or ", ".join(u.name for u in members)
    else:
        others = [u for u in members if u.id != part.user_id]
        name = others[0].name if others else conv.name
    return {
        "id": conv.id,
        "name": name,
        "is_group": conv.is_group,
        "is_pinned": bool(part.is_pinned),
        "participants": [
            {"id": u.id, "name": u.name, "role": u.role, "avatar_url": u.avatar_url}
            for u in members
        ],
        "last_message": last.to_dict() if last else None,
        "unread_count": _unread_query(part).count(),
        "created_at": conv.created_at.isoformat() if conv.created_at else None,
    }


def list_conversations(user_id: int, kind: str | None = None) -> list[dict]:
    """Conversation summaries, pinned first, then most recent activity."""
    if kind is not None and kind not in CONVERSATION_KINDS:
        raise ValidationError(
            "Invalid conversation kind", details={"kind": f"must be one of {list(CONVERSATION_KINDS)}"},
        )
    q = ConversationParticipant.query.join(Conversation).filter(
        ConversationParticipant.user_id == user_id,
    )
    if kind:
        q = q.filter(Conversation.is_group.is_(kind == "group"))

    summaries = [_summary(p) for p in q.all()]

    def _activity(s):
        last = s["last_message"]
        return (last["created_at"] if last else None) or s["created_at"] or ""

    summaries.sort(key=_activity, reverse=True)
    summaries.sort(key=lambda s: not s["is_pinned"])
    return summaries


def _find_private(user_a: int, user_b: int) -> Conversation | None:
    mine = {
        p.conversation_id
        for p in ConversationParticipant.query.join(Conversation).filter(
            ConversationParticipant.user_id == user_a, Conversation.is_group.is_(False),
        )
    }
    if not mine:
        return None
    shared = ConversationParticipant.query.filter(
        ConversationParticipant.user_id == user_b,
        ConversationParticipant.conversation_id.in_(mine),
    ).first()
    return shared.conversation if shared else None


def _optional_text(value, field: str) -> str | None:
    if value is not None and not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "expected a string"})
    return value


def create_conversation(user_id: int, participant_ids, name=None, is_group=False) -> dict:
    """
    Start a conversation with ``participant_ids``.

    A private conversation takes exactly one other participant and is
    reused if the pair already has one.
    """
    name = _optional_text(name, "name")
    try:
        requested = [int(pid) for pid in participant_ids or []]
    except (TypeError, ValueError):
        raise ValidationError(
            "participant_ids must be user ids", details={"participant_ids": "invalid"},
        ) from None
    others = list(dict.fromkeys(pid for pid in requested if pid != user_id))
    if not others:
        raise ValidationError(
            "At least one other participant is required", details={"participant_ids": "required"},
        )
    found = {u.id for u in User.query.filter(User.id.in_(others))}
    missing = [pid for pid in others if pid not in found]
    if missing:
        raise ValidationError("Unknown participants", details={"participant_ids": missing})

    if not is_group:
        if len(others) != 1:
            raise ValidationError(
                "A private conversation has exactly one other participant",
                details={"participant_ids": "expected one user"},
            )
        existing = _find_private(user_id, others[0])
        if existing is not None:
            return _summary(_participation(user_id, existing.id))
    elif not (name or "").strip():
        raise ValidationError("Group conversations need a name", details={"name": "required"})

    conv = Conversation(name=(name or "").strip(), is_group=bool(is_group), created_by_id=user_id)
    db.session.add(conv)
    db.session.flush()
    for pid in [user_id, *others]:
        db.session.add(ConversationParticipant(conversation_id=conv.id, user_id=pid))
    db.session.commit()
    logger.info("User %d created %s conversation %d with %d participant(s)",
                user_id, "group" if conv.is_group else "private", conv.id, len(others) + 1)
    return _summary(_participation(user_id, conv.id))


def get_messages(user_id: int, conversation_id: int) -> list[dict]:
    """Messages oldest first; marks the conversation read for ``user_id``."""
    part = _participation(user_id, conversation_id)
    messages = (
        Message.query.filter_by(conversation_id=conversation_id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )
    part.last_read_at = datetime.now(timezone.utc)
    db.session.commit()
    return [m.to_dict() for m in messages]


def send_message(user_id: int, conversation_id: int, content=None,
                 media_url=None, media_type=None) -> dict:
    _participation(user_id, conversation_id)
    content = (_optional_text(content, "content") or "").strip()
    media_url = _optional_text(media_url, "media_url")
    media_type = _optional_text(media_type, "media_type")
    if media_type is not None and media_type not in MEDIA_TYPES:
        raise ValidationError(
            "Invalid media type", details={"media_type": f"must be one of {sorted(MEDIA_TYPES)}"},
        )
    if media_url and not media_type:
        raise ValidationError("media_type is required with media_url", details={"media_type": "required"})
    if not content and not media_url:
        raise ValidationError("Message is empty", details={"content": "required"})

    msg = Message(
        conversation_id=conversation_id,
        sender_id=user_id,
        content=content,
        media_url=media_url,
        media_type=media_type if media_url else None,
    )
    db.session.add(msg)
    db.session.commit()
    return msg.to_dict()


def set_pinned(user_id: int, conversation_id: int, pinned: bool) -> dict:
    part = _participation(user_id, conversation_id)
    part.is_pinned = bool(pinned)
    db.session.commit()
    return _summary(part)


def unread_count(user_id: int) -> int:
    """Unread messages across all of the user's conversations."""
    parts = ConversationParticipant.query.filter_by(user_id=user_id).all()
    return sum(_unread_query(p).with_entities(func.count(Message.id)).scalar() or 0 for p in parts)
