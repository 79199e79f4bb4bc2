"""
Messaging models: private and group conversations between users.
"""

from datetime import datetime, timezone

from trainprep.models import db

MEDIA_TYPES = {"image", "pdf", "voice"}


class Conversation(db.Model):
    __tablename__ = "conversations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), default="")
    is_group = db.Column(db.Boolean, default=False, nullable=False)
    created_by_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    participants = db.relationship(
        "ConversationParticipant", back_populates="conversation", cascade="all, delete-orphan",
    )
    messages = db.relationship(
        "Message", back_populates="conversation", lazy="dynamic", cascade="all, delete-orphan",
        order_by="Message.created_at",
    )


class ConversationParticipant(db.Model):
    __tablename__ = "conversation_participants"
    __table_args__ = (
        db.UniqueConstraint("conversation_id", "user_id", name="uq_participant_conversation_user"),
    )

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(
        db.Integer, db.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    is_pinned = db.Column(db.Boolean, default=False)
    last_read_at = db.Column(db.DateTime(timezone=True))
    joined_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    conversation = db.relationship("Conversation", back_populates="participants")
    user = db.relationship("User")


class Message(db.Model):
    __tablename__ = "messages"

    id = db.Column(db.Integer, primary_key=True)
    conversation_id = db.Column(
        db.Integer, db.ForeignKey("conversations.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    sender_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = db.Column(db.Text, default="")
    media_url = db.Column(db.String(500))
    media_type = db.Column(db.String(10))
    created_at = db.Column(
        db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True,
    )

    conversation = db.relationship("Conversation", back_populates="messages")
    sender = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "conversation_id": self.conversation_id,
            "sender_id": self.sender_id,
            "sender_name": self.sender.name if self.sender else None,
            "sender_role": self.sender.role if self.sender else None,
            "content": self.content or "",
            "media_url": self.media_url,
            "media_type": self.media_type,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
