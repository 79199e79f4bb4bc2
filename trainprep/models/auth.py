"""
Auth Models: users, trainer profiles, refresh-token sessions.

Every user holds exactly one of the six workflow roles (DV, SV, PM, TR, CC,
MB). Users log in with their short code (e.g. "DV-001") and a password.
"""

import uuid
from datetime import datetime, timezone

from trainprep.models import db

TRAINER_AVAILABILITY = {"available", "busy", "unavailable"}


# ═══════════════════════════════════════════════════════════════
# 1. USERS
# ═══════════════════════════════════════════════════════════════
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(30), unique=True, nullable=False)
    name = db.Column(db.String(200), nullable=False)
    email = db.Column(db.String(200), unique=True, nullable=False)
    password_hash = db.Column(db.String(256))
    role = db.Column(db.String(2), nullable=False, index=True)  # DV, SV, PM, TR, CC, MB
    region = db.Column(db.String(100), default="")
    department = db.Column(db.String(100), default="")
    avatar_url = db.Column(db.String(500))
    status = db.Column(db.String(20), default="active")
    last_login_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    sessions = db.relationship(
        "UserSession", back_populates="user", lazy="dynamic", cascade="all, delete-orphan",
    )
    trainer_profile = db.relationship(
        "TrainerProfile", back_populates="user", uselist=False, cascade="all, delete-orphan",
    )

    @property
    def is_active(self):
        return self.status == "active"

    def to_dict(self):
        return {
            "id": self.id,
            "code": self.code,
            "name": self.name,
            "email": self.email,
            "role": self.role,
            "region": self.region,
            "department": self.department,
            "avatar_url": self.avatar_url,
            "status": self.status,
            "last_login_at": self.last_login_at.isoformat() if self.last_login_at else None,
        }

    def __repr__(self):
        return f"<User {self.code} ({self.role})>"


# ═══════════════════════════════════════════════════════════════
# 2. TRAINER PROFILES (one per TR user)
# ═══════════════════════════════════════════════════════════════
class TrainerProfile(db.Model):
    __tablename__ = "trainer_profiles"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False,
    )
    specialization = db.Column(db.String(50), nullable=False, index=True)
    rating = db.Column(db.Float, default=0.0)
    location = db.Column(db.String(100), default="")
    experience_years = db.Column(db.Integer, default=0)
    trainings_count = db.Column(db.Integer, default=0)
    availability = db.Column(db.String(20), default="available")
    skills = db.Column(db.JSON, default=list)

    user = db.relationship("User", back_populates="trainer_profile")

    def to_dict(self):
        return {
            "user_id": self.user_id,
            "name": self.user.name if self.user else None,
            "code": self.user.code if self.user else None,
            "avatar_url": self.user.avatar_url if self.user else None,
            "region": self.user.region if self.user else None,
            "specialization": self.specialization,
            "rating": self.rating,
            "location": self.location,
            "experience_years": self.experience_years,
            "trainings_count": self.trainings_count,
            "availability": self.availability,
            "skills": self.skills or [],
        }


# ═══════════════════════════════════════════════════════════════
# 3. SESSIONS (refresh tokens, stored hashed)
# ═══════════════════════════════════════════════════════════════
class UserSession(db.Model):
    __tablename__ = "user_sessions"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    token_hash = db.Column(db.String(256), nullable=False)  # SHA-256 of refresh token
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(500))
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=lambda: datetime.now(timezone.utc))
    expires_at = db.Column(db.DateTime, nullable=False)
    last_used_at = db.Column(db.DateTime)

    user = db.relationship("User", back_populates="sessions")

    @property
    def is_expired(self):
        return datetime.now(timezone.utc) > self.expires_at.replace(tzinfo=timezone.utc)
