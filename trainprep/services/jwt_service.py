"""
Bearer tokens and refresh sessions for TrainPrep users.

An access token carries the claims ``Actor.from_claims`` needs to scope a
caller (role, region, department). A refresh token carries only the user id
and is tied to one ``UserSession`` row through its SHA-256 fingerprint, so
a refresh both verifies the JWT and finds a live session.

Lifetimes come from JWT_ACCESS_EXPIRES / JWT_REFRESH_EXPIRES (seconds).
"""

import hashlib
import logging
import uuid
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from trainprep.core.exceptions import AuthenticationError
from trainprep.models import db
from trainprep.models.auth import User, UserSession

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
ACCESS = "access"
REFRESH = "refresh"

_LIFETIME_DEFAULTS = {
    ACCESS: ("JWT_ACCESS_EXPIRES", 900),
    REFRESH: ("JWT_REFRESH_EXPIRES", 604800),
}


def _secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def token_lifetime(kind: str) -> int:
    key, default = _LIFETIME_DEFAULTS[kind]
    return int(current_app.config.get(key, default))


def _encode(user_id: int, kind: str, **claims) -> tuple[str, datetime]:
    issued = datetime.now(timezone.utc)
    expires_at = issued + timedelta(seconds=token_lifetime(kind))
    payload = {
        "sub": str(user_id),
        "type": kind,
        "iat": issued,
        "exp": expires_at,
        "jti": uuid.uuid4().hex,
        **claims,
    }
    return jwt.encode(payload, _secret(), algorithm=ALGORITHM), expires_at


def generate_access_token(user) -> str:
    token, _ = _encode(
        user.id, ACCESS,
        role=user.role,
        region=user.region or "",
        department=user.department or "",
    )
    return token


def decode_token(token: str, kind: str) -> dict:
    """Verify signature and expiry; raises ``jwt.InvalidTokenError`` subclasses."""
    payload = jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    if payload.get("type") != kind:
        raise jwt.InvalidTokenError(f"Expected {kind} token, got {payload.get('type')}")
    return payload


def decode_access_token(token: str) -> dict:
    return decode_token(token, ACCESS)


def fingerprint(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


# ═══════════════════════════════════════════════════════════════
# Sessions
# ═══════════════════════════════════════════════════════════════
def _issue(user, ip_address, user_agent) -> tuple[dict, UserSession]:
    refresh_token, expires_at = _encode(user.id, REFRESH)
    session = UserSession(
        user_id=user.id,
        token_hash=fingerprint(refresh_token),
        ip_address=ip_address,
        user_agent=(user_agent or "")[:500],
        expires_at=expires_at,
    )
    db.session.add(session)
    tokens = {
        "access_token": generate_access_token(user),
        "refresh_token": refresh_token,
        "token_type": "Bearer",
        "expires_in": token_lifetime(ACCESS),
    }
    return tokens, session


def open_session(user, ip_address=None, user_agent=None) -> dict:
    """Start a refresh session for a freshly authenticated user."""
    tokens, _ = _issue(user, ip_address, user_agent)
    db.session.commit()
    return tokens


def refresh_session(refresh_token: str, ip_address=None, user_agent=None) -> dict:
    """
    Trade a refresh token for a new pair.

    The presented session is closed in the same commit that opens its
    replacement, so each refresh token works once.
    """
    try:
        user_id = int(decode_token(refresh_token, REFRESH)["sub"])
    except (jwt.InvalidTokenError, KeyError, ValueError) as exc:
        logger.info("Rejected refresh token: %s", exc)
        raise AuthenticationError("Invalid or expired refresh token") from exc

    session = UserSession.query.filter_by(
        user_id=user_id, token_hash=fingerprint(refresh_token), is_active=True,
    ).first()
    if session is None:
        raise AuthenticationError("Session not found or revoked")

    now = datetime.now(timezone.utc)
    session.is_active = False
    session.last_used_at = now
    if session.is_expired:
        db.session.commit()
        raise AuthenticationError("Session expired")

    user = db.session.get(User, user_id)
    if user is None or not user.is_active:
        db.session.commit()
        raise AuthenticationError("User inactive or not found")

    tokens, _ = _issue(user, ip_address, user_agent)
    db.session.commit()
    return tokens


def close_sessions(user_id: int, refresh_token: str | None = None) -> int:
    """Revoke one session by its refresh token, or all of the user's sessions."""
    query = UserSession.query.filter_by(user_id=user_id, is_active=True)
    if refresh_token:
        query = query.filter_by(token_hash=fingerprint(refresh_token))
    count = query.update({"is_active": False})
    db.session.commit()
    return count
