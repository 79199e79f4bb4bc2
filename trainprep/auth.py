"""
Request authentication: Bearer JWT → Actor.

Every /api/v1/ route except login, refresh and health requires a valid
access token. The verified claims become an ``Actor`` stored on ``g`` and
handed explicitly to services; services never read ``g`` themselves.

Usage:
    from trainprep.auth import current_actor, require_roles

    @bp.route("/things", methods=["POST"])
    @require_roles("DV")
    def create_thing():
        actor = current_actor()
"""

import functools
import logging
from dataclasses import dataclass

import jwt as pyjwt
from flask import g, request

from trainprep.core.exceptions import AuthenticationError
from trainprep.core.roles import Role, parse_role
from trainprep.services.jwt_service import decode_access_token
from trainprep.utils.errors import E, api_error

logger = logging.getLogger(__name__)

# Paths that skip JWT auth entirely
AUTH_SKIP_PREFIXES = (
    "/api/v1/auth/login",
    "/api/v1/auth/refresh",
    "/api/v1/health",
)


@dataclass(frozen=True)
class Actor:
    """The authenticated user on whose behalf a service call runs."""

    user_id: int
    role: Role
    region: str = ""
    department: str = ""

    @classmethod
    def from_claims(cls, payload: dict) -> "Actor":
        return cls(
            user_id=int(payload["sub"]),
            role=parse_role(payload.get("role")),
            region=payload.get("region") or "",
            department=payload.get("department") or "",
        )

    @classmethod
    def from_user(cls, user) -> "Actor":
        return cls(
            user_id=user.id,
            role=parse_role(user.role),
            region=user.region or "",
            department=user.department or "",
        )


def init_auth(app):
    """Register the before_request hook that resolves ``g.actor``."""

    @app.before_request
    def _authenticate():
        g.actor = None

        path = request.path
        if not path.startswith("/api/v1/") or request.method == "OPTIONS":
            return None
        if path.startswith(AUTH_SKIP_PREFIXES):
            return None

        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return api_error(E.UNAUTHENTICATED, "Authentication required")

        try:
            g.actor = Actor.from_claims(decode_access_token(auth_header[7:]))
        except pyjwt.ExpiredSignatureError:
            return api_error(E.UNAUTHENTICATED, "Token expired")
        except (pyjwt.InvalidTokenError, KeyError, ValueError) as exc:
            logger.info("Rejected access token on %s: %s", path, exc)
            return api_error(E.UNAUTHENTICATED, "Invalid token")
        return None


def current_actor() -> Actor:
    """Actor for the current HTTP request; raises AuthenticationError if none."""
    actor = getattr(g, "actor", None)
    if actor is None:
        raise AuthenticationError()
    return actor


def require_auth(f):
    """Decorator: the request must carry a valid access token."""

    @functools.wraps(f)
    def decorated(*args, **kwargs):
        current_actor()
        return f(*args, **kwargs)
    return decorated


def require_roles(*roles):
    """Decorator: the authenticated actor must hold one of ``roles``."""
    allowed = frozenset(parse_role(r) for r in roles)

    def decorator(f):
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            actor = current_actor()
            if actor.role not in allowed:
                logger.warning(
                    "User %d (%s) denied on %s; requires one of %s",
                    actor.user_id, actor.role, f.__name__, sorted(r.value for r in allowed),
                )
                return api_error(
                    E.FORBIDDEN, "Permission denied",
                    details={"required_roles": sorted(r.value for r in allowed)},
                )
            return f(*args, **kwargs)
        return decorated
    return decorator
