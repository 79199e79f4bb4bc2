"""
User Service: account creation and code/password authentication.
"""

import logging
from datetime import datetime, timezone

from email_validator import EmailNotValidError, validate_email

from trainprep.core.exceptions import (
    AuthenticationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from trainprep.core.roles import Role, parse_role
from trainprep.models import db
from trainprep.models.auth import TRAINER_AVAILABILITY, TrainerProfile, User
from trainprep.models.training import SPECIALIZATIONS
from trainprep.utils.crypto import hash_password, verify_password

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8


def create_user(
    code: str,
    name: str,
    email: str,
    password: str,
    role,
    region: str = "",
    department: str = "",
    avatar_url: str | None = None,
    trainer_profile: dict | None = None,
) -> User:
    """Create a user; TR users may carry a trainer profile dict."""
    try:
        role = parse_role(role)
    except ValueError as exc:
        raise ValidationError(str(exc), details={"role": str(exc)}) from None

    code = (code or "").strip().upper()
    if not code:
        raise ValidationError("User code is required", details={"code": "required"})
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
            details={"password": "too short"},
        )

    try:
        email = validate_email(email or "", check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValidationError(f"Invalid email: {e}", details={"email": str(e)}) from None

    if User.query.filter_by(code=code).first():
        raise ConflictError("User", "code", code)
    if User.query.filter_by(email=email).first():
        raise ConflictError("User", "email", email)

    user = User(
        code=code,
        name=(name or "").strip() or code,
        email=email,
        password_hash=hash_password(password),
        role=role.value,
        region=region or "",
        department=department or "",
        avatar_url=avatar_url,
    )
    db.session.add(user)
    db.session.flush()

    if trainer_profile is not None:
        if role is not Role.TR:
            raise ValidationError("Only trainers carry a trainer profile")
        db.session.add(_build_profile(user, trainer_profile))

    db.session.commit()
    logger.info("Created user %s (%s)", user.code, user.role)
    return user


def _build_profile(user: User, data: dict) -> TrainerProfile:
    specialization = data.get("specialization")
    if specialization not in SPECIALIZATIONS:
        raise ValidationError(
            "Invalid trainer specialization",
            details={"specialization": f"must be one of {sorted(SPECIALIZATIONS)}"},
        )
    availability = data.get("availability", "available")
    if availability not in TRAINER_AVAILABILITY:
        raise ValidationError(
            "Invalid trainer availability",
            details={"availability": f"must be one of {sorted(TRAINER_AVAILABILITY)}"},
        )
    return TrainerProfile(
        user_id=user.id,
        specialization=specialization,
        rating=float(data.get("rating", 0.0)),
        location=data.get("location", ""),
        experience_years=int(data.get("experience_years", 0)),
        trainings_count=int(data.get("trainings_count", 0)),
        availability=availability,
        skills=list(data.get("skills", [])),
    )


def get_user_by_id(user_id: int) -> User:
    user = db.session.get(User, user_id)
    if not user:
        raise NotFoundError(resource="User", resource_id=user_id)
    return user


def authenticate_user(code: str, password: str) -> User:
    """
    Look a user up by code and check the password.

    Unknown code, wrong password and inactive account all raise the same
    AuthenticationError.
    """
    code = (code or "").strip().upper()
    user = User.query.filter_by(code=code).first()
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        logger.info("Login failed for code=%s", code)
        raise AuthenticationError("Invalid user code or password")
    return user


def update_last_login(user: User) -> None:
    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()
