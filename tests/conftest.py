"""
Shared pytest fixtures for the TrainPrep test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - users: one user per role (plus a second DV, SV and TR)
    - actors / headers: Actor objects and Bearer headers keyed by user code
    - make_request: factory for stored training requests
"""

from datetime import date, timedelta

import pytest

from trainprep import create_app
from trainprep.auth import Actor
from trainprep.models import db as _db
from trainprep.models.auth import TrainerProfile, User
from trainprep.models.training import TrainingRequest, next_request_code
from trainprep.services.jwt_service import generate_access_token
from trainprep.utils.crypto import hash_password

TEST_PASSWORD = "Passw0rd!test"

# code, name, role, region
_USERS = (
    ("DV-001", "Nour Ibrahim", "DV", "Cairo HQ"),
    ("DV-002", "Youssef Adel", "DV", "Alexandria"),
    ("SV-001", "Mona Fathy", "SV", "Cairo HQ"),
    ("SV-002", "Rania Samir", "SV", "Alexandria"),
    ("PM-001", "Karim Said", "PM", "Cairo HQ"),
    ("TR-001", "Ahmed Hassan", "TR", "Cairo HQ"),
    ("TR-002", "Sara Mohamed", "TR", "Alexandria"),
    ("CC-001", "Hana Mostafa", "CC", "Cairo HQ"),
    ("MB-001", "Tarek Nabil", "MB", "Cairo HQ"),
)

_PROFILES = {
    "TR-001": {"specialization": "leadership", "rating": 4.8, "location": "Cairo",
               "availability": "available", "skills": ["Team Building"]},
    "TR-002": {"specialization": "communication", "rating": 4.9, "location": "Alexandria",
               "availability": "busy", "skills": ["Public Speaking"]},
}


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


@pytest.fixture(scope="session")
def password():
    """Plain-text password shared by every fixture user."""
    return TEST_PASSWORD


@pytest.fixture(scope="session")
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


# ── Users & auth ─────────────────────────────────────────────────────────


@pytest.fixture()
def users(password_hash):
    """One active user per role, keyed by code; TR users carry a profile."""
    created = {}
    for code, name, role, region in _USERS:
        user = User(
            code=code,
            name=name,
            email=f"{code.lower()}@trainprep.test",
            password_hash=password_hash,
            role=role,
            region=region,
            department="Training",
        )
        _db.session.add(user)
        _db.session.flush()
        if code in _PROFILES:
            _db.session.add(TrainerProfile(user_id=user.id, **_PROFILES[code]))
        created[code] = user
    _db.session.commit()
    return created


@pytest.fixture()
def actors(users):
    return {code: Actor.from_user(user) for code, user in users.items()}


@pytest.fixture()
def headers(users):
    """Bearer headers keyed by user code."""
    return {
        code: {"Authorization": f"Bearer {generate_access_token(user)}"}
        for code, user in users.items()
    }


# ── Domain factories ─────────────────────────────────────────────────────


def _request_payload(**overrides):
    payload = {
        "training_date": (date.today() + timedelta(days=14)).isoformat(),
        "location": "Cairo HQ",
        "specialization": "leadership",
        "trainee_count": 20,
        "description": "Leadership fundamentals for new team leads.",
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def request_payload():
    """Valid creation payload; keyword overrides replace fields."""
    return _request_payload


@pytest.fixture()
def make_request(users):
    """Insert a training request directly in a given status."""

    def _make(status="draft", requester="DV-001", **fields):
        requester_user = users[requester]
        req = TrainingRequest(
            code=next_request_code(),
            title=fields.pop("title", "Leadership Workshop"),
            status=status,
            requested_by_id=requester_user.id,
            training_date=fields.pop("training_date", date.today() + timedelta(days=14)),
            location=fields.pop("location", "Cairo HQ"),
            specialization=fields.pop("specialization", "leadership"),
            trainee_count=fields.pop("trainee_count", 20),
            region=requester_user.region,
            department=requester_user.department,
            documents=[],
            **fields,
        )
        _db.session.add(req)
        _db.session.commit()
        return req

    return _make
