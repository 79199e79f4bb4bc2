"""
TrainPrep: Training Coordination Platform
Flask Application Factory.

Usage:
    from trainprep import create_app
    app = create_app()           # defaults to APP_ENV or "development"
    app = create_app("testing")  # explicit config
"""

import logging
import os

import click
from flask import Flask, request
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from sqlalchemy import engine as _sa_engine
from sqlalchemy import event as _sa_event
from sqlalchemy.exc import SQLAlchemyError

from trainprep.auth import init_auth
from trainprep.config import config
from trainprep.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidTransition,
    NotFoundError,
    UnauthorizedRole,
    ValidationError,
)
from trainprep.middleware.logging_config import configure_logging
from trainprep.middleware.rate_limiter import init_rate_limits
from trainprep.middleware.security_headers import init_security_headers
from trainprep.middleware.timing import init_request_timing
from trainprep.models import db
from trainprep.utils.errors import E, api_error

logger = logging.getLogger(__name__)


@_sa_event.listens_for(_sa_engine.Engine, "connect")
def _enable_sqlite_fk(dbapi_conn, connection_record):
    """Enable foreign key enforcement for SQLite connections."""
    if "sqlite" in type(dbapi_conn).__module__:
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


migrate = Migrate()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[],                     # no global limit, applied per blueprint
)


def _register_error_handlers(app):
    """Map service exceptions to the standard JSON error body."""

    @app.errorhandler(NotFoundError)
    def _not_found_error(e):
        return api_error(E.NOT_FOUND, str(e))

    @app.errorhandler(ValidationError)
    def _validation_error(e):
        return api_error(E.VALIDATION_INVALID, str(e), details=e.details)

    @app.errorhandler(ConflictError)
    def _conflict_error(e):
        return api_error(E.CONFLICT_DUPLICATE, str(e), details={"field": e.field})

    @app.errorhandler(AuthenticationError)
    def _authentication_error(e):
        return api_error(E.UNAUTHENTICATED, str(e))

    @app.errorhandler(InvalidTransition)
    def _invalid_transition(e):
        logger.info("Rejected transition: %s", e)
        return api_error(E.INVALID_TRANSITION, str(e), details={
            "role": e.role, "status": e.status, "action": e.action, "reason": e.reason,
        })

    @app.errorhandler(UnauthorizedRole)
    def _unauthorized_role(e):
        logger.info("Rejected transition: %s", e)
        return api_error(E.UNAUTHORIZED_ROLE, str(e), details={
            "role": e.role, "status": e.status, "action": e.action, "reason": e.reason,
        })

    @app.errorhandler(SQLAlchemyError)
    def _database_error(e):
        db.session.rollback()
        logger.error("Database error on %s %s", request.method, request.path, exc_info=e)
        return api_error(E.DATABASE, "Database error")

    @app.errorhandler(404)
    def not_found(e):
        return {"error": "Not found", "code": E.NOT_FOUND, "path": request.path}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {"error": "Method not allowed"}, 405

    @app.errorhandler(429)
    def rate_limited(e):
        return {"error": "Too many requests", "retry_after": e.description}, 429

    @app.errorhandler(500)
    def server_error(e):
        logger.error("500 error: %s", e, exc_info=True)
        return api_error(E.INTERNAL, "Internal server error")


def _register_cli(app):
    @app.cli.command("create-user")
    @click.option("--code", required=True, help="Login code, e.g. SV-002")
    @click.option("--name", required=True)
    @click.option("--email", required=True)
    @click.option("--role", required=True, type=click.Choice(["DV", "SV", "PM", "TR", "CC", "MB"],
                                                             case_sensitive=False))
    @click.option("--region", default="")
    @click.option("--department", default="")
    @click.password_option()
    def create_user_cmd(code, name, email, role, region, department, password):
        """Create a user account."""
        from trainprep.services.user_service import create_user
        try:
            user = create_user(code, name, email, password, role, region=region, department=department)
        except (ValidationError, ConflictError) as exc:
            raise click.ClickException(str(exc)) from exc
        click.echo(f"Created {user.code} ({user.role}) id={user.id}")

    @app.cli.command("seed-demo")
    @click.option("--append", is_flag=True, help="Keep existing data")
    @click.option("--verbose", is_flag=True)
    def seed_demo_cmd(append, verbose):
        """Load the demo users, requests, events and conversations."""
        from trainprep.services.demo_seed_service import seed_all
        counts = seed_all(append=append, verbose=verbose)
        click.echo(", ".join(f"{k}={v}" for k, v in counts.items()))


def create_app(config_name=None):
    """
    Create and configure the Flask application.

    Args:
        config_name: Configuration environment name.
                     One of: "development", "testing", "production".
                     Defaults to APP_ENV env var, or "development" if unset.

    Returns:
        Configured Flask application instance.
    """
    if config_name is None:
        config_name = os.getenv("APP_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config[config_name]())

    # ── Structured logging (must be first) ───────────────────────────────
    configure_logging(app)

    # ── Extensions ───────────────────────────────────────────────────────
    db.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)
    cors_origins = app.config.get("CORS_ORIGINS", "*")
    if cors_origins == "*":
        CORS(app)
    elif cors_origins:
        CORS(app, origins=[o.strip() for o in cors_origins.split(",") if o.strip()])

    # ── Middleware (timing first so 401s are timed too) ──────────────────
    init_request_timing(app)
    init_auth(app)
    init_security_headers(app)
    app.config.setdefault("MAX_CONTENT_LENGTH", 2 * 1024 * 1024)  # 2 MB

    _register_error_handlers(app)

    # ── Models (registered on db.metadata) ───────────────────────────────
    from trainprep.models import audit as _audit_models            # noqa: F401
    from trainprep.models import auth as _auth_models              # noqa: F401
    from trainprep.models import messaging as _messaging_models    # noqa: F401
    from trainprep.models import notification as _notif_models     # noqa: F401
    from trainprep.models import training as _training_models      # noqa: F401

    # ── Auto-create tables (CREATE IF NOT EXISTS) ────────────────────────
    if config_name != "testing":
        if app.config["SQLALCHEMY_DATABASE_URI"].startswith("sqlite:///"):
            os.makedirs(app.instance_path, exist_ok=True)
        with app.app_context():
            db.create_all()
            app.logger.info("db.create_all() completed successfully")

    # ── Blueprints ───────────────────────────────────────────────────────
    from trainprep.blueprints.auth_bp import auth_bp
    from trainprep.blueprints.calendar_bp import calendar_bp
    from trainprep.blueprints.dashboard_bp import dashboard_bp
    from trainprep.blueprints.health_bp import health_bp
    from trainprep.blueprints.message_bp import message_bp
    from trainprep.blueprints.notification_bp import notification_bp
    from trainprep.blueprints.trainer_bp import trainer_bp
    from trainprep.blueprints.training_request_bp import training_request_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(training_request_bp)
    app.register_blueprint(trainer_bp)
    app.register_blueprint(calendar_bp)
    app.register_blueprint(message_bp)
    app.register_blueprint(notification_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(health_bp)

    _register_cli(app)

    # ── Rate limiting (after blueprints registered) ──────────────────────
    init_rate_limits(app, limiter)

    return app
