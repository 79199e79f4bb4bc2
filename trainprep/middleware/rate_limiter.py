"""
Rate limiting configuration.

The Limiter instance is created in trainprep/__init__.py with no default
limits; this module applies limits per route category.

Usage:
    from trainprep.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits (per remote IP).

        - Login:          LOGIN_RATE_LIMIT (default 10/minute)
        - Workflow:       60/minute  (request + messaging mutations)
        - Read-only APIs: 200/minute
        - Health check:   exempt

    Rate limiting is disabled in testing mode.
    """
    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled")
        return

    login_limit = app.config.get("LOGIN_RATE_LIMIT", "10/minute")
    view = app.view_functions.get("auth_bp.login")
    if view is not None:
        app.view_functions["auth_bp.login"] = limiter.limit(login_limit)(view)

    for bp_name in ("training_request_bp", "message_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT)(bp)

    for bp_name in ("trainer_bp", "calendar_bp", "dashboard_bp", "notification_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: login: %s, write: %s, read: %s",
                login_limit, WRITE_LIMIT, READ_LIMIT)
