"""
Rate limiting configuration.

The Limiter instance is created in parjis/__init__.py with no default
limits; this module applies limits per blueprint.

Usage:
    from parjis.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)

# State-changing workflow routes and CRUD writes share one moderate limit.
WORKFLOW_BLUEPRINTS = ("project", "review", "comment")
READ_LIMIT = "200/minute"


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Workflow / write blueprints: WORKFLOW_RATE_LIMIT (default 60/minute)
        - User, notification, dashboard: 200/minute
        - Health check:                   exempt

    Disabled when RATELIMIT_ENABLED is false (always in testing).
    """
    if not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled (RATELIMIT_ENABLED=False)")
        return

    workflow_limit = app.config.get("WORKFLOW_RATE_LIMIT", "60/minute")
    for bp_name in WORKFLOW_BLUEPRINTS:
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(workflow_limit)(bp)

    for bp_name in ("user", "notification", "dashboard"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(READ_LIMIT)(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured: workflow=%s read=%s", workflow_limit, READ_LIMIT,
    )
