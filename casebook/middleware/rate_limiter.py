"""
Rate limiting configuration.

Applies per-blueprint rate limits using Flask-Limiter.
The Limiter instance is created in casebook/__init__.py with no default
limits; this module applies granular limits per route category.

Usage:
    from casebook.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

logger = logging.getLogger(__name__)


def init_rate_limits(app, limiter):
    """
    Apply rate limits to API blueprints.

    Limits (per remote IP):
        - Auth endpoints:    10/minute  (password guessing)
        - Upload endpoints:  30/minute  (screenshots, wizard submit)
        - CRUD / timeline:   200/minute (generous for the page shell)
        - Health / storage:  exempt

    Rate limiting is disabled in testing mode.
    """

    if app.config.get("TESTING") or not app.config.get("RATELIMIT_ENABLED", True):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    bp = app.blueprints.get("auth_bp")
    if bp:
        limiter.limit("10/minute", methods=["POST"])(bp)

    bp = app.blueprints.get("wizard_bp")
    if bp:
        limiter.limit("30/minute", methods=["POST"])(bp)

    for bp_name in ("project_bp", "record_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit("200/minute")(bp)

    for bp_name in ("health_bp", "storage_bp", "pages_bp"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.exempt(bp)

    app.logger.info(
        "Rate limiter configured — auth: 10/min, wizard: 30/min, crud: 200/min"
    )
