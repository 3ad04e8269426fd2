# backend/motorbersih/__init__.py
from __future__ import annotations

import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate
from .services.rate_limit_service import FixedWindowRateLimiter


def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    level = logging.getLevelName(str(app.config.get("LOG_LEVEL", "INFO")).upper())
    if isinstance(level, int):
        app.logger.setLevel(level)
        logging.getLogger("motorbersih").setLevel(level)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # One limiter per app; tests get a fresh one with every create_app()
    app.extensions["rate_limiter"] = FixedWindowRateLimiter(
        limit=int(app.config["RATE_LIMIT_REQUESTS"]),
        window_seconds=int(app.config["RATE_LIMIT_WINDOW_SECONDS"]),
    )

    # Register blueprints
    from .routes.system import system_bp
    from .routes.transactions import transactions_bp
    from .routes.commissions import commissions_bp
    from .routes.attendance import attendance_bp
    from .routes.customers import customers_bp
    from .routes.operators import operators_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(transactions_bp)
    app.register_blueprint(commissions_bp)
    app.register_blueprint(attendance_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(operators_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin and origin in app.config["CORS_ALLOWED_ORIGINS"]:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
