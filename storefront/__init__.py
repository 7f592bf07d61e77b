# storefront/__init__.py
from __future__ import annotations

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.accounts import accounts_bp
    from .routes.products import products_bp
    from .routes.offers import offers_bp
    from .routes.coupons import coupons_bp
    from .routes.carts import carts_bp
    from .routes.receipts import receipts_bp
    from .routes.reviews import reviews_bp
    from .routes.catalogs import catalogs_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(accounts_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(offers_bp)
    app.register_blueprint(coupons_bp)
    app.register_blueprint(carts_bp)
    app.register_blueprint(receipts_bp)
    app.register_blueprint(reviews_bp)
    app.register_blueprint(catalogs_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS", ()))
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("OFFER_SWEEP_ENABLED") and not app.config.get("TESTING"):
        from .services.sweeper import OfferSweeper
        sweeper = OfferSweeper(app, interval_seconds=app.config["OFFER_SWEEP_INTERVAL_SECONDS"])
        sweeper.start()
        app.extensions["offer_sweeper"] = sweeper

    return app
