# backend/hazel/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(config_overrides: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.sales import sales_bp
    from .routes.customers import customers_bp
    from .routes.expenses import expenses_bp
    from .routes.reservations import reservations_bp
    from .routes.deposits import deposits_bp
    from .routes.settings import settings_bp
    from .routes.statistics import statistics_bp
    from .routes.dashboard import dashboard_bp
    from .routes.photo_cards import photo_cards_bp, photo_tags_bp
    from .routes.push import push_bp
    from .routes.cron import cron_bp
    from .routes.media import media_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(sales_bp)
    app.register_blueprint(customers_bp)
    app.register_blueprint(expenses_bp)
    app.register_blueprint(reservations_bp)
    app.register_blueprint(deposits_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(statistics_bp)
    app.register_blueprint(dashboard_bp)
    app.register_blueprint(photo_cards_bp)
    app.register_blueprint(photo_tags_bp)
    app.register_blueprint(push_bp)
    app.register_blueprint(cron_bp)
    app.register_blueprint(media_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = set(app.config.get("CORS_ALLOWED_ORIGINS") or [])
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
