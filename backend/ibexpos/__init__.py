# backend/ibexpos/__init__.py
import logging

from flask import Flask, jsonify, request
from sqlalchemy.engine import make_url

from .config import Config
from .extensions import db, migrate


# Postgres only; SQLite (tests, local fallback) keeps the driver defaults
POSTGRES_ENGINE_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": 5,
    "max_overflow": 10,
    "pool_recycle": 1800,
}


def create_app(test_config=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if test_config:
        app.config.from_mapping(test_config)

    uri = app.config["SQLALCHEMY_DATABASE_URI"]
    if make_url(uri).get_backend_name() == "postgresql":
        app.config.setdefault("SQLALCHEMY_ENGINE_OPTIONS", POSTGRES_ENGINE_OPTIONS)

    level = str(app.config.get("LOG_LEVEL") or "INFO").upper()
    logging.getLogger("ibexpos").setLevel(level)
    app.logger.setLevel(level)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # IPC channel modules register themselves on import
    from .routes import auth, catalog, currencies, customer_portal, customers  # noqa: F401
    from .routes import finance, hr, offers, platform_admin, purchases, rents  # noqa: F401
    from .routes import sales, stores, subscriptions, system  # noqa: F401

    # Register blueprints
    from .routes.ipc import ipc_bp
    from .routes.web import web_bp

    app.register_blueprint(ipc_bp)
    app.register_blueprint(web_bp)

    @app.errorhandler(404)
    def not_found(_error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(_error):
        return jsonify({"error": "Method not allowed"}), 405

    allowed_origins = set(app.config.get("CORS_ORIGINS") or [])

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("RUN_SQL_MIGRATIONS"):
        from .services import sql_migration_service
        with app.app_context():
            sql_migration_service.apply_pending()

    return app
