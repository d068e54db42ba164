# backend/tallyscan/__init__.py
from flask import Flask, request

from .config import Config
from .extensions import db, migrate



def create_app(config: dict | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config:
        # Overrides must land before db.init_app binds the engine
        app.config.update(config)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    # One scan debouncer per (org, station), shared by request threads
    from .services.scan_debouncer import DebouncerRegistry
    app.extensions["scan_debouncers"] = DebouncerRegistry(app.config["SCAN_DEBOUNCE_MS"])

    # Register blueprints
    from .routes.system import system_bp
    from .routes.taxonomy import taxonomy_bp
    from .routes.products import products_bp
    from .routes.counts import counts_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(taxonomy_bp)
    app.register_blueprint(products_bp)
    app.register_blueprint(counts_bp)

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allowed_origins = {
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:4173",
            "http://127.0.0.1:4173",
        }
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Headers"] = "X-Org-Code, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,DELETE,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
