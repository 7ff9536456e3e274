# Overview: Application factory; wires config, storage, blueprints and CLI.

import logging

from flask import Flask, request

from .config import Config
from .extensions import db, migrate


def create_app(config_overrides=None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if config_overrides:
        app.config.update(config_overrides)

    logging.getLogger("stockkeep").setLevel(app.config.get("LOG_LEVEL", "INFO"))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    from .services.inventory import InventoryLedger, EXTENSION_KEY
    ledger = InventoryLedger.from_app(app)
    app.extensions[EXTENSION_KEY] = ledger

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.items import items_bp
    from .routes.categories import categories_bp
    from .routes.users import users_bp
    from .routes.transactions import transactions_bp

    app.register_blueprint(system_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(items_bp)
    app.register_blueprint(categories_bp)
    app.register_blueprint(users_bp)
    app.register_blueprint(transactions_bp)

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
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"
            response.headers["Access-Control-Allow-Methods"] = "GET,POST,PUT,DELETE,PATCH,OPTIONS"
        return response

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    if app.config.get("AUTO_CREATE_SCHEMA"):
        with app.app_context():
            ledger.schema.create_schema()
            if app.config.get("SEED_DEFAULT_DATA"):
                ledger.schema.apply_seed_data_if_empty()

    return app
