"""Flask application factory."""

import os

from flask import Flask
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from app.config import config

db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()


def create_app(config_name: str | None = None) -> Flask:
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get("FLASK_ENV", "development")

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)

    from app.extensions import init_sentry, limiter

    limiter.init_app(app)
    init_sentry(app)

    # CORS
    CORS(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)

    # Logging
    if not app.testing:
        from app.logging_config import setup_logging

        setup_logging(app)

    # Error handlers
    from app.errors import register_error_handlers

    register_error_handlers(app)

    # Register blueprints
    from app.api import api_bp

    app.register_blueprint(api_bp, url_prefix="/api/v1")

    # CLI commands
    from app import cli

    cli.init_app(app)

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    # Shell context
    @app.shell_context_processor
    def make_shell_context():
        from app.models import CompanionType, Pet, ProgressionAccount, User

        return {
            "db": db,
            "User": User,
            "ProgressionAccount": ProgressionAccount,
            "Pet": Pet,
            "CompanionType": CompanionType,
        }

    return app
