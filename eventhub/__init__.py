"""
Application Factory
Creates and configures the Flask application
"""
import logging

from flask import Flask

from eventhub.config import config, get_config
from eventhub.errors import register_error_handlers
from eventhub.extensions import db, socketio
from eventhub.utils.logging_config import configure_logging

logger = logging.getLogger(__name__)

DEFAULT_SECRET_KEY = "eventhub_secret_key_change_later"


def create_app(config_name=None, overrides=None):
    """
    Application factory pattern
    Creates and configures Flask app; overrides are applied on top of the config class
    """
    app = Flask(__name__)

    # Load configuration
    if config_name:
        app.config.from_object(config[config_name])
    else:
        app.config.from_object(get_config())

    if overrides:
        app.config.update(overrides)

    configure_logging(app.config["LOG_LEVEL"])

    if not app.config.get("DEBUG") and not app.config.get("TESTING") \
            and app.config["SECRET_KEY"] == DEFAULT_SECRET_KEY:
        raise RuntimeError("SECRET_KEY must be set in production")

    # Initialize extensions
    db.init_app(app)
    socketio.init_app(
        app,
        cors_allowed_origins=app.config["SOCKETIO_CORS_ALLOWED_ORIGINS"],
        async_mode=app.config["SOCKETIO_ASYNC_MODE"]
    )

    register_error_handlers(app)

    # Register blueprints
    from eventhub.routes import admin_bp, auth_bp, events_bp, notifications_bp, quizzes_bp

    app.register_blueprint(auth_bp, url_prefix="/api/auth")
    app.register_blueprint(events_bp, url_prefix="/api/events")
    app.register_blueprint(quizzes_bp, url_prefix="/api/quizzes")
    app.register_blueprint(notifications_bp, url_prefix="/api/notifications")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    # Register Socket.IO events
    from eventhub.sockets import register_socket_events
    register_socket_events()

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created/verified")

    return app
