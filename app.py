"""
Flask Application Factory - Main Entry Point

Builds the user validation service: configuration, structured logging, the
database, the blueprints and the application-level error handlers.

Key Features:
- Environment-specific configuration selected by name or ``FLASK_CONFIG``
- structlog logging with a request id bound to every entry
- Flask-SQLAlchemy with tables created at start-up
- One error body for every failure: ``{"message": ..., "errors": {...}}``

Example:
    from app import create_app
    app = create_app('development')
    app.run()
"""

from typing import Any, Dict, Optional

import structlog
from flask import Flask
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix

from blueprints import BlueprintRegistrationError, register_blueprints
from config import get_config
from models import DatabaseInitializationError, db, init_database
from utils.logging import init_logging
from utils.response import (
    HTTP_BAD_REQUEST,
    HTTP_METHOD_NOT_ALLOWED,
    HTTP_NOT_FOUND,
    add_security_headers,
    create_error_response,
    system_error_response,
)

logger = structlog.get_logger(__name__)


class FlaskApplicationError(Exception):
    """Custom exception for Flask application initialization errors."""

    def __init__(self, message: str, error_code: str = None, details: Dict[str, Any] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or 'APP_INIT_ERROR'
        self.details = details or {}


def register_error_handlers(app: Flask) -> None:
    """
    Register application-wide error handlers.

    Routing and protocol errors raised by Flask itself get the common error
    body. Anything unhandled rolls back the database session and becomes a
    generic 500 without internal details.
    """

    @app.errorhandler(400)
    def bad_request(error):
        return create_error_response("The request could not be understood by the server", HTTP_BAD_REQUEST)

    @app.errorhandler(404)
    def not_found(error):
        return create_error_response("The requested resource was not found", HTTP_NOT_FOUND)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return create_error_response("Method not allowed for this resource", HTTP_METHOD_NOT_ALLOWED)

    @app.errorhandler(HTTPException)
    def http_error(error):
        return create_error_response(error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.error("unhandled_exception", error_type=type(error).__name__, exc_info=True)
        db.session.rollback()
        return system_error_response()


def create_app(config_name: Optional[str] = None) -> Flask:
    """
    Flask application factory.

    Args:
        config_name: 'development', 'testing' or 'production'. If None,
            determined from the FLASK_CONFIG environment variable.

    Returns:
        Configured Flask application

    Raises:
        FlaskApplicationError: If the database or a blueprint fails to initialize
    """
    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.json.sort_keys = app.config.get('JSON_SORT_KEYS', False)

    init_logging(app)
    config_class.init_app(app)

    if not app.testing:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1)

    try:
        init_database(app)
    except DatabaseInitializationError as e:
        raise FlaskApplicationError(str(e), error_code="DATABASE_INIT_FAILED") from e

    try:
        register_blueprints(app)
    except BlueprintRegistrationError as e:
        raise FlaskApplicationError(
            f"Critical blueprint registration failed: {e.message}",
            error_code="BLUEPRINT_REGISTRATION_FAILED",
            details={'blueprint_name': e.blueprint_name}
        ) from e

    register_error_handlers(app)
    app.after_request(add_security_headers)

    logger.info(
        "application_created",
        config=config_class.__name__,
        debug=app.debug,
        testing=app.testing,
    )
    return app
