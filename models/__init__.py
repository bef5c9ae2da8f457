"""
Flask-SQLAlchemy Database Initialization Module

Holds the shared ``db`` instance and binds it to the application created by
the factory in ``app.py``. Tables are created on start-up; the default
database is in-memory SQLite, so every process starts with an empty store.

Key Features:
- Single Flask-SQLAlchemy instance shared by models, repositories and services
- ``init_database`` for application factory integration
- Table creation and teardown helpers used by the test fixtures
"""

from typing import Any, Dict

import structlog
from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger(__name__)

# Global SQLAlchemy instance - initialized by Flask application factory
db = SQLAlchemy()


class DatabaseInitializationError(Exception):
    """Raised when the database cannot be bound or its tables created."""
    pass


def init_database(app: Flask) -> None:
    """
    Bind the database to the application and create all tables.

    Args:
        app: Flask application instance

    Raises:
        DatabaseInitializationError: If binding or table creation fails
    """
    db.init_app(app)
    try:
        create_all_tables(app)
    except SQLAlchemyError as e:
        raise DatabaseInitializationError(f"Database initialization failed: {e}") from e

    logger.info("database_initialized", uri=_safe_uri(app.config['SQLALCHEMY_DATABASE_URI']))


def create_all_tables(app: Flask) -> None:
    with app.app_context():
        # Import models so they register with the metadata
        from . import user  # noqa: F401
        db.create_all()


def drop_all_tables(app: Flask) -> None:
    with app.app_context():
        db.session.remove()
        db.drop_all()


def check_database_health() -> Dict[str, Any]:
    """Run a trivial query; must be called inside an application context."""
    try:
        db.session.execute(text('SELECT 1')).scalar()
        return {'status': 'healthy'}
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))
        return {'status': 'unhealthy', 'error': str(e)}


def _safe_uri(uri: str) -> str:
    # Hide credentials if a server URI is configured
    if '@' in uri:
        scheme, _, rest = uri.partition('://')
        return f"{scheme}://***@{rest.split('@', 1)[1]}"
    return uri
