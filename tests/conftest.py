"""
Pytest Configuration and Fixtures

Provides the Flask application built with TestingConfig (fresh in-memory
SQLite per test), a test client, direct database session access and the
Factory Boy user factory. Validator unit tests need none of these and run
without an application.
"""

import pytest

from app import create_app
from models import db, drop_all_tables
from tests.factories import UserFactory


# =============================================================================
# PYTEST CONFIGURATION AND MARKERS
# =============================================================================

def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line(
        "markers",
        "unit: Unit tests for individual components and functions"
    )
    config.addinivalue_line(
        "markers",
        "integration: Integration tests for API endpoints and services"
    )
    config.addinivalue_line(
        "markers",
        "database: Tests that read or write the database"
    )


def pytest_collection_modifyitems(config, items):
    """Apply markers based on test location."""
    for item in items:
        path = str(item.fspath)
        if "unit" in path:
            item.add_marker(pytest.mark.unit)
        elif "integration" in path:
            item.add_marker(pytest.mark.integration)

        if "db_session" in getattr(item, 'fixturenames', ()):
            item.add_marker(pytest.mark.database)


# =============================================================================
# FLASK APPLICATION FIXTURES
# =============================================================================

@pytest.fixture
def app():
    """
    Flask application with testing configuration.

    Yields inside an application context; the in-memory database lives as
    long as the application, so every test starts with empty tables.
    """
    app = create_app(config_name='testing')
    with app.app_context():
        yield app
    drop_all_tables(app)


@pytest.fixture
def client(app):
    """Flask test client for HTTP request testing."""
    return app.test_client()


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture
def db_session(app):
    """Flask-SQLAlchemy scoped session of the test application context."""
    return db.session


@pytest.fixture
def user_factory(db_session):
    """UserFactory bound to the test database."""
    return UserFactory
