"""
Flask Configuration Management

Environment-specific configuration classes for development, testing and
production. Values come from environment variables, optionally seeded from
``.env`` files through python-dotenv when this module is imported.

The configuration system supports:
- In-memory SQLite by default, any SQLAlchemy URI through ``DATABASE_URL``
- structlog output control through ``LOG_LEVEL`` and ``LOG_JSON``
- Environment selection through ``FLASK_CONFIG``
"""

import os
from pathlib import Path
from typing import List, Optional, Type

import structlog
from dotenv import load_dotenv


def load_environment_variables() -> List[str]:
    """
    Load environment variables from .env files.

    Files are read most specific first and never override variables that are
    already set, so the process environment always wins.

    Search Order:
        1. .env.local (local development overrides)
        2. .env.{FLASK_CONFIG} (environment-specific settings)
        3. .env (default environment settings)

    Returns:
        The files that were found and loaded
    """
    flask_config = os.environ.get('FLASK_CONFIG', 'development')
    loaded_files = []
    for env_file in ('.env.local', f'.env.{flask_config}', '.env'):
        if Path(env_file).exists():
            load_dotenv(env_file, override=False)
            loaded_files.append(env_file)
    return loaded_files


LOADED_ENV_FILES = load_environment_variables()


def _env_flag(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration class containing common settings for all environments.
    """

    # Flask Core Configuration
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-key-change-in-production'
    APP_NAME = 'user-validation-service'
    APP_VERSION = os.environ.get('APP_VERSION', '1.0.0')
    JSON_SORT_KEYS = False

    # Database Configuration - in-memory SQLite unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False  # Disable modification tracking for performance
    SQLALCHEMY_ECHO = _env_flag('SQLALCHEMY_ECHO', False)

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_JSON = _env_flag('LOG_JSON', True)

    @staticmethod
    def init_app(app):
        """
        Initialize application with configuration-specific settings.

        Called by the factory after the configuration is loaded; subclasses
        override it for environment-specific checks.
        """
        pass


class DevelopmentConfig(Config):
    DEBUG = True
    TESTING = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')
    LOG_JSON = _env_flag('LOG_JSON', False)


class TestingConfig(Config):
    TESTING = True
    DEBUG = False

    # Always a fresh in-memory database for tests
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite://'

    LOG_LEVEL = 'WARNING'  # Reduce log noise during testing
    LOG_JSON = False


class ProductionConfig(Config):
    DEBUG = False
    TESTING = False

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    @staticmethod
    def init_app(app):
        if app.config['SECRET_KEY'] == 'dev-key-change-in-production':
            structlog.get_logger(__name__).warning("secret_key_not_set", environment="production")


# Configuration mapping for environment-based selection
config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig
}


def get_config(config_name: Optional[str] = None) -> Type[Config]:
    """
    Get configuration class based on environment name.

    Args:
        config_name: Name of the configuration environment; defaults to
            ``FLASK_CONFIG`` or ``development``

    Returns:
        Configuration class for the specified environment
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_CONFIG', 'default')

    return config.get(config_name, DevelopmentConfig)


__all__ = [
    'Config',
    'DevelopmentConfig',
    'TestingConfig',
    'ProductionConfig',
    'config',
    'get_config',
    'load_environment_variables',
]
