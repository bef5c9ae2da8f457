"""
Blueprint Registration

All blueprints of the application and the single function the factory calls
to mount them. Registration order is the order of ``BLUEPRINTS``.
"""

from typing import List

import structlog
from flask import Blueprint, Flask

from .health import health_bp
from .users import users_bp

logger = structlog.get_logger(__name__)

BLUEPRINTS: List[Blueprint] = [
    health_bp,
    users_bp,
]


class BlueprintRegistrationError(Exception):
    """Raised when a blueprint cannot be mounted on the application."""

    def __init__(self, message: str, blueprint_name: str = None):
        super().__init__(message)
        self.message = message
        self.blueprint_name = blueprint_name


def register_blueprints(app: Flask) -> List[str]:
    """
    Register every blueprint with the application.

    Returns:
        Names of the registered blueprints, in registration order

    Raises:
        BlueprintRegistrationError: If a blueprint fails to register
    """
    registered = []
    for blueprint in BLUEPRINTS:
        try:
            app.register_blueprint(blueprint)
        except (ValueError, AssertionError) as e:
            raise BlueprintRegistrationError(
                f"Failed to register blueprint '{blueprint.name}': {e}",
                blueprint_name=blueprint.name
            ) from e
        registered.append(blueprint.name)

    logger.info("blueprints_registered", blueprints=registered)
    return registered
