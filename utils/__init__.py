"""Shared Flask helpers: structured logging set-up and JSON response builders."""

from .logging import init_logging
from .response import (
    create_error_response,
    message_response,
    schema_error_response,
    system_error_response,
    validation_error_response,
)

__all__ = [
    'init_logging',
    'create_error_response',
    'message_response',
    'schema_error_response',
    'system_error_response',
    'validation_error_response',
]
