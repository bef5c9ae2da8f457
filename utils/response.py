"""
Flask Response Utilities

Standardized JSON responses for the user API. Every error leaves the
application in the same shape::

    {"message": "<summary>", "errors": {"<key>": "<message>", ...}}

Validation outcomes are mapped explicitly by the blueprints through the
helpers below; nothing intercepts a ValidationResult globally.

Key Features:
- ``validation_error_response`` for rule violations, with field keys renamed
  to their wire names
- ``schema_error_response`` for payloads marshmallow could not load
- ``system_error_response`` for lookup and configuration failures, which
  never expose internal details
- Security headers applied to every response
"""

from typing import Any, Mapping, Optional

import structlog
from flask import Response, has_request_context, jsonify, make_response, request

from validation import ValidationResult

logger = structlog.get_logger(__name__)

# HTTP Status Code Constants for consistency
HTTP_OK = 200
HTTP_CREATED = 201
HTTP_BAD_REQUEST = 400
HTTP_NOT_FOUND = 404
HTTP_METHOD_NOT_ALLOWED = 405
HTTP_INTERNAL_SERVER_ERROR = 500

VALIDATION_FAILED_MESSAGE = "Validation failed"
SYSTEM_ERROR_MESSAGE = "A system error occurred, please try again later"

SECURITY_HEADERS = {
    'X-Content-Type-Options': 'nosniff',
    'X-Frame-Options': 'DENY',
    'Referrer-Policy': 'strict-origin-when-cross-origin',
}


def add_security_headers(response: Response) -> Response:
    for header, value in SECURITY_HEADERS.items():
        response.headers.setdefault(header, value)
    return response


def json_response(payload: Any, status_code: int = HTTP_OK) -> Response:
    return make_response(jsonify(payload), status_code)


def message_response(message: str, status_code: int = HTTP_OK) -> Response:
    """Plain confirmation body: ``{"message": ...}``."""
    return json_response({'message': message}, status_code)


def create_error_response(
    message: str,
    status_code: int = HTTP_BAD_REQUEST,
    errors: Optional[Mapping[str, str]] = None
) -> Response:
    """
    Build the common error body.

    Args:
        message: Summary of what went wrong
        status_code: HTTP status code
        errors: Key -> message details; empty when there is nothing per-field

    Returns:
        Flask Response object with JSON error data
    """
    logger.warning(
        "error_response",
        status_code=status_code,
        error_message=message,
        error_keys=sorted(errors or {}),
        endpoint=request.endpoint if has_request_context() else None,
    )
    return json_response({'message': message, 'errors': dict(errors or {})}, status_code)


def validation_error_response(
    result: ValidationResult,
    key_map: Optional[Mapping[str, str]] = None
) -> Response:
    """
    400 response for a failed ValidationResult.

    Args:
        result: Result with at least one violation
        key_map: Record field name -> wire name; keys not listed (record rule
            names among them) are kept as they are
    """
    key_map = key_map or {}
    errors = {key_map.get(key, key): message for key, message in result.errors.items()}
    return create_error_response(VALIDATION_FAILED_MESSAGE, HTTP_BAD_REQUEST, errors)


def schema_error_response(messages: Any) -> Response:
    """
    400 response for a payload marshmallow rejected while loading.

    marshmallow reports a list of messages per key; only the first is kept
    so the body matches the one-message-per-key shape of rule violations.
    """
    if not isinstance(messages, dict):
        messages = {'_schema': messages}
    return create_error_response(
        VALIDATION_FAILED_MESSAGE,
        HTTP_BAD_REQUEST,
        {str(key): _first_message(value) for key, value in messages.items()},
    )


def system_error_response() -> Response:
    return create_error_response(SYSTEM_ERROR_MESSAGE, HTTP_INTERNAL_SERVER_ERROR)


def _first_message(value: Any) -> str:
    if isinstance(value, (list, tuple)) and value:
        return _first_message(value[0])
    if isinstance(value, dict) and value:
        return _first_message(next(iter(value.values())))
    return str(value)
