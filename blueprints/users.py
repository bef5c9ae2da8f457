"""
User API Blueprint

Routes under ``/api/users``:

- ``POST /register``            register a new user (201 with the stored user)
- ``PUT  /<user_id>/profile``   update the phone number of a stored user
- ``POST /vip/validate``        check a VIP tier application

Each view loads its input with a marshmallow schema, hands the record to a
service and maps the ServiceResult to a response explicitly: rule violations
become a 400 with one message per wire key, a missing user a 404, and lookup
or rule configuration failures a generic 500.
"""

from functools import wraps

import structlog
from flask import Blueprint, request
from marshmallow import ValidationError as SchemaValidationError

from blueprints.schemas import (
    ProfileUpdateArgsSchema,
    UserDataSchema,
    UserRegistrationSchema,
    UserResponseSchema,
    UserVipSchema,
    wire_keys,
)
from services import NotFoundError, ProfileService, ServiceResult, UserService, ValidationService
from services.rules import PROFILE_UPDATE_RULES
from utils.response import (
    HTTP_CREATED,
    HTTP_NOT_FOUND,
    create_error_response,
    json_response,
    message_response,
    schema_error_response,
    system_error_response,
    validation_error_response,
)
from validation import CollaboratorFailure, ConfigurationError

logger = structlog.get_logger(__name__)

users_bp = Blueprint('users', __name__, url_prefix='/api/users')

registration_schema = UserRegistrationSchema()
vip_schema = UserVipSchema()
profile_args_schema = ProfileUpdateArgsSchema()
user_response_schema = UserResponseSchema()

REGISTRATION_KEYS = wire_keys(registration_schema)
VIP_KEYS = wire_keys(vip_schema)
USER_DATA_KEYS = wire_keys(UserDataSchema())
PROFILE_ARGS_KEYS = wire_keys(profile_args_schema)

NOT_A_JSON_OBJECT = "Request body must be a JSON object"


def handle_validation_failures(func):
    """
    Turn validator failures that are not rule violations into a 500.

    CollaboratorFailure and ConfigurationError are logged by the
    ValidationService; here they only become the generic system error body.
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except (CollaboratorFailure, ConfigurationError) as e:
            logger.warning("request_aborted", reason=e.error_code)
            return system_error_response()

    return wrapper


def _load_json(schema):
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise SchemaValidationError({'_schema': [NOT_A_JSON_OBJECT]})
    return schema.load(payload)


def _failure_response(result: ServiceResult, key_map):
    if result.is_invalid:
        return validation_error_response(result.validation, key_map)
    if isinstance(result.error, NotFoundError):
        return create_error_response(result.error.message, HTTP_NOT_FOUND)
    logger.error("service_error", error_code=result.error.error_code, error=result.error.message)
    return system_error_response()


@users_bp.route('/register', methods=['POST'])
@handle_validation_failures
def register_user():
    """Register a new user; email must not be registered yet."""
    try:
        registration = _load_json(registration_schema)
    except SchemaValidationError as e:
        return schema_error_response(e.messages)

    result = UserService().register_user(registration)
    if not result.success:
        return _failure_response(result, REGISTRATION_KEYS)

    return json_response(user_response_schema.dump(result.data), HTTP_CREATED)


@users_bp.route('/<int:user_id>/profile', methods=['PUT'])
@handle_validation_failures
def update_profile(user_id: int):
    """Update the phone number of a stored user (``?newPhone=...``)."""
    try:
        args = profile_args_schema.load(request.args)
    except SchemaValidationError as e:
        return schema_error_response(e.messages)

    args_check = ValidationService().check(args, PROFILE_UPDATE_RULES)
    if not args_check.is_valid:
        return validation_error_response(args_check, PROFILE_ARGS_KEYS)

    lookup = UserService().get_user_data(user_id)
    if not lookup.success:
        return _failure_response(lookup, USER_DATA_KEYS)

    result = ProfileService().update_profile(lookup.data, args['new_phone'])
    if not result.success:
        return _failure_response(result, USER_DATA_KEYS)

    return message_response(result.data)


@users_bp.route('/vip/validate', methods=['POST'])
@handle_validation_failures
def validate_vip():
    """Check a VIP application; a missing tier or discount rate counts as 0."""
    try:
        vip_request = _load_json(vip_schema)
    except SchemaValidationError as e:
        return schema_error_response(e.messages)

    result = UserService().validate_vip(vip_request)
    if not result.success:
        return _failure_response(result, VIP_KEYS)

    return message_response(result.data)
