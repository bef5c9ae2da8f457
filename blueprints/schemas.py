"""
Request and response schemas for the user API.

Request schemas only coerce types and rename wire keys (camelCase) to record
fields (snake_case). They deliberately carry no constraints: rule checking
belongs to the rule sets in ``services.rules``, so a missing or null value
loads as None and is reported by the rules with their own messages.
"""

from typing import Dict

from marshmallow import EXCLUDE, Schema, post_load
from marshmallow import fields as ma_fields

from models.dto import UserRegistrationRequest, UserVipRequest


class RequestSchema(Schema):
    """Base for request payloads: unknown keys are dropped."""

    class Meta:
        unknown = EXCLUDE


def _optional_str(**kwargs) -> ma_fields.Str:
    return ma_fields.Str(load_default=None, allow_none=True, **kwargs)


def _optional_int(**kwargs) -> ma_fields.Int:
    return ma_fields.Int(strict=True, load_default=None, allow_none=True, **kwargs)


class UserRegistrationSchema(RequestSchema):
    name = _optional_str()
    email = _optional_str()
    age = _optional_int()
    password = _optional_str(load_only=True)

    @post_load
    def make_request(self, data, **kwargs) -> UserRegistrationRequest:
        return UserRegistrationRequest(**data)


class UserVipSchema(RequestSchema):
    user_id = _optional_int(data_key='userId')
    name = _optional_str()
    age = _optional_int()
    vip_level = _optional_int(data_key='vipLevel')
    discount_rate = _optional_int(data_key='discountRate')

    @post_load
    def make_request(self, data, **kwargs) -> UserVipRequest:
        return UserVipRequest(**data)


class UserDataSchema(Schema):
    """Wire form of a UserDataTransfer; used to name its fields in error bodies."""
    user_id = ma_fields.Int(data_key='userId')
    name = ma_fields.Str()
    email = ma_fields.Str()
    age = ma_fields.Int()


class ProfileUpdateArgsSchema(RequestSchema):
    """Query string of the profile update endpoint."""
    new_phone = _optional_str(data_key='newPhone')


class UserResponseSchema(Schema):
    id = ma_fields.Int()
    name = ma_fields.Str()
    email = ma_fields.Str()
    age = ma_fields.Int()
    created_at = ma_fields.DateTime(data_key='createdAt')


def wire_keys(schema: Schema) -> Dict[str, str]:
    """Map each record field name to the key it uses on the wire."""
    return {name: field.data_key or name for name, field in schema.fields.items()}
