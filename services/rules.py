"""
Rule sets for the user endpoints.

Built once at import time and shared read-only. The registration rules are
the exception: they need an email lookup, so ``build_registration_rules``
takes it as a parameter and each UserService binds its own repository.
"""

import re

from models.dto import UserDataTransfer, UserRegistrationRequest, UserVipRequest
from validation import FieldRule, RecordRule, RuleSet
from validation.rules import ExistsLookup

# Local part, @ and one or more domain labels; a single-label host such as "localhost" is accepted
EMAIL_PATTERN = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?)*")

NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 50
MIN_AGE = 18
MAX_AGE = 150
PASSWORD_MIN_LENGTH = 8

# Allowed discount percentage (inclusive) per VIP tier
VIP_DISCOUNT_BANDS = {
    0: (0, 0),    # regular
    1: (5, 10),   # silver
    2: (10, 20),  # gold
    3: (20, 30),  # platinum
}
PLATINUM_TIER = 3
PLATINUM_MIN_AGE = 30
MAX_DISCOUNT_RATE = 100

EMAIL_TAKEN_MESSAGE = "Email is already registered"

NAME_RULES = (
    FieldRule.not_blank('name', "Name must not be blank"),
    FieldRule.length('name', "Name must be between 2 and 50 characters",
                     min_length=NAME_MIN_LENGTH, max_length=NAME_MAX_LENGTH),
)

EMAIL_RULES = (
    FieldRule.not_blank('email', "Email must not be blank"),
    FieldRule.pattern('email', EMAIL_PATTERN, "Email format is invalid"),
)

AGE_RULES = (
    FieldRule.required('age', "Age must not be null"),
    FieldRule.range('age', "Age must be at least 18", min_value=MIN_AGE),
    FieldRule.range('age', "Age must be at most 150", max_value=MAX_AGE),
)

PASSWORD_RULES = (
    FieldRule.not_blank('password', "Password must not be blank"),
    FieldRule.length('password', "Password must be at least 8 characters",
                     min_length=PASSWORD_MIN_LENGTH),
)

USER_ID_RULES = (
    FieldRule.required('user_id', "User ID must not be null"),
)


def vip_discount_matches_level(record) -> bool:
    """Discount rate lies in the band of the record's VIP tier; unknown tiers fail."""
    if record.vip_level is None or record.discount_rate is None:
        return True
    band = VIP_DISCOUNT_BANDS.get(record.vip_level)
    if band is None:
        return False
    low, high = band
    return low <= record.discount_rate <= high


def platinum_age_allowed(record) -> bool:
    if record.vip_level is None or record.age is None:
        return True
    if record.vip_level == PLATINUM_TIER:
        return record.age >= PLATINUM_MIN_AGE
    return True


def discount_rate_in_range(record) -> bool:
    if record.discount_rate is None:
        return True
    return 0 <= record.discount_rate <= MAX_DISCOUNT_RATE


def build_registration_rules(email_exists: ExistsLookup) -> RuleSet:
    """Registration rules with uniqueness checked through ``email_exists``."""
    return RuleSet(
        name='user_registration',
        field_rules=(
            NAME_RULES
            + EMAIL_RULES
            + (FieldRule.unique('email', email_exists, EMAIL_TAKEN_MESSAGE),)
            + AGE_RULES
            + PASSWORD_RULES
        ),
        record_type=UserRegistrationRequest,
    )


USER_DATA_RULES = RuleSet(
    name='user_data',
    field_rules=USER_ID_RULES + NAME_RULES + EMAIL_RULES + AGE_RULES,
    record_type=UserDataTransfer,
)

VIP_RULES = RuleSet(
    name='user_vip',
    field_rules=USER_ID_RULES + NAME_RULES + AGE_RULES,
    record_rules=(
        RecordRule('validVipDiscount', vip_discount_matches_level,
                   "VIP level does not match the discount rate"),
        RecordRule('validPlatinumAge', platinum_age_allowed,
                   "Platinum tier is only available to members aged 30 or over"),
        RecordRule('validDiscountRange', discount_rate_in_range,
                   "Discount rate must be between 0 and 100"),
    ),
    record_type=UserVipRequest,
)

PROFILE_UPDATE_RULES = RuleSet(
    name='profile_update',
    field_rules=(
        FieldRule.not_blank('new_phone', "Phone number must not be blank"),
    ),
)
