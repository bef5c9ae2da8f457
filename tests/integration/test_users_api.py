"""
User API Integration Tests

Drives the ``/api/users`` blueprint through the Flask test client against the
in-memory database, checking status codes and the common error body::

    {"message": "...", "errors": {"<wire key>": "<message>"}}
"""

from http import HTTPStatus
from unittest.mock import patch

import pytest

from models.repository import UserRepository
from models.user import User
from utils.response import SYSTEM_ERROR_MESSAGE, VALIDATION_FAILED_MESSAGE


REGISTER_URL = '/api/users/register'
VIP_URL = '/api/users/vip/validate'


def profile_url(user_id):
    return f'/api/users/{user_id}/profile'


@pytest.fixture
def registration_payload():
    return {
        'name': "Zhang San",
        'email': "zhangsan@example.com",
        'age': 25,
        'password': "secret-password",
    }


class TestRegisterEndpoint:

    def test_created_user_is_returned(self, client, registration_payload):
        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.CREATED
        body = response.get_json()
        assert body['email'] == "zhangsan@example.com"
        assert body['age'] == 25
        assert isinstance(body['id'], int)
        assert 'createdAt' in body
        assert 'password' not in body

    def test_all_violations_are_reported_together(self, client):
        response = client.post(REGISTER_URL, json={
            'name': "W", 'email': "invalid", 'age': 15, 'password': "123",
        })

        assert response.status_code == HTTPStatus.BAD_REQUEST
        body = response.get_json()
        assert body['message'] == VALIDATION_FAILED_MESSAGE
        assert body['errors'] == {
            'name': "Name must be between 2 and 50 characters",
            'email': "Email format is invalid",
            'age': "Age must be at least 18",
            'password': "Password must be at least 8 characters",
        }

    def test_single_violation(self, client, registration_payload):
        registration_payload['age'] = 16

        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.get_json()['errors'] == {'age': "Age must be at least 18"}

    def test_missing_fields_use_presence_messages(self, client):
        response = client.post(REGISTER_URL, json={})

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()['errors']['age'] == "Age must not be null"

    def test_registered_email_is_rejected(self, client, user_factory, registration_payload):
        user_factory(email="zhangsan@example.com")

        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()['errors'] == {'email': "Email is already registered"}

    def test_second_registration_with_same_email_fails(self, client, registration_payload):
        assert client.post(REGISTER_URL, json=registration_payload).status_code == HTTPStatus.CREATED

        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert UserRepository().count() == 1

    def test_non_integer_age_is_a_schema_error(self, client, registration_payload):
        registration_payload['age'] = "abc"

        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert list(response.get_json()['errors']) == ['age']

    @pytest.mark.parametrize("age", [150.9, 17.9, 25.0, "25"])
    def test_non_integral_age_is_not_truncated(self, client, registration_payload, age):
        registration_payload['age'] = age

        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()['errors'] == {'age': "Not a valid integer."}
        assert UserRepository().count() == 0

    @pytest.mark.parametrize("kwargs", [
        {'json': ["not", "an", "object"]},
        {'data': "{broken", 'content_type': 'application/json'},
        {'data': "name=x", 'content_type': 'application/x-www-form-urlencoded'},
    ])
    def test_body_must_be_a_json_object(self, client, kwargs):
        response = client.post(REGISTER_URL, **kwargs)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()['errors'] == {'_schema': "Request body must be a JSON object"}

    def test_lookup_failure_is_a_system_error(self, client, registration_payload):
        with patch.object(UserRepository, 'exists_by_email', side_effect=ConnectionError("down")):
            response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
        assert response.get_json() == {'message': SYSTEM_ERROR_MESSAGE, 'errors': {}}
        assert UserRepository().count() == 0

    def test_unknown_keys_are_ignored(self, client, registration_payload):
        registration_payload['role'] = "admin"

        response = client.post(REGISTER_URL, json=registration_payload)

        assert response.status_code == HTTPStatus.CREATED


class TestProfileEndpoint:

    def test_phone_is_updated(self, client, user_factory, db_session):
        user = user_factory(name="Wang Wu")

        response = client.put(profile_url(user.id), query_string={'newPhone': "13800000000"})

        assert response.status_code == HTTPStatus.OK
        assert response.get_json() == {
            'message': "Successfully updated profile for user Wang Wu, new phone: 13800000000"
        }
        db_session.expire_all()
        assert db_session.get(User, user.id).phone == "13800000000"

    @pytest.mark.parametrize("query", [{}, {'newPhone': ""}, {'newPhone': "   "}])
    def test_phone_must_not_be_blank(self, client, user_factory, query):
        user = user_factory()

        response = client.put(profile_url(user.id), query_string=query)

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()['errors'] == {'newPhone': "Phone number must not be blank"}

    def test_unknown_user(self, client):
        response = client.put(profile_url(999), query_string={'newPhone': "13800000000"})

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.get_json() == {'message': "User not found", 'errors': {}}

    @pytest.mark.parametrize("user_id", [2 ** 63, 99999999999999999999])
    def test_id_beyond_column_range_is_unknown_user(self, client, user_id):
        response = client.put(profile_url(user_id), query_string={'newPhone': "13800000000"})

        assert response.status_code == HTTPStatus.NOT_FOUND
        assert response.get_json() == {'message': "User not found", 'errors': {}}


class TestVipEndpoint:

    def test_fractional_tier_is_a_schema_error(self, client):
        response = client.post(VIP_URL, json={
            'userId': 1, 'name': "Li Si", 'age': 40, 'vipLevel': 1.5, 'discountRate': 7.5,
        })

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert set(response.get_json()['errors']) == {'vipLevel', 'discountRate'}

    def test_eligible_application(self, client):
        response = client.post(VIP_URL, json={
            'userId': 1, 'name': "Li Si", 'age': 35, 'vipLevel': 3, 'discountRate': 25,
        })

        assert response.status_code == HTTPStatus.OK
        assert response.get_json()['message'] == (
            "Validation passed! User: Li Si, VIP level: 3, discount rate: 25%"
        )

    def test_young_platinum_member(self, client):
        response = client.post(VIP_URL, json={
            'userId': 1, 'name': "Li Si", 'age': 25, 'vipLevel': 3, 'discountRate': 25,
        })

        assert response.status_code == HTTPStatus.BAD_REQUEST
        assert response.get_json()['errors'] == {
            'validPlatinumAge': "Platinum tier is only available to members aged 30 or over"
        }

    def test_field_errors_use_wire_keys(self, client):
        response = client.post(VIP_URL, json={'name': "Li Si", 'age': 40})

        assert response.get_json()['errors'] == {'userId': "User ID must not be null"}

    def test_missing_tier_counts_as_regular(self, client):
        response = client.post(VIP_URL, json={'userId': 7, 'name': "Li Si", 'age': 20})

        assert response.get_json()['message'] == (
            "Validation passed! User: Li Si, VIP level: 0, discount rate: 0%"
        )

    def test_mismatched_discount(self, client):
        response = client.post(VIP_URL, json={
            'userId': 1, 'name': "Li Si", 'age': 40, 'vipLevel': 1, 'discountRate': 50,
        })

        assert response.get_json()['errors'] == {
            'validVipDiscount': "VIP level does not match the discount rate"
        }
