"""
Unit tests for the service layer.

UserService, ProfileService and ValidationService run against the testing
application's in-memory database. Lookup failures and database errors are
injected with unittest.mock.
"""

from dataclasses import fields
from unittest.mock import Mock, patch

import pytest
from sqlalchemy.exc import OperationalError

from models.dto import UserDataTransfer, UserRegistrationRequest, UserResponse, UserVipRequest
from models.repository import UserRepository
from models.user import User
from services import (
    BaseService,
    DatabaseError,
    NotFoundError,
    ProfileService,
    ServiceResult,
    UserService,
    ValidationService,
)
from services.rules import PROFILE_UPDATE_RULES, build_registration_rules
from validation import CollaboratorFailure, ConfigurationError, ValidationResult


@pytest.fixture
def user_service(db_session):
    return UserService(db_session=db_session)


@pytest.fixture
def profile_service(db_session):
    return ProfileService(db_session=db_session)


@pytest.fixture
def registration():
    return UserRegistrationRequest(
        name="Zhang San",
        email="zhangsan@example.com",
        age=25,
        password="secret-password",
    )


class TestServiceResult:

    def test_success_cannot_carry_errors(self):
        with pytest.raises(ValueError):
            ServiceResult(success=True, error=NotFoundError("missing"))

    def test_failure_needs_a_reason(self):
        with pytest.raises(ValueError):
            ServiceResult(success=False)

    def test_invalid_result_exposes_validation(self):
        validation = ValidationResult(rule_set='demo')
        validation.add_violation('name', "Name must not be blank")

        result = ServiceResult.invalid_result(validation)

        assert not result.success
        assert result.is_invalid
        assert result.error is None

    def test_carries_only_outcome_fields(self):
        assert [f.name for f in fields(ServiceResult)] == ['success', 'data', 'error', 'validation']


class TestBaseService:

    def test_requires_session_outside_app_context(self):
        with pytest.raises(RuntimeError):
            BaseService()

    def test_uses_injected_session(self):
        session = Mock()

        assert BaseService(db_session=session).db_session is session

    def test_database_failure_becomes_database_error(self):
        session = Mock()
        session.commit.side_effect = OperationalError("COMMIT", {}, Exception("disk I/O error"))
        service = BaseService(db_session=session)

        with pytest.raises(DatabaseError) as exc_info:
            with service.transaction_scope():
                pass

        assert exc_info.value.error_code == "TRANSACTION_FAILED"
        session.rollback.assert_called_once()

    def test_other_exceptions_roll_back_and_propagate(self):
        session = Mock()
        service = BaseService(db_session=session)

        with pytest.raises(KeyError):
            with service.transaction_scope():
                raise KeyError("boom")

        session.rollback.assert_called_once()
        session.commit.assert_not_called()


class TestUserRegistration:

    def test_registers_valid_user(self, user_service, registration, db_session):
        result = user_service.register_user(registration)

        assert result.success
        assert isinstance(result.data, UserResponse)
        assert result.data.email == "zhangsan@example.com"
        stored = db_session.get(User, result.data.id)
        assert stored.check_password("secret-password")
        assert stored.password_hash != "secret-password"

    def test_invalid_request_is_not_persisted(self, user_service, db_session):
        request = UserRegistrationRequest(name="W", email="invalid", age=15, password="123")

        result = user_service.register_user(request)

        assert result.is_invalid
        assert set(result.validation.errors) == {'name', 'email', 'age', 'password'}
        assert UserRepository(db_session).count() == 0

    def test_duplicate_email_is_rejected(self, user_service, user_factory, registration):
        user_factory(email="zhangsan@example.com")

        result = user_service.register_user(registration)

        assert result.validation.errors == {'email': "Email is already registered"}

    def test_insert_conflict_reports_taken_email(self, db_session, user_factory, registration):
        user_factory(email="zhangsan@example.com")
        # Lookup answers "free" as if another request claimed the email after it ran
        service = UserService(
            db_session=db_session,
            registration_rules=build_registration_rules(lambda email: False),
        )

        result = service.register_user(registration)

        assert result.is_invalid
        assert result.validation.errors == {'email': "Email is already registered"}

    def test_lookup_failure_propagates(self, db_session, registration):
        repository = UserRepository(db_session)
        with patch.object(repository, 'exists_by_email', side_effect=ConnectionError("down")):
            service = UserService(db_session=db_session, user_repository=repository)

            with pytest.raises(CollaboratorFailure):
                service.register_user(registration)

        assert repository.count() == 0

    def test_other_database_errors_become_error_results(self, user_service, registration):
        failure = DatabaseError("Transaction failed", error_code="TRANSACTION_FAILED")
        with patch.object(UserRepository, 'save', side_effect=failure):
            result = user_service.register_user(registration)

        assert not result.success
        assert result.error is failure


class TestUserData:

    def test_returns_snapshot_of_stored_user(self, user_service, user_factory):
        user = user_factory(name="Li Si", age=33)

        result = user_service.get_user_data(user.id)

        assert result.success
        assert result.data == UserDataTransfer(user_id=user.id, name="Li Si", email=user.email, age=33)

    def test_missing_user_is_not_found(self, user_service):
        result = user_service.get_user_data(999)

        assert isinstance(result.error, NotFoundError)
        assert result.error.error_code == "USER_NOT_FOUND"


class TestVipValidation:

    def test_eligible_application_is_confirmed(self, user_service):
        request = UserVipRequest(user_id=1, name="Li Si", age=35, vip_level=2, discount_rate=15)

        result = user_service.validate_vip(request)

        assert result.data == "Validation passed! User: Li Si, VIP level: 2, discount rate: 15%"

    def test_young_platinum_member_is_rejected(self, user_service):
        request = UserVipRequest(user_id=1, name="Li Si", age=25, vip_level=3, discount_rate=25)

        result = user_service.validate_vip(request)

        assert list(result.validation.errors) == ['validPlatinumAge']


class TestProfileUpdate:

    def test_stores_new_phone(self, profile_service, user_factory, db_session):
        user = user_factory(name="Wang Wu")

        result = profile_service.update_profile(UserDataTransfer.from_user(user), "13800000000")

        assert result.data == "Successfully updated profile for user Wang Wu, new phone: 13800000000"
        assert db_session.get(User, user.id).phone == "13800000000"

    def test_incomplete_snapshot_is_invalid(self, profile_service):
        snapshot = UserDataTransfer(user_id=None, name="Wang Wu", email="wang@example.com", age=30)

        result = profile_service.update_profile(snapshot, "13800000000")

        assert result.validation.errors == {'user_id': "User ID must not be null"}

    def test_vanished_user_is_not_found(self, profile_service):
        snapshot = UserDataTransfer(user_id=404, name="Wang Wu", email="wang@example.com", age=30)

        result = profile_service.update_profile(snapshot, "13800000000")

        assert isinstance(result.error, NotFoundError)


class TestValidationService:

    def test_returns_validator_result(self):
        result = ValidationService().check({'new_phone': ""}, PROFILE_UPDATE_RULES)

        assert result.errors == {'new_phone': "Phone number must not be blank"}

    def test_reraises_configuration_errors(self):
        with pytest.raises(ConfigurationError):
            ValidationService().check({}, PROFILE_UPDATE_RULES)

    def test_delegates_to_injected_validator(self):
        validator = Mock()
        validator.validate.return_value = ValidationResult(rule_set='profile_update')

        result = ValidationService(validator).check({'new_phone': "1"}, PROFILE_UPDATE_RULES)

        assert result.is_valid
        validator.validate.assert_called_once_with({'new_phone': "1"}, PROFILE_UPDATE_RULES)
