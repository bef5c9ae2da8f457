"""
User Service

Business logic for user accounts: registration with rule validation and
email uniqueness, lookup of stored users for downstream services, and VIP
tier eligibility checks.

Every operation returns a ServiceResult. Rule violations come back as an
invalid result carrying the ValidationResult; lookup failures inside the
validator (CollaboratorFailure) are not caught here and reach the caller.
"""

from typing import Optional

import structlog
from sqlalchemy.orm import Session

from models.dto import UserDataTransfer, UserRegistrationRequest, UserResponse, UserVipRequest
from models.repository import UserRepository
from models.user import User
from services.base_service import BaseService, DatabaseError, NotFoundError, ServiceResult
from services.rules import EMAIL_TAKEN_MESSAGE, VIP_RULES, build_registration_rules
from services.validation_service import ValidationService
from validation import RuleKind, RuleSet, ValidationResult

logger = structlog.get_logger(__name__)


class UserService(BaseService):
    """
    Args:
        db_session: Optional injected session (see BaseService)
        user_repository: Repository used for persistence and the email lookup
        validation_service: ValidationService used for every rule check
        registration_rules: Override for the registration rule set; by default
            it is built around ``user_repository.exists_by_email``
    """

    def __init__(
        self,
        db_session: Optional[Session] = None,
        user_repository: Optional[UserRepository] = None,
        validation_service: Optional[ValidationService] = None,
        registration_rules: Optional[RuleSet] = None
    ) -> None:
        super().__init__(db_session)
        self.user_repository = user_repository or UserRepository(self.db_session)
        self.validation_service = validation_service or ValidationService()
        self.registration_rules = registration_rules or build_registration_rules(
            self.user_repository.exists_by_email
        )

    def register_user(self, request: UserRegistrationRequest) -> ServiceResult[UserResponse]:
        """
        Validate and persist a new user.

        Returns:
            success with the UserResponse, or invalid with the violations
        """
        validation = self.validation_service.check(request, self.registration_rules)
        if not validation.is_valid:
            return ServiceResult.invalid_result(validation)

        user = User(name=request.name, email=request.email, age=request.age)
        user.set_password(request.password)

        try:
            with self.transaction_scope():
                self.user_repository.save(user)
        except DatabaseError as e:
            if e.error_code != "INTEGRITY_ERROR":
                return ServiceResult.error_result(e)
            # Email claimed between the lookup and the insert
            conflict = ValidationResult(rule_set=self.registration_rules.name)
            conflict.add_violation('email', EMAIL_TAKEN_MESSAGE, RuleKind.UNIQUE)
            return ServiceResult.invalid_result(conflict)

        logger.info("user_registered", user_id=user.id)
        return ServiceResult.success_result(UserResponse.from_user(user))

    def get_user_data(self, user_id: int) -> ServiceResult[UserDataTransfer]:
        user = self.user_repository.find_by_id(user_id)
        if user is None:
            return ServiceResult.error_result(
                NotFoundError("User not found", error_code="USER_NOT_FOUND")
            )
        return ServiceResult.success_result(UserDataTransfer.from_user(user))

    def validate_vip(self, request: UserVipRequest) -> ServiceResult[str]:
        """Check a VIP tier application; success carries the confirmation text."""
        validation = self.validation_service.check(request, VIP_RULES)
        if not validation.is_valid:
            return ServiceResult.invalid_result(validation)

        return ServiceResult.success_result(
            f"Validation passed! User: {request.name}, "
            f"VIP level: {request.vip_level}, discount rate: {request.discount_rate}%"
        )
