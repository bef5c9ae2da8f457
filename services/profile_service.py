"""
Profile Service

Updates the contact details of an existing user. The user snapshot handed in
by the caller is validated again here with USER_DATA_RULES: the service does
not trust that the record it receives is complete.
"""

from typing import Optional

import structlog
from sqlalchemy.orm import Session

from models.dto import UserDataTransfer
from models.repository import UserRepository
from services.base_service import BaseService, NotFoundError, ServiceResult
from services.rules import USER_DATA_RULES
from services.validation_service import ValidationService

logger = structlog.get_logger(__name__)


class ProfileService(BaseService):

    def __init__(
        self,
        db_session: Optional[Session] = None,
        user_repository: Optional[UserRepository] = None,
        validation_service: Optional[ValidationService] = None
    ) -> None:
        super().__init__(db_session)
        self.user_repository = user_repository or UserRepository(self.db_session)
        self.validation_service = validation_service or ValidationService()

    def update_profile(self, user_data: UserDataTransfer, new_phone: str) -> ServiceResult[str]:
        """
        Store a new phone number for the user described by ``user_data``.

        Args:
            user_data: Snapshot of the stored user; must satisfy USER_DATA_RULES
            new_phone: Phone number, already checked as non-blank by the caller

        Returns:
            success with a confirmation message, invalid when ``user_data``
            breaks a rule, or error when the user no longer exists
        """
        validation = self.validation_service.check(user_data, USER_DATA_RULES)
        if not validation.is_valid:
            return ServiceResult.invalid_result(validation)

        with self.transaction_scope():
            user = self.user_repository.find_by_id(user_data.user_id)
            if user is None:
                return ServiceResult.error_result(
                    NotFoundError("User not found", error_code="USER_NOT_FOUND")
                )
            user.phone = new_phone

        logger.info("profile_updated", user_id=user_data.user_id)
        return ServiceResult.success_result(
            f"Successfully updated profile for user {user_data.name}, new phone: {new_phone}"
        )
