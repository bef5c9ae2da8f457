"""
Request and response records.

Immutable dataclasses passed between the HTTP layer, the services and the
validator. They carry no constraints themselves; the rule sets in
``services.rules`` declare what a valid record looks like.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from models.user import User


@dataclass(frozen=True)
class UserRegistrationRequest:
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None
    password: Optional[str] = None


@dataclass(frozen=True)
class UserDataTransfer:
    """Snapshot of a stored user handed from UserService to ProfileService."""
    user_id: Optional[int] = None
    name: Optional[str] = None
    email: Optional[str] = None
    age: Optional[int] = None

    @classmethod
    def from_user(cls, user: Optional[User]) -> Optional['UserDataTransfer']:
        if user is None:
            return None
        return cls(user_id=user.id, name=user.name, email=user.email, age=user.age)


@dataclass(frozen=True)
class UserVipRequest:
    """
    VIP tier application.

    ``vip_level`` is 0 (regular), 1 (silver), 2 (gold) or 3 (platinum).
    A missing tier or discount rate is stored as 0.
    """
    user_id: Optional[int] = None
    name: Optional[str] = None
    age: Optional[int] = None
    vip_level: Optional[int] = 0
    discount_rate: Optional[int] = 0

    def __post_init__(self) -> None:
        if self.vip_level is None:
            object.__setattr__(self, 'vip_level', 0)
        if self.discount_rate is None:
            object.__setattr__(self, 'discount_rate', 0)


@dataclass(frozen=True)
class UserResponse:
    id: int
    name: str
    email: str
    age: int
    created_at: datetime

    @classmethod
    def from_user(cls, user: User) -> 'UserResponse':
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            age=user.age,
            created_at=user.created_at,
        )
