"""
Layered authorization: identity, then account status, then role.

The checks run in a fixed order so a blocked administrator is told their
account is not active rather than that a role is missing.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Union

from access_gate.models.user import UserRole, UserStatus


@dataclass(frozen=True)
class Identity:
    user_id: int
    role: UserRole
    status: UserStatus


class ForbiddenReason(str, Enum):
    ACCOUNT_NOT_ACTIVE = "account not active"
    ROLE_REQUIRED = "role required"


@dataclass(frozen=True)
class Allowed:
    user_id: int
    role: UserRole


@dataclass(frozen=True)
class Unauthenticated:
    pass


@dataclass(frozen=True)
class Forbidden:
    reason: ForbiddenReason


Outcome = Union[Allowed, Unauthenticated, Forbidden]
Check = Callable[[Optional[Identity], Optional[UserRole]], Optional[Outcome]]


def _check_identity(
    identity: Optional[Identity], required_role: Optional[UserRole]
) -> Optional[Outcome]:
    if identity is None:
        return Unauthenticated()
    return None


def _check_status(
    identity: Optional[Identity], required_role: Optional[UserRole]
) -> Optional[Outcome]:
    if identity.status != UserStatus.ACTIVE:
        return Forbidden(ForbiddenReason.ACCOUNT_NOT_ACTIVE)
    return None


def _check_role(
    identity: Optional[Identity], required_role: Optional[UserRole]
) -> Optional[Outcome]:
    if required_role is not None and identity.role != required_role:
        return Forbidden(ForbiddenReason.ROLE_REQUIRED)
    return None


CHECKS: tuple[Check, ...] = (_check_identity, _check_status, _check_role)


def authorize(
    identity: Optional[Identity],
    required_role: Optional[UserRole] = None,
) -> Outcome:
    for check in CHECKS:
        outcome = check(identity, required_role)
        if outcome is not None:
            return outcome
    return Allowed(user_id=identity.user_id, role=identity.role)
