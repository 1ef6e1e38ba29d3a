import pytest

from access_gate.models.user import UserRole, UserStatus
from access_gate.services.guard import (CHECKS, Allowed, Forbidden,
                                        ForbiddenReason, Identity,
                                        Unauthenticated, authorize)


def test_missing_identity_is_unauthenticated():
    assert authorize(None) == Unauthenticated()
    assert authorize(None, UserRole.ADMIN) == Unauthenticated()


@pytest.mark.parametrize('status', [UserStatus.PENDING, UserStatus.BLOCKED])
@pytest.mark.parametrize('role', [UserRole.USER, UserRole.ADMIN])
def test_inactive_account_is_forbidden(status, role):
    identity = Identity(user_id=7, role=role, status=status)
    expected = Forbidden(ForbiddenReason.ACCOUNT_NOT_ACTIVE)
    assert authorize(identity) == expected
    assert authorize(identity, UserRole.ADMIN) == expected


def test_blocked_user_reports_status_before_role():
    identity = Identity(
        user_id=7, role=UserRole.USER, status=UserStatus.BLOCKED
    )
    outcome = authorize(identity, UserRole.ADMIN)
    assert outcome.reason == ForbiddenReason.ACCOUNT_NOT_ACTIVE


def test_missing_role_is_forbidden():
    identity = Identity(
        user_id=7, role=UserRole.USER, status=UserStatus.ACTIVE
    )
    assert authorize(identity, UserRole.ADMIN) == Forbidden(
        ForbiddenReason.ROLE_REQUIRED
    )


def test_active_identity_is_allowed():
    user = Identity(user_id=7, role=UserRole.USER, status=UserStatus.ACTIVE)
    admin = Identity(
        user_id=1, role=UserRole.ADMIN, status=UserStatus.ACTIVE
    )

    assert authorize(user) == Allowed(user_id=7, role=UserRole.USER)
    assert authorize(admin) == Allowed(user_id=1, role=UserRole.ADMIN)
    assert authorize(admin, UserRole.ADMIN) == Allowed(
        user_id=1, role=UserRole.ADMIN
    )


def test_checks_run_identity_then_status_then_role():
    assert [check.__name__ for check in CHECKS] == [
        '_check_identity', '_check_status', '_check_role'
    ]
    for check in CHECKS:
        assert check(
            Identity(user_id=1, role=UserRole.ADMIN,
                     status=UserStatus.ACTIVE),
            UserRole.ADMIN,
        ) is None
