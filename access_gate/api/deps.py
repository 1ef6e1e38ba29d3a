from typing import Optional

from fastapi import Cookie, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.config import settings
from access_gate.core.db import get_session
from access_gate.models.user import UserRole
from access_gate.services.auth import resolve_identity
from access_gate.services.email import Mailer, get_mailer
from access_gate.services.errors import AuthenticationError, ForbiddenError
from access_gate.services.guard import (Allowed, Forbidden, ForbiddenReason,
                                        Identity, Outcome, Unauthenticated,
                                        authorize)
from access_gate.services.notifications import NotificationDispatcher


async def get_identity(
    session: AsyncSession = Depends(get_session),
    token: Optional[str] = Cookie(None, alias=settings.auth_cookie_name),
) -> Optional[Identity]:
    return await resolve_identity(session, token)


def enforce(
    outcome: Outcome, required_role: Optional[UserRole] = None
) -> Allowed:
    if isinstance(outcome, Unauthenticated):
        raise AuthenticationError('Unauthorized: No session')
    if isinstance(outcome, Forbidden):
        if outcome.reason == ForbiddenReason.ACCOUNT_NOT_ACTIVE:
            raise ForbiddenError('Forbidden: account not active')
        raise ForbiddenError(
            f'Forbidden: {required_role.value} role required'
        )
    return outcome


async def require_user(
    identity: Optional[Identity] = Depends(get_identity),
) -> Allowed:
    return enforce(authorize(identity))


async def require_admin(
    identity: Optional[Identity] = Depends(get_identity),
) -> Allowed:
    return enforce(authorize(identity, UserRole.ADMIN), UserRole.ADMIN)


def get_dispatcher(
    mailer: Mailer = Depends(get_mailer),
) -> NotificationDispatcher:
    return NotificationDispatcher(mailer)
