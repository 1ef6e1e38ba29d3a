import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.constants import MSG_SELF_LOCKOUT
from access_gate.core.db import atomic
from access_gate.crud.session import session_registry
from access_gate.crud.user import crud_user
from access_gate.models.user import User, UserRole, UserStatus
from access_gate.services.errors import ValidationError
from access_gate.services.guard import Allowed

logger = logging.getLogger('access_gate')


@dataclass
class CreateOrGetResult:
    user: User
    created: bool


def check_self_lockout(
    target_id: int,
    actor: Allowed,
    role: Optional[UserRole],
    status: Optional[UserStatus],
) -> None:
    """Refuse changes that would leave the acting admin without access."""
    if target_id != actor.user_id:
        return
    next_role = role or actor.role
    next_status = status or UserStatus.ACTIVE
    if next_role != UserRole.ADMIN or next_status != UserStatus.ACTIVE:
        raise ValidationError(MSG_SELF_LOCKOUT)


async def list_users(session: AsyncSession) -> list[User]:
    return await crud_user.get_multi(session)


async def create_or_get_user(
    session: AsyncSession,
    email: str,
    role: UserRole = UserRole.USER,
) -> CreateOrGetResult:
    try:
        async with atomic(session):
            existing = await crud_user.get_by_email(session, email)
            if existing is not None:
                return CreateOrGetResult(user=existing, created=False)
            user = await crud_user.create_user(
                session, email=email, role=role, status=UserStatus.PENDING
            )
    except IntegrityError:
        existing = await crud_user.get_by_email(session, email)
        return CreateOrGetResult(user=existing, created=False)
    logger.info(f'User {email} created with role {role.value}')
    return CreateOrGetResult(user=user, created=True)


async def update_user(
    session: AsyncSession,
    target_id: int,
    actor: Allowed,
    role: Optional[UserRole] = None,
    status: Optional[UserStatus] = None,
) -> User:
    if role is None and status is None:
        raise ValidationError('At least one of role or status is required')
    check_self_lockout(target_id, actor, role, status)

    async with atomic(session):
        user = await crud_user.get_or_404(session, target_id)
        if role is not None:
            user.role = role
        if status is not None:
            user.status = status
        session.add(user)
        await session.flush()
        await session_registry.revoke_all(session, user.id)
    logger.info(
        f'User {user.id} updated by {actor.user_id}: '
        f'role={user.role.value} status={user.status.value}'
    )
    return user
