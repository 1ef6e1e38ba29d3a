import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

from jose import JWTError, jwt
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.config import settings
from access_gate.core.db import atomic, utcnow
from access_gate.crud.session import session_registry
from access_gate.crud.user import crud_user
from access_gate.models.user import User, UserRole, UserStatus
from access_gate.services.errors import ForbiddenError
from access_gate.services.guard import Identity

logger = logging.getLogger('access_gate')


@dataclass
class SignInResult:
    user: User
    session_id: int
    token: str


def create_access_token(
        subject: str, expires_delta: timedelta | None = None
) -> str:
    expire = utcnow() + (
        expires_delta
        if expires_delta
        else timedelta(minutes=settings.session_ttl_minutes)
    )
    to_encode: dict[str, Any] = {"sub": subject, "exp": expire}
    return jwt.encode(
        to_encode,
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm
    )


def decode_access_token(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None


async def sign_in(session: AsyncSession, email: str) -> SignInResult:
    """
    Open a session for an email the identity provider has verified.

    Only ACTIVE accounts may sign in; everyone else goes through the
    access-request workflow first.
    """
    ttl = timedelta(minutes=settings.session_ttl_minutes)
    email = email.lower().strip()
    async with atomic(session):
        user = await crud_user.get_by_email(session, email)
        if user is None or user.status != UserStatus.ACTIVE:
            raise ForbiddenError('Account is not approved for sign-in')
        user_session = await session_registry.create(session, user.id, ttl)
    token = create_access_token(str(user_session.id), expires_delta=ttl)
    logger.info(f'User {user.id} signed in (session {user_session.id})')
    return SignInResult(user=user, session_id=user_session.id, token=token)


def session_id_from_token(token: Optional[str]) -> Optional[int]:
    if not token:
        return None
    payload = decode_access_token(token)
    if not payload or 'sub' not in payload:
        return None
    try:
        return int(payload['sub'])
    except (TypeError, ValueError):
        return None


async def resolve_identity(
    session: AsyncSession, token: Optional[str]
) -> Optional[Identity]:
    """Map a session token to the caller's current identity, if any."""
    session_id = session_id_from_token(token)
    if session_id is None:
        return None
    user_session = await session_registry.get_active(session, session_id)
    if user_session is None:
        return None
    user = await crud_user.get(session, user_session.user_id)
    if user is None:
        return None
    return Identity(user_id=user.id, role=user.role, status=user.status)


async def sign_out(session: AsyncSession, token: Optional[str]) -> None:
    session_id = session_id_from_token(token)
    if session_id is None:
        return
    async with atomic(session):
        await session_registry.delete(session, session_id)


async def ensure_admin_user(session: AsyncSession) -> Optional[User]:
    if not settings.admin_email:
        logger.warning('ADMIN_EMAIL not set; admin not created')
        return None
    email = settings.admin_email.lower().strip()
    async with atomic(session):
        existing = await crud_user.get_by_email(session, email)
        if existing:
            logger.info('Admin already exists; bootstrap skipped')
            return existing
        admin = await crud_user.create_user(
            session,
            email=email,
            name=settings.admin_name,
            role=UserRole.ADMIN,
            status=UserStatus.ACTIVE,
        )
    logger.info("Bootstrap admin created from env")
    return admin
