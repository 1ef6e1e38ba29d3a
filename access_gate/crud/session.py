import logging
from datetime import timedelta
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.db import as_utc, utcnow
from access_gate.models.session import UserSession

logger = logging.getLogger('access_gate')


class SessionRegistry:
    """Durable sign-in sessions, revoked in bulk on trust changes."""

    async def create(
        self,
        session: AsyncSession,
        user_id: int,
        ttl: timedelta,
    ) -> UserSession:
        user_session = UserSession(
            user_id=user_id,
            expires_at=utcnow() + ttl,
        )
        session.add(user_session)
        await session.flush()
        return user_session

    async def get_active(
        self,
        session: AsyncSession,
        session_id: int,
    ) -> Optional[UserSession]:
        result = await session.execute(
            select(UserSession).where(UserSession.id == session_id)
        )
        user_session = result.scalars().first()
        if user_session is None:
            return None
        if as_utc(user_session.expires_at) <= utcnow():
            return None
        return user_session

    async def count_for_user(
        self,
        session: AsyncSession,
        user_id: int,
    ) -> int:
        result = await session.execute(
            select(UserSession.id).where(UserSession.user_id == user_id)
        )
        return len(result.scalars().all())

    async def delete(self, session: AsyncSession, session_id: int) -> None:
        await session.execute(
            delete(UserSession).where(UserSession.id == session_id)
        )

    async def revoke_all(self, session: AsyncSession, user_id: int) -> int:
        """Delete every session of the user inside the caller's transaction."""
        result = await session.execute(
            delete(UserSession)
            .where(UserSession.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        logger.info(
            f'Revoked {result.rowcount} session(s) for user {user_id}'
        )
        return result.rowcount


session_registry = SessionRegistry()
