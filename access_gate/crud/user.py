from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.constants import MSG_USER_NOT_FOUND
from access_gate.crud.base import CRUDBase
from access_gate.models.user import User, UserRole, UserStatus


class CRUDUser(CRUDBase[User]):
    not_found_message = MSG_USER_NOT_FOUND

    async def create_user(
        self,
        session: AsyncSession,
        email: str,
        name: Optional[str] = None,
        role: UserRole = UserRole.USER,
        status: UserStatus = UserStatus.PENDING,
    ) -> User:
        """Add a user to the current transaction; the caller commits."""
        user = User(
            email=email.lower().strip(),
            name=name,
            role=role,
            status=status,
        )
        session.add(user)
        await session.flush()
        return user


crud_user = CRUDUser(User)
