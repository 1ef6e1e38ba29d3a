import argparse
import asyncio
import logging

from access_gate.core.db import atomic, get_async_session
from access_gate.crud.user import crud_user
from access_gate.models.user import UserRole, UserStatus

logger = logging.getLogger('access_gate')
logging.basicConfig(level=logging.INFO)


async def create_admin(email: str, name: str | None) -> None:
    email = email.lower().strip()
    session_factory = get_async_session()
    async with session_factory() as session:
        async with atomic(session):
            existing = await crud_user.get_by_email(session, email)
            if existing:
                logger.info(
                    f'Admin already exists: {existing.email} '
                    f'(role={existing.role.value}, '
                    f'status={existing.status.value})'
                )
                return
            admin = await crud_user.create_user(
                session,
                email=email,
                name=name,
                role=UserRole.ADMIN,
                status=UserStatus.ACTIVE,
            )
        logger.info(f'Admin user created: {admin.email}')


def main() -> None:
    parser = argparse.ArgumentParser(description='Create an ACTIVE admin')
    parser.add_argument('email')
    parser.add_argument('--name', default=None)
    args = parser.parse_args()
    asyncio.run(create_admin(args.email, args.name))


if __name__ == "__main__":
    main()
