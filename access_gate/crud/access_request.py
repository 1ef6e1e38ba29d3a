from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.constants import MSG_REQUEST_NOT_FOUND
from access_gate.core.db import utcnow
from access_gate.crud.base import CRUDBase
from access_gate.models.access_request import (AccessRequest,
                                               AccessRequestStatus)


class CRUDAccessRequest(CRUDBase[AccessRequest]):
    not_found_message = MSG_REQUEST_NOT_FOUND

    async def create_pending(
        self,
        session: AsyncSession,
        email: str,
        name: Optional[str] = None,
    ) -> AccessRequest:
        access_request = AccessRequest(
            email=email,
            name=name,
            status=AccessRequestStatus.PENDING,
        )
        session.add(access_request)
        await session.flush()
        return access_request

    async def list_by_status(
        self,
        session: AsyncSession,
        status: Optional[AccessRequestStatus] = None,
    ) -> list[AccessRequest]:
        stmt = select(AccessRequest)
        if status is not None:
            stmt = stmt.where(AccessRequest.status == status)
        result = await session.execute(
            stmt.order_by(
                AccessRequest.created_at.desc(), AccessRequest.id.desc()
            )
        )
        return result.scalars().all()

    async def decide_if_pending(
        self,
        session: AsyncSession,
        request_id: int,
        status: AccessRequestStatus,
        reviewer_id: int,
    ) -> bool:
        """
        Compare-and-swap the status of a PENDING request.

        Returns True when this call moved the row out of PENDING and False
        when the row was missing or already decided by someone else.
        """
        now = utcnow()
        result = await session.execute(
            update(AccessRequest)
            .where(
                AccessRequest.id == request_id,
                AccessRequest.status == AccessRequestStatus.PENDING,
            )
            .values(
                status=status,
                reviewed_at=now,
                reviewed_by_id=reviewer_id,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0


crud_access_request = CRUDAccessRequest(AccessRequest)
