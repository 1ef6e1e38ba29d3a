"""
Request-to-join workflow.

A request moves PENDING -> APPROVED | REJECTED through a compare-and-swap
on its status, and an approval provisions (or reactivates) the matching
user and revokes that user's sessions in the same transaction.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.config import settings
from access_gate.core.constants import (ACCESS_REQUEST_COOLDOWN,
                                        MSG_ACCOUNT_BLOCKED,
                                        MSG_ACCOUNT_PENDING,
                                        MSG_ALREADY_APPROVED,
                                        MSG_BLOCKED_USER,
                                        MSG_DOMAIN_NOT_ALLOWED)
from access_gate.core.db import as_utc, atomic, utcnow
from access_gate.crud.access_request import crud_access_request
from access_gate.crud.session import session_registry
from access_gate.crud.user import crud_user
from access_gate.models.access_request import (AccessRequest,
                                               AccessRequestStatus)
from access_gate.models.user import User, UserRole, UserStatus
from access_gate.schemas.access_request import (AccessRequestFilter,
                                                DecisionAction, SubmitOutcome)
from access_gate.services.errors import (BlockedUserError, ConflictError,
                                         ForbiddenError)

logger = logging.getLogger('access_gate')


@dataclass(frozen=True)
class Resubmission:
    should_write: bool
    should_notify: bool


@dataclass
class SubmitResult:
    outcome: SubmitOutcome
    message: str
    request: Optional[AccessRequest] = None
    notify: bool = False


@dataclass
class DecisionResult:
    request: AccessRequest
    changed: bool
    user_id: Optional[int] = None


def is_allowed_email_domain(email: str) -> bool:
    allowed_domains = settings.get_allowed_email_domains()
    if not allowed_domains:
        return True
    domain = email.rsplit('@', 1)[-1].lower() if '@' in email else ''
    return bool(domain) and domain in allowed_domains


def plan_resubmission(
    existing: AccessRequest,
    name: Optional[str],
    now: Optional[datetime] = None,
) -> Resubmission:
    """
    Decide whether a repeated submission rewrites the row and notifies.

    Both flags come from this one place so they cannot drift apart.
    """
    if existing.status != AccessRequestStatus.PENDING:
        return Resubmission(should_write=True, should_notify=True)
    now = now or utcnow()
    in_cooldown = (
        now - as_utc(existing.updated_at) < ACCESS_REQUEST_COOLDOWN
    )
    name_changed = bool(name) and name != existing.name
    refresh = name_changed or not in_cooldown
    return Resubmission(should_write=refresh, should_notify=refresh)


async def submit_access_request(
    session: AsyncSession,
    email: str,
    name: Optional[str] = None,
) -> SubmitResult:
    if not is_allowed_email_domain(email):
        raise ForbiddenError(MSG_DOMAIN_NOT_ALLOWED)

    try:
        async with atomic(session):
            return await _submit(session, email, name)
    except IntegrityError:
        # a concurrent first submission for the same email won the insert
        logger.info(f'Concurrent access request for {email} already stored')
        existing = await crud_access_request.get_by_email(session, email)
        return SubmitResult(
            outcome=SubmitOutcome.ACCEPTED,
            message=MSG_ACCOUNT_PENDING,
            request=existing,
        )


async def _submit(
    session: AsyncSession,
    email: str,
    name: Optional[str],
) -> SubmitResult:
    user = await crud_user.get_by_email(session, email)
    if user is not None:
        if user.status == UserStatus.ACTIVE:
            raise ConflictError(
                MSG_ALREADY_APPROVED, error_code='already_approved'
            )
        if user.status == UserStatus.BLOCKED:
            raise ForbiddenError(
                MSG_ACCOUNT_BLOCKED, error_code='account_blocked'
            )
        logger.debug(f'Access request for pending user {email} accepted')
        return SubmitResult(
            outcome=SubmitOutcome.ACCEPTED, message=MSG_ACCOUNT_PENDING
        )

    existing = await crud_access_request.get_by_email(session, email)
    if existing is None:
        created = await crud_access_request.create_pending(
            session, email, name
        )
        logger.info(f'Access request created for {email}')
        return SubmitResult(
            outcome=SubmitOutcome.CREATED,
            message='Access request submitted.',
            request=created,
            notify=True,
        )

    plan = plan_resubmission(existing, name)
    if not plan.should_write:
        logger.debug(f'Duplicate access request for {email} within cooldown')
        return SubmitResult(
            outcome=SubmitOutcome.ACCEPTED,
            message=MSG_ACCOUNT_PENDING,
            request=existing,
        )

    previous_status = existing.status
    existing.reopen(name)
    session.add(existing)
    await session.flush()
    logger.info(
        f'Access request for {email} resubmitted '
        f'(was {previous_status.value})'
    )
    return SubmitResult(
        outcome=SubmitOutcome.UPDATED,
        message='Access request updated.',
        request=existing,
        notify=plan.should_notify,
    )


async def _provision_user(
    session: AsyncSession,
    access_request: AccessRequest,
) -> User:
    user = await crud_user.get_by_email(session, access_request.email)
    if user is not None and user.status == UserStatus.BLOCKED:
        raise BlockedUserError(MSG_BLOCKED_USER)
    if user is None:
        user = await crud_user.create_user(
            session,
            email=access_request.email,
            name=access_request.name,
            role=UserRole.USER,
            status=UserStatus.ACTIVE,
        )
        logger.info(f'User {user.email} provisioned from access request')
    else:
        user.activate(access_request.name)
        session.add(user)
        await session.flush()
        logger.info(f'User {user.email} reactivated from access request')
    return user


async def approve_access_request(
    session: AsyncSession,
    request_id: int,
    reviewer_id: int,
) -> DecisionResult:
    async with atomic(session):
        changed = await crud_access_request.decide_if_pending(
            session, request_id, AccessRequestStatus.APPROVED, reviewer_id
        )
        access_request = await crud_access_request.get_or_404(
            session, request_id
        )
        if not changed:
            logger.debug(
                f'Access request {request_id} already '
                f'{access_request.status.value}; approve is a no-op'
            )
            return DecisionResult(request=access_request, changed=False)
        user = await _provision_user(session, access_request)
        await session_registry.revoke_all(session, user.id)
    logger.info(
        f'Access request {request_id} approved by user {reviewer_id}'
    )
    return DecisionResult(
        request=access_request, changed=True, user_id=user.id
    )


async def reject_access_request(
    session: AsyncSession,
    request_id: int,
    reviewer_id: int,
) -> DecisionResult:
    async with atomic(session):
        changed = await crud_access_request.decide_if_pending(
            session, request_id, AccessRequestStatus.REJECTED, reviewer_id
        )
        access_request = await crud_access_request.get_or_404(
            session, request_id
        )
    if changed:
        logger.info(
            f'Access request {request_id} rejected by user {reviewer_id}'
        )
    else:
        logger.debug(
            f'Access request {request_id} already '
            f'{access_request.status.value}; reject is a no-op'
        )
    return DecisionResult(request=access_request, changed=changed)


async def decide_access_request(
    session: AsyncSession,
    request_id: int,
    action: DecisionAction,
    reviewer_id: int,
) -> DecisionResult:
    if action == DecisionAction.REJECT:
        return await reject_access_request(session, request_id, reviewer_id)
    return await approve_access_request(session, request_id, reviewer_id)


async def list_access_requests(
    session: AsyncSession,
    status_filter: AccessRequestFilter = AccessRequestFilter.PENDING,
) -> list[AccessRequest]:
    status = None
    if status_filter != AccessRequestFilter.ALL:
        status = AccessRequestStatus(status_filter.value)
    return await crud_access_request.list_by_status(session, status)
