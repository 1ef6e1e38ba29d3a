from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.api.deps import get_dispatcher, require_admin
from access_gate.core.db import get_session
from access_gate.schemas.access_request import (AccessRequestDecision,
                                                AccessRequestDecisionResponse,
                                                AccessRequestFilter,
                                                AccessRequestResponse,
                                                DecisionAction)
from access_gate.services.access_requests import (DecisionResult,
                                                  decide_access_request,
                                                  list_access_requests)
from access_gate.services.errors import ValidationError
from access_gate.services.guard import Allowed
from access_gate.services.notifications import NotificationDispatcher

router = APIRouter(prefix="/admin/access-requests", tags=["access-requests"])


def _parse_filter(raw_status: str) -> AccessRequestFilter:
    try:
        return AccessRequestFilter(raw_status.strip().upper())
    except ValueError:
        raise ValidationError('Invalid status filter') from None


def _schedule_notifications(
    result: DecisionResult,
    dispatcher: NotificationDispatcher,
    background_tasks: BackgroundTasks,
) -> None:
    notifications = dispatcher.for_decision(result)
    if notifications:
        background_tasks.add_task(dispatcher.dispatch, notifications)


def _decision_response(
    result: DecisionResult,
) -> AccessRequestDecisionResponse:
    return AccessRequestDecisionResponse(
        **AccessRequestResponse.model_validate(result.request).model_dump(),
        changed=result.changed,
    )


@router.get("", response_model=list[AccessRequestResponse])
async def get_access_requests(
    status: str = AccessRequestFilter.PENDING.value,
    session: AsyncSession = Depends(get_session),
    _: Allowed = Depends(require_admin),
):
    status_filter = _parse_filter(status)
    return await list_access_requests(session, status_filter)


async def _decide(
    request_id: int,
    action: DecisionAction,
    admin: Allowed,
    session: AsyncSession,
    dispatcher: NotificationDispatcher,
    background_tasks: BackgroundTasks,
) -> DecisionResult:
    result = await decide_access_request(
        session, request_id, action, admin.user_id
    )
    _schedule_notifications(result, dispatcher, background_tasks)
    return result


@router.patch("/{request_id}", response_model=AccessRequestDecisionResponse)
async def decide_request(
    request_id: int,
    decision: AccessRequestDecision,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    admin: Allowed = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = await _decide(
        request_id, decision.action, admin, session, dispatcher,
        background_tasks,
    )
    return _decision_response(result)


@router.post("/{request_id}", response_model=AccessRequestDecisionResponse)
async def approve_request(
    request_id: int,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    admin: Allowed = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = await _decide(
        request_id, DecisionAction.APPROVE, admin, session, dispatcher,
        background_tasks,
    )
    return _decision_response(result)


@router.delete("/{request_id}", response_model=AccessRequestDecisionResponse)
async def reject_request(
    request_id: int,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    admin: Allowed = Depends(require_admin),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = await _decide(
        request_id, DecisionAction.REJECT, admin, session, dispatcher,
        background_tasks,
    )
    return _decision_response(result)
