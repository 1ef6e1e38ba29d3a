from http import HTTPStatus

from fastapi import APIRouter, BackgroundTasks, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.api.deps import get_dispatcher
from access_gate.core.db import get_session
from access_gate.schemas.access_request import (AccessRequestResponse,
                                                AccessRequestSubmit,
                                                SubmitOutcome, SubmitResponse)
from access_gate.services.access_requests import submit_access_request
from access_gate.services.notifications import NotificationDispatcher

router = APIRouter(tags=["request-access"])

_STATUS_BY_OUTCOME = {
    SubmitOutcome.CREATED: HTTPStatus.CREATED,
    SubmitOutcome.UPDATED: HTTPStatus.OK,
    SubmitOutcome.ACCEPTED: HTTPStatus.ACCEPTED,
}


@router.post("/request-access", response_model=SubmitResponse)
async def request_access(
    payload: AccessRequestSubmit,
    response: Response,
    background_tasks: BackgroundTasks,
    session: AsyncSession = Depends(get_session),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
):
    result = await submit_access_request(
        session, payload.email, payload.name
    )
    notifications = dispatcher.for_submission(result)
    if notifications:
        background_tasks.add_task(dispatcher.dispatch, notifications)
    response.status_code = _STATUS_BY_OUTCOME[result.outcome]
    return SubmitResponse(
        result=result.outcome,
        message=result.message,
        request=(
            AccessRequestResponse.model_validate(result.request)
            if result.request is not None else None
        ),
    )
