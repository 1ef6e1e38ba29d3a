from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.api.deps import require_admin
from access_gate.core.db import get_session
from access_gate.schemas.user import UserCreate, UserResponse, UserUpdate
from access_gate.services.guard import Allowed
from access_gate.services.users import (create_or_get_user, list_users,
                                        update_user)

router = APIRouter(prefix="/admin/users", tags=["users"])


@router.get("", response_model=list[UserResponse])
async def get_users(
    session: AsyncSession = Depends(get_session),
    _: Allowed = Depends(require_admin),
):
    return await list_users(session)


@router.post("", response_model=UserResponse)
async def create_user(
    user_in: UserCreate,
    response: Response,
    session: AsyncSession = Depends(get_session),
    _: Allowed = Depends(require_admin),
):
    result = await create_or_get_user(session, user_in.email, user_in.role)
    response.status_code = 201 if result.created else 200
    return result.user


@router.patch("/{user_id}", response_model=UserResponse)
async def patch_user(
    user_id: int,
    user_in: UserUpdate,
    session: AsyncSession = Depends(get_session),
    admin: Allowed = Depends(require_admin),
):
    return await update_user(
        session,
        target_id=user_id,
        actor=admin,
        role=user_in.role,
        status=user_in.status,
    )
