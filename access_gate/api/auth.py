import hmac
from typing import Optional

from fastapi import APIRouter, Cookie, Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.api.deps import require_user
from access_gate.core.config import settings
from access_gate.core.db import get_session
from access_gate.crud.user import crud_user
from access_gate.schemas.auth import IdentityLogin
from access_gate.schemas.user import UserResponse
from access_gate.services.auth import sign_in, sign_out
from access_gate.services.errors import AuthenticationError
from access_gate.services.guard import Allowed

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_auth_cookie(response: Response, token: str) -> None:
    max_age = settings.session_ttl_minutes * 60
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        httponly=True,
        max_age=max_age,
        samesite="lax",
        secure=settings.auth_cookie_secure,
    )


def _clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        samesite="lax",
    )


def _check_identity_provider(token: Optional[str]) -> None:
    expected = settings.identity_provider_secret
    if not expected or not token or not hmac.compare_digest(
        token.encode(), expected.encode()
    ):
        raise AuthenticationError('Identity assertion rejected')


@router.post("/login", response_model=UserResponse)
async def login(
    response: Response,
    login_in: IdentityLogin,
    session: AsyncSession = Depends(get_session),
    identity_token: Optional[str] = Header(None, alias="X-Identity-Token"),
):
    """Callback used by the identity provider once an email is verified."""
    _check_identity_provider(identity_token)
    result = await sign_in(session, login_in.email)
    _set_auth_cookie(response, result.token)
    return result.user


@router.post("/logout")
async def logout(
    response: Response,
    session: AsyncSession = Depends(get_session),
    token: Optional[str] = Cookie(None, alias=settings.auth_cookie_name),
):
    await sign_out(session, token)
    _clear_auth_cookie(response)
    return {"result": "ok"}


@router.get("/me", response_model=UserResponse)
async def me(
    current: Allowed = Depends(require_user),
    session: AsyncSession = Depends(get_session),
):
    return await crud_user.get_or_404(session, current.user_id)
