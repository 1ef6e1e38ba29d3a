import asyncio
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from access_gate.crud.session import session_registry
from access_gate.models.user import User, UserRole, UserStatus
from access_gate.services.errors import ValidationError
from access_gate.services.guard import Allowed
from access_gate.services.users import check_self_lockout, create_or_get_user
from tests.test_constants import ADMIN_EMAIL, MANAGER_EMAIL


async def _fetch_user(session_factory, user_id):
    async with session_factory() as session:
        result = await session.execute(select(User).where(User.id == user_id))
        return result.scalars().first()


@pytest.mark.asyncio
async def test_list_users_newest_first(admin_client, make_user):
    await make_user('first@co.com')
    await make_user('second@co.com', status=UserStatus.PENDING)

    response = await admin_client.get('/admin/users')
    assert response.status_code == 200
    emails = [u['email'] for u in response.json()]
    assert emails == ['second@co.com', 'first@co.com', ADMIN_EMAIL]
    assert response.json()[0]['status'] == 'PENDING'


@pytest.mark.asyncio
async def test_create_user(admin_client):
    response = await admin_client.post(
        '/admin/users', json={'email': ' New@Co.com '}
    )
    assert response.status_code == 201
    data = response.json()
    assert data['email'] == 'new@co.com'
    assert data['role'] == 'USER'
    assert data['status'] == 'PENDING'


@pytest.mark.asyncio
async def test_create_existing_user_returns_it_unchanged(
    admin_client, make_user
):
    existing = await make_user(MANAGER_EMAIL, status=UserStatus.ACTIVE)

    response = await admin_client.post(
        '/admin/users', json={'email': MANAGER_EMAIL, 'role': 'ADMIN'}
    )
    assert response.status_code == 200
    data = response.json()
    assert data['id'] == existing.id
    assert data['role'] == 'USER'
    assert data['status'] == 'ACTIVE'


@pytest.mark.asyncio
async def test_create_user_invalid_email(admin_client):
    response = await admin_client.post(
        '/admin/users', json={'email': 'nope'}
    )
    assert response.status_code == 400
    assert response.json()['error']['code'] == 'validation_error'


@pytest.mark.asyncio
async def test_role_change_revokes_sessions(
    async_client, admin_user, make_user, login_as, session_factory
):
    manager = await make_user(MANAGER_EMAIL)
    response = await login_as(MANAGER_EMAIL)
    assert response.status_code == 200
    manager_cookies = dict(async_client.cookies)
    assert (await async_client.get('/auth/me')).status_code == 200

    response = await login_as(admin_user.email)
    assert response.status_code == 200
    response = await async_client.patch(
        f'/admin/users/{manager.id}', json={'role': 'ADMIN'}
    )
    assert response.status_code == 200
    assert response.json()['role'] == 'ADMIN'

    async with session_factory() as session:
        count = await session_registry.count_for_user(session, manager.id)
    assert count == 0

    async_client.cookies.clear()
    async_client.cookies.update(manager_cookies)
    response = await async_client.get('/auth/me')
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_block_user(admin_client, make_user, session_factory):
    target = await make_user(MANAGER_EMAIL)
    response = await admin_client.patch(
        f'/admin/users/{target.id}', json={'status': 'BLOCKED'}
    )
    assert response.status_code == 200
    assert response.json()['status'] == 'BLOCKED'
    stored = await _fetch_user(session_factory, target.id)
    assert stored.status == UserStatus.BLOCKED


@pytest.mark.asyncio
@pytest.mark.parametrize(
    'payload',
    [
        {'role': 'USER'},
        {'status': 'BLOCKED'},
        {'status': 'PENDING'},
    ],
)
async def test_admin_cannot_lock_self_out(
    admin_client, admin_user, session_factory, payload
):
    response = await admin_client.patch(
        f'/admin/users/{admin_user.id}', json=payload
    )
    assert response.status_code == 400
    assert response.json()['error'] == {
        'code': 'validation_error',
        'message': 'You cannot remove your own admin access.',
    }

    stored = await _fetch_user(session_factory, admin_user.id)
    assert stored.role == UserRole.ADMIN
    assert stored.status == UserStatus.ACTIVE
    assert (await admin_client.get('/auth/me')).status_code == 200


@pytest.mark.asyncio
async def test_update_requires_a_field(admin_client, make_user):
    target = await make_user(MANAGER_EMAIL)
    response = await admin_client.patch(f'/admin/users/{target.id}', json={})
    assert response.status_code == 400
    assert response.json()['error']['code'] == 'validation_error'

    response = await admin_client.patch(
        f'/admin/users/{target.id}', json={'role': 'OWNER'}
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_update_unknown_user(admin_client):
    response = await admin_client.patch(
        '/admin/users/4242', json={'status': 'ACTIVE'}
    )
    assert response.status_code == 404
    assert response.json()['error'] == {
        'code': 'not_found',
        'message': 'User not found',
    }


@pytest.mark.asyncio
async def test_user_admin_requires_admin_role(
    async_client, make_user, login_as
):
    target = await make_user(MANAGER_EMAIL)
    await login_as(MANAGER_EMAIL)

    assert (await async_client.get('/admin/users')).status_code == 403
    response = await async_client.patch(
        f'/admin/users/{target.id}', json={'role': 'ADMIN'}
    )
    assert response.status_code == 403

    async_client.cookies.clear()
    assert (await async_client.get('/admin/users')).status_code == 401


def test_self_lockout_rules():
    actor = Allowed(user_id=1, role=UserRole.ADMIN)

    check_self_lockout(2, actor, UserRole.USER, UserStatus.BLOCKED)
    check_self_lockout(1, actor, UserRole.ADMIN, None)
    check_self_lockout(1, actor, None, UserStatus.ACTIVE)

    with pytest.raises(ValidationError):
        check_self_lockout(1, actor, UserRole.USER, None)
    with pytest.raises(ValidationError):
        check_self_lockout(1, actor, None, UserStatus.BLOCKED)


async def _create_in_own_session(session_factory, email):
    async with session_factory() as session:
        return await create_or_get_user(session, email)


@pytest.mark.asyncio
async def test_concurrent_create_or_get_stores_one_user(session_factory):
    results = await asyncio.gather(
        _create_in_own_session(session_factory, MANAGER_EMAIL),
        _create_in_own_session(session_factory, MANAGER_EMAIL),
    )

    assert sorted(r.created for r in results) == [False, True]
    assert results[0].user.id == results[1].user.id

    async with session_factory() as session:
        total = await session.scalar(
            select(func.count(User.id)).where(User.email == MANAGER_EMAIL)
        )
    assert total == 1


@pytest.mark.asyncio
async def test_storage_failure_is_a_generic_server_error(admin_client):
    with patch(
        'access_gate.api.users.list_users',
        AsyncMock(side_effect=OperationalError('SELECT', {}, 'disk I/O')),
    ):
        response = await admin_client.get('/admin/users')

    assert response.status_code == 500
    assert response.json() == {
        'error': {
            'code': 'server_error',
            'message': 'Internal Server Error',
        }
    }
