import logging

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from access_gate.core.base import Base
from access_gate.core.config import settings
from access_gate.core.db import get_engine, get_session, make_session_factory
from access_gate.main import app
from access_gate.models.user import User, UserRole, UserStatus
from access_gate.services.email import get_mailer
from access_gate.services.errors import EmailTransportError
from tests.test_constants import (ADMIN_EMAIL, ADMIN_NAME, APP_URL,
                                  IDENTITY_SECRET)

logger = logging.getLogger('access_gate')


class RecordingMailer:
    """Stands in for the external email provider."""

    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, message):
        if self.fail:
            raise EmailTransportError('provider unavailable')
        self.sent.append(message)


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    engine = get_engine(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine):
    return make_session_factory(test_engine)


@pytest.fixture(scope="function")
async def test_session(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture(autouse=True)
def configured_settings(monkeypatch):
    monkeypatch.setattr(settings, 'identity_provider_secret', IDENTITY_SECRET)
    monkeypatch.setattr(settings, 'admin_notify_email', None)
    monkeypatch.setattr(settings, 'access_request_allowed_email_domains', '')
    monkeypatch.setattr(settings, 'app_url', APP_URL)
    return settings


@pytest.fixture(scope='function', autouse=True)
def override_dependencies(session_factory, mailer):
    """
    Fixture that automatically overrides dependencies for all tests.
    """

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_mailer] = lambda: mailer
    logger.debug("Dependencies overridden for the test")

    yield

    app.dependency_overrides.clear()
    logger.debug("Dependencies overrides cleared after the test")


@pytest.fixture(scope='function')
async def async_client():
    transport = ASGITransport(app=app)
    async with AsyncClient(
            transport=transport,
            base_url='http://test'
    ) as client:
        yield client


async def _create_user(
    session_factory,
    email: str,
    role: UserRole = UserRole.USER,
    status: UserStatus = UserStatus.ACTIVE,
    name: str | None = None,
) -> User:
    async with session_factory() as session:
        user = User(
            email=email.lower().strip(),
            name=name,
            role=role,
            status=status,
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user


async def _login(client: AsyncClient, email: str):
    client.cookies.clear()
    return await client.post(
        '/auth/login',
        json={'email': email},
        headers={'X-Identity-Token': IDENTITY_SECRET},
    )


@pytest.fixture
async def admin_user(session_factory) -> User:
    return await _create_user(
        session_factory,
        ADMIN_EMAIL,
        role=UserRole.ADMIN,
        name=ADMIN_NAME,
    )


@pytest.fixture
async def admin_client(async_client, admin_user) -> AsyncClient:
    response = await _login(async_client, admin_user.email)
    assert response.status_code == 200
    return async_client


@pytest.fixture
def make_user(session_factory):
    async def factory(email, **kwargs) -> User:
        return await _create_user(session_factory, email, **kwargs)
    return factory


@pytest.fixture
def login_as(async_client):
    async def do_login(email):
        return await _login(async_client, email)
    return do_login
