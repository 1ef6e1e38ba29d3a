from contextlib import asynccontextmanager
from datetime import datetime, timezone
from functools import lru_cache
from typing import AsyncIterator, Optional

from sqlalchemy import Column, Integer, event
from sqlalchemy.ext.asyncio import (AsyncSession, async_sessionmaker,
                                    create_async_engine)
from sqlalchemy.orm import declarative_base, declared_attr

from access_gate.core.config import settings


class PreBase:
    @declared_attr
    def __tablename__(cls):
        return cls.__name__.lower()
    id = Column(Integer, primary_key=True)


Base = declarative_base(cls=PreBase)


def _enable_sqlite_wal(dbapi_connection, connection_record):
    # readers must not block the writer holding an approval transaction
    cursor = dbapi_connection.cursor()
    cursor.execute('PRAGMA journal_mode=WAL')
    cursor.execute('PRAGMA foreign_keys=ON')
    cursor.close()


def get_engine(test=False, database_url: Optional[str] = None):
    """
    Lazily initializes and returns the database engine.
    """

    database_url = database_url or settings.get_database_url(test)
    engine_kwargs = {'echo': settings.database_echo, 'future': True}
    if not database_url.startswith('sqlite'):
        engine_kwargs.update(pool_size=5, max_overflow=10)
    engine = create_async_engine(database_url, **engine_kwargs)
    if database_url.startswith('sqlite'):
        event.listen(engine.sync_engine, 'connect', _enable_sqlite_wal)
    return engine


def make_session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@lru_cache
def get_async_session(test=False):
    return make_session_factory(get_engine(test))


async def get_session():
    """
    Dependency-injected session generator for FastAPI routes.
    """
    async_session = get_async_session()
    async with async_session() as session:
        yield session


@asynccontextmanager
async def atomic(session: AsyncSession) -> AsyncIterator[AsyncSession]:
    """
    Run the block as one transaction: commit on success, roll back on error.

    Reads made earlier on the same session (identity lookup, for example)
    are committed first so the block always starts a fresh transaction.
    """
    if session.in_transaction():
        await session.commit()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
