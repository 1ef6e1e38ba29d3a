import logging
from contextlib import asynccontextmanager
from logging.handlers import RotatingFileHandler

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from access_gate.api.access_requests import router as access_requests_router
from access_gate.api.auth import router as auth_router
from access_gate.api.error_handling import register_exception_handlers
from access_gate.api.request_access import router as request_access_router
from access_gate.api.users import router as users_router
from access_gate.core.config import settings
from access_gate.core.db import get_async_session
from access_gate.services.auth import ensure_admin_user

# --- Logging ---
logger = logging.getLogger('access_gate')
logger.setLevel(logging.DEBUG)

handler = RotatingFileHandler(
    'access_gate.log', maxBytes=200000, backupCount=100
)
handler.setLevel(logging.DEBUG)

formatter = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
handler.setFormatter(formatter)
logger.addHandler(handler)


@asynccontextmanager
async def lifespan(app: FastAPI):
    session_factory = get_async_session()
    async with session_factory() as session:
        try:
            await ensure_admin_user(session)
        except Exception as e:
            logger.exception(f'Admin bootstrap failed: {e}')
    yield


app = FastAPI(
    title=settings.app_title,
    description=settings.app_description,
    lifespan=lifespan,
)


@app.get("/health")
async def health():
    return {"status": 'ok'}


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PATCH', 'DELETE', 'OPTIONS'],
    allow_headers=['*'],
)
register_exception_handlers(app)
app.include_router(request_access_router)
app.include_router(access_requests_router)
app.include_router(users_router)
app.include_router(auth_router)
