import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from access_gate.services.errors import ServerError, ServiceError

logger = logging.getLogger('access_gate')


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: list | dict | None = None,
) -> JSONResponse:
    error = {'code': code, 'message': message}
    if details:
        error['details'] = details
    return JSONResponse(status_code=status_code, content={'error': error})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the error envelope for domain, validation and storage errors."""

    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError):
        log_fn = logger.error if exc.status_code >= 500 else logger.warning
        log_fn(
            f'{request.method} {request.url.path} -> {exc.status_code} '
            f'{exc.error_code}: {exc.message}'
        )
        return error_response(exc.status_code, exc.error_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(
        request: Request, exc: RequestValidationError
    ):
        details = [
            {
                'loc': [str(part) for part in error.get('loc', ())],
                'msg': error.get('msg', ''),
            }
            for error in exc.errors()
        ]
        logger.warning(
            f'{request.method} {request.url.path} -> 400 invalid request'
        )
        return error_response(
            400, 'validation_error', 'Invalid request', details
        )

    @app.exception_handler(SQLAlchemyError)
    async def handle_storage_error(request: Request, exc: SQLAlchemyError):
        logger.exception(
            f'Database error on {request.method} {request.url.path}: {exc}'
        )
        error = ServerError('Internal Server Error')
        return error_response(
            error.status_code, error.error_code, error.message
        )
