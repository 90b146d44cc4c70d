from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from calcflow.errors import (
    CalcflowError,
    ChainIntegrityError,
    InvalidOrderError,
    InvalidReferenceError,
    NotFoundError,
)

STATUS_CODES: dict[type[CalcflowError], int] = {
    NotFoundError: 404,
    InvalidReferenceError: 422,
    InvalidOrderError: 400,
    ChainIntegrityError: 500,
}


def status_code_for(error: CalcflowError) -> int:
    for error_type in type(error).__mro__:
        if error_type in STATUS_CODES:
            return STATUS_CODES[error_type]
    return 500


def register_exception_handlers(app: FastAPI) -> None:
    """Report domain errors as JSON responses with a matching status code."""

    @app.exception_handler(CalcflowError)
    async def handle_calcflow_error(request: Request, exc: CalcflowError) -> JSONResponse:
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc}")
        else:
            logger.warning(f"{request.method} {request.url.path} rejected: {exc}")
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})
