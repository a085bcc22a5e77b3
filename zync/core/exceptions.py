from contextlib import contextmanager
from typing import Iterator
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ZyncError(Exception):
    """Base class for request-terminal domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class BadRequestError(ZyncError):
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(ZyncError):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(ZyncError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(ZyncError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ZyncError):
    status_code = status.HTTP_409_CONFLICT


@contextmanager
def store_errors(prefix: str) -> Iterator[None]:
    """
    Wrap any MongoDB failure raised inside the block into a BadRequestError
    whose message starts with `prefix`.
    """
    try:
        yield
    except PyMongoError as e:
        logger.error(f"{prefix}: {e}")
        raise BadRequestError(f"{prefix}: {e}") from e


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ZyncError)
    async def zync_error_handler(request: Request, exc: ZyncError):
        logger.warning(f"[{type(exc).__name__}] {exc.message} | Path={request.url.path}")
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(f"[HTTPException] {exc.detail} | Path={request.url.path}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"[ValidationError] Path={request.url.path} | {exc.errors()}")
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"message": "Invalid request parameters", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        logger.error(f"[UnhandledError] {exc}\n{traceback.format_exc()}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry the raw ValueError raised by a validator
    errors = []
    for error in exc.errors():
        error = dict(error)
        if "ctx" in error:
            error["ctx"] = {key: str(value) for key, value in error["ctx"].items()}
        errors.append(error)
    return errors
