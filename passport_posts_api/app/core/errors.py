"""
Application error taxonomy and FastAPI exception handlers.

Services raise the exceptions below; ``register_exception_handlers``
turns them into JSON bodies of the form
``{"success": false, "message": "..."}`` with the matching status
code.  Request validation errors raised by FastAPI are rendered in the
same envelope with status 400 and the full error list under
``errors``.
"""

import logging
from typing import Any, Dict, List, Type, TypeVar

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from starlette.exceptions import HTTPException


logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class Conflict(ApiError):
    """Duplicate email or a second admin; reported as 400 like other bad input."""

    status_code = status.HTTP_400_BAD_REQUEST


class Unauthenticated(ApiError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(ApiError):
    status_code = status.HTTP_403_FORBIDDEN


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_body(message: str, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    body.update(extra)
    return body


def _describe(error: Dict[str, Any]) -> str:
    """Turn one Pydantic error into ``"field: message"`` text."""
    loc = [str(part) for part in error.get("loc", ()) if part != "body"]
    msg = error.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {msg}" if loc else msg


def validate_body(model: Type[ModelT], body: Any) -> ModelT:
    """Validate a JSON body inside a route, after its lookups and access checks.

    Failures are raised as ``RequestValidationError`` so they render like
    any other invalid request body.
    """
    try:
        return model.model_validate(body)
    except PydanticValidationError as exc:
        raise RequestValidationError(
            [{**error, "loc": ("body", *error["loc"])} for error in exc.errors()]
        ) from exc


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthenticated) else None
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.message), headers=headers)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors: List[Dict[str, Any]] = jsonable_encoder(exc.errors(), custom_encoder={Exception: str})
    message = _describe(errors[0]) if errors else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(message, errors=errors),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(f"Internal server error: {exc}"),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the JSON error handlers to ``app``."""
    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
