# backend/app/core/errors.py

import logging
from dataclasses import asdict, dataclass
from typing import List

from fastapi import FastAPI, Request, Response, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationFailed(Exception):
    """Request body broke one or more field rules (400)."""

    def __init__(self, errors: List[FieldError]):
        super().__init__(f"{len(errors)} field error(s)")
        self.errors = errors


class Forbidden(Exception):
    """Authorization policy denied the operation (403, no body)."""


class NotFound(Exception):
    """Target account is absent, or archived on the update path (404)."""


class StoreError(Exception):
    """The user store failed; surfaced as a generic 500."""


class UsernameTaken(StoreError):
    pass


def _field_from_loc(loc) -> str:
    # ("body", "username") -> "username", ("path", "user_id") -> "user_id"
    parts = [str(p) for p in loc if p not in ("body", "path", "query")]
    return ".".join(parts) or "body"


def _internal_error() -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal Server Error"},
    )


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def validation_failed(request: Request, exc: ValidationFailed):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"errors": [asdict(e) for e in exc.errors]},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_failed(request: Request, exc: RequestValidationError):
        errors = [
            {"field": _field_from_loc(err.get("loc", ())), "message": err.get("msg", "invalid value")}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"errors": errors})

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        # e.g. an unparseable body; keep the 400 envelope uniform
        if exc.status_code == status.HTTP_400_BAD_REQUEST:
            return JSONResponse(
                status_code=status.HTTP_400_BAD_REQUEST,
                content={"errors": [{"field": "body", "message": str(exc.detail)}]},
            )
        return await http_exception_handler(request, exc)

    @app.exception_handler(Forbidden)
    async def forbidden(request: Request, exc: Forbidden):
        return Response(status_code=status.HTTP_403_FORBIDDEN)

    @app.exception_handler(NotFound)
    async def not_found(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": "Not found"})

    @app.exception_handler(StoreError)
    async def store_error(request: Request, exc: StoreError):
        logger.error("store failure on %s %s", request.method, request.url.path, exc_info=exc)
        return _internal_error()

    @app.exception_handler(Exception)
    async def unhandled(request: Request, exc: Exception):
        logger.error("unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
        return _internal_error()
