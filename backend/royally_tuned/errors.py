"""Exception handlers that render every error as ``{"error": ...}`` JSON.

Handlers raise ``HTTPException`` with either a string ``detail`` or a dict
carrying ``error`` and optionally ``details``; both come out in the same
body shape. Body validation failures are reported as 400 rather than 422,
and anything a handler lets escape becomes a logged 500 in the same shape.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def error_body(error: str, details: str | None = None) -> dict[str, str]:
    body = {"error": error}
    if details:
        body["details"] = details
    return body


def _body_from_detail(detail: Any) -> dict[str, Any]:
    if isinstance(detail, dict) and "error" in detail:
        return detail
    return {"error": str(detail)}


def _describe_validation_errors(exc: RequestValidationError) -> str:
    """Turn pydantic errors into a short message naming the offending fields."""
    messages = []
    for err in exc.errors():
        if err.get("type") == "json_invalid":
            messages.append("Invalid JSON body")
            continue
        loc = [str(part) for part in err.get("loc", ()) if part not in ("body", "query")]
        field = ".".join(loc) or "request"
        if err.get("type") == "missing":
            messages.append(f"Missing {field}")
        else:
            messages.append(f"Invalid {field}")
    return "; ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:
    """Register the JSON error handlers on the application."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
            body = {"error": "Method not allowed"}
        else:
            body = _body_from_detail(exc.detail)
        if exc.status_code >= 500:
            logger.error("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, body)
        return JSONResponse(status_code=exc.status_code, content=body, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        message = _describe_validation_errors(exc)
        logger.warning("Request validation error at %s: %s", request.url.path, message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": message},
        )

    @app.exception_handler(SQLAlchemyError)
    async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
        logger.exception("Database error at %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Database error", str(exc)),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error at %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error", str(exc)),
        )
