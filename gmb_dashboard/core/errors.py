"""GMB Dashboard: Response Envelope & Exception Handlers.

Every JSON body is {"success": true, "data": ...} or
{"success": false, "error": "<message>"}.
"""

from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gmb_dashboard.core.logging import get_logger
from gmb_dashboard.core.scope import ScopeViolation

logger = get_logger("errors")


def ok(data: Any = None, **extra: Any) -> dict:
    """Success envelope."""
    body = {"success": True, "data": data}
    body.update(extra)
    return body


def fail(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return fail(exc.status_code, detail)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg', 'invalid')}" if field else first.get("msg", "invalid")
    else:
        message = "Invalid request"
    return fail(400, message)


async def scope_violation_handler(request: Request, exc: ScopeViolation):
    return fail(403, str(exc) or "Outside of your scope")


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}: {exc}",
        exc_info=exc,
        extra={"endpoint": request.url.path, "status_code": 500},
    )
    return fail(500, str(exc))


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ScopeViolation, scope_violation_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
