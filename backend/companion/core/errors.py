"""Error types shared by the services and the JSON error rendering used by every route."""
from typing import Optional

from fastapi import FastAPI, Request, status
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from companion.core.logging import get_logger

logger = get_logger("errors")


class CompanionError(Exception):
    """Base class for domain failures raised by the service layer."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


def friendly_error_message(message: str) -> str:
    """Map raw upstream failures to text a user can act on."""
    if "violates row-level security" in message:
        return "Permission denied: Check if user has access to the workspace"
    if "timeout" in message.lower() or "timed out" in message.lower():
        return "Request timeout: Image download took too long"
    return message


async def http_exception_handler(request: Request, exc: HTTPException):
    body = exc.detail if isinstance(exc.detail, dict) else {"error": exc.detail}
    return JSONResponse(status_code=exc.status_code, content=body, headers=getattr(exc, "headers", None))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.info("Request validation failed", path=request.url.path, errors=len(exc.errors()))
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "Invalid request", "details": jsonable_errors(exc)},
    )


async def companion_error_handler(request: Request, exc: CompanionError):
    logger.warning("Request failed", path=request.url.path, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled error", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error"},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg")}
        for err in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(CompanionError, companion_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
