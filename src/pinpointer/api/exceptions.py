"""Custom exception handlers."""
from typing import Any, Dict

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from ..core.errors import JobNotFoundError, PinpointerError
from ..core.logging import logger


class ApiError(Exception):
    """Base exception for errors reported straight to the client."""

    def __init__(self, message: str, status_code: int = 400, details: Dict[str, Any] = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class InvalidURLError(ApiError):
    """Exception raised for URLs that cannot be audited."""

    def __init__(self, url: str):
        super().__init__(f"Invalid URL: {url}", status_code=400, details={"url": url})


def error_body(message: str) -> Dict[str, Any]:
    return {"success": False, "error": message}


def describe_validation_error(exc: RequestValidationError) -> str:
    """First validation problem as '<field>: <message>'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    loc = [str(part) for part in first.get("loc", ()) if part not in ("body", "query")]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(loc)}: {message}" if loc else message


async def api_error_handler(request: Request, exc: ApiError):
    logger.warning(f"API error: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=error_body(exc.message))


async def job_not_found_handler(request: Request, exc: JobNotFoundError):
    logger.info(f"Unknown job requested: {exc.job_id}")
    return JSONResponse(status_code=404, content=error_body(exc.message))


async def pinpointer_error_handler(request: Request, exc: PinpointerError):
    logger.error(f"Audit error: {exc.message}", extra={"details": exc.details})
    return JSONResponse(status_code=500, content=error_body(exc.message))


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = describe_validation_error(exc)
    logger.warning(f"Validation error on {request.url.path}: {message}")
    return JSONResponse(status_code=400, content=error_body(message))


async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with proper logging."""
    logger.warning(
        f"HTTP error: {exc.status_code} - {exc.detail}",
        extra={"path": str(request.url), "method": request.method}
    )
    return JSONResponse(status_code=exc.status_code, content=error_body(str(exc.detail)))


async def global_exception_handler(request: Request, exc: Exception):
    """Turn anything unhandled into a 500 JSON body."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(status_code=500, content=error_body("Internal server error"))


# Exception handler registry
exception_handlers = {
    ApiError: api_error_handler,
    JobNotFoundError: job_not_found_handler,
    PinpointerError: pinpointer_error_handler,
    RequestValidationError: validation_exception_handler,
    HTTPException: http_exception_handler,
    Exception: global_exception_handler,
}
