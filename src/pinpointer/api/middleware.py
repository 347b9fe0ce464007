"""Request/response middleware."""
import time
from fastapi import Request
from ..core.logging import logger


async def add_process_time_header(request: Request, call_next):
    """
    Add an X-Process-Time header and log the request.

    Args:
        request: FastAPI request object
        call_next: Next middleware callable

    Returns:
        Response with added processing time header
    """
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception as exc:
        logger.error(
            f"Request failed: {request.method} {request.url.path} "
            f"Time: {time.time() - start_time:.3f}s Error: {str(exc)}"
        )
        raise

    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    # Status polling is frequent; keep it out of the info log
    log = logger.debug if request.url.path.endswith("/status") else logger.info
    log(
        f"Request: {request.method} {request.url.path} "
        f"Status: {response.status_code} "
        f"Time: {process_time:.3f}s"
    )
    return response
