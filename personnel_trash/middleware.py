import time
import uuid
from collections.abc import Awaitable, Callable

import structlog
from fastapi import Request, Response

from .logging_utils import log_api_request


async def log_requests_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log every HTTP request with timing and bind a request id for structlog.

    Args:
        request: FastAPI request object
        call_next: Next middleware/route handler in the chain

    Returns:
        Response from the route handler, carrying an ``X-Request-ID`` header
    """
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.bind_contextvars(request_id=request_id)
    start_time = time.perf_counter()

    try:
        response = await call_next(request)
    finally:
        structlog.contextvars.unbind_contextvars("request_id")

    process_time = (time.perf_counter() - start_time) * 1000

    log_api_request(
        request=request,
        response_status=response.status_code,
        process_time_ms=process_time,
    )
    response.headers["X-Request-ID"] = request_id
    return response
