"""HTTP middleware: request ids, access logging with an error boundary, security headers.

Registered by create_app so that the order from the outside in is
request id, security headers, logging. Responses produced by the error
boundary in the logging layer therefore still pass back through the
header-setting layers.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
import time
import uuid
from .config import settings
from .logger import logger

REQUEST_ID_HEADER = "X-Request-ID"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    # Allows CDN resources for Swagger UI
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data: https://cdn.jsdelivr.net; "
        "font-src 'self' https://cdn.jsdelivr.net"
    ),
}
HSTS_HEADER = ("Strict-Transport-Security", "max-age=31536000; includeSubDomains")


def internal_error_response() -> JSONResponse:
    """Generic 500 body; failure details only go to the log."""
    return JSONResponse(status_code=500, content={"error": "Internal Server Error"})


def _request_label(request: Request) -> str:
    request_id = getattr(request.state, "request_id", "unknown")
    return f"[{request_id}] {request.method} {request.url.path}"


# ==================== Request ID Middleware ====================

async def add_request_id_middleware(request: Request, call_next):
    """Reuse the caller's X-Request-ID or mint one, and echo it on the response."""
    request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
    request.state.request_id = request_id

    response = await call_next(request)
    response.headers[REQUEST_ID_HEADER] = request_id
    return response


# ==================== Request Logging Middleware ====================

async def request_logging_middleware(request: Request, call_next):
    """Log each request with its outcome and duration.

    Exceptions escaping the routes are logged here once, with traceback,
    and turned into the generic 500 response.
    """
    label = _request_label(request)
    started = time.perf_counter()
    logger.info(f"{label} - Request received")

    try:
        response = await call_next(request)
    except Exception as e:
        logger.error(
            f"{label} - Unhandled {type(e).__name__}: {e} - "
            f"Duration: {time.perf_counter() - started:.3f}s",
            exc_info=e,
        )
        return internal_error_response()

    logger.info(
        f"{label} - Status: {response.status_code} - "
        f"Duration: {time.perf_counter() - started:.3f}s"
    )
    return response


# ==================== Security Headers Middleware ====================

async def security_headers_middleware(request: Request, call_next):
    """Stamp the fixed security headers on every response; HSTS only in production."""
    response = await call_next(request)
    response.headers.update(SECURITY_HEADERS)
    if settings.APP_ENV == "production":
        name, value = HSTS_HEADER
        response.headers[name] = value
    return response
