"""Request latency logging middleware."""

import logging
import time
from typing import Callable

from fastapi import Request, Response

logger = logging.getLogger(__name__)

# Thresholds for log levels (in milliseconds)
SLOW_REQUEST_THRESHOLD_MS = 2000  # Payment verification waits on the chain RPC
VERY_SLOW_REQUEST_THRESHOLD_MS = 8000

QUIET_PATHS = frozenset({"/health", "/health/ready"})


def _log_request(method: str, path: str, status_code: int, latency_ms: float, failed: bool) -> None:
    message = "%s %s - %d - %.2fms"
    args = (method, path, status_code, latency_ms)
    extra = {
        "method": method,
        "path": path,
        "status_code": status_code,
        "latency_ms": round(latency_ms, 2),
    }

    if path in QUIET_PATHS:
        logger.debug(message, *args, extra=extra)
    elif failed or status_code >= 500:
        logger.error(message, *args, extra=extra)
    elif latency_ms > VERY_SLOW_REQUEST_THRESHOLD_MS:
        logger.error("VERY SLOW REQUEST: " + message, *args, extra=extra)
    elif latency_ms > SLOW_REQUEST_THRESHOLD_MS:
        logger.warning("SLOW REQUEST: " + message, *args, extra=extra)
    elif status_code >= 400:
        logger.warning(message, *args, extra=extra)
    else:
        logger.info(message, *args, extra=extra)


async def latency_logging_middleware(request: Request, call_next: Callable) -> Response:
    """Log method, path, status and latency for every request.

    Health probes are logged at debug level. Slow requests and server
    errors are raised to warning or error.

    Args:
        request: The incoming request.
        call_next: The next middleware/handler in the chain.

    Returns:
        Response: The response from the handler.
    """
    start_time = time.perf_counter()
    response = None
    failed = False

    try:
        response = await call_next(request)
        return response
    except Exception:
        failed = True
        raise
    finally:
        latency_ms = (time.perf_counter() - start_time) * 1000
        status_code = response.status_code if response is not None else 500
        _log_request(request.method, request.url.path, status_code, latency_ms, failed)
