"""Request timing middleware.

Logs the duration of every request and warns about slow ones. Library scans
are expected to be slow, so the threshold is configurable.
"""

import time
from typing import Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Middleware to log request timing and flag slow requests.

    Attributes:
        slow_request_threshold: Time in seconds to consider a request slow.
    """

    def __init__(self, app, slow_request_threshold: float = 1.0):
        super().__init__(app)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.time()

        response = await call_next(request)

        duration = time.time() - start_time
        duration_ms = round(duration * 1000, 2)

        if duration > self.slow_request_threshold:
            logger.warning(
                f"SLOW REQUEST: {request.method} {request.url.path} "
                f"took {duration_ms}ms (threshold: {self.slow_request_threshold * 1000}ms)"
            )
        else:
            logger.debug(
                f"{request.method} {request.url.path} - "
                f"{duration_ms}ms - {response.status_code}"
            )

        response.headers["X-Process-Time"] = str(duration)
        return response
