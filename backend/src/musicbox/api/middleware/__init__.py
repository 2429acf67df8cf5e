"""API middleware package."""

from musicbox.api.middleware.request_id import (
    REQUEST_ID_HEADER,
    RequestIDMiddleware,
    get_request_id,
)
from musicbox.api.middleware.request_timing import RequestTimingMiddleware

__all__ = [
    "REQUEST_ID_HEADER",
    "RequestIDMiddleware",
    "RequestTimingMiddleware",
    "get_request_id",
]
