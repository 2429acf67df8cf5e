"""Request-level errors for the HTTP API.

Handlers raise ScanRequestError; the application-wide handler renders it as
``{"success": false, "error": ..., **detail}`` with the given status code.
Anything else falls through to unhandled_error_handler as a plain 500.
"""

import errno
import traceback
from typing import Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from loguru import logger

from musicbox.api.middleware import REQUEST_ID_HEADER, get_request_id
from musicbox.api.schemas import ErrorResponse
from musicbox.core.config import settings


class ScanRequestError(Exception):
    """An error reported directly to the API caller."""

    def __init__(
        self,
        status_code: int,
        error: str,
        path: Optional[str] = None,
        details: Optional[str] = None,
        code: Optional[str] = None,
        stack: Optional[str] = None,
    ):
        super().__init__(error)
        self.status_code = status_code
        self.body = ErrorResponse(
            error=error, path=path, details=details, code=code, stack=stack
        )

    @classmethod
    def bad_request(cls, error: str, **detail) -> "ScanRequestError":
        return cls(400, error, **detail)

    @classmethod
    def from_os_error(cls, error: str, path: str, exc: OSError) -> "ScanRequestError":
        """400 carrying the OS error message and symbolic code (e.g. ENOENT)."""
        code = errno.errorcode.get(exc.errno) if exc.errno else None
        return cls(400, error, path=path, details=exc.strerror or str(exc), code=code)

    @classmethod
    def server_error(cls, error: str, exc: Exception) -> "ScanRequestError":
        """500; diagnostic detail is only included in development."""
        if not settings.is_development:
            return cls(500, error)
        code = None
        if isinstance(getattr(exc, "errno", None), int):
            code = errno.errorcode.get(exc.errno)
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(500, error, details=str(exc), code=code, stack=stack)


async def scan_request_error_handler(
    request: Request, exc: ScanRequestError
) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.body.model_dump(exclude_none=True),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: keeps the JSON error shape for unexpected failures.

    Runs outside the request id middleware, so the id is re-attached here.
    """
    request_id = get_request_id(request)
    logger.opt(exception=exc).bind(request_id=request_id or "-").error(
        f"Unhandled error on {request.method} {request.url.path}"
    )
    error = ScanRequestError.server_error("Internal server error", exc)
    response = await scan_request_error_handler(request, error)
    if request_id:
        response.headers[REQUEST_ID_HEADER] = request_id
    return response
