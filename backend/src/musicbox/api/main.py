"""FastAPI application entry point for the MusicBox API.

This module initializes the FastAPI application with its routers,
middleware and static album art mount. The API includes endpoints for:
- Liveness/version checks
- Recursive library scanning with metadata and album art extraction
- Serving persisted album art

CORS is enabled for the browser client's development origins.
"""

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.responses import Response

from musicbox.api.errors import (
    ScanRequestError,
    scan_request_error_handler,
    unhandled_error_handler,
)
from musicbox.api.middleware import RequestIDMiddleware, RequestTimingMiddleware
from musicbox.api.routers import library, system
from musicbox.core.config import settings
from musicbox.core.logger import setup_logging
from musicbox.worker.album_art import AlbumArtStore

# Initialize Logging
setup_logging()

# The static mount below needs the directory to exist at import time
album_art_store = AlbumArtStore(settings.ALBUM_ART_DIR, settings.ALBUM_ART_URL_PREFIX)
album_art_store.ensure_directory()


class AlbumArtFiles(StaticFiles):
    """Static files with long-lived cache headers; art filenames never change."""

    def file_response(self, *args, **kwargs) -> Response:
        response = super().file_response(*args, **kwargs)
        response.headers["Cache-Control"] = (
            f"public, max-age={settings.ALBUM_ART_CACHE_SECONDS}, immutable"
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup/shutdown."""
    album_art_store.ensure_directory()
    logger.info(f"MusicBox API {settings.VERSION} started")
    yield
    logger.info("MusicBox API shutting down")


app = FastAPI(
    title="MusicBox API",
    version=settings.VERSION,
    description="Local music library scanner and metadata API",
    lifespan=lifespan,
)

app.add_middleware(
    RequestTimingMiddleware, slow_request_threshold=settings.SLOW_REQUEST_THRESHOLD
)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Requested-With", "X-Request-ID"],
)

app.add_exception_handler(ScanRequestError, scan_request_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)

# Include Routers
app.include_router(system.router, prefix="/api", tags=["System"])
app.include_router(library.router, prefix="/api/library", tags=["Library"])

app.mount(
    settings.ALBUM_ART_URL_PREFIX,
    AlbumArtFiles(directory=str(album_art_store.directory)),
    name="album-art",
)


@app.get("/")
async def root():
    return {"message": "MusicBox API is running"}


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
