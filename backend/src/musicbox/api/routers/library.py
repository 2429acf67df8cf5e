import os
import stat
import time
from typing import Any

from fastapi import APIRouter, Depends, Request
from loguru import logger

from musicbox.api.deps import get_album_art_store, get_scanner
from musicbox.api.errors import ScanRequestError
from musicbox.api.schemas import ErrorResponse, ScannedTrack, ScanResponse
from musicbox.worker.album_art import AlbumArtStore
from musicbox.worker.scanner import LibraryScanner, ScanRootError

router = APIRouter()

NOT_ACCESSIBLE = "Directory does not exist or is not accessible"


async def _read_directory_field(request: Request) -> str:
    """Extracts ``directory`` from the JSON body or raises a 400."""
    try:
        payload: Any = await request.json()
    except ValueError:
        payload = None

    if not isinstance(payload, dict):
        raise ScanRequestError.bad_request("Request body must be a JSON object")

    directory = payload.get("directory")
    if not directory or not isinstance(directory, str):
        raise ScanRequestError.bad_request(
            "Directory path is required and must be a string"
        )
    return directory


def _validate_directory(directory: str) -> str:
    """Normalizes the path and checks it is an existing, readable directory."""
    normalized = os.path.abspath(directory)
    logger.debug(f"Normalized directory path: {normalized}")

    try:
        st = os.stat(normalized)
    except OSError as e:
        logger.warning(f"Directory access error ({normalized}): {e}")
        raise ScanRequestError.from_os_error(NOT_ACCESSIBLE, normalized, e) from e
    except ValueError as e:
        # Paths with embedded NUL bytes cannot reach the filesystem
        logger.warning(f"Invalid directory path ({normalized!r}): {e}")
        raise ScanRequestError.bad_request(
            NOT_ACCESSIBLE, path=normalized, details=str(e)
        ) from e

    if not stat.S_ISDIR(st.st_mode):
        logger.warning(f"Path exists but is not a directory: {normalized}")
        raise ScanRequestError.bad_request(
            "The specified path is not a directory", path=normalized
        )

    if not os.access(normalized, os.R_OK):
        logger.warning(f"Directory is not readable: {normalized}")
        raise ScanRequestError.bad_request(
            NOT_ACCESSIBLE, path=normalized, details="Permission denied", code="EACCES"
        )
    return normalized


@router.post(
    "/scan",
    response_model=ScanResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def scan_library(
    request: Request,
    scanner: LibraryScanner = Depends(get_scanner),
    art_store: AlbumArtStore = Depends(get_album_art_store),
):
    """Recursively scan a directory and return metadata for every audio file.

    The walk runs to completion before responding. Files that cannot be read
    are omitted silently; only request validation and root-level failures
    are reported as errors.
    """
    directory = await _read_directory_field(request)
    normalized = _validate_directory(directory)

    start = time.time()
    try:
        result = await scanner.scan_directory(normalized)
    except ScanRootError as e:
        raise ScanRequestError.server_error("Error scanning directory", e) from e
    except Exception as e:
        logger.exception(f"Error during directory scan of {normalized}")
        raise ScanRequestError.server_error("Error scanning directory", e) from e

    scan_time = f"{time.time() - start:.2f}s"
    files = [ScannedTrack.from_metadata(f, art_store) for f in result.files]
    logger.info(
        f"Scan completed in {scan_time}. Found {len(files)} audio files in {normalized}"
    )

    return ScanResponse(count=len(files), scan_time=scan_time, files=files)
