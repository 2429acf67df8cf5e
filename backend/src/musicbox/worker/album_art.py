"""Persistence of embedded cover art extracted during scans."""

import random
import re
import time
from pathlib import Path
from typing import Optional, Union

from loguru import logger

from musicbox.core.config import settings

DEFAULT_ART_EXTENSION = "jpg"
_MAX_NAME_ATTEMPTS = 3


class AlbumArtStore:
    """Writes cover images under a single directory and maps them to URLs.

    Filenames combine a millisecond timestamp with a random suffix and are
    created exclusively, so concurrent scans can share the directory without
    locking. Nothing is ever deleted or deduplicated here.

    Attributes:
        directory: Absolute storage directory.
        url_prefix: Public mount point the directory is served from.
    """

    def __init__(
        self,
        directory: Union[str, Path, None] = None,
        url_prefix: Optional[str] = None,
    ):
        self.directory = Path(directory or settings.ALBUM_ART_DIR).absolute()
        self.url_prefix = (url_prefix or settings.ALBUM_ART_URL_PREFIX).rstrip("/")

    def ensure_directory(self) -> Path:
        """Creates the storage directory (recursive, idempotent)."""
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory

    @staticmethod
    def extension_for(format_hint: Optional[str]) -> str:
        """Derives a file extension from a MIME type or bare subtype.

        "image/png" -> "png", "jpeg" -> "jpeg", "" or None -> "jpg".
        """
        if not format_hint:
            return DEFAULT_ART_EXTENSION
        subtype = format_hint.split("/", 1)[1] if "/" in format_hint else format_hint
        subtype = re.sub(r"[^a-z0-9]", "", subtype.split("+", 1)[0].lower())
        return subtype or DEFAULT_ART_EXTENSION

    def generate_filename(self, format_hint: Optional[str] = None) -> str:
        timestamp = int(time.time() * 1000)
        suffix = random.randint(0, 999999)
        return f"art-{timestamp}-{suffix}.{self.extension_for(format_hint)}"

    def save(self, data: bytes, format_hint: Optional[str] = None) -> Optional[Path]:
        """Writes image bytes to a new file and returns its absolute path.

        Returns None (after logging) when the write fails; callers treat that
        as "no album art for this track".
        """
        for _ in range(_MAX_NAME_ATTEMPTS):
            target = self.directory / self.generate_filename(format_hint)
            try:
                with open(target, "xb") as fh:
                    fh.write(data)
            except FileExistsError:
                continue
            except OSError as e:
                logger.error(f"Error saving album art to {target}: {e}")
                return None
            logger.debug(f"Saved album art ({len(data)} bytes) to {target}")
            return target

        logger.error(f"Could not allocate a unique album art filename in {self.directory}")
        return None

    def public_url(self, art_path: Union[str, Path]) -> str:
        """Rewrites a stored art path to its public URL (basename only)."""
        return f"{self.url_prefix}/{Path(art_path).name}"
