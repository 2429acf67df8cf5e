"""Decides whether a filesystem entry is a playable audio file."""

import os
from typing import Iterable, Optional

import filetype
from loguru import logger

from musicbox.core.scanner_config import DEFAULT_AUDIO_EXTENSIONS


class AudioClassifier:
    """Two-step audio check: extension allow-list, then content sniffing.

    Both checks must pass. Sniffing reads the file header through the
    ``filetype`` library; any I/O error while doing so is logged and treated
    as "not audio" so one unreadable file never aborts a scan.
    """

    def __init__(self, extensions: Optional[Iterable[str]] = None):
        self.extensions = frozenset(
            ext.lower() for ext in (extensions or DEFAULT_AUDIO_EXTENSIONS)
        )

    def has_audio_extension(self, path: str) -> bool:
        return os.path.splitext(path)[1].lower() in self.extensions

    def sniff(self, path: str) -> Optional[str]:
        """Returns the MIME type guessed from the file header, or None."""
        kind = filetype.guess(path)
        return kind.mime if kind else None

    def is_audio(self, path: str) -> bool:
        if not self.has_audio_extension(path):
            return False

        try:
            mime = self.sniff(path)
        except OSError as e:
            logger.warning(f"Error checking if file is audio: {path}: {e}")
            return False

        if not mime or not mime.startswith("audio/"):
            logger.debug(f"Rejected {path}: sniffed type {mime or 'unknown'}")
            return False
        return True
