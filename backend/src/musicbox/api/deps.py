from fastapi import Depends

from musicbox.core.config import settings
from musicbox.core.scanner_config import ScannerConfig
from musicbox.worker.album_art import AlbumArtStore
from musicbox.worker.scanner import LibraryScanner


def get_album_art_store() -> AlbumArtStore:
    """Dependency for the shared album art directory."""
    return AlbumArtStore(settings.ALBUM_ART_DIR, settings.ALBUM_ART_URL_PREFIX)


def get_scanner_config() -> ScannerConfig:
    return ScannerConfig.from_settings(settings)


def get_scanner(
    art_store: AlbumArtStore = Depends(get_album_art_store),
    config: ScannerConfig = Depends(get_scanner_config),
) -> LibraryScanner:
    """Dependency providing a fresh scanner per request (no shared scan state)."""
    return LibraryScanner(art_store=art_store, config=config)
