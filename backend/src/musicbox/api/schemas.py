from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from musicbox.core.models import FileMetadata
from musicbox.worker.album_art import AlbumArtStore
from musicbox.worker.extractors import (
    UNKNOWN_ALBUM,
    UNKNOWN_ARTIST,
    title_from_filename,
)


class ScannedTrack(BaseModel):
    """Client-safe projection of a scanned file.

    Raw parser output and internal filesystem layout (album art location)
    never leave the server; the art path is rewritten to its public URL.
    """
    model_config = ConfigDict(populate_by_name=True)

    path: str
    name: str
    size: int
    type: str
    duration: Optional[float] = None
    bitrate: Optional[int] = None
    title: str
    artist: str
    album: str
    year: Optional[int] = None
    genre: Optional[List[str]] = None
    sample_rate: Optional[int] = Field(default=None, alias="sampleRate")
    channels: Optional[int] = None
    album_art_path: Optional[str] = Field(default=None, alias="albumArtPath")

    @classmethod
    def from_metadata(
        cls, record: FileMetadata, art_store: AlbumArtStore
    ) -> "ScannedTrack":
        return cls(
            path=record.path,
            name=record.name,
            size=record.size,
            type=record.type,
            duration=record.duration,
            bitrate=record.bitrate,
            title=record.title or title_from_filename(record.path),
            artist=record.artist or UNKNOWN_ARTIST,
            album=record.album or UNKNOWN_ALBUM,
            year=record.year,
            genre=record.genre,
            sample_rate=record.sample_rate,
            channels=record.channels,
            album_art_path=(
                art_store.public_url(record.album_art_path)
                if record.album_art_path
                else None
            ),
        )


class ScanResponse(BaseModel):
    """Successful scan result."""
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    count: int
    scan_time: str = Field(alias="scanTime")
    files: List[ScannedTrack]


class ErrorResponse(BaseModel):
    """Failed request; diagnostic fields appear only where relevant."""
    success: bool = False
    error: str
    path: Optional[str] = None
    details: Optional[str] = None
    code: Optional[str] = None
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    version: str
    python: str
