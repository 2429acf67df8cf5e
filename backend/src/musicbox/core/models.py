"""Scan-time data structures for audio files.

These are transient: a FileMetadata record lives for the duration of one scan
request and is discarded once it has been projected into the HTTP response.
Only album art written by the AlbumArtStore outlives a scan.
"""

from dataclasses import dataclass, field, fields
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional


@dataclass
class NumberPair:
    """Position within a set, e.g. track 3 of 12. Either side may be unknown."""

    no: Optional[int] = None
    of: Optional[int] = None


@dataclass
class Lyrics:
    text: str
    description: Optional[str] = None


@dataclass
class EmbeddedPicture:
    """Raw cover image found inside an audio container.

    Attributes:
        data: Image bytes as stored in the tag.
        format: MIME type of the image (e.g. "image/jpeg"); may be empty.
    """

    data: bytes
    format: str = ""


@dataclass
class AudioMetadata:
    """Partial record produced by a single metadata extraction strategy.

    Every field is optional; strategies fill in what they can read. The
    ``raw_metadata`` attribute carries the underlying parser object and is
    never exposed outside the process.
    """

    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    track: Optional[NumberPair] = None
    disk: Optional[NumberPair] = None
    genre: Optional[List[str]] = None
    comment: Optional[List[str]] = None
    composer: Optional[List[str]] = None
    lyrics: Optional[List[Lyrics]] = None
    duration: Optional[float] = None  # seconds
    bitrate: Optional[int] = None  # kbps
    sample_rate: Optional[int] = None  # Hz
    channels: Optional[int] = None
    album_art_path: Optional[Path] = None
    raw_metadata: Any = None


@dataclass
class FileMetadata:
    """Normalized per-file record assembled by the directory walker.

    Attributes:
        path: Absolute filesystem path; unique within one scan.
        name: Basename including extension.
        size: File size in bytes.
        last_modified: Modification time of the file.
        type: Lower-cased extension without the dot (e.g. "mp3").
        album_art_path: Persisted cover image, set only when embedded art was
            found and written successfully.
        raw_metadata: Underlying tag parser output; internal only.
    """

    path: str
    name: str
    size: int
    last_modified: datetime
    type: str
    title: Optional[str] = None
    artist: Optional[str] = None
    album: Optional[str] = None
    year: Optional[int] = None
    track: Optional[NumberPair] = None
    disk: Optional[NumberPair] = None
    genre: Optional[List[str]] = None
    comment: Optional[List[str]] = None
    composer: Optional[List[str]] = None
    lyrics: Optional[List[Lyrics]] = None
    duration: Optional[float] = None
    bitrate: Optional[int] = None
    sample_rate: Optional[int] = None
    channels: Optional[int] = None
    album_art_path: Optional[Path] = None
    raw_metadata: Any = field(default=None, repr=False)

    @classmethod
    def from_parts(
        cls,
        path: str,
        size: int,
        mtime: float,
        audio: AudioMetadata,
    ) -> "FileMetadata":
        """Merges file-stat fields with extracted audio fields into one record."""
        file_path = Path(path)
        extracted = {f.name: getattr(audio, f.name) for f in fields(audio)}
        return cls(
            path=str(file_path),
            name=file_path.name,
            size=size,
            last_modified=datetime.fromtimestamp(mtime),
            type=file_path.suffix.lower().lstrip("."),
            **extracted,
        )
