"""Metadata extraction strategies for audio files.

Extraction is an ordered chain: the first strategy that returns wins, and a
strategy that raises hands over to the next one.

    TagExtractor      mutagen: tags, stream info and embedded cover art
    ProbeExtractor    ffprobe: stream info only (no tags)
    FilenameExtractor filename-derived defaults, never fails

Typical usage example:
    extractor = MetadataExtractor.default(AlbumArtStore())
    metadata = extractor.extract("/music/Queen/01 - Bohemian Rhapsody.mp3")
"""

import base64
import json
import os
import subprocess
from typing import Any, List, Optional, Sequence, Tuple

import mutagen
from loguru import logger
from mutagen.flac import Picture
from mutagen.id3 import ID3
from mutagen.mp4 import MP4Cover, MP4Tags

from musicbox.core.models import AudioMetadata, EmbeddedPicture, Lyrics, NumberPair
from musicbox.core.scanner_config import ScannerConfig
from musicbox.worker.album_art import AlbumArtStore

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_ALBUM = "Unknown Album"
EMBEDDED_LYRICS = "Embedded lyrics"


class ExtractionError(Exception):
    """Raised by a strategy that cannot read a file."""


def title_from_filename(path: str) -> str:
    """Filename with the extension stripped."""
    return os.path.splitext(os.path.basename(path))[0]


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _kbps(bits_per_second: Any) -> Optional[int]:
    bps = _to_float(bits_per_second)
    if not bps:
        return None
    return int(round(bps / 1000))


def _parse_year(value: Any) -> Optional[int]:
    """Year from a date-ish tag value ("1975", "1975-10-31", ID3TimeStamp)."""
    if value is None:
        return None
    text = str(value).strip()
    if len(text) >= 4 and text[:4].isdigit():
        return int(text[:4])
    return None


def _parse_pair(value: Any, total: Any = None) -> Optional[NumberPair]:
    """Parses "3", "3/12" or a (3, 12) tuple into a NumberPair."""
    if value is None:
        return None
    if isinstance(value, tuple):
        no, of = (list(value) + [None, None])[:2]
        no, of = _to_int(no) or None, _to_int(of) or None
    else:
        text = str(value)
        no_text, _, of_text = text.partition("/")
        no, of = _to_int(no_text), _to_int(of_text) if of_text else None
    if of is None and total is not None:
        of = _to_int(total)
    if no is None and of is None:
        return None
    return NumberPair(no=no, of=of)


def _clean_list(values: Any) -> Optional[List[str]]:
    if not values:
        return None
    if isinstance(values, (str, bytes)):
        values = [values]
    cleaned = [str(v).strip() for v in values if v is not None and str(v).strip()]
    return cleaned or None


def _first(values: Optional[List[str]]) -> Optional[str]:
    return values[0] if values else None


class MetadataStrategy:
    """Base class for a single extraction strategy."""

    name = "base"

    def extract(self, path: str) -> AudioMetadata:
        raise NotImplementedError


class TagExtractor(MetadataStrategy):
    """Reads container tags and stream info with mutagen.

    Handles the ID3 (mp3, wav, aac), MP4 atom (m4a) and Vorbis comment (flac,
    ogg) tag families. The first embedded picture is handed to the album art
    store when cover art extraction is enabled.
    """

    name = "tags"

    def __init__(self, art_store: Optional[AlbumArtStore] = None, extract_cover_art: bool = True):
        self.art_store = art_store
        self.extract_cover_art = extract_cover_art and art_store is not None

    def extract(self, path: str) -> AudioMetadata:
        audio = mutagen.File(path)
        if audio is None:
            raise ExtractionError(f"Unsupported container: {path}")
        if audio.info is None:
            raise ExtractionError(f"No stream info: {path}")

        info = audio.info
        result = AudioMetadata(
            duration=_to_float(getattr(info, "length", None)),
            bitrate=_kbps(getattr(info, "bitrate", None)),
            sample_rate=_to_int(getattr(info, "sample_rate", None)),
            channels=_to_int(getattr(info, "channels", None)),
            raw_metadata=audio,
        )

        tags = audio.tags
        pictures: List[EmbeddedPicture] = []
        if isinstance(tags, ID3):
            pictures = self._read_id3(tags, result)
        elif isinstance(tags, MP4Tags):
            pictures = self._read_mp4(tags, result)
        elif tags is not None and hasattr(tags, "get"):
            pictures = self._read_vorbis(tags, result)

        # FLAC keeps pictures in their own metadata blocks, outside the tags
        pictures.extend(
            EmbeddedPicture(data=p.data, format=p.mime)
            for p in getattr(audio, "pictures", None) or []
        )

        if pictures and self.extract_cover_art:
            first = pictures[0]
            result.album_art_path = self.art_store.save(first.data, first.format)

        return result

    @staticmethod
    def _read_id3(tags: ID3, result: AudioMetadata) -> List[EmbeddedPicture]:
        def text(frame_id: str) -> Optional[List[str]]:
            frame = tags.get(frame_id)
            return _clean_list(frame.text) if frame is not None else None

        result.title = _first(text("TIT2"))
        result.artist = _first(text("TPE1"))
        result.album = _first(text("TALB"))
        result.year = _parse_year(_first(text("TDRC")) or _first(text("TYER")))
        result.track = _parse_pair(_first(text("TRCK")))
        result.disk = _parse_pair(_first(text("TPOS")))
        result.composer = text("TCOM")

        genre = tags.get("TCON")
        if genre is not None:
            result.genre = _clean_list(genre.genres)

        comments = [t for frame in tags.getall("COMM") for t in frame.text]
        result.comment = _clean_list(comments)

        lyrics = [frame.text for frame in tags.getall("USLT") if frame.text]
        if lyrics:
            result.lyrics = [Lyrics(text=t, description=EMBEDDED_LYRICS) for t in lyrics]

        return [
            EmbeddedPicture(data=frame.data, format=frame.mime)
            for frame in tags.getall("APIC")
            if frame.data
        ]

    @staticmethod
    def _read_mp4(tags: MP4Tags, result: AudioMetadata) -> List[EmbeddedPicture]:
        def values(atom: str) -> Optional[List[str]]:
            return _clean_list(tags.get(atom))

        result.title = _first(values("\xa9nam"))
        result.artist = _first(values("\xa9ART"))
        result.album = _first(values("\xa9alb"))
        result.year = _parse_year(_first(values("\xa9day")))
        result.genre = values("\xa9gen")
        result.composer = values("\xa9wrt")
        result.comment = values("\xa9cmt")

        track = tags.get("trkn")
        result.track = _parse_pair(track[0]) if track else None
        disk = tags.get("disk")
        result.disk = _parse_pair(disk[0]) if disk else None

        lyrics = values("\xa9lyr")
        if lyrics:
            result.lyrics = [Lyrics(text=t, description=EMBEDDED_LYRICS) for t in lyrics]

        pictures = []
        for cover in tags.get("covr") or []:
            fmt = "image/png" if cover.imageformat == MP4Cover.FORMAT_PNG else "image/jpeg"
            pictures.append(EmbeddedPicture(data=bytes(cover), format=fmt))
        return pictures

    @staticmethod
    def _read_vorbis(tags: Any, result: AudioMetadata) -> List[EmbeddedPicture]:
        def values(*keys: str) -> Optional[List[str]]:
            for key in keys:
                found = _clean_list(tags.get(key))
                if found:
                    return found
            return None

        result.title = _first(values("title"))
        result.artist = _first(values("artist"))
        result.album = _first(values("album"))
        result.year = _parse_year(_first(values("date", "year")))
        result.track = _parse_pair(
            _first(values("tracknumber")), _first(values("tracktotal", "totaltracks"))
        )
        result.disk = _parse_pair(
            _first(values("discnumber")), _first(values("disctotal", "totaldiscs"))
        )
        result.genre = values("genre")
        result.composer = values("composer")
        result.comment = values("comment", "description")

        lyrics = values("lyrics", "unsyncedlyrics")
        if lyrics:
            result.lyrics = [Lyrics(text=t, description=EMBEDDED_LYRICS) for t in lyrics]

        pictures = []
        for encoded in tags.get("metadata_block_picture") or []:
            try:
                picture = Picture(base64.b64decode(encoded))
            except (ValueError, TypeError, mutagen.MutagenError) as e:
                logger.debug(f"Ignoring unreadable METADATA_BLOCK_PICTURE: {e}")
                continue
            pictures.append(EmbeddedPicture(data=picture.data, format=picture.mime))
        return pictures


class ProbeExtractor(MetadataStrategy):
    """Reads stream properties by running ffprobe and parsing its JSON output.

    ffprobe yields no descriptive tags, so title/artist/album fall back to
    the filename and the "Unknown" placeholders.
    """

    name = "ffprobe"

    def __init__(self, ffprobe_path: str = "ffprobe", timeout: float = 30.0):
        self.ffprobe_path = ffprobe_path
        self.timeout = timeout

    def command(self, path: str) -> List[str]:
        return [
            self.ffprobe_path,
            "-v", "error",
            "-show_entries", "format=duration,bit_rate",
            "-show_entries", "stream=sample_rate,channels",
            "-of", "json",
            path,
        ]

    def probe(self, path: str) -> dict:
        completed = subprocess.run(
            self.command(path),
            capture_output=True,
            text=True,
            timeout=self.timeout,
            check=True,
        )
        data = json.loads(completed.stdout or "{}")
        if not isinstance(data, dict):
            raise ExtractionError(f"Unexpected ffprobe output for {path}")
        return data

    def extract(self, path: str) -> AudioMetadata:
        data = self.probe(path)
        fmt = data.get("format") or {}
        streams = data.get("streams")
        stream = streams[0] if isinstance(streams, list) and streams else {}

        return AudioMetadata(
            title=title_from_filename(path),
            artist=UNKNOWN_ARTIST,
            album=UNKNOWN_ALBUM,
            duration=_to_float(fmt.get("duration")),
            bitrate=_kbps(fmt.get("bit_rate")),
            sample_rate=_to_int(stream.get("sample_rate")),
            channels=_to_int(stream.get("channels")),
        )


class FilenameExtractor(MetadataStrategy):
    """Last resort: a bare record derived from the filename."""

    name = "filename"

    def extract(self, path: str) -> AudioMetadata:
        return AudioMetadata(
            title=title_from_filename(path),
            artist=UNKNOWN_ARTIST,
            album=UNKNOWN_ALBUM,
        )


class MetadataExtractor:
    """Runs strategies in order until one succeeds. Never raises."""

    def __init__(self, strategies: Sequence[MetadataStrategy]):
        self.strategies: Tuple[MetadataStrategy, ...] = tuple(strategies)
        self._last_resort = FilenameExtractor()

    @classmethod
    def default(
        cls,
        art_store: Optional[AlbumArtStore] = None,
        config: Optional[ScannerConfig] = None,
    ) -> "MetadataExtractor":
        config = config or ScannerConfig()
        return cls(
            [
                TagExtractor(art_store, extract_cover_art=config.extract_cover_art),
                ProbeExtractor(config.ffprobe_path, config.ffprobe_timeout),
                FilenameExtractor(),
            ]
        )

    def extract(self, path: str) -> AudioMetadata:
        for strategy in self.strategies:
            try:
                return strategy.extract(path)
            except Exception as e:
                logger.warning(
                    f"{strategy.name} metadata extraction failed for {path}: "
                    f"{type(e).__name__}: {e}"
                )
        return self._last_resort.extract(path)
