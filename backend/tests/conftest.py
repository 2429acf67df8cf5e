import base64
import os
import struct
import tempfile
import wave
from pathlib import Path

import pytest

# ============================================================================
# TEST ENVIRONMENT
# ============================================================================
# Settings are read at import time, so album art and logs are redirected to a
# throwaway directory BEFORE any musicbox module is imported.
# ============================================================================
_TEST_ROOT = Path(tempfile.mkdtemp(prefix="musicbox-tests-"))
os.environ["MUSICBOX_DATA_DIR"] = str(_TEST_ROOT / "data")
os.environ["ALBUM_ART_DIR"] = str(_TEST_ROOT / "album-art")
os.environ["LOG_TO_FILE"] = "false"

from httpx import ASGITransport, AsyncClient  # noqa: E402
from mutagen._vorbis import VCommentDict  # noqa: E402
from mutagen.flac import FLAC, Picture  # noqa: E402
from mutagen.id3 import APIC, COMM, ID3, TALB, TCON, TDRC, TIT2, TPE1, TRCK, USLT  # noqa: E402
from mutagen.mp4 import MP4, MP4Cover  # noqa: E402
from mutagen.ogg import OggPage  # noqa: E402

from musicbox.api.deps import get_album_art_store  # noqa: E402
from musicbox.api.main import app  # noqa: E402
from musicbox.worker.album_art import AlbumArtStore  # noqa: E402

FAKE_JPEG = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + b"\x00" * 64 + b"\xff\xd9"
FAKE_PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 48

# MPEG-1 Layer III, 44.1 kHz, stereo, no padding. Key: bitrate in kbps.
_MPEG_BITRATE_INDEX = {128: 0x9, 192: 0xB, 320: 0xE}


def write_mp3(
    path: Path,
    bitrate: int = 128,
    frames: int = 40,
    title=None,
    artist=None,
    album=None,
    year=None,
    track=None,
    genre=None,
    comment=None,
    lyrics=None,
    picture: bytes = None,
) -> Path:
    """Writes a minimal but parseable MP3 (silent CBR frames) with ID3 tags."""
    header = bytes([0xFF, 0xFB, (_MPEG_BITRATE_INDEX[bitrate] << 4), 0x00])
    frame_length = 144 * bitrate * 1000 // 44100
    frame = header + b"\x00" * (frame_length - len(header))
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(frame * frames)

    tags = ID3()
    if title:
        tags.add(TIT2(encoding=3, text=title))
    if artist:
        tags.add(TPE1(encoding=3, text=artist))
    if album:
        tags.add(TALB(encoding=3, text=album))
    if year:
        tags.add(TDRC(encoding=3, text=str(year)))
    if track:
        tags.add(TRCK(encoding=3, text=track))
    if genre:
        tags.add(TCON(encoding=3, text=genre))
    if comment:
        tags.add(COMM(encoding=3, lang="eng", desc="", text=comment))
    if lyrics:
        tags.add(USLT(encoding=3, lang="eng", desc="", text=lyrics))
    if picture:
        tags.add(APIC(encoding=3, mime="image/jpeg", type=3, desc="Cover", data=picture))
    tags.save(str(path))
    return path


def write_wav(path: Path, seconds: float = 0.5, sample_rate: int = 8000) -> Path:
    """Writes a silent mono 16-bit PCM WAV file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav:
        wav.setnchannels(1)
        wav.setsampwidth(2)
        wav.setframerate(sample_rate)
        wav.writeframes(b"\x00\x00" * int(seconds * sample_rate))
    return path


def _flac_picture(data: bytes, mime: str) -> Picture:
    picture = Picture()
    picture.type = 3  # front cover
    picture.mime = mime
    picture.desc = "Cover"
    picture.data = data
    return picture


def write_flac(
    path: Path,
    seconds: float = 1.0,
    sample_rate: int = 44100,
    tags: dict = None,
    picture: bytes = None,
    picture_mime: str = "image/png",
) -> Path:
    """Writes a FLAC header (STREAMINFO only, stereo 16-bit) with Vorbis comments.

    The audio payload is filler; parsers only need the metadata blocks.
    """
    total_samples = int(seconds * sample_rate)
    # 20 bits rate | 3 bits channels-1 | 5 bits bps-1 | 36 bits total samples
    packed = (sample_rate << 44) | (1 << 41) | (15 << 36) | total_samples
    streaminfo = (
        struct.pack(">HH", 4096, 4096) + b"\x00" * 6 + struct.pack(">Q", packed) + b"\x00" * 16
    )
    block_header = b"\x80" + len(streaminfo).to_bytes(3, "big")  # last block, STREAMINFO
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"fLaC" + block_header + streaminfo + b"\xff\xf8" + b"\x00" * 1022)

    audio = FLAC(str(path))
    audio.add_tags()
    for key, value in (tags or {}).items():
        audio.tags[key] = value
    if picture:
        audio.add_picture(_flac_picture(picture, picture_mime))
    audio.save()
    return path


def _ogg_page(packets, sequence: int, position: int, first=False, last=False) -> bytes:
    page = OggPage()
    page.serial = 0x4D42
    page.sequence = sequence
    page.position = position
    page.packets = packets
    page.first = first
    page.last = last
    return page.write()


def write_ogg(
    path: Path,
    seconds: float = 1.0,
    sample_rate: int = 44100,
    tags: dict = None,
    picture: bytes = None,
    picture_mime: str = "image/png",
) -> Path:
    """Writes an Ogg Vorbis stream: identification, comment and setup headers
    plus one filler audio page whose granule position sets the duration.

    Cover art goes into a METADATA_BLOCK_PICTURE comment.
    """
    identification = (
        b"\x01vorbis"
        + struct.pack("<IBI3iB", 0, 2, sample_rate, 0, 128000, 0, 0xB8)
        + b"\x01"
    )
    comments = VCommentDict()
    for key, value in (tags or {}).items():
        comments[key] = value
    if picture:
        encoded = base64.b64encode(_flac_picture(picture, picture_mime).write())
        comments["metadata_block_picture"] = [encoded.decode("ascii")]
    comment_packet = b"\x03vorbis" + comments.write()
    setup_packet = b"\x05vorbis" + b"\x00" * 8

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(
        _ogg_page([identification], 0, 0, first=True)
        + _ogg_page([comment_packet, setup_packet], 1, 0)
        + _ogg_page([b"\x00" * 16], 2, int(seconds * sample_rate), last=True)
    )
    return path


def _atom(name: bytes, payload: bytes) -> bytes:
    return struct.pack(">I", len(payload) + 8) + name + payload


def write_m4a(
    path: Path,
    seconds: float = 2.0,
    tags: dict = None,
    picture: bytes = None,
) -> Path:
    """Writes an ftyp + moov(mvhd) skeleton and stores iTunes atoms with mutagen.

    With no audio track the duration comes from the movie header.
    """
    ftyp = _atom(b"ftyp", b"M4A " + struct.pack(">I", 0) + b"M4A mp42isom")
    # version/flags, creation, modification, timescale, duration, then zeroed fields
    mvhd = _atom(
        b"mvhd",
        b"\x00\x00\x00\x00" + struct.pack(">IIII", 0, 0, 1000, int(seconds * 1000)) + b"\x00" * 80,
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(ftyp + _atom(b"moov", mvhd))

    audio = MP4(str(path))
    audio.add_tags()
    for key, value in (tags or {}).items():
        audio.tags[key] = value
    if picture:
        audio.tags["covr"] = [MP4Cover(picture, imageformat=MP4Cover.FORMAT_PNG)]
    audio.save()
    return path


@pytest.fixture
def art_store(tmp_path: Path) -> AlbumArtStore:
    store = AlbumArtStore(tmp_path / "album-art", "/album-art")
    store.ensure_directory()
    return store


@pytest.fixture
def music_dir(tmp_path: Path) -> Path:
    root = tmp_path / "music"
    root.mkdir()
    return root


@pytest.fixture(scope="function")
async def client(art_store: AlbumArtStore):
    """Async test client whose scans write album art into a per-test store."""
    app.dependency_overrides[get_album_art_store] = lambda: art_store
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
async def live_client():
    """Async test client using the application's real album art directory."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac


@pytest.fixture
def make_mp3():
    return write_mp3


@pytest.fixture
def make_wav():
    return write_wav


@pytest.fixture
def fake_jpeg() -> bytes:
    return FAKE_JPEG


@pytest.fixture
def fake_png() -> bytes:
    return FAKE_PNG


@pytest.fixture
def make_flac():
    return write_flac


@pytest.fixture
def make_ogg():
    return write_ogg


@pytest.fixture
def make_m4a():
    return write_m4a
