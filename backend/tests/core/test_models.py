from datetime import datetime

from musicbox.core.models import AudioMetadata, FileMetadata, NumberPair
from musicbox.core.stats import ScanStats


def test_from_parts_merges_stat_and_audio_fields():
    audio = AudioMetadata(title="Song", track=NumberPair(no=2, of=10), raw_metadata=object())

    record = FileMetadata.from_parts("/music/Album/02 Song.FLAC", 1234, 0.0, audio)

    assert record.path == "/music/Album/02 Song.FLAC"
    assert record.name == "02 Song.FLAC"
    assert record.type == "flac"
    assert record.size == 1234
    assert record.last_modified == datetime.fromtimestamp(0.0)
    assert record.title == "Song"
    assert (record.track.no, record.track.of) == (2, 10)
    assert record.raw_metadata is audio.raw_metadata


def test_raw_metadata_not_in_repr():
    record = FileMetadata.from_parts("/m/a.mp3", 1, 0.0, AudioMetadata(raw_metadata="RAW-TAGS"))
    assert "RAW-TAGS" not in repr(record)


def test_scan_stats_to_dict():
    stats = ScanStats(files_seen=3, audio_files=2, skipped=1)
    data = stats.to_dict()
    assert data["files_seen"] == 3
    assert data["audio_files"] == 2
    assert data["skipped"] == 1
    assert "audio=2" in str(stats)
