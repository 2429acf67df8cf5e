"""Tests for audio file classification (extension + content sniffing)."""

from pathlib import Path
from unittest.mock import patch

from musicbox.worker.classifier import AudioClassifier


def test_accepts_tagged_mp3(tmp_path: Path, make_mp3):
    path = make_mp3(tmp_path / "song.mp3", title="Song")
    assert AudioClassifier().is_audio(str(path))


def test_accepts_wav(tmp_path: Path, make_wav):
    path = make_wav(tmp_path / "tone.wav")
    assert AudioClassifier().is_audio(str(path))


def test_extension_check_is_case_insensitive(tmp_path: Path, make_mp3):
    path = make_mp3(tmp_path / "LOUD.MP3")
    assert AudioClassifier().is_audio(str(path))


def test_rejects_unsupported_extension_without_sniffing(tmp_path: Path, make_mp3):
    path = make_mp3(tmp_path / "song.mp4a")
    classifier = AudioClassifier()
    with patch.object(classifier, "sniff") as mock_sniff:
        assert classifier.is_audio(str(path)) is False
        mock_sniff.assert_not_called()


def test_rejects_audio_extension_with_non_audio_content(tmp_path: Path):
    path = tmp_path / "notes.mp3"
    path.write_text("definitely not an mpeg stream")
    assert AudioClassifier().is_audio(str(path)) is False


def test_rejects_image_renamed_to_audio(tmp_path: Path, fake_jpeg):
    path = tmp_path / "cover.flac"
    path.write_bytes(fake_jpeg)
    assert AudioClassifier().is_audio(str(path)) is False


def test_rejects_empty_file(tmp_path: Path):
    path = tmp_path / "empty.ogg"
    path.write_bytes(b"")
    assert AudioClassifier().is_audio(str(path)) is False


def test_io_error_fails_closed(tmp_path: Path, make_mp3):
    path = make_mp3(tmp_path / "locked.mp3")
    classifier = AudioClassifier()
    with patch(
        "musicbox.worker.classifier.filetype.guess",
        side_effect=PermissionError("Permission denied"),
    ):
        assert classifier.is_audio(str(path)) is False


def test_missing_file_fails_closed(tmp_path: Path):
    assert AudioClassifier().is_audio(str(tmp_path / "gone.mp3")) is False


def test_custom_extension_set(tmp_path: Path, make_wav):
    path = make_wav(tmp_path / "tone.wav")
    classifier = AudioClassifier(extensions={".mp3"})
    assert classifier.has_audio_extension(str(path)) is False
    assert classifier.is_audio(str(path)) is False


def test_accepts_flac_ogg_and_m4a(tmp_path: Path, make_flac, make_ogg, make_m4a):
    classifier = AudioClassifier()
    for path in (
        make_flac(tmp_path / "a.flac"),
        make_ogg(tmp_path / "b.ogg"),
        make_m4a(tmp_path / "c.m4a"),
    ):
        assert classifier.is_audio(str(path)), path
