"""Statistics tracking for library scans.

Replaces primitive dict counters with a structured dataclass so the walker,
the HTTP layer and the CLI all report the same numbers.
"""

from dataclasses import dataclass


@dataclass
class ScanStats:
    """Statistics for one directory walk.

    Attributes:
        directories_scanned: Directories whose listing was read successfully.
        directories_failed: Directories that could not be listed (subtree treated as empty).
        files_seen: Regular files encountered (before classification).
        audio_files: Files that passed classification and produced a record.
        skipped: Files rejected by the classifier (wrong extension or content).
        errors: Files that failed while being processed.
        album_art_written: Records that received a persisted cover image.

    Example:
        >>> stats = ScanStats()
        >>> stats.files_seen += 1
        >>> stats.audio_files += 1
        >>> stats.to_dict()["audio_files"]
        1
    """

    directories_scanned: int = 0
    directories_failed: int = 0
    files_seen: int = 0
    audio_files: int = 0
    skipped: int = 0
    errors: int = 0
    album_art_written: int = 0

    def to_dict(self) -> dict:
        """Convert stats to dictionary for logging and CLI output."""
        return {
            "directories_scanned": self.directories_scanned,
            "directories_failed": self.directories_failed,
            "files_seen": self.files_seen,
            "audio_files": self.audio_files,
            "skipped": self.skipped,
            "errors": self.errors,
            "album_art_written": self.album_art_written,
        }

    def __str__(self) -> str:
        return (
            f"ScanStats(dirs={self.directories_scanned}, "
            f"dirs_failed={self.directories_failed}, files={self.files_seen}, "
            f"audio={self.audio_files}, skipped={self.skipped}, "
            f"errors={self.errors}, art={self.album_art_written})"
        )
