"""Configuration for scanner behavior and performance tuning."""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional

DEFAULT_AUDIO_EXTENSIONS = frozenset(
    {".mp3", ".m4a", ".flac", ".wav", ".ogg", ".aac"}
)


@dataclass
class ScannerConfig:
    """Configuration for LibraryScanner behavior.

    Attributes:
        max_concurrent_files: Files processed in parallel within one directory (default: 8)
        metadata_workers: Thread pool size for blocking I/O (default: min(8, max_concurrent_files * 2))
        audio_extensions: Lower-cased extensions, with dot, considered for classification
        extract_cover_art: Persist the first embedded picture of each track (default: True)
        ffprobe_path: Executable used by the probe fallback (default: "ffprobe")
        ffprobe_timeout: Seconds before a probe invocation is abandoned (default: 30)

    Example:
        >>> config = ScannerConfig(max_concurrent_files=4, extract_cover_art=False)
        >>> scanner = LibraryScanner(config=config)
    """

    max_concurrent_files: int = 8
    metadata_workers: Optional[int] = None  # Default: min(8, max_concurrent_files * 2)
    audio_extensions: FrozenSet[str] = field(
        default_factory=lambda: DEFAULT_AUDIO_EXTENSIONS
    )
    extract_cover_art: bool = True
    ffprobe_path: str = "ffprobe"
    ffprobe_timeout: float = 30.0

    def __post_init__(self):
        """Validate configuration values and set computed defaults.

        Raises:
            ValueError: If any configuration value is invalid.
        """
        if self.max_concurrent_files < 1:
            raise ValueError("max_concurrent_files must be >= 1")
        if self.metadata_workers is None:
            self.metadata_workers = min(8, self.max_concurrent_files * 2)
        if self.metadata_workers < 1:
            raise ValueError("metadata_workers must be >= 1")
        if self.ffprobe_timeout <= 0:
            raise ValueError("ffprobe_timeout must be > 0")
        if not self.audio_extensions:
            raise ValueError("audio_extensions must not be empty")
        self.audio_extensions = frozenset(
            ext.lower() if ext.startswith(".") else f".{ext.lower()}"
            for ext in self.audio_extensions
        )

    @classmethod
    def from_settings(cls, settings) -> "ScannerConfig":
        """Builds a config from the application Settings object."""
        return cls(
            max_concurrent_files=settings.SCAN_MAX_CONCURRENT_FILES,
            ffprobe_path=settings.FFPROBE_PATH,
            ffprobe_timeout=settings.FFPROBE_TIMEOUT,
            extract_cover_art=settings.EXTRACT_COVER_ART,
        )
