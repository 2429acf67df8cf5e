import os
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "production"  # "development" exposes error diagnostics

    # Project Paths
    DATA_DIR: Path = Path(
        os.getenv("MUSICBOX_DATA_DIR", str(Path.cwd() / "data"))
    )

    # Album Art
    ALBUM_ART_DIR: Path = Path.cwd() / "album-art"
    ALBUM_ART_URL_PREFIX: str = "/album-art"
    ALBUM_ART_CACHE_SECONDS: int = 31536000  # 1 year
    EXTRACT_COVER_ART: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_RETENTION: str = "10 days"
    LOG_ROTATION: str = "10 MB"
    LOG_TO_FILE: bool = True

    # Scanner
    FFPROBE_PATH: str = "ffprobe"
    FFPROBE_TIMEOUT: float = 30.0
    SCAN_MAX_CONCURRENT_FILES: int = 8

    # Server
    HOST: str = "127.0.0.1"
    PORT: int = 3001
    SLOW_REQUEST_THRESHOLD: float = 5.0  # seconds; scans are slow by nature
    CORS_ORIGINS: List[str] = [
        "http://localhost:8080",
        "http://127.0.0.1:8080",
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT.lower() == "development"

    @property
    def LOG_DIR(self) -> Path:
        return self.DATA_DIR / "logs"


settings = Settings()
