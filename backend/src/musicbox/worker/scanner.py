"""Recursive audio library scanner.

This module walks a directory tree, keeps only files positively classified
as audio, and builds one FileMetadata record per track using the metadata
extraction chain. Blocking filesystem and parser work runs in a thread pool;
files within one directory are processed concurrently, subdirectories are
walked one after another.

Failures are isolated per entry: an unreadable file or a broken symlink is
logged and skipped, an unreadable subdirectory contributes nothing, and only
an unreadable root aborts the scan (ScanRootError).

Typical usage example:
    scanner = LibraryScanner()
    result = await scanner.scan_directory("/path/to/music")
    print(f"Found {len(result.files)} tracks: {result.stats}")
"""

import asyncio
import concurrent.futures
import contextvars
import functools
import os
import time
from dataclasses import dataclass, field
from typing import List, Optional

from loguru import logger

from musicbox.core.models import FileMetadata
from musicbox.core.scanner_config import ScannerConfig
from musicbox.core.stats import ScanStats
from musicbox.worker.album_art import AlbumArtStore
from musicbox.worker.classifier import AudioClassifier
from musicbox.worker.extractors import MetadataExtractor, title_from_filename


def is_representable(path: str) -> bool:
    """False for names os.scandir surrogate-escaped (bytes that are not UTF-8)."""
    try:
        path.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


class ScanRootError(Exception):
    """The root directory of a scan could not be listed."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"Cannot read directory contents: {cause}")
        self.path = path
        self.cause = cause


@dataclass
class EntryOutcome:
    """Result of processing a single directory entry: a record or a skip reason."""

    path: str
    record: Optional[FileMetadata] = None
    reason: Optional[str] = None
    failed: bool = False

    @property
    def ok(self) -> bool:
        return self.record is not None

    @classmethod
    def accepted(cls, record: FileMetadata) -> "EntryOutcome":
        return cls(path=record.path, record=record)

    @classmethod
    def skip(cls, path: str, reason: str, failed: bool = False) -> "EntryOutcome":
        return cls(path=path, reason=reason, failed=failed)


@dataclass
class ScanResult:
    files: List[FileMetadata] = field(default_factory=list)
    stats: ScanStats = field(default_factory=ScanStats)
    duration_seconds: float = 0.0


class LibraryScanner:
    """Recursive directory walker producing FileMetadata records.

    A scanner instance holds per-scan state (stats, thread pool) and should
    be used for one scan at a time; the HTTP layer creates one per request.

    Attributes:
        config: ScannerConfig instance for configurable behavior.
        art_store: Destination for embedded cover art.
        classifier: Audio classifier (extension + content sniffing).
        extractor: Ordered metadata extraction chain.
    """

    def __init__(
        self,
        art_store: Optional[AlbumArtStore] = None,
        config: Optional[ScannerConfig] = None,
        classifier: Optional[AudioClassifier] = None,
        extractor: Optional[MetadataExtractor] = None,
    ):
        self.config = config or ScannerConfig()
        self.art_store = art_store or AlbumArtStore()
        self.classifier = classifier or AudioClassifier(self.config.audio_extensions)
        self.extractor = extractor or MetadataExtractor.default(self.art_store, self.config)
        self.stats = ScanStats()
        self._executor: Optional[concurrent.futures.ThreadPoolExecutor] = None
        self._semaphore: Optional[asyncio.Semaphore] = None

    async def scan_directory(self, root_path: str) -> ScanResult:
        """Recursively scans a directory for audio files.

        Raises:
            ScanRootError: If the root directory itself cannot be listed.
        """
        root = os.path.abspath(root_path)
        self.stats = ScanStats()
        self._semaphore = asyncio.Semaphore(self.config.max_concurrent_files)
        start = time.time()
        logger.info(
            f"Starting scan of {root}... (max {self.config.max_concurrent_files} concurrent files)"
        )

        with concurrent.futures.ThreadPoolExecutor(
            max_workers=self.config.metadata_workers
        ) as executor:
            self._executor = executor
            try:
                try:
                    entries = await self._list_directory(root)
                except OSError as e:
                    logger.error(f"Error scanning directory {root}: {e}")
                    raise ScanRootError(root, e) from e
                self.stats.directories_scanned += 1
                files = await self._process_entries(entries)
            finally:
                self._executor = None

        duration = time.time() - start
        logger.success(f"Scan of {root} completed in {duration:.2f}s: {self.stats}")
        return ScanResult(files=files, stats=self.stats, duration_seconds=duration)

    async def _run_blocking(self, func, *args):
        # Carry the logging context (request id) into the worker thread
        ctx = contextvars.copy_context()
        return await asyncio.get_running_loop().run_in_executor(
            self._executor, functools.partial(ctx.run, func, *args)
        )

    async def _list_directory(self, path: str) -> List[os.DirEntry]:
        def _scandir():
            with os.scandir(path) as it:
                return list(it)

        return await self._run_blocking(_scandir)

    async def _process_recursive(self, current_path: str) -> List[FileMetadata]:
        """Walks a subdirectory; an unreadable one yields an empty result."""
        try:
            entries = await self._list_directory(current_path)
        except OSError as e:
            self.stats.directories_failed += 1
            logger.warning(f"Error scanning directory {current_path}: {e}")
            return []

        self.stats.directories_scanned += 1
        return await self._process_entries(entries)

    async def _process_entries(self, entries: List[os.DirEntry]) -> List[FileMetadata]:
        files_to_process: List[str] = []
        dirs_to_process: List[str] = []

        for entry in entries:
            try:
                # Directory symlinks are not followed to avoid cycles
                if entry.is_dir(follow_symlinks=False):
                    dirs_to_process.append(entry.path)
                elif entry.is_file():
                    files_to_process.append(entry.path)
            except OSError as e:
                self.stats.errors += 1
                logger.warning(f"Error processing entry {entry.path}: {e}")

        results: List[FileMetadata] = []

        outcomes = await asyncio.gather(
            *[self._process_file_with_semaphore(p) for p in files_to_process]
        )
        for outcome in outcomes:
            self._record_outcome(outcome)
            if outcome.ok:
                results.append(outcome.record)

        for dir_path in dirs_to_process:
            results.extend(await self._process_recursive(dir_path))

        return results

    def _record_outcome(self, outcome: EntryOutcome) -> None:
        self.stats.files_seen += 1
        if outcome.ok:
            self.stats.audio_files += 1
            if outcome.record.album_art_path:
                self.stats.album_art_written += 1
        elif outcome.failed:
            self.stats.errors += 1
        else:
            self.stats.skipped += 1

    async def _process_file_with_semaphore(self, file_path: str) -> EntryOutcome:
        if not is_representable(file_path):
            logger.warning(f"Skipping file with undecodable name: {file_path!r}")
            return EntryOutcome.skip(file_path, "file name is not valid UTF-8")

        async with self._semaphore:
            try:
                record = await self._run_blocking(self.process_file, file_path)
            except Exception as e:
                logger.warning(f"Error processing file: {file_path}: {e}")
                return EntryOutcome.skip(file_path, str(e), failed=True)

        if record is None:
            return EntryOutcome.skip(file_path, "not an audio file")
        return EntryOutcome.accepted(record)

    def process_file(self, file_path: str) -> Optional[FileMetadata]:
        """Classifies, stats and extracts one file (blocking).

        Returns:
            The merged record, or None when the file is not audio.
        """
        if not self.classifier.is_audio(file_path):
            return None

        stat = os.stat(file_path)
        metadata = self.extractor.extract(file_path)
        if not metadata.title:
            metadata.title = title_from_filename(file_path)

        return FileMetadata.from_parts(
            path=file_path, size=stat.st_size, mtime=stat.st_mtime, audio=metadata
        )
