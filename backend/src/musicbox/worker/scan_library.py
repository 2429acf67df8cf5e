"""CLI entry point for scanning a directory for audio files.

Run from backend directory:
    python -m musicbox.worker.scan_library <directory_path> [--json]

Uses LibraryScanner to discover audio files, extract metadata and persist
album art exactly as the HTTP scan endpoint does.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

from loguru import logger

from musicbox.api.schemas import ScannedTrack
from musicbox.core.config import settings
from musicbox.core.logger import setup_logging
from musicbox.core.scanner_config import ScannerConfig
from musicbox.worker.album_art import AlbumArtStore
from musicbox.worker.scanner import LibraryScanner, ScanRootError


async def main(path: str, as_json: bool = False) -> int:
    """Scan directory and report the result. Returns a process exit code."""
    target = Path(path)
    if not target.is_dir():
        logger.error(f"Not a directory: {path}")
        return 1

    art_store = AlbumArtStore()
    art_store.ensure_directory()
    scanner = LibraryScanner(
        art_store=art_store, config=ScannerConfig.from_settings(settings)
    )

    logger.info(f"Scanning directory: {target.resolve()}...")
    try:
        result = await scanner.scan_directory(str(target))
    except ScanRootError as e:
        logger.error(str(e))
        return 1

    if as_json:
        files = [
            ScannedTrack.from_metadata(f, art_store).model_dump(
                by_alias=True, exclude_none=True
            )
            for f in result.files
        ]
        json.dump(
            {"count": len(files), "stats": result.stats.to_dict(), "files": files},
            sys.stdout,
            indent=2,
        )
        sys.stdout.write("\n")

    logger.success(
        f"Scan complete: {len(result.files)} audio files in {result.duration_seconds:.2f}s"
    )
    return 0


def cli() -> None:
    parser = argparse.ArgumentParser(description="Scan a directory for audio files")
    parser.add_argument("directory", help="Directory to scan recursively")
    parser.add_argument(
        "--json", action="store_true", help="Print scanned tracks as JSON to stdout"
    )
    args = parser.parse_args()

    setup_logging()
    try:
        sys.exit(asyncio.run(main(args.directory, as_json=args.json)))
    except KeyboardInterrupt:
        print("\nScan interrupted.")
        sys.exit(130)


if __name__ == "__main__":
    cli()
