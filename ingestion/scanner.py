"""
File Scanner - Recursive discovery of ingestible files

Walks a root directory in sorted order, applies the root .gitignore (via
pathspec), skips hidden entries and oversized files, and classifies every
remaining file against the document-type allow-list.

Failures below the root (unreadable directories, files that cannot be
stat'ed) are logged and skipped; scanning continues elsewhere. Symbolic
links are never followed.

Usage:
    from ingestion import FileScanner, ScanOptions

    result = FileScanner().scan("/path/to/docs", ScanOptions(max_file_size=2_000_000))
    print(result.statistics.supported_files)
"""

import logging
import os
from pathlib import Path
from typing import Optional

import pathspec

from common.exceptions import ScanError

from .classification import NO_EXTENSION, detect_document_type, file_extension, is_test_file
from .models import ScannedFile, ScanOptions, ScanResult, ScanStatistics

logger = logging.getLogger(__name__)

IGNORE_FILE_NAME = ".gitignore"


class FileScanner:
    """Scans a directory tree and classifies the files found."""

    def scan(self, root_path: str | Path, options: Optional[ScanOptions] = None) -> ScanResult:
        """
        Recursively scan a directory.

        Args:
            root_path: Directory to scan.
            options: Scan options. Uses defaults if not provided.

        Returns:
            ScanResult with all non-skipped files and the statistics.

        Raises:
            ScanError: If root_path does not exist or is not a directory.
        """
        options = options or ScanOptions()
        root = Path(root_path).expanduser().resolve()
        if not root.is_dir():
            raise ScanError(str(root), f"Scan root is not a directory: {root}")

        logger.info("Starting directory scan of %s", root)

        ignore_spec = self._load_ignore_file(root) if options.respect_ignore_file else None
        result = ScanResult()
        self._scan_directory(root, root, options, ignore_spec, result)

        stats = result.statistics
        logger.info(
            "Directory scan completed: %d files, %d supported, %d unsupported",
            stats.total_files,
            stats.supported_files,
            stats.unsupported_files,
        )
        return result

    @staticmethod
    def supported_files(files: list[ScannedFile]) -> list[ScannedFile]:
        return [f for f in files if f.supported]

    @staticmethod
    def unsupported_files(files: list[ScannedFile]) -> list[ScannedFile]:
        return [f for f in files if not f.supported]

    # -------------------------------------------------------------------------
    # Internal methods
    # -------------------------------------------------------------------------

    @staticmethod
    def _load_ignore_file(root: Path) -> Optional[pathspec.PathSpec]:
        ignore_path = root / IGNORE_FILE_NAME
        if not ignore_path.is_file():
            return None
        try:
            with open(ignore_path, "r", encoding="utf-8", errors="replace") as f:
                return pathspec.GitIgnoreSpec.from_lines(f)
        except OSError as e:
            logger.warning("Could not read %s: %s", ignore_path, e)
            return None

    def _scan_directory(
        self,
        root: Path,
        directory: Path,
        options: ScanOptions,
        ignore_spec: Optional[pathspec.PathSpec],
        result: ScanResult,
    ) -> None:
        stats = result.statistics
        try:
            with os.scandir(directory) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as e:
            stats.unreadable_directories += 1
            logger.warning("Failed to read directory %s, skipping: %s", directory, e)
            return

        for entry in entries:
            full_path = Path(entry.path)
            relative = full_path.relative_to(root).as_posix()

            try:
                is_dir = entry.is_dir(follow_symlinks=False)
            except OSError:
                is_dir = False

            if options.skip_hidden and entry.name.startswith("."):
                stats.skipped_hidden += 1
                logger.debug("Skipping hidden entry: %s", relative)
                continue

            if ignore_spec is not None:
                candidate = f"{relative}/" if is_dir else relative
                if ignore_spec.match_file(candidate):
                    stats.skipped_by_ignore_file += 1
                    logger.debug("Skipping ignored entry: %s", relative)
                    continue

            if is_dir:
                self._scan_directory(root, full_path, options, ignore_spec, result)
                continue

            try:
                if not entry.is_file(follow_symlinks=False):
                    continue
                size = entry.stat().st_size
            except OSError as e:
                logger.warning("Failed to stat file %s, skipping: %s", relative, e)
                continue

            if size > options.max_file_size:
                stats.skipped_too_large += 1
                logger.debug(
                    "Skipping file (too large): %s (%d > %d bytes)",
                    relative, size, options.max_file_size,
                )
                continue

            result.files.append(self._classify(full_path, relative, size, stats))

    @staticmethod
    def _classify(
        full_path: Path,
        relative: str,
        size: int,
        stats: ScanStatistics,
    ) -> ScannedFile:
        extension = file_extension(relative)
        document_type = detect_document_type(relative)
        supported = document_type is not None

        stats.total_files += 1
        if supported:
            stats.supported_files += 1
        else:
            stats.unsupported_files += 1
            key = extension or NO_EXTENSION
            stats.unsupported_by_extension[key] = stats.unsupported_by_extension.get(key, 0) + 1

        return ScannedFile(
            path=str(full_path),
            relative_path=relative,
            extension=extension,
            supported=supported,
            document_type=document_type,
            is_test_file=is_test_file(relative),
            size_bytes=size,
        )
