"""
Compression stage.

Replaces a completed dump with a gzip-compressed copy and removes the
original. Compression is best effort: any failure is logged as a
warning and the uncompressed artifact stays the system of record.
"""

import gzip
import logging
import os
import shutil
from abc import ABC, abstractmethod
from pathlib import Path

from dumpkeeper.artifacts.naming import COMPRESSED_SUFFIX, in_progress_name
from dumpkeeper.config import BackupConfig, CompressionMethod
from dumpkeeper.core.exceptions import CompressionError, ProcessError
from dumpkeeper.core.models import BackupArtifact
from dumpkeeper.process.runner import ProcessRunner, check_output

logger = logging.getLogger(__name__)


class Compressor(ABC):
    """Compresses a file in place, returning the compressed path."""

    name: str = "base"

    @abstractmethod
    def compress(self, path: Path) -> Path:
        """
        Compress `path` into `path.gz` and remove the original.

        Raises:
            CompressionError: If the compressed file was not produced
        """


class GzipProcessCompressor(Compressor):
    """Runs the external gzip binary (`gzip -f -<level> <file>`)."""

    name = "gzip"

    def __init__(self, runner: ProcessRunner, command: str = "gzip", level: int = 6):
        self._runner = runner
        self._command = command
        self._level = level

    def compress(self, path: Path) -> Path:
        target = path.with_name(path.name + COMPRESSED_SUFFIX)
        try:
            check_output(self._runner, [self._command, "-f", f"-{self._level}", str(path)])
        except ProcessError as e:
            raise CompressionError(f"gzip failed: {e.message}", path=str(path)) from e

        if not target.is_file():
            raise CompressionError("gzip reported success but produced no .gz file", path=str(path))
        return target


class NativeGzipCompressor(Compressor):
    """Streams the file through Python's gzip module."""

    name = "native"

    def __init__(self, level: int = 6, chunk_size: int = 1024 * 1024):
        self._level = level
        self._chunk_size = chunk_size

    def compress(self, path: Path) -> Path:
        target = path.with_name(path.name + COMPRESSED_SUFFIX)
        partial = path.with_name(in_progress_name(target.name))

        try:
            with open(path, "rb") as f_in, gzip.open(partial, "wb", compresslevel=self._level) as f_out:
                shutil.copyfileobj(f_in, f_out, self._chunk_size)
            # Keep the dump's mtime, as gzip(1) does; retention ages by mtime
            shutil.copystat(path, partial)
            os.replace(partial, target)
            path.unlink()
        except OSError as e:
            partial.unlink(missing_ok=True)
            raise CompressionError(f"In-process gzip failed: {e}", path=str(path)) from e

        return target


def build_compressor(config: BackupConfig, runner: ProcessRunner) -> Compressor | None:
    """Compressor selected by configuration, or None when disabled."""
    if config.compression is CompressionMethod.GZIP:
        return GzipProcessCompressor(runner, command=config.gzip_command, level=config.compression_level)
    if config.compression is CompressionMethod.NATIVE:
        return NativeGzipCompressor(level=config.compression_level)
    return None


class CompressionStage:
    """Applies a compressor to artifacts without ever failing the run."""

    def __init__(self, compressor: Compressor | None):
        self._compressor = compressor

    @property
    def enabled(self) -> bool:
        return self._compressor is not None

    def compress(self, artifact: BackupArtifact) -> BackupArtifact:
        """
        Compress an artifact, best effort.

        Args:
            artifact: Completed, uncompressed artifact

        Returns:
            The compressed artifact, or `artifact` unchanged if compression
            is disabled, was already applied, or failed
        """
        if self._compressor is None or artifact.compressed:
            return artifact

        logger.info(f"Compressing backup with {self._compressor.name}...")
        try:
            compressed_path = self._compressor.compress(artifact.path)
            compressed = BackupArtifact.from_path(compressed_path, compressed=True)
        except (CompressionError, OSError) as e:
            logger.warning(f"Compression failed, keeping uncompressed backup: {e}")
            return artifact

        logger.info(
            f"Compression completed: {compressed.name} "
            f"({artifact.size_mb:.2f} MB -> {compressed.size_mb:.2f} MB)"
        )
        return compressed
