"""
Dump producer.

Runs the database's native logical-export tool (pg_dump by default) in
custom archive format and turns its output file into a BackupArtifact.

The export writes to a hidden in-progress name and is renamed into place
only after the tool exited with status 0, so no other stage ever sees a
partially written dump.
"""

import errno
import logging
import os
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from dumpkeeper.artifacts.naming import (
    COMPRESSED_SUFFIX,
    build_filename,
    in_progress_name,
)
from dumpkeeper.config import BackupConfig, DatabaseConfig
from dumpkeeper.core.exceptions import DumpError, ProcessError
from dumpkeeper.core.models import BackupArtifact
from dumpkeeper.process.runner import ProcessRunner, check_output, tail

logger = logging.getLogger(__name__)

# Markers in export tool output used to label failures
_FAILURE_MARKERS = (
    ("no space left on device", "disk_full"),
    ("password authentication failed", "authentication_failed"),
    ("could not connect", "connection_failed"),
    ("connection refused", "connection_failed"),
    ("could not translate host name", "connection_failed"),
    ("does not exist", "database_not_found"),
)


def classify_failure(output: str) -> str:
    """Map export tool diagnostics to a short failure reason."""
    lowered = output.lower()
    for marker, reason in _FAILURE_MARKERS:
        if marker in lowered:
            return reason
    return "export_failed"


class DumpProducer:
    """
    Materializes one consistent snapshot of a database to a file.

    The command line follows pg_dump conventions:
    -F c (custom archive, restorable with pg_restore), -b (large
    objects), -v (progress on stderr). The password is supplied through
    PGPASSWORD and never appears on the command line.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        config: BackupConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Initialize the producer.

        Args:
            runner: Process runner used to invoke the export tool
            config: Naming and tool settings
            clock: Returns the current time (default: UTC now)
        """
        self._runner = runner
        self._config = config or BackupConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def build_command(self, database: DatabaseConfig, output_path: Path) -> list[str]:
        """Export command line for a database and output file."""
        return [
            self._config.dump_command,
            "-h", database.host,
            "-p", str(database.port),
            "-U", database.user,
            "-d", database.name,
            "-F", "c",
            "-b",
            "-v",
            "-f", str(output_path),
        ]

    def produce(self, database: DatabaseConfig, destination: Path) -> BackupArtifact:
        """
        Export the database into a new artifact in `destination`.

        Args:
            database: Export target
            destination: Existing backup directory

        Returns:
            The completed, uncompressed artifact with its on-disk size

        Raises:
            DumpError: If no valid artifact was produced
        """
        filename = build_filename(self._config.prefix, self._config.extension, self._clock())
        final_path = destination / filename
        partial_path = destination / in_progress_name(filename)

        logger.info(f"Starting database backup of {database.target}")
        logger.info(f"Backup file: {filename}")

        for existing in (final_path, final_path.with_name(filename + COMPRESSED_SUFFIX)):
            if existing.exists():
                raise DumpError(
                    f"Artifact already exists: {existing.name}",
                    database=database.target,
                    reason="name_collision",
                )

        _discard(partial_path)

        env = {"PGPASSWORD": database.password}
        try:
            result = check_output(self._runner, self.build_command(database, partial_path), env)
        except ProcessError as e:
            _discard(partial_path)
            diagnostics = e.output
            reason = e.reason if e.reason != "nonzero_exit" else classify_failure(diagnostics)
            logger.error(f"Backup failed: {e}")
            if diagnostics:
                logger.debug(f"Export diagnostics:\n{diagnostics}")
            raise DumpError(
                f"Database export failed: {e.message}",
                database=database.target,
                diagnostics=diagnostics,
                reason=reason,
            ) from e

        if result.output:
            logger.debug(f"Export diagnostics:\n{tail(result.output)}")

        try:
            if not partial_path.is_file():
                raise DumpError(
                    "Export tool exited successfully but produced no file",
                    database=database.target,
                    diagnostics=tail(result.output),
                    reason="no_output_file",
                )
            os.replace(partial_path, final_path)
            artifact = BackupArtifact.from_path(final_path, compressed=False)
        except OSError as e:
            _discard(partial_path)
            reason = "disk_full" if e.errno == errno.ENOSPC else "filesystem_error"
            raise DumpError(
                f"Could not finalize backup file: {e}",
                database=database.target,
                reason=reason,
            ) from e
        except DumpError:
            _discard(partial_path)
            raise

        logger.info(f"Backup completed successfully: {artifact.name} ({artifact.size_mb:.2f} MB)")
        return artifact


def _discard(path: Path) -> None:
    """Remove a leftover in-progress file, if any."""
    try:
        path.unlink(missing_ok=True)
    except OSError as e:
        logger.warning(f"Could not remove in-progress file {path.name}: {e}")
