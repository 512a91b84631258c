"""
Run Orchestrator - sequences one backup run.

    START -> ENSURE_DIRECTORY -> LOCK -> DUMP -> COMPRESS
          -> (scheduled? RETAIN) -> UNLOCK -> NOTIFY -> END

A failed DUMP skips straight to NOTIFY. The run's success is decided
by the dump alone; compression and retention failures are absorbed.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from dumpkeeper.artifacts.compression import CompressionStage, build_compressor
from dumpkeeper.artifacts.producer import DumpProducer
from dumpkeeper.config import Settings
from dumpkeeper.core.exceptions import DumpError, RetentionError
from dumpkeeper.core.models import RetentionResult, RunResult
from dumpkeeper.notifications.channels import build_channel
from dumpkeeper.notifications.notifier import Notifier
from dumpkeeper.orchestrator.lock import RunLock, lock_path_for
from dumpkeeper.process.runner import ProcessRunner, SubprocessRunner
from dumpkeeper.retention.engine import RetentionEngine

logger = logging.getLogger(__name__)


class RunStage(Enum):
    """Stages of a backup run, in order."""

    ENSURE_DIRECTORY = "ensure_directory"
    LOCK = "lock"
    DUMP = "dump"
    COMPRESS = "compress"
    RETAIN = "retain"
    NOTIFY = "notify"


class BackupOrchestrator:
    """
    Coordinates dump, compression, retention and notification.

    Components are injected so each can be replaced in tests; use
    from_settings() to build the production wiring.
    """

    def __init__(
        self,
        settings: Settings,
        producer: DumpProducer,
        compression: CompressionStage,
        retention: RetentionEngine,
        notifier: Notifier,
    ):
        self.settings = settings
        self._producer = producer
        self._compression = compression
        self._retention = retention
        self._notifier = notifier
        self.stages: list[RunStage] = []

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        runner: ProcessRunner | None = None,
    ) -> "BackupOrchestrator":
        """
        Build an orchestrator with the components named by `settings`.

        Args:
            settings: Process-wide configuration
            runner: Process runner (default: SubprocessRunner with the configured output cap)
        """
        runner = runner or SubprocessRunner(max_output_bytes=settings.backup.max_output_bytes)
        return cls(
            settings=settings,
            producer=DumpProducer(runner, settings.backup),
            compression=CompressionStage(build_compressor(settings.backup, runner)),
            retention=RetentionEngine(settings.backup),
            notifier=Notifier(settings.notifications, build_channel(settings.notifications)),
        )

    @property
    def backup_dir(self) -> Path:
        return self.settings.backup.directory

    def ensure_directory(self) -> None:
        """
        Create the backup directory if absent. Idempotent.

        Raises:
            DumpError: If the directory cannot be created
        """
        if self.backup_dir.is_dir():
            return
        try:
            self.backup_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DumpError(
                f"Cannot create backup directory {self.backup_dir}: {e}",
                reason="directory_unavailable",
            ) from e
        logger.info(f"Created backup directory: {self.backup_dir}")

    def run(self, scheduled: bool = False) -> RunResult:
        """
        Execute one backup run.

        Args:
            scheduled: Automated invocation; only scheduled runs prune

        Returns:
            RunResult; success reflects the dump step only
        """
        self.stages = []
        started_at = datetime.now(timezone.utc)
        database = self.settings.database
        backup = self.settings.backup

        logger.info(
            f"Backup run started ({'scheduled' if scheduled else 'manual'}) "
            f"for {database.target} at {started_at.isoformat()}"
        )

        try:
            self.stages.append(RunStage.ENSURE_DIRECTORY)
            self.ensure_directory()

            self.stages.append(RunStage.LOCK)
            lock = RunLock(
                lock_path_for(self.backup_dir, backup.prefix, database.name),
                enabled=backup.lock_enabled,
            )
            with lock:
                self.stages.append(RunStage.DUMP)
                artifact = self._producer.produce(database, self.backup_dir)

                if self._compression.enabled:
                    self.stages.append(RunStage.COMPRESS)
                    artifact = self._compression.compress(artifact)

                retention = None
                if scheduled:
                    self.stages.append(RunStage.RETAIN)
                    retention = self._retain()

        except DumpError as e:
            result = RunResult.failed(str(e), scheduled=scheduled, started_at=started_at)
        except Exception as e:
            logger.exception(f"Unexpected error during backup run: {e}")
            result = RunResult.failed(
                f"{e.__class__.__name__}: {e}", scheduled=scheduled, started_at=started_at
            )
        else:
            result = RunResult(
                success=True,
                scheduled=scheduled,
                artifact_path=artifact.path,
                size_mb=artifact.size_mb,
                compressed=artifact.compressed,
                retention=retention,
                started_at=started_at,
                finished_at=datetime.now(timezone.utc),
            )

        self.stages.append(RunStage.NOTIFY)
        self._notifier.notify(result, database.target)

        if result.success:
            logger.info(f"Backup run finished: {result.artifact_path} ({result.size_mb:.2f} MB)")
        else:
            logger.error(f"Backup run failed: {result.error}")
        return result

    def _retain(self) -> RetentionResult | None:
        """Apply retention; failures degrade to 'cleanup skipped, dump preserved'."""
        try:
            result = self._retention.apply(self.settings.retention, self.backup_dir)
        except RetentionError as e:
            logger.error(f"Cleanup skipped, dump preserved: {e}")
            return None
        for error in result.errors:
            logger.warning(f"Cleanup incomplete: {error}")
        return result

    def prune(self, dry_run: bool = False) -> RetentionResult:
        """
        Run only the retention engine, under the run lock.

        Raises:
            DumpError: If the lock is held by another run
            RetentionError: If the directory cannot be listed
        """
        backup = self.settings.backup
        lock = RunLock(
            lock_path_for(self.backup_dir, backup.prefix, self.settings.database.name),
            enabled=backup.lock_enabled and not dry_run,
        )
        with lock:
            return self._retention.apply(self.settings.retention, self.backup_dir, dry_run=dry_run)
