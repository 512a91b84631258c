"""
Retention policy engine.

Scans the backup directory, ranks artifacts by modification time and
deletes those that fall outside every retention window. The directory
listing is the only record of what exists; there is no index.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timezone
from pathlib import Path

from dumpkeeper.artifacts.naming import is_artifact_name
from dumpkeeper.config import BackupConfig, RetentionConfig
from dumpkeeper.core.exceptions import RetentionError
from dumpkeeper.core.models import BackupArtifact, RetentionDecision, RetentionResult
from dumpkeeper.retention.policy import RetentionPolicy, get_policy

logger = logging.getLogger(__name__)


class RetentionEngine:
    """
    Applies a retention policy to the artifacts of one directory.

    Must not run concurrently with another engine over the same
    directory; the orchestrator's run lock covers scheduled runs.
    """

    def __init__(
        self,
        backup_config: BackupConfig | None = None,
        clock: Callable[[], datetime] | None = None,
        policy: RetentionPolicy | None = None,
    ):
        """
        Initialize the engine.

        Args:
            backup_config: Naming settings used to recognise artifacts
            clock: Returns the current time (default: UTC now)
            policy: Policy override; by default taken from the RetentionConfig
        """
        self._backup_config = backup_config or BackupConfig()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._policy = policy

    def scan(self, directory: Path) -> list[BackupArtifact]:
        """
        List artifacts in `directory`, newest first.

        Files that do not follow the naming convention are ignored. Equal
        modification times are ordered by name, descending.

        Raises:
            RetentionError: If the directory cannot be listed
        """
        prefix = self._backup_config.prefix
        extension = self._backup_config.extension

        try:
            entries = list(directory.iterdir())
        except OSError as e:
            raise RetentionError(f"Cannot list backup directory: {e}", directory=str(directory)) from e

        artifacts = []
        for entry in entries:
            if not is_artifact_name(entry.name, prefix, extension):
                continue
            try:
                if not entry.is_file():
                    continue
                artifacts.append(BackupArtifact.from_path(entry))
            except FileNotFoundError:
                # Removed between listing and stat
                continue
            except OSError as e:
                raise RetentionError(f"Cannot stat {entry.name}: {e}", directory=str(directory)) from e

        artifacts.sort(key=lambda a: (a.created_at, a.name), reverse=True)
        return artifacts

    def plan(self, config: RetentionConfig, directory: Path) -> list[RetentionDecision]:
        """Decisions the policy would make now, without touching any file."""
        policy = self._policy or get_policy(config.policy)
        return policy.decide(self.scan(directory), config, self._clock())

    def apply(
        self,
        config: RetentionConfig,
        directory: Path,
        dry_run: bool = False,
    ) -> RetentionResult:
        """
        Delete every artifact that falls outside all retention windows.

        Deletions are permanent. A file that cannot be deleted is recorded
        in `errors`, counted as kept, and the sweep continues.

        Args:
            config: Retention windows and policy
            directory: Backup directory
            dry_run: Report what would be removed without deleting

        Returns:
            RetentionResult with kept/removed counts

        Raises:
            RetentionError: If the directory cannot be listed
        """
        logger.info(f"Cleaning old backups in {directory} ({config.policy.value} policy)...")
        decisions = self.plan(config, directory)
        result = RetentionResult(dry_run=dry_run)

        for decision in decisions:
            artifact = decision.artifact
            if decision.keep:
                result.kept += 1
                logger.debug(f"Keeping {artifact.name} (index {decision.index}, {decision.reason.value})")
                continue

            if dry_run:
                logger.info(f"Would remove {artifact.name} (index {decision.index})")
            else:
                try:
                    artifact.path.unlink()
                except FileNotFoundError:
                    logger.debug(f"{artifact.name} already gone")
                except OSError as e:
                    result.kept += 1
                    result.errors.append(f"Failed to delete {artifact.name}: {e}")
                    logger.error(f"Failed to delete {artifact.name}: {e}")
                    continue
                else:
                    logger.info(f"Removed {artifact.name} (index {decision.index})")
            result.removed += 1
            result.freed_bytes += artifact.size_bytes

        logger.info(f"Cleanup completed: kept {result.kept}, removed {result.removed}")
        return result
