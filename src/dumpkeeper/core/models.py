"""
Core data models for dumpkeeper.

Artifacts, run outcomes and retention results passed between the
pipeline stages.
"""

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field

BYTES_PER_MB = 1024 * 1024


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class BackupArtifact(BaseModel):
    """One snapshot file on disk."""

    path: Path = Field(description="Location on the backup filesystem")
    created_at: datetime = Field(description="Modification time of the file (UTC)")
    size_bytes: int = Field(ge=0, description="Size observed after the write completed")
    compressed: bool = Field(default=False, description="Processed by the compression stage")

    model_config = {"frozen": True}

    @classmethod
    def from_path(cls, path: Path, compressed: bool | None = None) -> "BackupArtifact":
        """
        Build an artifact from a file that exists on disk.

        Size and age are read from the filesystem, never estimated.

        Args:
            path: Path to a completed artifact file
            compressed: Override compression detection (default: by .gz suffix)

        Returns:
            BackupArtifact describing the file
        """
        stat = path.stat()
        if compressed is None:
            compressed = path.suffix == ".gz"
        return cls(
            path=path,
            created_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
            size_bytes=stat.st_size,
            compressed=compressed,
        )

    @property
    def name(self) -> str:
        """File name of the artifact."""
        return self.path.name

    @property
    def size_mb(self) -> float:
        """Size in MiB rounded to two decimals."""
        return round(self.size_bytes / BYTES_PER_MB, 2)

    def age_seconds(self, now: datetime | None = None) -> float:
        """Seconds elapsed since the artifact was last modified."""
        now = now or _utc_now()
        return (now - self.created_at).total_seconds()


class RetentionReason(Enum):
    """Why the retention engine kept or removed an artifact."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    EXPIRED = "expired"


class RetentionDecision(BaseModel):
    """Keep/delete verdict for one artifact in a sweep."""

    artifact: BackupArtifact
    index: int = Field(ge=0, description="Rank in the newest-first ordering")
    reason: RetentionReason

    @property
    def keep(self) -> bool:
        """Whether the artifact survives the sweep."""
        return self.reason is not RetentionReason.EXPIRED


class RetentionResult(BaseModel):
    """Result of a retention sweep."""

    kept: int = Field(default=0, description="Artifacts that survived")
    removed: int = Field(default=0, description="Artifacts deleted (or that would be, in a dry run)")
    freed_bytes: int = Field(default=0, description="Bytes released by deletions")
    dry_run: bool = Field(default=False)
    errors: list[str] = Field(default_factory=list, description="Per-file deletion failures")

    @property
    def success(self) -> bool:
        """True when every planned deletion went through."""
        return not self.errors


class RunResult(BaseModel):
    """Outcome of one end-to-end invocation. Not persisted."""

    success: bool
    scheduled: bool = False
    artifact_path: Path | None = None
    size_mb: float | None = None
    compressed: bool = False
    error: str | None = None
    retention: RetentionResult | None = None
    started_at: datetime = Field(default_factory=_utc_now)
    finished_at: datetime | None = None

    @property
    def exit_code(self) -> int:
        """Process exit status: 0 when the dump succeeded, 1 otherwise."""
        return 0 if self.success else 1

    @property
    def duration_seconds(self) -> float | None:
        """Wall-clock duration of the run, if finished."""
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    @classmethod
    def failed(cls, error: str, *, scheduled: bool = False, started_at: datetime | None = None) -> "RunResult":
        """Build a failure result."""
        return cls(
            success=False,
            scheduled=scheduled,
            error=error,
            started_at=started_at or _utc_now(),
            finished_at=_utc_now(),
        )
