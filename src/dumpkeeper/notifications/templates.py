"""
Notification message templates.

Renders a RunResult into the subject and body handed to a channel.
"""

from dumpkeeper.core.models import RunResult


def render_subject(result: RunResult, database: str) -> str:
    """Subject line: status, database and mode."""
    status = "SUCCESS" if result.success else "FAILURE"
    mode = "scheduled" if result.scheduled else "manual"
    return f"[dumpkeeper] Backup {status}: {database} ({mode})"


def render_body(result: RunResult, database: str) -> str:
    """Multi-line body describing the run."""
    lines = [
        f"Database: {database}",
        f"Status: {'success' if result.success else 'failure'}",
        f"Mode: {'scheduled' if result.scheduled else 'manual'}",
        f"Started: {result.started_at.isoformat()}",
    ]
    if result.finished_at is not None:
        lines.append(f"Finished: {result.finished_at.isoformat()}")
    if result.duration_seconds is not None:
        lines.append(f"Duration: {result.duration_seconds:.1f}s")

    if result.success:
        lines.append(f"File: {result.artifact_path}")
        lines.append(f"Size: {result.size_mb or 0:.2f} MB")
        lines.append(f"Compressed: {'yes' if result.compressed else 'no'}")
    else:
        lines.append(f"Error: {result.error or 'unknown error'}")

    if result.retention is not None:
        retention = result.retention
        lines.append(f"Retention: kept {retention.kept}, removed {retention.removed}")
        for error in retention.errors:
            lines.append(f"  {error}")

    return "\n".join(lines)
