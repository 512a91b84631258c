"""
Artifact naming convention.

    <prefix>_<YYYY-MM-DD>_<HH-MM-SS>.<ext>[.gz]

Timestamps are UTC with fixed-width fields, so lexicographic order of
names equals chronological order for dumps at least a second apart.
Other tooling may rely on this format.
"""

import re
from datetime import datetime, timezone
from functools import lru_cache

TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"
COMPRESSED_SUFFIX = ".gz"
IN_PROGRESS_SUFFIX = ".partial"

_TIMESTAMP_RE = r"(?P<ts>\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2})"


def build_filename(prefix: str, extension: str, when: datetime | None = None) -> str:
    """
    Build the artifact filename for a dump taken at `when`.

    Args:
        prefix: Configured artifact prefix
        extension: Dump file extension without the dot
        when: Dump time (default: now); naive values are taken as UTC

    Returns:
        Filename such as backup_2024-03-01_02-00-00.dump
    """
    when = when or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    stamp = when.astimezone(timezone.utc).strftime(TIMESTAMP_FORMAT)
    return f"{prefix}_{stamp}.{extension}"


def in_progress_name(filename: str) -> str:
    """Name used while the export is still writing; never matches the convention."""
    return f".{filename}{IN_PROGRESS_SUFFIX}"


@lru_cache(maxsize=32)
def artifact_pattern(prefix: str, extension: str) -> re.Pattern[str]:
    """Compiled regex matching artifact names for a prefix and extension."""
    return re.compile(
        rf"^{re.escape(prefix)}_{_TIMESTAMP_RE}\.{re.escape(extension)}"
        rf"(?:{re.escape(COMPRESSED_SUFFIX)})?$"
    )


def is_artifact_name(name: str, prefix: str, extension: str) -> bool:
    """Whether a filename follows the artifact naming convention."""
    return artifact_pattern(prefix, extension).match(name) is not None


def parse_timestamp(name: str, prefix: str, extension: str) -> datetime | None:
    """
    Timestamp encoded in an artifact name.

    Display only: retention decisions use the file modification time.
    """
    match = artifact_pattern(prefix, extension).match(name)
    if match is None:
        return None
    try:
        return datetime.strptime(match.group("ts"), TIMESTAMP_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError:
        return None
