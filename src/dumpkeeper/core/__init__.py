"""
dumpkeeper Core Module.

Provides foundational types and the exception hierarchy.
"""

__all__ = [
    "BackupArtifact",
    "RetentionDecision",
    "RetentionReason",
    "RetentionResult",
    "RunResult",
    # Exceptions
    "DumpKeeperError",
    "ConfigurationError",
    "ProcessError",
    "DumpError",
    "CompressionError",
    "RetentionError",
    "NotificationError",
]

from dumpkeeper.core.exceptions import (
    CompressionError,
    ConfigurationError,
    DumpError,
    DumpKeeperError,
    NotificationError,
    ProcessError,
    RetentionError,
)
from dumpkeeper.core.models import (
    BackupArtifact,
    RetentionDecision,
    RetentionReason,
    RetentionResult,
    RunResult,
)
