"""
dumpkeeper Retention Module.

Tiered daily/weekly/monthly retention over the backup directory.
"""

from .engine import RetentionEngine
from .policy import (
    POLICY_REGISTRY,
    CalendarBucketPolicy,
    RankBasedPolicy,
    RetentionPolicy,
    get_policy,
)

__all__ = [
    "RetentionEngine",
    "RetentionPolicy",
    "RankBasedPolicy",
    "CalendarBucketPolicy",
    "POLICY_REGISTRY",
    "get_policy",
]
