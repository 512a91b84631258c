"""
dumpkeeper Orchestrator Module.

Sequences dump, compression, retention and notification for one run.
"""

__all__ = ["BackupOrchestrator", "RunStage", "RunLock", "lock_path_for"]

from dumpkeeper.orchestrator.core import BackupOrchestrator, RunStage
from dumpkeeper.orchestrator.lock import RunLock, lock_path_for
