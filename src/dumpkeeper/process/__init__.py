"""
External process execution for the export and compression tools.
"""

from dumpkeeper.process.runner import (
    DEFAULT_MAX_OUTPUT_BYTES,
    ProcessOutput,
    ProcessRunner,
    SubprocessRunner,
    check_output,
    tail,
)

__all__ = [
    "DEFAULT_MAX_OUTPUT_BYTES",
    "ProcessOutput",
    "ProcessRunner",
    "SubprocessRunner",
    "check_output",
    "tail",
]
