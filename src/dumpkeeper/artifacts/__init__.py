"""
dumpkeeper Artifacts Module.

Naming, production and compression of backup artifacts.
"""

from .compression import (
    CompressionStage,
    Compressor,
    GzipProcessCompressor,
    NativeGzipCompressor,
    build_compressor,
)
from .naming import (
    build_filename,
    in_progress_name,
    is_artifact_name,
    parse_timestamp,
)
from .producer import DumpProducer

__all__ = [
    # Naming
    "build_filename",
    "in_progress_name",
    "is_artifact_name",
    "parse_timestamp",
    # Production
    "DumpProducer",
    # Compression
    "Compressor",
    "GzipProcessCompressor",
    "NativeGzipCompressor",
    "CompressionStage",
    "build_compressor",
]
