"""
dumpkeeper - Scheduled database dumps with compression and tiered retention.

Produces point-in-time dumps of a relational database, compresses them,
prunes old dumps according to a daily/weekly/monthly retention policy, and
reports each run to an operator channel.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
