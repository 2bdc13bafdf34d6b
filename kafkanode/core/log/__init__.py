"""
In-memory log storage.

This package provides:
- Per-key append-only logs with dense zero-based offsets
- Committed-offset tracking independent of the append path
- A single store-wide lock for linearizable access
"""

from kafkanode.core.log.log import KeyLog, LogEntry
from kafkanode.core.log.store import (
    CommitPolicy,
    InvalidOffsetError,
    KeyNotFoundError,
    LogStore,
    LogStoreError,
    PartialRead,
)

__all__ = [
    "CommitPolicy",
    "InvalidOffsetError",
    "KeyLog",
    "KeyNotFoundError",
    "LogEntry",
    "LogStore",
    "LogStoreError",
    "PartialRead",
]
