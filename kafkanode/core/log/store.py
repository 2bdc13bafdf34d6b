"""
Multi-key log store with committed-offset tracking.

Each key owns an independent append-only log, the equivalent of a single
partition. Committed offsets are tracked separately from the logs so a
consumer can commit for a key that has no entries yet.

Every public operation runs while holding one store-wide lock, giving a
total order over all operations on all keys.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

from kafkanode.core.log.log import KeyLog, LogEntry
from kafkanode.utils.logging import get_logger

logger = get_logger(__name__)


class LogStoreError(Exception):
    """
    Base class for log store errors.

    Attributes:
        key: Key the failed operation targeted
        kind: Error kind name reported to clients
    """

    kind = "LogStoreError"

    def __init__(self, key: str, message: str):
        super().__init__(message)
        self.key = key


class KeyNotFoundError(LogStoreError):
    """Raised when reading a key that has never been appended to."""

    kind = "KeyNotFound"

    def __init__(self, key: str):
        super().__init__(key, f"Key not found: {key}")


class InvalidOffsetError(LogStoreError):
    """Raised when an offset lies outside the key's log."""

    kind = "InvalidOffset"

    def __init__(self, key: str, offset: int, length: int):
        super().__init__(
            key,
            f"Invalid offset {offset} for key {key} (log length {length})",
        )
        self.offset = offset
        self.length = length


@dataclass
class PartialRead:
    """
    Result of a multi-key read that tolerates failed keys.

    Attributes:
        msgs: Entries per readable key
        errors: Store error per key that could not be read
    """
    msgs: Dict[str, List[LogEntry]] = field(default_factory=dict)
    errors: Dict[str, LogStoreError] = field(default_factory=dict)


class CommitPolicy(Enum):
    """
    Validation applied to offset commits.

    PERMISSIVE records any commit, for any key.
    STRICT requires an existing log and an offset no greater than its length.
    """

    PERMISSIVE = "permissive"
    STRICT = "strict"


class LogStore:
    """
    Per-key append-only logs plus committed offsets.

    Logs are created lazily by the first append to a key. Commits and
    committed-offset lookups never create logs.
    """

    def __init__(self, commit_policy: CommitPolicy = CommitPolicy.PERMISSIVE):
        """
        Initialize an empty store.

        Args:
            commit_policy: Validation applied by ``commit``
        """
        self.commit_policy = commit_policy

        self._logs: Dict[str, KeyLog] = {}
        self._committed: Dict[str, int] = {}
        self._lock = threading.Lock()

        self._appends = 0
        self._reads = 0
        self._commits = 0
        self._errors = 0

        logger.info("Initialized log store", commit_policy=commit_policy.value)

    def append(self, key: str, value: Any) -> int:
        """
        Append a value to a key's log, creating the log if needed.

        Args:
            key: Log key
            value: Opaque payload

        Returns:
            Offset assigned to the value
        """
        with self._lock:
            log = self._logs.get(key)
            if log is None:
                log = KeyLog(key)
                self._logs[key] = log
                logger.debug("Created log", key=key)

            offset = log.append(value)
            self._appends += 1

        logger.debug("Appended message", key=key, offset=offset)
        return offset

    def read_from(self, key: str, start_offset: int) -> List[LogEntry]:
        """
        Read all entries of a key from ``start_offset`` onwards.

        Reading at exactly the log length returns an empty list.

        Args:
            key: Log key
            start_offset: First offset to return

        Returns:
            ``(offset, value)`` pairs in ascending offset order

        Raises:
            KeyNotFoundError: If the key has never been appended to
            InvalidOffsetError: If ``start_offset`` is negative or beyond the log length
        """
        with self._lock:
            return self._read_locked(key, start_offset)

    def read_many(self, offsets: Mapping[str, int]) -> Dict[str, List[LogEntry]]:
        """
        Read several keys against a single snapshot of the store.

        Args:
            offsets: Start offset per key

        Returns:
            Entries per key

        Raises:
            LogStoreError: For the first key (in iteration order) that fails
        """
        with self._lock:
            return {
                key: self._read_locked(key, start_offset)
                for key, start_offset in offsets.items()
            }

    def try_read_many(self, offsets: Mapping[str, int]) -> PartialRead:
        """
        Read several keys against one snapshot, collecting failures.

        Returns:
            Entries for readable keys and the error for each failed key
        """
        result = PartialRead()

        with self._lock:
            for key, start_offset in offsets.items():
                try:
                    result.msgs[key] = self._read_locked(key, start_offset)
                except LogStoreError as e:
                    result.errors[key] = e

        return result

    def _read_locked(self, key: str, start_offset: int) -> List[LogEntry]:
        self._reads += 1

        log = self._logs.get(key)
        if log is None:
            self._errors += 1
            raise KeyNotFoundError(key)

        length = len(log)
        if start_offset < 0 or start_offset > length:
            self._errors += 1
            raise InvalidOffsetError(key, start_offset, length)

        return log.read_from(start_offset)

    def commit(self, key: str, offset: int) -> None:
        """
        Record the committed offset for a key (last write wins).

        Args:
            key: Log key
            offset: Offset to record

        Raises:
            KeyNotFoundError: Under the strict policy, for unknown keys
            InvalidOffsetError: Under the strict policy, for offsets beyond the log
        """
        with self._lock:
            self._commit_locked(key, offset)

    def commit_many(self, offsets: Mapping[str, int]) -> None:
        """
        Commit several offsets under one lock acquisition.

        Under the strict policy every pair is validated before any is
        recorded, so a rejected batch leaves the store unchanged.
        """
        with self._lock:
            if self.commit_policy is CommitPolicy.STRICT:
                for key, offset in offsets.items():
                    self._validate_commit_locked(key, offset)

            for key, offset in offsets.items():
                self._commit_locked(key, offset)

    def _validate_commit_locked(self, key: str, offset: int) -> None:
        log = self._logs.get(key)
        if log is None:
            self._errors += 1
            raise KeyNotFoundError(key)
        if offset < 0 or offset > len(log):
            self._errors += 1
            raise InvalidOffsetError(key, offset, len(log))

    def _commit_locked(self, key: str, offset: int) -> None:
        if self.commit_policy is CommitPolicy.STRICT:
            self._validate_commit_locked(key, offset)

        self._committed[key] = offset
        self._commits += 1

        logger.debug("Committed offset", key=key, offset=offset)

    def committed_offset(self, key: str) -> int:
        """
        Get the last committed offset for a key.

        Returns:
            Committed offset, or 0 if nothing was committed for the key
        """
        with self._lock:
            return self._committed.get(key, 0)

    def committed_offsets(self, keys: Iterable[str]) -> Dict[str, int]:
        """Look up committed offsets for several keys under one lock acquisition."""
        with self._lock:
            return {key: self._committed.get(key, 0) for key in keys}

    def end_offset(self, key: str) -> Optional[int]:
        """
        Get the offset the next append to ``key`` will receive.

        Returns:
            Log length, or None if the key has no log
        """
        with self._lock:
            log = self._logs.get(key)
            return log.end_offset() if log is not None else None

    def keys(self) -> List[str]:
        """List keys that have a log, sorted."""
        with self._lock:
            return sorted(self._logs)

    def get_stats(self) -> dict:
        """
        Get store statistics.

        Returns:
            Statistics dict
        """
        with self._lock:
            return {
                "keys": len(self._logs),
                "committed_keys": len(self._committed),
                "total_entries": sum(len(log) for log in self._logs.values()),
                "appends": self._appends,
                "reads": self._reads,
                "commits": self._commits,
                "errors": self._errors,
                "commit_policy": self.commit_policy.value,
            }
