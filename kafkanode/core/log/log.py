"""
Append-only log for a single key.

Offsets are list positions, so entry ``i`` always has offset ``i``.
"""

from typing import Any, List, Tuple

LogEntry = Tuple[int, Any]


class KeyLog:
    """
    In-memory append-only sequence of values for one key.

    Not thread-safe on its own; the owning ``LogStore`` serializes access.

    Attributes:
        key: Key this log belongs to
    """

    def __init__(self, key: str):
        self.key = key
        self._values: List[Any] = []

    def append(self, value: Any) -> int:
        """
        Append a value.

        Args:
            value: Opaque payload

        Returns:
            Offset assigned to the value
        """
        offset = len(self._values)
        self._values.append(value)
        return offset

    def read_from(self, start_offset: int) -> List[LogEntry]:
        """
        Read every entry at or after ``start_offset``.

        The caller is responsible for bounds checking.
        """
        return [
            (offset, self._values[offset])
            for offset in range(start_offset, len(self._values))
        ]

    def end_offset(self) -> int:
        """Offset the next append will receive."""
        return len(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"KeyLog(key={self.key!r}, length={len(self._values)})"
