"""
Protocol-level errors.

Error codes follow the Maelstrom protocol so the test harness can tell
definite failures from indefinite ones.
"""

from enum import IntEnum
from typing import Any, Dict, Optional


class ErrorCode(IntEnum):
    """Maelstrom error codes used by this node."""

    TIMEOUT = 0
    NODE_NOT_FOUND = 1
    NOT_SUPPORTED = 10
    TEMPORARILY_UNAVAILABLE = 11
    MALFORMED_REQUEST = 12
    CRASH = 13
    ABORT = 14
    KEY_DOES_NOT_EXIST = 20
    KEY_ALREADY_EXISTS = 21
    PRECONDITION_FAILED = 22
    TXN_CONFLICT = 30

    def is_definite(self) -> bool:
        """Whether the request is known not to have taken effect."""
        return self not in (ErrorCode.TIMEOUT, ErrorCode.CRASH)


class RPCError(Exception):
    """
    Error that is reported back to the requester as an ``error`` body.

    Attributes:
        code: Maelstrom error code
        text: Human readable description
        extra: Additional body fields
    """

    def __init__(
        self,
        code: ErrorCode,
        text: str,
        extra: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(text)
        self.code = code
        self.text = text
        self.extra = extra or {}

    def to_body(self) -> Dict[str, Any]:
        """Build the error message body."""
        body = {"type": "error", "code": int(self.code), "text": self.text}
        body.update(self.extra)
        return body


class MalformedRequestError(RPCError):
    """Raised when a request body cannot be decoded."""

    def __init__(self, text: str):
        super().__init__(ErrorCode.MALFORMED_REQUEST, text)


class NotSupportedError(RPCError):
    """Raised for request types no handler is registered for."""

    def __init__(self, message_type: str):
        super().__init__(
            ErrorCode.NOT_SUPPORTED,
            f"Unsupported message type: {message_type}",
        )
        self.message_type = message_type
