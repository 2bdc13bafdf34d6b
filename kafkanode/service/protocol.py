"""
Request and response types for the log service.

Requests arrive as already-parsed message bodies and are decoded into one of
the request dataclasses; responses encode themselves back into bodies.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from kafkanode.core.log import LogEntry
from kafkanode.node.errors import ErrorCode, MalformedRequestError

MAX_MESSAGE_VALUE = 2 ** 64 - 1


@dataclass
class Send:
    """
    Append one message to a key's log.

    Attributes:
        key: Log key
        msg: Message value
    """
    key: str
    msg: int


@dataclass
class Poll:
    """
    Read messages from several keys.

    Attributes:
        offsets: Start offset per key
    """
    offsets: Dict[str, int]


@dataclass
class CommitOffsets:
    """
    Record consumer progress.

    Attributes:
        offsets: Offset to commit per key
    """
    offsets: Dict[str, int]


@dataclass
class ListCommittedOffsets:
    """
    Look up committed offsets.

    Attributes:
        keys: Keys to look up
    """
    keys: List[str]


LogRequest = Union[Send, Poll, CommitOffsets, ListCommittedOffsets]


@dataclass
class SendOk:
    offset: int

    def to_body(self) -> Dict[str, Any]:
        return {"type": "send_ok", "offset": self.offset}


@dataclass
class PollOk:
    """
    Messages per key, as ``[offset, value]`` pairs.

    ``errors`` is only populated in partial poll mode and maps each key that
    could not be read to its error kind.
    """
    msgs: Dict[str, List[LogEntry]]
    errors: Optional[Dict[str, str]] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": "poll_ok",
            "msgs": {
                key: [[offset, value] for offset, value in entries]
                for key, entries in self.msgs.items()
            },
        }
        if self.errors:
            body["errors"] = dict(self.errors)
        return body


@dataclass
class CommitOffsetsOk:
    def to_body(self) -> Dict[str, Any]:
        return {"type": "commit_offsets_ok"}


@dataclass
class ListCommittedOffsetsOk:
    offsets: Dict[str, int] = field(default_factory=dict)

    def to_body(self) -> Dict[str, Any]:
        return {"type": "list_committed_offsets_ok", "offsets": dict(self.offsets)}


@dataclass
class ErrorResponse:
    """
    Failed request.

    Attributes:
        code: Maelstrom error code
        text: Human readable description
        key: Offending key
        kind: Error kind (KeyNotFound or InvalidOffset)
    """
    code: ErrorCode
    text: str
    key: Optional[str] = None
    kind: Optional[str] = None

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "type": "error",
            "code": int(self.code),
            "text": self.text,
        }
        if self.key is not None:
            body["key"] = self.key
        if self.kind is not None:
            body["kind"] = self.kind
        return body


LogResponse = Union[SendOk, PollOk, CommitOffsetsOk, ListCommittedOffsetsOk, ErrorResponse]

REQUEST_TYPES = ("send", "poll", "commit_offsets", "list_committed_offsets")


def _require(body: Dict[str, Any], name: str) -> Any:
    if name not in body:
        raise MalformedRequestError(f"Missing field '{name}' in {body.get('type')} request")
    return body[name]


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _decode_offsets(body: Dict[str, Any]) -> Dict[str, int]:
    offsets = _require(body, "offsets")
    if not isinstance(offsets, dict):
        raise MalformedRequestError("Field 'offsets' must be an object")

    for key, offset in offsets.items():
        if not _is_int(offset) or offset < 0:
            raise MalformedRequestError(
                f"Offset for key '{key}' must be a non-negative integer"
            )
    return dict(offsets)


def decode_request(body: Dict[str, Any]) -> LogRequest:
    """
    Decode a message body into a log service request.

    Args:
        body: Parsed message body, including its ``type``

    Returns:
        Request variant

    Raises:
        MalformedRequestError: If the body does not describe a valid request
    """
    message_type = body.get("type")

    if message_type == "send":
        key = _require(body, "key")
        msg = _require(body, "msg")
        if not isinstance(key, str):
            raise MalformedRequestError("Field 'key' must be a string")
        if not _is_int(msg) or not 0 <= msg <= MAX_MESSAGE_VALUE:
            raise MalformedRequestError("Field 'msg' must be an unsigned 64-bit integer")
        return Send(key=key, msg=msg)

    if message_type == "poll":
        return Poll(offsets=_decode_offsets(body))

    if message_type == "commit_offsets":
        return CommitOffsets(offsets=_decode_offsets(body))

    if message_type == "list_committed_offsets":
        keys = _require(body, "keys")
        if not isinstance(keys, list) or not all(isinstance(k, str) for k in keys):
            raise MalformedRequestError("Field 'keys' must be a list of strings")
        return ListCommittedOffsets(keys=list(keys))

    raise MalformedRequestError(f"Not a log service request: {message_type}")
