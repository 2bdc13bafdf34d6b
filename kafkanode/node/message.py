"""
Message envelope.

Every message is one JSON object per line:
``{"src": ..., "dest": ..., "body": {"type": ..., "msg_id": ..., ...}}``.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


class EnvelopeError(ValueError):
    """Raised when a line is not a valid message envelope."""
    pass


@dataclass
class Message:
    """
    A single protocol message.

    Attributes:
        src: Sending node or client id
        dest: Receiving node id
        body: Message body; ``type`` is the discriminator
    """
    src: str
    dest: str
    body: Dict[str, Any] = field(default_factory=dict)

    @property
    def type(self) -> Optional[str]:
        return self.body.get("type")

    @property
    def msg_id(self) -> Optional[int]:
        return self.body.get("msg_id")

    @property
    def in_reply_to(self) -> Optional[int]:
        return self.body.get("in_reply_to")

    def is_reply(self) -> bool:
        """Whether this message answers one we sent."""
        return self.in_reply_to is not None

    def to_dict(self) -> Dict[str, Any]:
        return {"src": self.src, "dest": self.dest, "body": self.body}

    def to_json(self) -> str:
        """Serialize to a single line of JSON (no trailing newline)."""
        return json.dumps(self.to_dict(), separators=(",", ":"))

    @staticmethod
    def from_dict(data: Any) -> "Message":
        """
        Build a message from a decoded JSON object.

        Raises:
            EnvelopeError: If required envelope fields are missing or mistyped
        """
        if not isinstance(data, dict):
            raise EnvelopeError("Message must be a JSON object")

        for name in ("src", "dest", "body"):
            if name not in data:
                raise EnvelopeError(f"Message is missing '{name}'")

        body = data["body"]
        if not isinstance(body, dict):
            raise EnvelopeError("Message body must be a JSON object")
        if not isinstance(body.get("type"), str):
            raise EnvelopeError("Message body has no type")

        return Message(src=data["src"], dest=data["dest"], body=body)

    @staticmethod
    def from_json(line: str) -> "Message":
        """
        Parse a message from one line of JSON.

        Raises:
            EnvelopeError: If the line is not valid JSON or not a message
        """
        try:
            data = json.loads(line)
        except json.JSONDecodeError as e:
            raise EnvelopeError(f"Invalid JSON: {e}") from e

        return Message.from_dict(data)
