"""Node runtime: message envelope, request routing and process entry point."""

from kafkanode.node.errors import ErrorCode, MalformedRequestError, NotSupportedError, RPCError
from kafkanode.node.message import EnvelopeError, Message
from kafkanode.node.runtime import NodeRuntime

__all__ = [
    "EnvelopeError",
    "ErrorCode",
    "MalformedRequestError",
    "Message",
    "NodeRuntime",
    "NotSupportedError",
    "RPCError",
]
