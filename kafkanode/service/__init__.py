"""Request families served by the node."""

from kafkanode.service.broadcast import BroadcastService
from kafkanode.service.dispatcher import LogDispatcher, PollErrorMode
from kafkanode.service.echo import EchoService

__all__ = [
    "BroadcastService",
    "EchoService",
    "LogDispatcher",
    "PollErrorMode",
]
