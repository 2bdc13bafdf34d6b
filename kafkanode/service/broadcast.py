"""
Broadcast workload: a node-local set of seen messages.

Messages are not gossiped to other nodes; the recorded topology is kept
only so it can be reported.
"""

import threading
from typing import Any, Awaitable, Callable, Dict, List, Set

from kafkanode.node.errors import MalformedRequestError
from kafkanode.service.protocol import MAX_MESSAGE_VALUE
from kafkanode.utils.logging import get_logger

logger = get_logger(__name__)


class BroadcastService:
    """
    Answers ``broadcast``, ``read`` and ``topology`` requests.

    Attributes:
        topology: Neighbours per node, as last sent by the harness
    """

    def __init__(self):
        self.topology: Dict[str, List[str]] = {}

        self._messages: Set[int] = set()
        self._lock = threading.Lock()

    def add(self, message: int) -> bool:
        """
        Record a message.

        Returns:
            True if the message was not seen before
        """
        with self._lock:
            if message in self._messages:
                return False
            self._messages.add(message)
            return True

    def messages(self) -> List[int]:
        """Get every recorded message, sorted."""
        with self._lock:
            return sorted(self._messages)

    async def broadcast(self, body: Dict[str, Any]) -> Dict[str, Any]:
        if "message" not in body:
            raise MalformedRequestError("Missing field 'message' in broadcast request")

        message = body["message"]
        if isinstance(message, bool) or not isinstance(message, int) \
                or not 0 <= message <= MAX_MESSAGE_VALUE:
            raise MalformedRequestError("Field 'message' must be an unsigned 64-bit integer")

        if self.add(message):
            logger.debug("Recorded broadcast message", message=message)

        return {"type": "broadcast_ok"}

    async def read(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return {"type": "read_ok", "messages": self.messages()}

    async def update_topology(self, body: Dict[str, Any]) -> Dict[str, Any]:
        topology = body.get("topology")
        if not isinstance(topology, dict):
            raise MalformedRequestError("Field 'topology' must be an object")

        self.topology = {node: list(neighbours) for node, neighbours in topology.items()}

        logger.info("Updated topology", nodes=len(self.topology))
        return {"type": "topology_ok"}

    def routes(self) -> Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]]:
        return {
            "broadcast": self.broadcast,
            "read": self.read,
            "topology": self.update_topology,
        }
