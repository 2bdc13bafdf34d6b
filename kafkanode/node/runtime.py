"""
Node runtime: reads messages from stdin and writes replies to stdout.

Each inbound request is handled in its own asyncio task, so slow requests
do not hold up others and replies may leave in a different order than the
requests arrived. Blocking stdin reads run in a thread pool.
"""

import asyncio
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set, TextIO

from kafkanode.node.errors import ErrorCode, NotSupportedError, RPCError
from kafkanode.node.message import EnvelopeError, Message
from kafkanode.utils.logging import get_logger

logger = get_logger(__name__)

Handler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class NodeRuntime:
    """
    Message loop for a single node.

    Handles ``init`` itself and routes every other request to the handler
    registered for its type.

    Attributes:
        node_id: This node's id, known after ``init``
        node_ids: All node ids in the cluster, known after ``init``
    """

    def __init__(
        self,
        input_stream: Optional[TextIO] = None,
        output_stream: Optional[TextIO] = None,
    ):
        """
        Initialize runtime.

        Args:
            input_stream: Source of message lines (default: stdin)
            output_stream: Destination for message lines (default: stdout)
        """
        self.input_stream = input_stream or sys.stdin
        self.output_stream = output_stream or sys.stdout

        self.node_id: Optional[str] = None
        self.node_ids: List[str] = []

        self._handlers: Dict[str, Handler] = {}
        self._next_msg_id = 0
        self._tasks: Set[asyncio.Task] = set()

        self._io_executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="stdin-reader",
        )

        self._messages_received = 0
        self._messages_sent = 0
        self._errors_sent = 0

    def register(self, message_type: str, handler: Handler) -> None:
        """
        Register the handler for a request type.

        Raises:
            ValueError: If the type already has a handler, or is ``init``
        """
        if message_type == "init":
            raise ValueError("init is handled by the runtime")
        if message_type in self._handlers:
            raise ValueError(f"Handler already registered for {message_type}")
        self._handlers[message_type] = handler

    def register_routes(self, routes: Dict[str, Handler]) -> None:
        """Register several handlers at once."""
        for message_type, handler in routes.items():
            self.register(message_type, handler)

    def _allocate_msg_id(self) -> int:
        self._next_msg_id += 1
        return self._next_msg_id

    def send(self, dest: str, body: Dict[str, Any]) -> Message:
        """
        Write a message to the output stream.

        Args:
            dest: Destination node or client id
            body: Message body; a fresh ``msg_id`` is assigned

        Returns:
            The message as sent
        """
        body = dict(body)
        body["msg_id"] = self._allocate_msg_id()

        message = Message(src=self.node_id or "", dest=dest, body=body)

        self.output_stream.write(message.to_json() + "\n")
        self.output_stream.flush()

        self._messages_sent += 1
        if body.get("type") == "error":
            self._errors_sent += 1

        logger.debug("Sent message", dest=dest, type=body.get("type"), msg_id=body["msg_id"])
        return message

    def reply(self, request: Message, body: Dict[str, Any]) -> Message:
        """Send ``body`` back to the sender of ``request``."""
        body = dict(body)
        body["in_reply_to"] = request.msg_id
        return self.send(request.src, body)

    async def handle_message(self, message: Message) -> None:
        """
        Handle one inbound message.

        Handler failures are reported to the requester as error replies and
        never propagate out of this method.
        """
        self._messages_received += 1

        if message.is_reply():
            logger.debug(
                "Ignoring reply",
                src=message.src,
                type=message.type,
                in_reply_to=message.in_reply_to,
            )
            return

        if message.type == "init":
            self._handle_init(message)
            return

        try:
            handler = self._handlers.get(message.type)
            if handler is None:
                raise NotSupportedError(message.type)

            reply_body = await handler(message.body)

        except RPCError as e:
            logger.warning(
                "Request rejected",
                src=message.src,
                type=message.type,
                code=int(e.code),
                error=e.text,
            )
            reply_body = e.to_body()

        except Exception as e:
            logger.error(
                "Request handler crashed",
                src=message.src,
                type=message.type,
                error=str(e),
                exc_info=True,
            )
            reply_body = RPCError(ErrorCode.CRASH, f"Internal error: {e}").to_body()

        self.reply(message, reply_body)

    def _handle_init(self, message: Message) -> None:
        node_id = message.body.get("node_id")
        node_ids = message.body.get("node_ids", [])

        if not isinstance(node_id, str):
            self.reply(message, RPCError(
                ErrorCode.MALFORMED_REQUEST, "init requires a node_id"
            ).to_body())
            return

        self.node_id = node_id
        self.node_ids = list(node_ids)

        logger.info("Node initialized", node_id=self.node_id, node_ids=self.node_ids)

        self.reply(message, {"type": "init_ok"})

    async def handle_line(self, line: str) -> None:
        """Parse and handle one input line; invalid lines are logged and skipped."""
        line = line.strip()
        if not line:
            return

        try:
            message = Message.from_json(line)
        except EnvelopeError as e:
            logger.warning("Dropping invalid message", error=str(e), line=line[:200])
            return

        await self.handle_message(message)

    def _spawn(self, line: str) -> None:
        task = asyncio.create_task(self.handle_line(line))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def run(self) -> None:
        """Process input until end-of-file, then wait for in-flight requests."""
        loop = asyncio.get_running_loop()

        logger.info("Node runtime started", handlers=sorted(self._handlers))

        try:
            while True:
                line = await loop.run_in_executor(self._io_executor, self.input_stream.readline)
                if not line:
                    break
                self._spawn(line)

            if self._tasks:
                await asyncio.gather(*list(self._tasks))

        finally:
            self._io_executor.shutdown(wait=False)

        logger.info("Node runtime stopped", **self.get_stats())

    def get_stats(self) -> dict:
        """
        Get runtime statistics.

        Returns:
            Statistics dict
        """
        return {
            "node_id": self.node_id,
            "messages_received": self._messages_received,
            "messages_sent": self._messages_sent,
            "errors_sent": self._errors_sent,
            "in_flight": len(self._tasks),
        }
