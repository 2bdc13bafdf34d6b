"""Echo and unique-id generation requests."""

import uuid
from typing import Any, Awaitable, Callable, Dict


class EchoService:
    """Answers ``echo`` and ``generate`` requests."""

    async def echo(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """Return the request body unchanged apart from its type."""
        reply = {k: v for k, v in body.items() if k not in ("type", "msg_id", "in_reply_to")}
        reply["type"] = "echo_ok"
        return reply

    async def generate(self, body: Dict[str, Any]) -> Dict[str, Any]:
        return {"type": "generate_ok", "id": str(uuid.uuid4())}

    def routes(self) -> Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]]:
        return {
            "echo": self.echo,
            "generate": self.generate,
        }
