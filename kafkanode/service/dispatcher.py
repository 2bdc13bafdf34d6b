"""
Request dispatcher for the log service.

Translates decoded requests into log store calls and assembles replies.
Store errors become error responses here; they never escape to the runtime.
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict

from kafkanode.core.log import LogStore, LogStoreError
from kafkanode.node.errors import ErrorCode
from kafkanode.service.protocol import (
    REQUEST_TYPES,
    CommitOffsets,
    CommitOffsetsOk,
    ErrorResponse,
    ListCommittedOffsets,
    ListCommittedOffsetsOk,
    LogRequest,
    LogResponse,
    Poll,
    PollOk,
    Send,
    SendOk,
    decode_request,
)
from kafkanode.utils.logging import get_logger

logger = get_logger(__name__)

ERROR_CODES = {
    "KeyNotFound": ErrorCode.KEY_DOES_NOT_EXIST,
    "InvalidOffset": ErrorCode.PRECONDITION_FAILED,
}


class PollErrorMode(Enum):
    """
    How a poll reacts to keys that cannot be read.

    ALL_OR_NOTHING fails the whole request on the first bad key.
    PARTIAL returns readable keys and reports the rest in an ``errors`` map.
    """

    ALL_OR_NOTHING = "all_or_nothing"
    PARTIAL = "partial"


def error_response(error: LogStoreError) -> ErrorResponse:
    """Build the error response for a store error."""
    return ErrorResponse(
        code=ERROR_CODES.get(error.kind, ErrorCode.ABORT),
        text=str(error),
        key=error.key,
        kind=error.kind,
    )


class LogDispatcher:
    """
    Stateless dispatcher over an explicitly owned ``LogStore``.

    Attributes:
        store: Log store all requests operate on
        poll_error_mode: Failure policy for multi-key polls
    """

    def __init__(
        self,
        store: LogStore,
        poll_error_mode: PollErrorMode = PollErrorMode.ALL_OR_NOTHING,
    ):
        self.store = store
        self.poll_error_mode = poll_error_mode

    def dispatch(self, request: LogRequest) -> LogResponse:
        """
        Execute a request against the store.

        Args:
            request: Decoded request

        Returns:
            Success response, or ``ErrorResponse`` if a store error occurred
        """
        try:
            if isinstance(request, Send):
                return SendOk(offset=self.store.append(request.key, request.msg))

            if isinstance(request, Poll):
                return self._poll(request)

            if isinstance(request, CommitOffsets):
                self.store.commit_many(request.offsets)
                return CommitOffsetsOk()

            if isinstance(request, ListCommittedOffsets):
                return ListCommittedOffsetsOk(
                    offsets=self.store.committed_offsets(request.keys)
                )

        except LogStoreError as e:
            logger.warning(
                "Request failed",
                request=type(request).__name__,
                key=e.key,
                kind=e.kind,
                error=str(e),
            )
            return error_response(e)

        raise TypeError(f"Unknown request: {request!r}")

    def _poll(self, request: Poll) -> PollOk:
        if self.poll_error_mode is PollErrorMode.PARTIAL:
            result = self.store.try_read_many(request.offsets)
            errors = {key: e.kind for key, e in result.errors.items()}
            if errors:
                logger.info("Partial poll", failed_keys=sorted(errors))
            return PollOk(msgs=result.msgs, errors=errors)

        return PollOk(msgs=self.store.read_many(request.offsets))

    async def handle(self, body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Decode a message body, dispatch it and encode the reply body.

        Raises:
            MalformedRequestError: If the body cannot be decoded
        """
        request = decode_request(body)
        return self.dispatch(request).to_body()

    def routes(self) -> Dict[str, Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]]:
        """Map each log service message type to its handler."""
        return {message_type: self.handle for message_type in REQUEST_TYPES}
