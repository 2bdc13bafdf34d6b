"""Tests for the log service dispatcher."""

import pytest

from kafkanode.core.log import CommitPolicy, LogStore
from kafkanode.node.errors import ErrorCode, MalformedRequestError
from kafkanode.service.dispatcher import LogDispatcher, PollErrorMode
from kafkanode.service.protocol import (
    CommitOffsets,
    CommitOffsetsOk,
    ErrorResponse,
    ListCommittedOffsets,
    ListCommittedOffsetsOk,
    Poll,
    PollOk,
    Send,
    SendOk,
)


@pytest.fixture
def dispatcher():
    """Create a dispatcher over an empty store."""
    return LogDispatcher(LogStore())


class TestDispatch:
    """Test dispatching decoded requests."""

    def test_send(self, dispatcher):
        """Test send appends and returns the offset."""
        assert dispatcher.dispatch(Send(key="k1", msg=10)) == SendOk(offset=0)
        assert dispatcher.dispatch(Send(key="k1", msg=20)) == SendOk(offset=1)

    def test_poll(self, dispatcher):
        """Test poll returns entries per key."""
        dispatcher.dispatch(Send(key="k1", msg=10))
        dispatcher.dispatch(Send(key="k1", msg=20))

        response = dispatcher.dispatch(Poll(offsets={"k1": 0}))

        assert response == PollOk(msgs={"k1": [(0, 10), (1, 20)]})

    def test_poll_caught_up(self, dispatcher):
        """Test polling at the log end returns an empty list for the key."""
        dispatcher.dispatch(Send(key="k1", msg=10))

        response = dispatcher.dispatch(Poll(offsets={"k1": 1}))

        assert response == PollOk(msgs={"k1": []})

    def test_commit_and_list(self, dispatcher):
        """Test commit_offsets and list_committed_offsets."""
        dispatcher.dispatch(Send(key="k1", msg=10))

        assert dispatcher.dispatch(CommitOffsets(offsets={"k1": 1})) == CommitOffsetsOk()

        response = dispatcher.dispatch(ListCommittedOffsets(keys=["k1", "unknown"]))

        assert response == ListCommittedOffsetsOk(offsets={"k1": 1, "unknown": 0})

    def test_unknown_request_type(self, dispatcher):
        """Test non-request objects are rejected."""
        with pytest.raises(TypeError):
            dispatcher.dispatch("not a request")


class TestPollErrors:
    """Test poll failure handling."""

    def test_invalid_offset(self, dispatcher):
        """Test a bad offset fails the whole poll."""
        dispatcher.dispatch(Send(key="k1", msg=10))
        dispatcher.dispatch(Send(key="k1", msg=20))

        response = dispatcher.dispatch(Poll(offsets={"k1": 5}))

        assert isinstance(response, ErrorResponse)
        assert response.key == "k1"
        assert response.kind == "InvalidOffset"
        assert response.code == ErrorCode.PRECONDITION_FAILED

    def test_unknown_key(self, dispatcher):
        """Test an unknown key fails the whole poll."""
        dispatcher.dispatch(Send(key="k1", msg=10))

        response = dispatcher.dispatch(Poll(offsets={"k1": 0, "missing": 0}))

        assert isinstance(response, ErrorResponse)
        assert response.key == "missing"
        assert response.kind == "KeyNotFound"
        assert response.code == ErrorCode.KEY_DOES_NOT_EXIST

    def test_store_usable_after_error(self, dispatcher):
        """Test a failed poll leaves the dispatcher serving requests."""
        dispatcher.dispatch(Send(key="k1", msg=10))
        dispatcher.dispatch(Poll(offsets={"k1": 5}))

        assert dispatcher.dispatch(Send(key="k1", msg=20)) == SendOk(offset=1)
        assert dispatcher.dispatch(Poll(offsets={"k1": 1})) == PollOk(msgs={"k1": [(1, 20)]})

    def test_partial_mode(self):
        """Test partial mode returns readable keys and an errors map."""
        dispatcher = LogDispatcher(LogStore(), poll_error_mode=PollErrorMode.PARTIAL)
        dispatcher.dispatch(Send(key="k1", msg=10))

        response = dispatcher.dispatch(Poll(offsets={"k1": 0, "k2": 0, "k3": 0}))

        assert isinstance(response, PollOk)
        assert response.msgs == {"k1": [(0, 10)]}
        assert response.errors == {"k2": "KeyNotFound", "k3": "KeyNotFound"}

    def test_partial_mode_without_errors(self):
        """Test partial mode omits the errors map when every key is readable."""
        dispatcher = LogDispatcher(LogStore(), poll_error_mode=PollErrorMode.PARTIAL)
        dispatcher.dispatch(Send(key="k1", msg=10))

        body = dispatcher.dispatch(Poll(offsets={"k1": 0})).to_body()

        assert body == {"type": "poll_ok", "msgs": {"k1": [[0, 10]]}}


class TestStrictCommits:
    """Test commit errors under the strict policy."""

    def test_commit_unknown_key(self):
        dispatcher = LogDispatcher(LogStore(commit_policy=CommitPolicy.STRICT))

        response = dispatcher.dispatch(CommitOffsets(offsets={"missing": 0}))

        assert isinstance(response, ErrorResponse)
        assert response.key == "missing"
        assert response.kind == "KeyNotFound"


class TestHandle:
    """Test body-level handling."""

    @pytest.mark.asyncio
    async def test_end_to_end_scenario(self, dispatcher):
        """Test the full send/poll/commit/list flow on message bodies."""
        assert await dispatcher.handle({"type": "send", "key": "k1", "msg": 10}) == {
            "type": "send_ok",
            "offset": 0,
        }
        assert await dispatcher.handle({"type": "send", "key": "k1", "msg": 20}) == {
            "type": "send_ok",
            "offset": 1,
        }
        assert await dispatcher.handle({"type": "poll", "offsets": {"k1": 0}}) == {
            "type": "poll_ok",
            "msgs": {"k1": [[0, 10], [1, 20]]},
        }
        assert await dispatcher.handle({"type": "commit_offsets", "offsets": {"k1": 1}}) == {
            "type": "commit_offsets_ok",
        }
        assert await dispatcher.handle(
            {"type": "list_committed_offsets", "keys": ["k1", "unknown"]}
        ) == {
            "type": "list_committed_offsets_ok",
            "offsets": {"k1": 1, "unknown": 0},
        }

    @pytest.mark.asyncio
    async def test_error_body(self, dispatcher):
        """Test a failed poll produces an error body naming key and kind."""
        await dispatcher.handle({"type": "send", "key": "k1", "msg": 10})
        await dispatcher.handle({"type": "send", "key": "k1", "msg": 20})

        body = await dispatcher.handle({"type": "poll", "offsets": {"k1": 5}})

        assert body["type"] == "error"
        assert body["code"] == 22
        assert body["key"] == "k1"
        assert body["kind"] == "InvalidOffset"

    @pytest.mark.asyncio
    async def test_malformed_body(self, dispatcher):
        """Test undecodable bodies raise for the runtime to report."""
        with pytest.raises(MalformedRequestError):
            await dispatcher.handle({"type": "send", "key": "k1"})

    def test_routes(self, dispatcher):
        """Test every log service type is routed."""
        assert set(dispatcher.routes()) == {
            "send",
            "poll",
            "commit_offsets",
            "list_committed_offsets",
        }
