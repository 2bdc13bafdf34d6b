"""Tests for the message envelope."""

import json

import pytest

from kafkanode.node.message import EnvelopeError, Message


class TestMessage:
    """Test Message."""

    def test_from_json(self):
        """Test parsing a request line."""
        message = Message.from_json(
            '{"src": "c1", "dest": "n1", "body": {"type": "echo", "msg_id": 1, "echo": "hi"}}'
        )

        assert message.src == "c1"
        assert message.dest == "n1"
        assert message.type == "echo"
        assert message.msg_id == 1
        assert message.in_reply_to is None
        assert not message.is_reply()

    def test_reply_detection(self):
        message = Message("n2", "n1", {"type": "read_ok", "in_reply_to": 4})

        assert message.is_reply()

    def test_to_json_is_single_line(self):
        """Test serialized messages contain no newlines."""
        message = Message("n1", "c1", {"type": "echo_ok", "echo": "a\nb"})

        line = message.to_json()

        assert "\n" not in line
        assert json.loads(line) == message.to_dict()

    @pytest.mark.parametrize(
        "line",
        [
            "not json",
            "[1, 2]",
            '{"src": "c1", "body": {"type": "echo"}}',
            '{"src": "c1", "dest": "n1", "body": "echo"}',
            '{"src": "c1", "dest": "n1", "body": {"msg_id": 1}}',
        ],
    )
    def test_invalid_lines(self, line):
        """Test invalid envelopes are rejected."""
        with pytest.raises(EnvelopeError):
            Message.from_json(line)
