"""
kafkanode - a single participant node for a Maelstrom-style test harness.

The node answers three request families:
- echo and unique id generation
- broadcast into a node-local message set
- a Kafka-style log service: per-key append-only logs with committed offsets
"""

__version__ = "0.1.0"

from kafkanode.core import log
from kafkanode.node import runtime
from kafkanode import service

__all__ = [
    "log",
    "runtime",
    "service",
]
