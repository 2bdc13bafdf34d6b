"""Core components for log storage."""

from kafkanode.core import log

__all__ = ["log"]
