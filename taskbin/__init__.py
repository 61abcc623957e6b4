"""Fire-and-forget aggregation of asynchronous tasks."""

from taskbin.core.aggregator import Aggregator, BinStatus, InvalidTaskError
from taskbin.core.slot import HandlerSlot
from taskbin.monitor.reporter import StatusReporter

__all__ = ["Aggregator", "BinStatus", "InvalidTaskError", "HandlerSlot", "StatusReporter"]
