"""Fire-and-forget aggregator for asynchronous tasks.

Tasks are added and forgotten: the aggregator only keeps counters and one
handler per event kind. Callers learn about completions through permanent
handlers, or by asking for a one-shot future tied to the next success, the
next failure, the next settlement of either kind, or the next drain.

All bookkeeping happens in done callbacks on the running event loop, which
never runs two callbacks at once, so no locking is done here. Sharing one
aggregator between event loops or threads needs an external lock.
"""

import asyncio
import concurrent.futures
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable

from taskbin.core.slot import HandlerSlot
from taskbin.shared.config import BIN_DEFAULTS, load_bin_config
from taskbin.shared.logger import get_bin_logger


class InvalidTaskError(TypeError):
    """Raised when something that cannot settle is added to a bin."""


@dataclass(frozen=True)
class BinStatus:
    pending: int = 0
    fulfilled: int = 0
    rejected: int = 0
    total: int = 0

    def to_dict(self) -> dict:
        return {
            "pending": self.pending,
            "fulfilled": self.fulfilled,
            "rejected": self.rejected,
            "total": self.total,
        }


class Aggregator:
    """Track an unbounded stream of tasks without keeping settled ones.

    Provides:
    - pending / fulfilled / rejected / total counters
    - permanent fulfillment, rejection, change and drained handlers
    - one-shot futures for the next change, fulfillment, rejection or drain
    """

    def __init__(
        self,
        fulfillment_handler: Callable[[Any], Any] | None = None,
        rejection_handler: Callable[[BaseException], Any] | None = None,
        change_handler: Callable[[], Any] | None = None,
        drained_handler: Callable[[], Any] | None = None,
        name: str = "bin",
        logger: logging.Logger | None = None,
    ):
        self.name = name
        self.logger = logger or get_bin_logger(name)

        self._pending = 0
        self._fulfilled = 0
        self._rejected = 0
        self._total = 0

        # The loop only holds tasks weakly; settled futures are dropped.
        self._inflight: set[asyncio.Future] = set()

        self._fulfillment = HandlerSlot("fulfillment")
        self._rejection = HandlerSlot("rejection")
        self._change = HandlerSlot("change")
        self._drained = HandlerSlot("drained")

        self.fulfillment_handler = fulfillment_handler
        self.rejection_handler = rejection_handler
        self.change_handler = change_handler
        self.drained_handler = drained_handler

    @classmethod
    def from_config(cls, config_path: str, **handlers) -> "Aggregator":
        """Build an aggregator from a JSON config file.

        Recognised keys are ``name``, ``log_level`` and ``log_file``.
        """
        config = load_bin_config(config_path, defaults=BIN_DEFAULTS)
        logger = get_bin_logger(
            config["name"],
            log_file=config["log_file"],
            level=config["log_level"],
        )
        return cls(name=config["name"], logger=logger, **handlers)

    # Stats

    @property
    def status(self) -> BinStatus:
        return BinStatus(
            pending=self._pending,
            fulfilled=self._fulfilled,
            rejected=self._rejected,
            total=self._total,
        )

    @property
    def pending(self) -> int:
        return self._pending

    @property
    def fulfilled(self) -> int:
        return self._fulfilled

    @property
    def rejected(self) -> int:
        return self._rejected

    @property
    def total(self) -> int:
        return self._total

    # Handlers

    @property
    def fulfillment_handler(self) -> Callable:
        return self._fulfillment.handler

    @fulfillment_handler.setter
    def fulfillment_handler(self, handler):
        self._fulfillment.handler = self._checked(self._fulfillment, handler)

    @property
    def rejection_handler(self) -> Callable:
        return self._rejection.handler

    @rejection_handler.setter
    def rejection_handler(self, handler):
        self._rejection.handler = self._checked(self._rejection, handler)

    @property
    def change_handler(self) -> Callable:
        return self._change.handler

    @change_handler.setter
    def change_handler(self, handler):
        self._change.handler = self._checked(self._change, handler)

    @property
    def drained_handler(self) -> Callable:
        return self._drained.handler

    @drained_handler.setter
    def drained_handler(self, handler):
        self._drained.handler = self._checked(self._drained, handler)

    def _checked(self, slot: HandlerSlot, handler):
        if handler is None or callable(handler):
            return handler
        self.logger.warning(
            f"Ignoring non-callable {slot.name} handler",
            extra={"bin_data": {"handler": repr(handler)}},
        )
        return None

    # Tracking

    def add(self, task) -> None:
        """Start tracking a task. Never raises for the task's own failure.

        Accepts asyncio futures and tasks, coroutines and other awaitables,
        and ``concurrent.futures.Future`` objects.

        Raises:
            InvalidTaskError: If ``task`` is not something that can settle.
        """
        future = self._as_future(task)

        self._pending += 1
        self._total += 1
        self.logger.debug("Task added", extra={"bin_data": self.status.to_dict()})

        self._inflight.add(future)
        future.add_done_callback(self._on_done)

    @staticmethod
    def _as_future(task) -> asyncio.Future:
        if isinstance(task, concurrent.futures.Future):
            return asyncio.wrap_future(task)
        if asyncio.isfuture(task) or inspect.isawaitable(task):
            return asyncio.ensure_future(task)
        raise InvalidTaskError(
            f"Expected an awaitable or future, got {type(task).__name__}"
        )

    def _on_done(self, future: asyncio.Future):
        self._inflight.discard(future)
        if future.cancelled():
            self._reject(asyncio.CancelledError())
            return
        error = future.exception()
        if error is None:
            self._fulfill(future.result())
        else:
            self._reject(error)

    def _fulfill(self, value):
        self._fulfilled += 1
        self._fire(self._fulfillment, value)
        self._update_pending()

    def _reject(self, error: BaseException):
        self._rejected += 1
        self.logger.debug(
            f"Task rejected: {error!r}",
            extra={"bin_data": self.status.to_dict()},
        )
        self._fire(self._rejection, error)
        self._update_pending()

    def _update_pending(self):
        self._pending -= 1

        if self._pending == 0:
            self.logger.debug("Bin drained", extra={"bin_data": self.status.to_dict()})
            self._fire(self._drained)

        self._fire(self._change)

    def _fire(self, slot: HandlerSlot, *args):
        try:
            slot.fire(*args)
        except Exception:
            self.logger.exception(f"{slot.name} handler failed")

    # One-shot notifications

    def next_change(self) -> asyncio.Future:
        """Future resolved by the next settlement of any kind."""
        return self._next(self._change)

    def next_fulfillment(self) -> asyncio.Future:
        """Future resolved with the value of the next successful task."""
        return self._next(self._fulfillment)

    def next_rejection(self) -> asyncio.Future:
        """Future resolved with the error of the next failed task."""
        return self._next(self._rejection)

    def no_more_pending(self) -> asyncio.Future:
        """Future resolved when the pending count next reaches zero."""
        return self._next(self._drained)

    def _next(self, slot: HandlerSlot) -> asyncio.Future:
        loop = asyncio.get_running_loop()
        if self._pending < 1:
            already = loop.create_future()
            already.set_result(True)
            return already
        return slot.borrow(loop)

    def __repr__(self):
        s = self.status
        return (
            f"<Aggregator {self.name!r} pending={s.pending} "
            f"fulfilled={s.fulfilled} rejected={s.rejected} total={s.total}>"
        )
