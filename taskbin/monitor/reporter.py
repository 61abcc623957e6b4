"""Status reporter: broadcasts an aggregator's counters over a message bus.

The reporter chains itself onto the aggregator's permanent change and
drained handlers. Every publish is itself a fire-and-forget task, tracked by
a private aggregator so failures are logged without reaching the observed
one.
"""

from taskbin.core.aggregator import Aggregator
from taskbin.shared.bus import RedisBus
from taskbin.shared.config import REPORTER_DEFAULTS, load_bin_config


class StatusReporter:
    """Publish status snapshots of an aggregator on every change."""

    def __init__(
        self,
        aggregator: Aggregator,
        bus,
        channel: str = "taskbin/status",
        sender: str | None = None,
    ):
        self.aggregator = aggregator
        self.bus = bus
        self.channel = channel
        self.sender = sender or aggregator.name
        self.logger = aggregator.logger
        self._outbox = Aggregator(
            rejection_handler=self._on_publish_failed,
            name=f"{aggregator.name}.reporter",
            logger=aggregator.logger,
        )
        self._wrappers = None
        self._generation = 0

    @classmethod
    def from_config(cls, aggregator: Aggregator, config_path: str) -> "StatusReporter":
        """Build a reporter on a ``RedisBus`` from a JSON config file."""
        config = load_bin_config(config_path, defaults=REPORTER_DEFAULTS)
        bus = RedisBus(redis_url=config["redis_url"])
        return cls(aggregator, bus, channel=config["status_channel"])

    @property
    def attached(self) -> bool:
        return self._wrappers is not None

    @property
    def outbox(self) -> Aggregator:
        """The aggregator tracking in-flight publishes."""
        return self._outbox

    def attach(self):
        """Chain onto the aggregator's change and drained handlers.

        Attach while no one-shot future is outstanding on those slots, or the
        one-shot puts the pre-attach handler back when it fires.
        """
        if self.attached:
            return
        self._generation += 1
        generation = self._generation
        change = self.aggregator.change_handler
        drained = self.aggregator.drained_handler

        def on_change():
            try:
                change()
            finally:
                if self._generation == generation:
                    self._schedule("change")

        def on_drained():
            try:
                drained()
            finally:
                if self._generation == generation:
                    self._schedule("drained")

        self._wrappers = (on_change, change, on_drained, drained)
        self.aggregator.change_handler = on_change
        self.aggregator.drained_handler = on_drained
        self.logger.info(f"Status reporter attached to {self.channel}")

    def detach(self):
        """Stop publishing and put back the handlers replaced by ``attach``.

        A slot that no longer holds the reporter's wrapper (a one-shot was
        borrowed after ``attach``) is left alone; the wrapper stays in that
        chain and only forwards to the previous handler from now on.
        """
        if not self.attached:
            return
        on_change, change, on_drained, drained = self._wrappers
        if self.aggregator.change_handler is on_change:
            self.aggregator.change_handler = change
        if self.aggregator.drained_handler is on_drained:
            self.aggregator.drained_handler = drained
        self._wrappers = None
        self._generation += 1
        self.logger.info("Status reporter detached")

    async def publish_status(self):
        """Publish a snapshot right away."""
        await self.bus.publish(self.channel, self._payload("snapshot"), sender=self.sender)

    async def flush(self):
        """Wait until every scheduled publish has settled."""
        await self._outbox.no_more_pending()

    def _payload(self, event: str) -> dict:
        return {"event": event, **self.aggregator.status.to_dict()}

    def _schedule(self, event: str):
        coro = self.bus.publish(self.channel, self._payload(event), sender=self.sender)
        self._outbox.add(coro)

    def _on_publish_failed(self, error: BaseException):
        self.logger.error(
            f"Status publish failed: {error!r}",
            extra={"bin_data": {"channel": self.channel}},
        )
