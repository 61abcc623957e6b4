"""Tests for the MockBus test utility."""

import pytest
from taskbin.tests.mock_bus import MockBus


class TestMockBus:
    @pytest.mark.asyncio
    async def test_publish_creates_envelope(self):
        bus = MockBus()
        await bus.connect()
        await bus.publish("test/channel", {"key": "value"}, sender="tester")
        assert len(bus.published) == 1
        channel, envelope = bus.published[0]
        assert channel == "test/channel"
        assert envelope["from"] == "tester"
        assert envelope["payload"] == {"key": "value"}
        assert "timestamp" in envelope

    @pytest.mark.asyncio
    async def test_get_published_filters_by_channel(self):
        bus = MockBus()
        await bus.publish("a", {"event": "change"})
        await bus.publish("b", {"event": "drained"})
        assert len(bus.get_published("a")) == 1
        assert bus.payloads("drained") == [{"event": "drained"}]

    @pytest.mark.asyncio
    async def test_fail_with_raises(self):
        bus = MockBus(fail_with=ConnectionError("down"))
        with pytest.raises(ConnectionError):
            await bus.publish("a", {})
        assert bus.published == []
