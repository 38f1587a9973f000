"""
事件总线单元测试
"""
import pytest
from datetime import datetime

from rate_calendar.services.event_bus import EventBus, Event


class TestEventBus:
    """事件总线测试"""

    @pytest.fixture
    def bus(self):
        return EventBus(history_size=3)

    @pytest.fixture
    def sample_event(self):
        return Event(
            event_type="rate_calendar.override_applied",
            timestamp=datetime.now(),
            data={"entry_id": "rate-1"},
            source="test"
        )

    def test_subscribe_and_publish(self, bus, sample_event):
        """测试订阅和发布"""
        received = []

        def handler(event):
            received.append(event)

        bus.subscribe("rate_calendar.override_applied", handler)
        bus.publish(sample_event)

        assert len(received) == 1
        assert received[0].data["entry_id"] == "rate-1"

    def test_subscribe_twice_registers_once(self, bus, sample_event):
        calls = []

        def handler(event):
            calls.append(event)

        bus.subscribe("rate_calendar.override_applied", handler)
        bus.subscribe("rate_calendar.override_applied", handler)
        bus.publish(sample_event)

        assert len(calls) == 1

    def test_unsubscribe(self, bus, sample_event):
        """测试取消订阅"""
        received = []

        def handler(event):
            received.append(event)

        bus.subscribe("rate_calendar.override_applied", handler)
        bus.unsubscribe("rate_calendar.override_applied", handler)
        bus.publish(sample_event)

        assert received == []

    def test_handler_exception_isolation(self, bus, sample_event):
        """测试处理器异常隔离"""
        successful = []

        def failing_handler(event):
            raise RuntimeError("boom")

        def good_handler(event):
            successful.append(event)

        bus.subscribe("rate_calendar.override_applied", failing_handler)
        bus.subscribe("rate_calendar.override_applied", good_handler)
        bus.publish(sample_event)

        assert len(successful) == 1

    def test_history_bounded_newest_first(self, bus):
        for i in range(5):
            bus.publish(Event(event_type="t", timestamp=datetime.now(), data={"i": i}, source="test"))

        history = bus.get_history()
        assert [e.data["i"] for e in history] == [4, 3, 2]

    def test_history_filter_and_clear(self, bus, sample_event):
        bus.publish(sample_event)
        bus.publish(Event(event_type="other", timestamp=datetime.now(), data={}, source="test"))

        assert len(bus.get_history("other")) == 1
        bus.clear_history()
        assert bus.get_history() == []

    def test_clear_subscribers(self, bus, sample_event):
        received = []
        bus.subscribe("rate_calendar.override_applied", received.append)
        bus.clear_subscribers()
        bus.publish(sample_event)
        assert received == []
