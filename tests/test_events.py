import pytest

from events import EventBus, EventTypes


@pytest.fixture
def bus():
    bus = EventBus(max_history=3)
    yield bus
    bus.shutdown()


def test_listeners_receive_events(bus):
    seen = []
    bus.on(EventTypes.THEME_CHANGED, lambda event: seen.append(event.data["theme"]))
    bus.on_all(lambda event: seen.append(event.type))

    bus.emit(EventTypes.THEME_CHANGED, {"theme": "dark"}, source="theme")
    assert bus.wait_until_idle()

    assert seen == ["dark", EventTypes.THEME_CHANGED]


def test_history_is_bounded(bus):
    for index in range(5):
        bus.emit(EventTypes.SEARCH_RESULTS, {"count": index})
    bus.wait_until_idle()

    recent = bus.get_recent_events()
    assert [e["data"]["count"] for e in recent] == [2, 3, 4]
    assert bus.get_stats()["event_counts"][EventTypes.SEARCH_RESULTS] == 5


def test_failing_listener_does_not_stop_dispatch(bus):
    seen = []

    def broken(event):
        raise RuntimeError("boom")

    bus.on(EventTypes.ALERT_SHOWN, broken)
    bus.on(EventTypes.ALERT_SHOWN, lambda event: seen.append(event.source))

    bus.emit(EventTypes.ALERT_SHOWN, {"title": "Error"}, source="alerts")
    bus.wait_until_idle()

    assert seen == ["alerts"]
