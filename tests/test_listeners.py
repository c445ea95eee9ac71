from __future__ import annotations

from pathlib import Path

from gallery_framer.frame_core import ObserverDeliveryError
from gallery_framer.listeners import ListenerRegistry


class RecordingListener:
    def __init__(self, name: str, events: list):
        self.name = name
        self.events = events

    def processed_image(self, pathname: Path) -> None:
        self.events.append((self.name, pathname.name))


def test_notify_in_registration_order() -> None:
    events: list[tuple] = []
    registry = ListenerRegistry()
    registry.subscribe(RecordingListener("first", events))
    registry.subscribe(lambda path: events.append(("callable", path.name)))
    registry.subscribe(RecordingListener("last", events))

    assert registry.notify(Path("a.jpg")) is True

    assert events == [("first", "a.jpg"), ("callable", "a.jpg"), ("last", "a.jpg")]


def test_duplicate_registration_is_notified_twice() -> None:
    events: list[tuple] = []
    listener = RecordingListener("dup", events)
    registry = ListenerRegistry()
    registry.subscribe(listener)
    registry.subscribe(listener)

    registry.notify(Path("a.jpg"))

    assert events == [("dup", "a.jpg"), ("dup", "a.jpg")]


def test_unsubscribe_stops_later_notifications_only() -> None:
    events: list[tuple] = []
    listener = RecordingListener("x", events)
    registry = ListenerRegistry()
    registry.subscribe(listener)

    registry.notify(Path("a.jpg"))
    registry.unsubscribe(listener)
    registry.notify(Path("b.jpg"))

    assert events == [("x", "a.jpg")]
    assert len(registry) == 0


def test_unsubscribe_unknown_listener_is_ignored() -> None:
    registry = ListenerRegistry()
    registry.unsubscribe(lambda path: None)
    assert registry.listeners == ()


def test_unsubscribe_during_delivery_keeps_current_round() -> None:
    events: list[tuple] = []
    registry = ListenerRegistry()
    later = RecordingListener("later", events)

    def remove_later(path: Path) -> None:
        events.append(("remover", path.name))
        registry.unsubscribe(later)

    registry.subscribe(remove_later)
    registry.subscribe(later)

    registry.notify(Path("a.jpg"))
    registry.notify(Path("b.jpg"))

    assert events == [("remover", "a.jpg"), ("later", "a.jpg"), ("remover", "b.jpg")]


def test_failing_listener_does_not_block_others(log_messages) -> None:
    events: list[tuple] = []
    registry = ListenerRegistry()

    def broken(path: Path) -> None:
        raise RuntimeError("label destroyed")

    registry.subscribe(broken)
    registry.subscribe(RecordingListener("ok", events))

    assert registry.notify(Path("a.jpg")) is True

    assert events == [("ok", "a.jpg")]
    assert any("label destroyed" in message for message in log_messages)


def test_dispatcher_runs_delivery() -> None:
    events: list[tuple] = []
    handed_over = []

    def dispatcher(func) -> None:
        handed_over.append(func)
        events.append(("dispatch",))
        func()

    registry = ListenerRegistry(dispatcher)
    registry.subscribe(RecordingListener("ui", events))

    registry.notify(Path("a.jpg"))

    assert len(handed_over) == 1
    assert events == [("dispatch",), ("ui", "a.jpg")]


def test_dispatcher_failure_is_logged_not_raised(log_messages) -> None:
    events: list[tuple] = []

    def unavailable(func) -> None:
        raise ObserverDeliveryError("UIスレッドが利用できません")

    registry = ListenerRegistry(unavailable)
    registry.subscribe(RecordingListener("ui", events))

    assert registry.notify(Path("a.jpg")) is False

    assert events == []
    assert any("UIスレッドが利用できません" in message for message in log_messages)


def test_unexpected_dispatcher_error_is_wrapped(log_messages) -> None:
    def broken(func) -> None:
        raise RuntimeError("main loop gone")

    registry = ListenerRegistry(broken)
    registry.subscribe(lambda path: None)

    assert registry.notify(Path("a.jpg")) is False
    assert any("main loop gone" in message for message in log_messages)


def test_empty_registry_skips_dispatch() -> None:
    calls = []
    registry = ListenerRegistry(lambda func: calls.append(func))

    assert registry.notify(Path("a.jpg")) is True
    assert calls == []
