"""Tests for :mod:`minevaapen.events`."""

from __future__ import annotations

import logging

from minevaapen.events import ChangeBus, DatabaseEvent


def test_listeners_run_in_registration_order() -> None:
    bus = ChangeBus()
    calls: list[str] = []
    bus.subscribe(DatabaseEvent.RESTORED, lambda: calls.append("first"))
    bus.subscribe(DatabaseEvent.RESTORED, lambda: calls.append("second"))

    assert bus.emit(DatabaseEvent.RESTORED) == 2
    assert calls == ["first", "second"]


def test_emit_without_listeners() -> None:
    assert ChangeBus().emit(DatabaseEvent.RESTORED) == 0


def test_unsubscribe() -> None:
    bus = ChangeBus()
    calls: list[str] = []
    sub = bus.subscribe(DatabaseEvent.RESTORED, lambda: calls.append("x"))
    assert bus.subscriber_count(DatabaseEvent.RESTORED) == 1

    assert sub.unsubscribe() is True
    assert sub.unsubscribe() is False
    bus.emit(DatabaseEvent.RESTORED)
    assert calls == []


def test_failing_listener_does_not_block_others(caplog) -> None:
    bus = ChangeBus()
    calls: list[str] = []

    def broken() -> None:
        raise RuntimeError("boom")

    bus.subscribe(DatabaseEvent.RESTORED, broken)
    bus.subscribe(DatabaseEvent.RESTORED, lambda: calls.append("ok"))

    with caplog.at_level(logging.ERROR):
        assert bus.emit(DatabaseEvent.RESTORED) == 1
    assert calls == ["ok"]
    assert "database_restored" in caplog.text


def test_listener_may_unsubscribe_during_emit() -> None:
    bus = ChangeBus()
    calls: list[str] = []
    holder = {}

    def once() -> None:
        calls.append("once")
        holder["sub"].unsubscribe()

    holder["sub"] = bus.subscribe(DatabaseEvent.RESTORED, once)
    bus.emit(DatabaseEvent.RESTORED)
    bus.emit(DatabaseEvent.RESTORED)
    assert calls == ["once"]
