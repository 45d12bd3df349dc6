"""Tests for the event stream."""

import logging

from ledger_actors.events import Event, EventStream


def test_subscribe_and_unsubscribe():
    stream = EventStream()
    received = []
    unsubscribe = stream.subscribe(received.append)

    stream.publish(Event(level="info", actor_id="A", message="first"))
    unsubscribe()
    stream.publish(Event(level="info", actor_id="A", message="second"))

    assert [e.message for e in received] == ["first"]
    unsubscribe()


def test_history_is_bounded():
    stream = EventStream(history=3)

    for i in range(5):
        stream.publish(Event(level="info", actor_id=None, message=str(i)))

    assert [e.message for e in stream.history] == ["2", "3", "4"]


def test_failing_subscriber_does_not_stop_others(caplog):
    stream = EventStream()
    received = []

    def broken(event):
        raise RuntimeError("boom")

    stream.subscribe(broken)
    stream.subscribe(received.append)

    with caplog.at_level(logging.ERROR, logger="ledger_actors.events"):
        stream.publish(Event(level="info", actor_id="A", message="hello"))

    assert len(received) == 1
    assert "subscriber" in caplog.text


def test_events_are_logged_at_their_level(caplog):
    stream = EventStream()

    with caplog.at_level(logging.DEBUG, logger="ledger_actors.events"):
        stream.publish(Event(level="warning", actor_id="T", message="Transfer failed: nope"))

    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.getMessage() == "[T]: Transfer failed: nope"
