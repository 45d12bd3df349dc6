"""Tests for the Actor base class and its message loop."""

import asyncio
import logging

import pytest

from ledger_actors.core.actor import STOP, Actor
from ledger_actors.core.broker import Broker
from ledger_actors.messaging import BalanceUpdate, Deposit, Error


class RecordingActor(Actor):
    """Records every message and acknowledges deposits."""

    kind = "recording"

    def __init__(self, actor_id, **kwargs):
        super().__init__(actor_id, **kwargs)
        self.received = []

    async def receive(self, message):
        self.received.append(message)
        if isinstance(message, Deposit):
            await self.context.emit(BalanceUpdate(
                account_id=self.account_id, balance=message.amount, request_id=message.request_id,
            ))


class FaultyActor(Actor):
    """Raises on negative deposits."""

    kind = "faulty"

    async def receive(self, message):
        if message.amount < 0:
            raise RuntimeError("negative amount")
        await self.context.emit(BalanceUpdate(
            account_id=self.account_id, balance=message.amount, request_id=message.request_id,
        ))


class SlowActor(Actor):
    """Sleeps inside its handler and logs start/end markers."""

    kind = "slow"

    def __init__(self, actor_id, **kwargs):
        super().__init__(actor_id, **kwargs)
        self.log = []

    async def receive(self, message):
        self.log.append(("start", message.amount))
        await asyncio.sleep(0.02)
        self.log.append(("end", message.amount))


class OneShotActor(Actor):
    """Stops itself after the first message."""

    kind = "oneshot"

    def __init__(self, actor_id, **kwargs):
        super().__init__(actor_id, **kwargs)
        self.count = 0

    async def receive(self, message):
        self.count += 1
        return STOP


@pytest.mark.asyncio
async def test_actor_processes_in_delivery_order(config):
    async with Broker(config=config) as broker:
        await broker.spawn(RecordingActor, "rec")

        for amount in range(10):
            await broker.tell("rec", Deposit(amount=amount))
        await asyncio.sleep(0.1)

        actor = broker._actors["rec"]
        assert [m.amount for m in actor.received] == list(range(10))


@pytest.mark.asyncio
async def test_actor_never_runs_two_handlers_at_once(config):
    async with Broker(config=config) as broker:
        await broker.spawn(SlowActor, "slow")

        await broker.tell("slow", Deposit(amount=1))
        await broker.tell("slow", Deposit(amount=2))
        await asyncio.sleep(0.15)

        actor = broker._actors["slow"]
        assert actor.log == [("start", 1), ("end", 1), ("start", 2), ("end", 2)]


@pytest.mark.asyncio
async def test_handler_fault_is_reported_and_loop_continues(config):
    async with Broker(config=config) as broker:
        events = []
        broker.events.subscribe(events.append)
        await broker.spawn(FaultyActor, "faulty")

        reply = await broker.ask("faulty", Deposit(amount=-1))
        assert isinstance(reply, Error)
        assert "Handler fault" in reply.error
        assert "negative amount" in reply.error

        reply = await broker.ask("faulty", Deposit(amount=5))
        assert isinstance(reply, BalanceUpdate)
        assert reply.balance == 5

        assert any(e.level == "error" and "Handler fault" in e.message for e in events)


@pytest.mark.asyncio
async def test_stop_directive_ends_loop(config):
    async with Broker(config=config) as broker:
        await broker.spawn(OneShotActor, "once")
        actor = broker._actors["once"]

        await broker.tell("once", Deposit(amount=1))
        assert await actor.join(timeout=1.0) is True
        assert actor.running is False

        await actor.deliver(Deposit(amount=2))
        await asyncio.sleep(0.05)
        assert actor.count == 1


@pytest.mark.asyncio
async def test_actor_announces_its_kind(config):
    async with Broker(config=config) as broker:
        await broker.spawn(RecordingActor, "rec", account_id="R")
        await asyncio.sleep(0.05)

        assert broker.metadata("rec").kind == "recording"
        assert broker.metadata("R").account_id == "R"


@pytest.mark.asyncio
async def test_stop_cancels_pending_requests(config):
    async with Broker(config=config) as broker:
        await broker.spawn(RecordingActor, "rec")
        actor = broker._actors["rec"]
        future = actor.pending.expect("req-1", timeout=5.0)

        await actor.stop()

        assert future.cancelled()
        assert actor.running is False


@pytest.mark.asyncio
async def test_context_required():
    actor = RecordingActor("loose")

    with pytest.raises(RuntimeError, match="context not set"):
        actor.context

    assert actor.account_id == "loose"


@pytest.mark.asyncio
async def test_stop_reports_unprocessed_messages(config, caplog):
    async with Broker(config=config) as broker:
        await broker.spawn(SlowActor, "slow")
        actor = broker._actors["slow"]
        for amount in range(3):
            await broker.tell("slow", Deposit(amount=amount))
        await asyncio.sleep(0.005)

        with caplog.at_level(logging.INFO, logger="ledger_actors.core.actor"):
            await actor.stop()

        assert "unprocessed messages" in caplog.text
        assert actor.log[0] == ("start", 0)
