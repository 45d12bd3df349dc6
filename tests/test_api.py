"""Tests for the public API."""

import asyncio

import pytest

from ledger_actors.api import (
    ask,
    create_and_register,
    create_broker,
    get_broker,
    lookup,
    set_broker,
    tell,
    terminate_all,
)
from ledger_actors.errors import ActorNotFound
from ledger_actors.messaging import BalanceInfo, Deposit, GetBalance, Transfer


@pytest.mark.asyncio
async def test_create_broker(config):
    """Test creating a broker."""
    broker = await create_broker(config)
    assert broker is not None
    assert broker.config is config
    assert get_broker() is broker
    await terminate_all()


@pytest.mark.asyncio
async def test_get_broker_without_creation():
    """Test that getting the broker without creation raises error."""
    set_broker(None)

    with pytest.raises(RuntimeError, match="No broker created"):
        get_broker()


@pytest.mark.asyncio
async def test_create_and_lookup(config):
    await create_broker(config)

    ref = await create_and_register("savings", "AccountA", {"account_id": "A", "initial_balance": 100})

    assert lookup("A") == ref
    assert lookup("AccountA").actor_id == "AccountA"
    assert lookup("nobody") is None
    await terminate_all()


@pytest.mark.asyncio
async def test_tell_and_ask(config):
    """Test fire-and-forget followed by a request/reply."""
    await create_broker(config)
    await create_and_register("savings", "AccountA", {"account_id": "A", "initial_balance": 100})

    await tell("A", Deposit(amount=25))
    await tell("A", {"type": "withdraw", "amount": 5})
    await asyncio.sleep(0.05)
    reply = await ask("A", GetBalance())

    assert isinstance(reply, BalanceInfo)
    assert reply.balance == 120
    await terminate_all()


@pytest.mark.asyncio
async def test_scheduled_transfers(config):
    await create_broker(config)
    await create_and_register("savings", "AccountA", {"account_id": "A", "initial_balance": 100})
    await create_and_register("savings", "AccountB", {"account_id": "B", "initial_balance": 50})
    await create_and_register("transfer", "ActionActor", {"source_account_id": "A", "destination_account_id": "B"})

    first = await ask("ActionActor", Transfer(amount=10), timeout=2.0)
    second = await ask("ActionActor", {"type": "transfer", "amount": 20}, timeout=2.0)

    assert first.success and second.success
    assert (await ask("A", GetBalance())).balance == 70
    assert (await ask("B", GetBalance())).balance == 80
    await terminate_all()


@pytest.mark.asyncio
async def test_terminate_all(config):
    await create_broker(config)
    await create_and_register("savings", "AccountA", {"account_id": "A"})

    await terminate_all()

    assert get_broker().registered_ids == []
    with pytest.raises(ActorNotFound):
        await tell("A", GetBalance())
