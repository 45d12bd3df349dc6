"""Tests for the savings account actor."""

from decimal import Decimal

import pytest

from ledger_actors.accounts.savings import check_amount
from ledger_actors.core.broker import Broker
from ledger_actors.errors import InvalidAmount
from ledger_actors.messaging import (
    BalanceInfo,
    BalanceUpdate,
    Deposit,
    Error,
    GetBalance,
    Mature,
    Withdraw,
    decode,
)


async def open_account(broker, balance):
    await broker.create_and_register("savings", "AccountA", {"account_id": "A", "initial_balance": balance})


@pytest.mark.asyncio
async def test_deposit(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 100)

        reply = await broker.ask("A", Deposit(amount=50))

        assert isinstance(reply, BalanceUpdate)
        assert reply.account_id == "A"
        assert reply.balance == 150


@pytest.mark.asyncio
async def test_withdraw(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 100)

        reply = await broker.ask("A", Withdraw(amount=30))

        assert isinstance(reply, BalanceUpdate)
        assert reply.balance == 70


@pytest.mark.asyncio
@pytest.mark.parametrize("balance, amount", [(0, 1), (50, 51), (100, 1000)])
async def test_overdraw_leaves_balance_unchanged(config, balance, amount):
    async with Broker(config=config) as broker:
        await open_account(broker, balance)

        reply = await broker.ask("A", Withdraw(amount=amount))
        assert isinstance(reply, Error)
        assert reply.error == "Insufficient funds"

        info = await broker.ask("A", GetBalance())
        assert info.balance == balance


@pytest.mark.asyncio
async def test_withdraw_entire_balance(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 40)

        reply = await broker.ask("A", Withdraw(amount=40))

        assert reply.balance == 0


@pytest.mark.asyncio
async def test_deposit_then_withdraw(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 0)

        await broker.ask("A", Deposit(amount=10))
        await broker.ask("A", Withdraw(amount=5))

        info = await broker.ask("A", GetBalance())
        assert info.balance == 5


@pytest.mark.asyncio
async def test_failed_withdraw_does_not_affect_later_deposit(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 0)

        first = await broker.ask("A", Withdraw(amount=5))
        second = await broker.ask("A", Deposit(amount=10))

        assert isinstance(first, Error)
        assert second.balance == 10


@pytest.mark.asyncio
async def test_get_balance(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 100)

        reply = await broker.ask("A", GetBalance())

        assert isinstance(reply, BalanceInfo)
        assert reply.account_id == "A"
        assert reply.balance == 100


@pytest.mark.asyncio
async def test_negative_amount_rejected(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 100)

        reply = await broker.ask("A", Deposit(amount=-5))

        assert isinstance(reply, Error)
        assert "Invalid amount" in reply.error
        assert (await broker.ask("A", GetBalance())).balance == 100


@pytest.mark.asyncio
async def test_unknown_message_type(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 100)

        mature = await broker.ask("A", Mature(to_id="B"))
        unknown = await broker.ask("A", decode({"type": "audit"}))

        assert mature.error == "Unknown message type: mature"
        assert unknown.error == "Unknown message type: audit"


def test_check_amount_returns_decimal():
    assert check_amount(10) == Decimal("10")
    assert check_amount(0.1) == Decimal("0.1")
    assert check_amount(Decimal("2.50")) == Decimal("2.50")
    for bad in (-1, True, "5", float("nan"), float("inf")):
        with pytest.raises(InvalidAmount):
            check_amount(bad)


@pytest.mark.asyncio
async def test_mixed_number_types(config):
    async with Broker(config=config) as broker:
        await open_account(broker, 12.5)

        await broker.ask("A", Deposit(amount=Decimal("110")))
        await broker.ask("A", Deposit(amount=0.1))
        reply = await broker.ask("A", Withdraw(amount=2))

        assert isinstance(reply, BalanceUpdate)
        assert reply.balance == Decimal("120.6")
