"""Savings account actor."""

from decimal import Decimal, InvalidOperation
from numbers import Number
from typing import Any, Optional

from ..core.actor import Actor, Directive
from ..errors import InsufficientFunds, InvalidAmount
from ..messaging.message import (
    ActorKind,
    Amount,
    BalanceInfo,
    BalanceUpdate,
    Deposit,
    Error,
    GetBalance,
    Withdraw,
    message_type,
)


def as_money(value: Any) -> Decimal:
    """Convert a number to Decimal through its string form, so 0.1 stays 0.1."""
    return Decimal(str(value))


def check_amount(amount: Any) -> Decimal:
    """Reject amounts that are not finite, non-negative numbers."""
    if isinstance(amount, bool) or not isinstance(amount, Number):
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    try:
        value = as_money(amount)
    except InvalidOperation:
        raise InvalidAmount(f"Invalid amount: {amount!r}") from None
    if not value.is_finite() or value < 0:
        raise InvalidAmount(f"Invalid amount: {amount!r}")
    return value


class SavingsAccount(Actor):
    """Plain balance: deposits, withdrawals and balance queries."""

    kind = ActorKind.SAVINGS.value

    def __init__(self, actor_id: str, account_id: Optional[str] = None,
                 initial_balance: Amount = 0, **kwargs):
        super().__init__(actor_id, account_id=account_id, **kwargs)
        self.balance = as_money(initial_balance)

    async def receive(self, message: Any) -> Optional[Directive]:
        request_id = getattr(message, "request_id", None)
        try:
            if isinstance(message, Deposit):
                self.balance += check_amount(message.amount)
                reply = BalanceUpdate(account_id=self.account_id, balance=self.balance, request_id=request_id)
            elif isinstance(message, Withdraw):
                amount = check_amount(message.amount)
                if self.balance < amount:
                    raise InsufficientFunds()
                self.balance -= amount
                reply = BalanceUpdate(account_id=self.account_id, balance=self.balance, request_id=request_id)
            elif isinstance(message, GetBalance):
                reply = BalanceInfo(account_id=self.account_id, balance=self.balance, request_id=request_id)
            else:
                reply = Error(
                    account_id=self.account_id,
                    error=f"Unknown message type: {message_type(message)}",
                    request_id=request_id,
                )
        except (InsufficientFunds, InvalidAmount) as e:
            reply = Error(account_id=self.account_id, error=str(e), request_id=request_id)

        await self.context.emit(reply)
        return None
