"""Interest-bearing funds account actor."""

import logging
from decimal import Decimal
from typing import Any, Optional

from ..core.actor import STOP, Actor, Directive
from ..errors import InvalidAmount, LedgerError, RequestTimeout
from ..messaging.message import (
    ActorKind,
    Amount,
    BalanceInfo,
    BalanceUpdate,
    Deposit,
    Error,
    GetBalance,
    Info,
    Mature,
    Withdraw,
    message_type,
)
from .savings import as_money, check_amount

logger = logging.getLogger(__name__)


def accrue(balance: Amount, amount: Amount, rate: Amount) -> Decimal:
    """Balance after depositing ``amount`` and applying interest at ``rate``."""
    return (as_money(balance) + as_money(amount)) * (1 + as_money(rate))


class FundsAccount(Actor):
    """
    A funds account grows on every deposit and is never debited directly.

    The opening balance accrues once on creation, like a deposit into an
    empty account. ``mature`` moves the whole balance into another account
    and retires this actor; if any step fails the actor stays alive with its
    balance intact so the caller can retry. With ``settle_before_delete``
    the balance is cleared as soon as the payout is confirmed, so a failed
    delete leaves an empty account instead.
    """

    kind = ActorKind.FUNDS.value

    def __init__(self, actor_id: str, account_id: Optional[str] = None,
                 initial_balance: Amount = 0, **kwargs):
        super().__init__(actor_id, account_id=account_id, **kwargs)
        self.balance = accrue(0, initial_balance, self.config.fund_interest_rate)

    async def receive(self, message: Any) -> Optional[Directive]:
        request_id = getattr(message, "request_id", None)

        if isinstance(message, Deposit):
            try:
                amount = check_amount(message.amount)
            except InvalidAmount as e:
                await self._fail(str(e), request_id)
                return None
            self.balance = accrue(self.balance, amount, self.config.fund_interest_rate)
            await self.context.emit(BalanceUpdate(account_id=self.account_id, balance=self.balance, request_id=request_id))
        elif isinstance(message, GetBalance):
            await self.context.emit(BalanceInfo(
                account_id=self.account_id,
                balance=self.balance,
                kind=self.kind,
                request_id=request_id,
            ))
        elif isinstance(message, Withdraw):
            await self._fail(f"{self.account_id} is a funds-only account and cannot be withdrawn from", request_id)
        elif isinstance(message, Mature):
            return await self._mature(message)
        else:
            await self._fail(f"Unknown message type: {message_type(message)}", request_id)
        return None

    async def _fail(self, error: str, request_id: Optional[str] = None) -> None:
        await self.context.emit(Error(account_id=self.account_id, error=error, request_id=request_id))

    async def _mature(self, message: Mature) -> Optional[Directive]:
        target = message.to_id
        if not target:
            await self._fail("mature requires a target savings id", message.request_id)
            return None

        if self.balance <= 0:
            await self.context.emit(Info(account_id=self.account_id, message="No balance to transfer"))

        amount = self.balance
        try:
            resp = await self.context.forward(target, Deposit(amount=amount), self.config.mature_deposit_timeout)
        except RequestTimeout as e:
            await self._fail(f"mature deposit timed out: {e}", message.request_id)
            return None
        except LedgerError as e:
            await self._fail(f"mature deposit failed: {e}", message.request_id)
            return None
        if isinstance(resp, Error):
            await self._fail(f"mature deposit failed: {resp.error}", message.request_id)
            return None

        if self.config.settle_before_delete:
            self.balance = Decimal(0)
        try:
            result = await self.context.delete_actor(self.actor_id, self.config.delete_timeout)
        except RequestTimeout as e:
            await self._fail(f"deleteActor timed out: {e}", message.request_id)
            return None
        if not result.success:
            await self._fail(f"failed to delete actor: {result.error}", message.request_id)
            return None
        self.balance = Decimal(0)

        logger.info("Funds account %s matured into %s", self.account_id, target)
        await self.context.emit(Info(
            account_id=self.account_id,
            message=f"Matured {amount} into {target}; account closed",
            request_id=message.request_id,
        ))
        return STOP
