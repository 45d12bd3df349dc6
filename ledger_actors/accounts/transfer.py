"""Transfer actor: moves money between two accounts it does not own."""

import logging
from typing import Any, Optional

from ..core.actor import Actor, Directive
from ..errors import LedgerError, RequestTimeout, RestrictedAccountKind
from ..messaging.message import (
    ActorKind,
    Amount,
    Deposit,
    Error,
    GetBalance,
    Transfer,
    TransferResult,
    Withdraw,
    message_type,
)

logger = logging.getLogger(__name__)


class TransferActor(Actor):
    """
    Orchestrates a transfer as a sequence of broker round-trips.

    1. Check the source's kind; funds accounts cannot be withdrawn from.
    2. Make sure the destination exists, creating an empty savings account
       if it does not (skipped for ephemeral ``temp-`` ids).
    3. Withdraw from the source.
    4. Deposit into the destination.

    There is no shared transaction. A failed deposit leaves the withdrawal in
    place unless ``compensate_failed_deposit`` is configured, in which case
    the amount is deposited back into the source.
    """

    kind = ActorKind.TRANSFER.value

    def __init__(self, actor_id: str, source_account_id: Optional[str] = None,
                 destination_account_id: Optional[str] = None, **kwargs):
        super().__init__(actor_id, **kwargs)
        self.source_account_id = source_account_id
        self.destination_account_id = destination_account_id

    async def receive(self, message: Any) -> Optional[Directive]:
        if isinstance(message, Transfer):
            result = await self.perform_transfer(
                message.amount,
                message.from_id or self.source_account_id,
                message.to_id or self.destination_account_id,
            )
            await self.context.emit(TransferResult(
                success=result.success,
                from_id=result.from_id,
                to_id=result.to_id,
                error=result.error,
                request_id=message.request_id,
            ))
        else:
            await self.context.emit(Error(
                account_id=self.account_id,
                error=f"Unknown message type: {message_type(message)}",
                request_id=getattr(message, "request_id", None),
            ))
        return None

    async def perform_transfer(self, amount: Amount, from_id: Optional[str], to_id: Optional[str]) -> TransferResult:
        """Run the transfer steps and describe the outcome."""
        if not from_id or not to_id:
            return TransferResult(success=False, from_id=from_id, to_id=to_id,
                                  error="Transfer requires a source and a destination")

        # 1. Eligibility
        try:
            source_info = await self.context.actor_info(from_id)
        except RequestTimeout as e:
            if not self.config.fail_open_on_metadata_timeout:
                return TransferResult(success=False, from_id=from_id,
                                      error=f"Could not verify account kind of {from_id}: {e}")
            logger.warning("Kind of %s unknown (%s); proceeding with transfer", from_id, e)
            source_info = None

        if source_info is not None and source_info.kind in (ActorKind.FUNDS, "fund"):
            return TransferResult(success=False, from_id=from_id, error=str(RestrictedAccountKind(from_id)))

        # 2. Destination
        if not to_id.startswith(self.config.ephemeral_prefix):
            try:
                await self.context.forward(to_id, GetBalance())
            except LedgerError as e:
                logger.info("Destination %s not reachable (%s); creating savings account", to_id, e)
                try:
                    await self.context.create_actor(to_id, ActorKind.SAVINGS.value, initial_balance=0)
                except LedgerError as create_error:
                    return TransferResult(success=False, to_id=to_id,
                                          error=f"Failed to create account {to_id}: {create_error}")
                logger.info("Created account %s", to_id)

        # 3. Withdraw
        error = await self._leg(from_id, Withdraw(amount=amount))
        if error is not None:
            return TransferResult(success=False, from_id=from_id, error=error)

        # 4. Deposit
        error = await self._leg(to_id, Deposit(amount=amount))
        if error is not None:
            if self.config.compensate_failed_deposit:
                error = f"{error}; {await self._credit_back(from_id, amount)}"
            return TransferResult(success=False, to_id=to_id, error=error)

        return TransferResult(success=True, from_id=from_id, to_id=to_id)

    async def _leg(self, target: str, payload: Any) -> Optional[str]:
        """Forward one leg; return its error text, or None on success."""
        try:
            resp = await self.context.forward(target, payload)
        except LedgerError as e:
            return str(e)
        if isinstance(resp, Error):
            return resp.error
        return None

    async def _credit_back(self, from_id: str, amount: Amount) -> str:
        error = await self._leg(from_id, Deposit(amount=amount))
        if error is None:
            return f"refunded {amount} to {from_id}"
        logger.error("Refund of %s to %s failed: %s", amount, from_id, error)
        return f"refund to {from_id} failed: {error}"
