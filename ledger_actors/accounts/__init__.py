"""Account actors and the kinds the broker creates them under."""

from ..messaging.message import ActorKind
from .funds import FundsAccount, accrue
from .savings import SavingsAccount
from .transfer import TransferActor

ACTOR_KINDS = {
    ActorKind.SAVINGS: SavingsAccount,
    ActorKind.FUNDS: FundsAccount,
    ActorKind.TRANSFER: TransferActor,
}

__all__ = ["ACTOR_KINDS", "FundsAccount", "SavingsAccount", "TransferActor", "accrue"]
