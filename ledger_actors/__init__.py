"""Actor-model runtime for a toy banking ledger."""

from .config import DEFAULT_CONFIG, LedgerConfig
from .core import STOP, Actor, ActorRef, Broker, LocalActorRef
from .errors import (
    ActorCreationFailed,
    ActorNotFound,
    DuplicateActor,
    ForwardFailed,
    HandlerFault,
    InsufficientFunds,
    InvalidAmount,
    LedgerError,
    RequestTimeout,
    RestrictedAccountKind,
)
from .events import Event, EventStream
from .accounts import FundsAccount, SavingsAccount, TransferActor

__all__ = [
    "DEFAULT_CONFIG",
    "STOP",
    "Actor",
    "ActorCreationFailed",
    "ActorNotFound",
    "ActorRef",
    "Broker",
    "DuplicateActor",
    "Event",
    "EventStream",
    "ForwardFailed",
    "FundsAccount",
    "HandlerFault",
    "InsufficientFunds",
    "InvalidAmount",
    "LedgerConfig",
    "LedgerError",
    "LocalActorRef",
    "RequestTimeout",
    "RestrictedAccountKind",
    "SavingsAccount",
    "TransferActor",
]
