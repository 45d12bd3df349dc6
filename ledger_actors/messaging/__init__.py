"""Messaging components for the ledger runtime."""

from .message import (
    ActorInfo,
    ActorKind,
    ActorMetadata,
    ActorReady,
    BalanceInfo,
    BalanceUpdate,
    CreateActor,
    CreateActorResult,
    DeleteActor,
    DeleteActorResult,
    Deposit,
    Envelope,
    Error,
    Forward,
    ForwardResult,
    GetActorInfo,
    GetBalance,
    Info,
    Mature,
    Message,
    Transfer,
    TransferResult,
    UnknownMessage,
    Withdraw,
    message_type,
)
from .serializer import JSONSerializer, decode, encode

__all__ = [
    "ActorInfo",
    "ActorKind",
    "ActorMetadata",
    "ActorReady",
    "BalanceInfo",
    "BalanceUpdate",
    "CreateActor",
    "CreateActorResult",
    "DeleteActor",
    "DeleteActorResult",
    "Deposit",
    "Envelope",
    "Error",
    "Forward",
    "ForwardResult",
    "GetActorInfo",
    "GetBalance",
    "Info",
    "JSONSerializer",
    "Mature",
    "Message",
    "Transfer",
    "TransferResult",
    "UnknownMessage",
    "Withdraw",
    "decode",
    "encode",
    "message_type",
]
