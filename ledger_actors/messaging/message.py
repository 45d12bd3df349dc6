"""Message types exchanged between actors and the broker.

Every message is an immutable record with a ``type`` discriminator. The set is
closed: account commands, account replies, broker requests and broker replies.
Anything else that reaches an actor arrives as :class:`UnknownMessage` and is
answered with an error reply.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, ClassVar, Mapping, Optional, Union

Amount = Union[int, float, Decimal]


class ActorKind(str, Enum):
    """Kinds of actor the broker knows how to create."""

    SAVINGS = "savings"
    FUNDS = "funds"
    TRANSFER = "transfer"

    @classmethod
    def parse(cls, value: Union[str, "ActorKind"]) -> "ActorKind":
        if isinstance(value, cls):
            return value
        if value == "fund":
            return cls.FUNDS
        return cls(value)


@dataclass(frozen=True)
class ActorMetadata:
    """What the broker knows about an actor without asking it."""
    account_id: Optional[str]
    kind: str


class Message:
    """Base class for all messages."""

    type: ClassVar[str] = ""


@dataclass
class Envelope:
    """A message on the broker's inbox, tagged with the id of its sender."""
    message: Any
    sender: Optional[str] = None


# Account commands

@dataclass(frozen=True)
class Deposit(Message):
    type: ClassVar[str] = "deposit"
    amount: Amount
    request_id: Optional[str] = None


@dataclass(frozen=True)
class Withdraw(Message):
    type: ClassVar[str] = "withdraw"
    amount: Amount
    request_id: Optional[str] = None


@dataclass(frozen=True)
class GetBalance(Message):
    type: ClassVar[str] = "getBalance"
    request_id: Optional[str] = None


@dataclass(frozen=True)
class Mature(Message):
    """Liquidate a funds account into ``to_id`` and retire it."""
    type: ClassVar[str] = "mature"
    to_id: Optional[str] = None
    request_id: Optional[str] = None


@dataclass(frozen=True)
class Transfer(Message):
    """Move ``amount`` between two accounts; ids default to the actor's own."""
    type: ClassVar[str] = "transfer"
    amount: Amount
    from_id: Optional[str] = None
    to_id: Optional[str] = None
    request_id: Optional[str] = None


# Account replies

@dataclass(frozen=True)
class BalanceUpdate(Message):
    type: ClassVar[str] = "balanceUpdate"
    account_id: Optional[str]
    balance: Amount
    request_id: Optional[str] = None


@dataclass(frozen=True)
class BalanceInfo(Message):
    type: ClassVar[str] = "balanceInfo"
    account_id: Optional[str]
    balance: Amount
    kind: Optional[str] = None
    request_id: Optional[str] = None


@dataclass(frozen=True)
class Error(Message):
    type: ClassVar[str] = "error"
    account_id: Optional[str]
    error: str
    request_id: Optional[str] = None


@dataclass(frozen=True)
class Info(Message):
    type: ClassVar[str] = "info"
    account_id: Optional[str]
    message: str
    request_id: Optional[str] = None


@dataclass(frozen=True)
class ActorReady(Message):
    """Sent by every actor when its loop starts."""
    type: ClassVar[str] = "ready"
    account_id: Optional[str]
    kind: str


@dataclass(frozen=True)
class TransferResult(Message):
    type: ClassVar[str] = "transferResult"
    success: bool
    from_id: Optional[str] = None
    to_id: Optional[str] = None
    error: Optional[str] = None
    request_id: Optional[str] = None


# Broker requests

@dataclass(frozen=True)
class Forward(Message):
    type: ClassVar[str] = "forward"
    target: str
    payload: Message
    request_id: Optional[str] = None


@dataclass(frozen=True)
class CreateActor(Message):
    type: ClassVar[str] = "createActor"
    actor_id: str
    kind: str = ActorKind.SAVINGS.value
    initial_balance: Amount = 0
    request_id: Optional[str] = None


@dataclass(frozen=True)
class GetActorInfo(Message):
    type: ClassVar[str] = "getActorInfo"
    actor_id: str
    request_id: Optional[str] = None


@dataclass(frozen=True)
class DeleteActor(Message):
    type: ClassVar[str] = "deleteActor"
    actor_id: str
    request_id: Optional[str] = None


# Broker replies

@dataclass(frozen=True)
class ForwardResult(Message):
    type: ClassVar[str] = "forwardResult"
    request_id: str
    resp: Optional[Message] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class CreateActorResult(Message):
    type: ClassVar[str] = "createActorResult"
    request_id: str
    success: bool
    actor_id: Optional[str] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class ActorInfo(Message):
    type: ClassVar[str] = "actorInfo"
    request_id: str
    actor_id: str
    info: Optional[ActorMetadata] = None


@dataclass(frozen=True)
class DeleteActorResult(Message):
    type: ClassVar[str] = "deleteActorResult"
    request_id: str
    success: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class UnknownMessage(Message):
    """A record whose ``type`` is not part of the protocol."""
    type: ClassVar[str] = "unknown"
    type_name: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    request_id: Optional[str] = None


ACCOUNT_COMMANDS = (Deposit, Withdraw, GetBalance, Mature, Transfer)
ACCOUNT_REPLIES = (BalanceUpdate, BalanceInfo, Error, Info, TransferResult)
BROKER_REQUESTS = (Forward, CreateActor, GetActorInfo, DeleteActor)
BROKER_REPLIES = (ForwardResult, CreateActorResult, ActorInfo, DeleteActorResult)

AccountCommand = Union[Deposit, Withdraw, GetBalance, Mature, Transfer]
AccountReply = Union[BalanceUpdate, BalanceInfo, Error, Info, TransferResult]
BrokerRequest = Union[Forward, CreateActor, GetActorInfo, DeleteActor]
BrokerReply = Union[ForwardResult, CreateActorResult, ActorInfo, DeleteActorResult]


def message_type(message: Any) -> str:
    """Return the wire ``type`` of a message, including unknown ones."""
    if isinstance(message, UnknownMessage):
        return message.type_name
    if isinstance(message, Message):
        return message.type
    return type(message).__name__
