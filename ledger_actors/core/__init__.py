"""Core runtime: mailboxes, correlation, actors and the broker."""

from .actor import STOP, Actor, ActorContext, Directive
from .actor_ref import ActorRef, LocalActorRef
from .broker import Broker
from .correlation import PendingRequests, new_request_id
from .mailbox import Mailbox

__all__ = [
    "STOP",
    "Actor",
    "ActorContext",
    "ActorRef",
    "Broker",
    "Directive",
    "LocalActorRef",
    "Mailbox",
    "PendingRequests",
    "new_request_id",
]
