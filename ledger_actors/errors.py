"""Exception taxonomy for the ledger actor runtime.

Errors raised inside actors and the broker are recovered where they occur and
turned into reply messages; only misuse of the driver-facing API (duplicate
ids, unknown targets, unknown kinds) reaches the caller as an exception.
"""

from typing import Optional


class LedgerError(Exception):
    """Base class for all ledger runtime errors."""

    default_message = "Ledger error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)


class RequestTimeout(LedgerError, TimeoutError):
    """An awaited reply did not arrive before its deadline."""

    default_message = "Timeout waiting for reply"


class ActorNotFound(LedgerError, LookupError):
    """A forward, tell or lookup target has no live registry entry."""

    default_message = "Actor not found"

    def __init__(self, actor_id: Optional[str] = None):
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} not found" if actor_id else None)


class DuplicateActor(LedgerError, ValueError):
    """Creation requested for an id that already has a live entry."""

    def __init__(self, actor_id: str):
        self.actor_id = actor_id
        super().__init__(f"Actor {actor_id} already exists")


class InsufficientFunds(LedgerError):
    """A withdrawal exceeds the current balance."""

    default_message = "Insufficient funds"


class InvalidAmount(LedgerError):
    """A deposit or withdrawal amount is negative or not a number."""

    default_message = "Invalid amount"


class RestrictedAccountKind(LedgerError):
    """A withdrawal was attempted against a funds-only account."""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(
            f"Source actor {account_id} is a funds-only account and cannot be withdrawn from"
        )


class HandlerFault(LedgerError):
    """An actor's message handler raised an unexpected exception."""

    def __init__(self, actor_id: str, cause: BaseException):
        self.actor_id = actor_id
        self.cause = cause
        super().__init__(f"Handler fault: {type(cause).__name__}: {cause}")


class ForwardFailed(LedgerError):
    """The broker could not relay a payload to its target."""

    default_message = "Forward failed"


class ActorCreationFailed(LedgerError):
    """The broker refused or failed an actor creation request."""

    default_message = "Actor creation failed"
