"""Public API for the ledger runtime."""

from typing import Any, Mapping, Optional
from .config import LedgerConfig
from .core.actor_ref import LocalActorRef
from .core.broker import Broker
from .messaging.message import Message


# Global broker instance (can be overridden)
_broker: Optional[Broker] = None


async def create_broker(config: Optional[LedgerConfig] = None) -> Broker:
    """
    Create and start a new broker.

    Args:
        config: Runtime configuration

    Returns:
        Broker instance
    """
    global _broker
    _broker = Broker(config=config)
    await _broker.start()
    return _broker


def get_broker() -> Broker:
    """
    Get the current broker.

    Raises:
        RuntimeError: If no broker has been created
    """
    if _broker is None:
        raise RuntimeError("No broker created. Call create_broker() first.")
    return _broker


def set_broker(broker: Optional[Broker]) -> None:
    """Set the global broker."""
    global _broker
    _broker = broker


async def create_and_register(
    kind: Any,
    actor_id: str,
    init_params: Optional[Mapping[str, Any]] = None,
) -> LocalActorRef:
    """
    Create an actor on the current broker.

    Args:
        kind: Actor kind
        actor_id: Registry id
        init_params: Constructor arguments

    Returns:
        Reference to the new actor
    """
    return await get_broker().create_and_register(kind, actor_id, init_params)


def lookup(actor_id: str) -> Optional[LocalActorRef]:
    """Find a live actor by id or account id."""
    return get_broker().lookup(actor_id)


async def tell(actor_id: str, message: Any) -> None:
    """
    Send a message without waiting (fire-and-forget).

    Args:
        actor_id: Target id
        message: Message or flat record
    """
    await get_broker().tell(actor_id, message)


async def ask(actor_id: str, message: Any, timeout: Optional[float] = None) -> Message:
    """
    Send a message and wait for its reply.

    Raises:
        RequestTimeout: If timeout is exceeded
        ActorNotFound: If the target does not exist
    """
    return await get_broker().ask(actor_id, message, timeout)


async def terminate_all() -> None:
    """Stop every actor and the broker."""
    await get_broker().terminate_all()
