"""Actor references: the only handle outsiders get on an actor."""

from abc import ABC, abstractmethod
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from .broker import Broker


class ActorRef(ABC):
    """Abstract base class for actor references."""

    def __init__(self, actor_id: str):
        """
        Initialize actor reference.

        Args:
            actor_id: Id the actor is registered under
        """
        self.actor_id = actor_id

    @abstractmethod
    async def tell(self, message: Any) -> None:
        """
        Send a message without waiting for a reply.

        Args:
            message: Message to send
        """
        pass

    @abstractmethod
    async def ask(self, message: Any, timeout: Optional[float] = None) -> Any:
        """
        Send a message and wait for the reply that echoes its request id.

        Args:
            message: Message to send
            timeout: Timeout in seconds

        Returns:
            Reply message

        Raises:
            RequestTimeout: If timeout is exceeded
        """
        pass

    def __str__(self) -> str:
        return self.actor_id

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.actor_id!r})"

    def __hash__(self) -> int:
        return hash(self.actor_id)

    def __eq__(self, other) -> bool:
        if not isinstance(other, ActorRef):
            return False
        return self.actor_id == other.actor_id


class LocalActorRef(ActorRef):
    """Reference to an actor registered with a broker in this process."""

    def __init__(self, actor_id: str, broker: 'Broker'):
        super().__init__(actor_id)
        self._broker = broker

    async def tell(self, message: Any) -> None:
        """Deliver through the broker."""
        await self._broker.tell(self.actor_id, message)

    async def ask(self, message: Any, timeout: Optional[float] = None) -> Any:
        """Relay through the broker and wait for the correlated reply."""
        return await self._broker.ask(self.actor_id, message, timeout)
