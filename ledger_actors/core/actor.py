"""Base Actor class and the context actors use to reach the broker."""

import asyncio
import logging
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Optional, TYPE_CHECKING

from ..config import DEFAULT_CONFIG, LedgerConfig
from ..errors import ActorCreationFailed, ForwardFailed, HandlerFault
from ..messaging.message import (
    BROKER_REPLIES,
    ActorInfo,
    ActorMetadata,
    ActorReady,
    Amount,
    CreateActor,
    CreateActorResult,
    DeleteActor,
    DeleteActorResult,
    Error,
    Forward,
    ForwardResult,
    GetActorInfo,
    Message,
)
from .actor_ref import ActorRef
from .correlation import PendingRequests, new_request_id
from .mailbox import Mailbox

if TYPE_CHECKING:
    from .broker import Broker

logger = logging.getLogger(__name__)


class Directive(Enum):
    """Instructions a handler can hand back to the message loop."""
    STOP = "stop"


STOP = Directive.STOP


class Actor(ABC):
    """
    Base class for all actors.

    An actor owns a private mailbox and private state. Its loop takes one
    message at a time and awaits ``receive`` for it, so handlers never run
    concurrently. A handler that awaits a broker round-trip suspends only its
    own actor; replies from the broker are matched against the actor's
    pending requests as they arrive instead of queueing behind it.
    """

    kind: ClassVar[str] = "actor"

    def __init__(self, actor_id: str, account_id: Optional[str] = None,
                 config: Optional[LedgerConfig] = None):
        """
        Initialize actor.

        Args:
            actor_id: Registry id
            account_id: Logical account id (defaults to the actor id)
            config: Runtime configuration
        """
        self.actor_id = actor_id
        self.account_id = account_id or actor_id
        self.config = config or DEFAULT_CONFIG
        self._mailbox = Mailbox(maxsize=self.config.mailbox_size)
        self._pending = PendingRequests()
        self._context: Optional['ActorContext'] = None
        self._running = False
        self._task: Optional[asyncio.Task] = None

    @property
    def context(self) -> 'ActorContext':
        """Get actor context."""
        if self._context is None:
            raise RuntimeError("Actor context not set")
        return self._context

    @context.setter
    def context(self, value: 'ActorContext') -> None:
        self._context = value

    @property
    def mailbox(self) -> Mailbox:
        return self._mailbox

    @property
    def pending(self) -> PendingRequests:
        return self._pending

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @abstractmethod
    async def receive(self, message: Any) -> Optional[Directive]:
        """
        Handle one message.

        Args:
            message: Received message

        Returns:
            ``STOP`` to end the loop after this message, otherwise None
        """
        pass

    async def deliver(self, message: Any) -> None:
        """Accept a message from the broker."""
        if isinstance(message, BROKER_REPLIES):
            self._settle(message)
            return
        await self._mailbox.put(message)

    def _settle(self, reply: Message) -> None:
        """Complete the pending request a broker reply answers."""
        if isinstance(reply, ForwardResult):
            if reply.error is not None:
                settled = self._pending.reject(reply.request_id, ForwardFailed(reply.error))
            else:
                settled = self._pending.resolve(reply.request_id, reply.resp)
        elif isinstance(reply, CreateActorResult):
            if reply.success:
                settled = self._pending.resolve(reply.request_id, reply)
            else:
                settled = self._pending.reject(reply.request_id, ActorCreationFailed(reply.error))
        elif isinstance(reply, ActorInfo):
            settled = self._pending.resolve(reply.request_id, reply.info)
        else:
            settled = self._pending.resolve(reply.request_id, reply)

        if not settled:
            logger.debug("Actor %s dropped late %s for %s", self.actor_id, reply.type, reply.request_id)

    async def _process_message(self, message: Any) -> Optional[Directive]:
        """Run the handler, turning any fault into an error reply."""
        try:
            return await self.receive(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            fault = HandlerFault(self.actor_id, e)
            logger.exception("Actor %s failed handling %r", self.actor_id, message)
            await self.context.emit(Error(
                account_id=self.account_id,
                error=str(fault),
                request_id=getattr(message, "request_id", None),
            ))
            return None

    async def _run(self) -> None:
        """Main actor loop."""
        self._running = True
        await self.context.emit(ActorReady(account_id=self.account_id, kind=self.kind))
        while self._running:
            try:
                message = await self._mailbox.get()
                directive = await self._process_message(message)
            except asyncio.CancelledError:
                break
            if directive is STOP:
                logger.debug("Actor %s stopping itself", self.actor_id)
                self._running = False
        self._pending.cancel_all()

    def start(self) -> None:
        """Start actor message processing."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run(), name=f"actor-{self.actor_id}")

    async def stop(self) -> None:
        """Stop actor message processing."""
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        if self._mailbox.qsize():
            logger.info("Actor %s stopped with %d unprocessed messages", self.actor_id, self._mailbox.qsize())
        self._pending.cancel_all()

    async def join(self, timeout: float) -> bool:
        """
        Wait for the loop to finish on its own.

        Returns:
            True if the loop finished within the timeout
        """
        if self._task is None or self._task.done():
            return True
        done, _ = await asyncio.wait({self._task}, timeout=timeout)
        return bool(done)


class ActorContext:
    """An actor's channel to its owning broker."""

    def __init__(self, actor: Actor, actor_ref: ActorRef, broker: 'Broker'):
        self._actor = actor
        self._self_ref = actor_ref
        self._broker = broker

    @property
    def self_ref(self) -> ActorRef:
        return self._self_ref

    @property
    def broker(self) -> 'Broker':
        return self._broker

    async def emit(self, message: Message) -> None:
        """Send a message to the broker, tagged with this actor's id."""
        await self._broker.post(self._actor.actor_id, message)

    async def request(self, message: Message, timeout: Optional[float] = None) -> Any:
        """
        Send a broker request and wait for its correlated reply.

        Raises:
            RequestTimeout: If no reply arrives in time
            ForwardFailed: If the broker could not relay a forward
            ActorCreationFailed: If a creation request was refused
        """
        if timeout is None:
            timeout = self._actor.config.request_timeout
        future = self._actor.pending.expect(message.request_id, timeout)
        try:
            await self.emit(message)
        except Exception as e:
            self._actor.pending.reject(message.request_id, e)
        return await future

    async def forward(self, target: str, payload: Message, timeout: Optional[float] = None) -> Message:
        """Have the broker deliver ``payload`` to ``target`` and return its reply."""
        request = Forward(target=target, payload=payload, request_id=new_request_id("fwd"))
        return await self.request(request, timeout)

    async def actor_info(self, actor_id: str, timeout: Optional[float] = None) -> Optional[ActorMetadata]:
        """Look up the broker's metadata for ``actor_id`` (None if unknown)."""
        request = GetActorInfo(actor_id=actor_id, request_id=new_request_id("info"))
        return await self.request(request, timeout)

    async def create_actor(self, actor_id: str, kind: str, initial_balance: Amount = 0,
                           timeout: Optional[float] = None) -> CreateActorResult:
        """Ask the broker to create and register a new actor."""
        request = CreateActor(
            actor_id=actor_id,
            kind=kind,
            initial_balance=initial_balance,
            request_id=new_request_id("create"),
        )
        return await self.request(request, timeout)

    async def delete_actor(self, actor_id: str, timeout: Optional[float] = None) -> DeleteActorResult:
        """Ask the broker to unregister and tear down an actor."""
        request = DeleteActor(actor_id=actor_id, request_id=new_request_id("del"))
        return await self.request(request, timeout)
