"""Broker - owns actor lifecycle, metadata and message routing."""

import asyncio
import logging
import uuid
from dataclasses import is_dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Set, Type

from ..config import DEFAULT_CONFIG, LedgerConfig
from ..errors import ActorNotFound, DuplicateActor, ForwardFailed, LedgerError
from ..events import Event, EventStream
from ..messaging.message import (
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
    Envelope,
    Error,
    Forward,
    ForwardResult,
    GetActorInfo,
    Info,
    Message,
    TransferResult,
    message_type,
)
from ..messaging.serializer import decode, encode
from .actor import Actor, ActorContext
from .actor_ref import LocalActorRef
from .correlation import PendingRequests, new_request_id
from .mailbox import Mailbox

logger = logging.getLogger(__name__)


def _kind_name(kind: Any) -> str:
    try:
        return ActorKind.parse(kind).value
    except ValueError:
        return str(kind)


class Broker:
    """
    Central registry and router.

    Actors never hold references to one another. Everything an actor sends
    goes to the broker's inbox, which a single dispatch task drains; that task
    is the only writer of the registry and metadata tables. Forwarded
    payloads are tagged with a fresh relay id and the target's reply is the
    message that echoes it.
    """

    def __init__(
        self,
        config: Optional[LedgerConfig] = None,
        actor_kinds: Optional[Mapping[Any, Type[Actor]]] = None,
        events: Optional[EventStream] = None,
    ):
        """
        Initialize broker.

        Args:
            config: Runtime configuration handed to every actor
            actor_kinds: Actor class per kind (defaults to the account actors)
            events: Event stream for notifications
        """
        if actor_kinds is None:
            from ..accounts import ACTOR_KINDS
            actor_kinds = ACTOR_KINDS

        self._config = config or DEFAULT_CONFIG
        self._actor_kinds: Dict[str, Type[Actor]] = {
            _kind_name(kind): cls for kind, cls in actor_kinds.items()
        }
        self._events = events or EventStream()
        self._actors: Dict[str, Actor] = {}
        self._metadata: Dict[str, ActorMetadata] = {}
        self._pending = PendingRequests()
        self._inbox = Mailbox()
        self._tasks: Set[asyncio.Task] = set()
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def config(self) -> LedgerConfig:
        return self._config

    @property
    def events(self) -> EventStream:
        return self._events

    @property
    def registered_ids(self) -> List[str]:
        """Every id (actor ids and account aliases) with a live entry."""
        return list(self._actors)

    async def start(self) -> None:
        """Start the dispatch task."""
        self._ensure_started()

    def _ensure_started(self) -> None:
        if self._task is None or self._task.done():
            self._running = True
            self._task = asyncio.create_task(self._run(), name="broker")

    async def __aenter__(self) -> "Broker":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.terminate_all()

    # Registry

    async def create_and_register(
        self,
        kind: Any,
        actor_id: str,
        init_params: Optional[Mapping[str, Any]] = None,
    ) -> LocalActorRef:
        """
        Create an actor of a registered kind.

        Args:
            kind: Actor kind (``savings``, ``funds``, ``transfer`` ...)
            actor_id: Registry id
            init_params: Constructor arguments (``account_id``,
                ``initial_balance``, ``source_account_id`` ...)

        Raises:
            ValueError: If the kind is unknown
            DuplicateActor: If the id or account id is taken
        """
        actor_class = self._actor_kinds.get(_kind_name(kind))
        if actor_class is None:
            raise ValueError(f"Unknown actor kind: {kind}")
        return await self.spawn(actor_class, actor_id, **dict(init_params or {}))

    async def spawn(self, actor_class: Type[Actor], actor_id: Optional[str] = None, **params) -> LocalActorRef:
        """
        Instantiate, register and start an actor.

        The actor is registered under ``actor_id`` and, when it differs,
        under its account id as well.
        """
        if actor_id is None:
            actor_id = f"{actor_class.__name__}-{uuid.uuid4().hex[:8]}"

        account_id = params.get("account_id") or actor_id
        for key in (actor_id, account_id):
            if key in self._actors:
                raise DuplicateActor(key)

        actor = actor_class(actor_id=actor_id, config=self._config, **params)
        actor_ref = LocalActorRef(actor_id, self)
        actor.context = ActorContext(actor, actor_ref, self)

        metadata = ActorMetadata(account_id=actor.account_id, kind=actor.kind)
        for key in {actor_id, actor.account_id}:
            self._actors[key] = actor
            self._metadata[key] = metadata

        logger.info("Registered %s actor %s (account %s)", actor.kind, actor_id, actor.account_id)
        self._ensure_started()
        actor.start()
        return actor_ref

    def lookup(self, actor_id: str) -> Optional[LocalActorRef]:
        """Return a reference to the live actor registered under ``actor_id``."""
        actor = self._actors.get(actor_id)
        if actor is None:
            return None
        return LocalActorRef(actor.actor_id, self)

    def metadata(self, actor_id: str) -> Optional[ActorMetadata]:
        return self._metadata.get(actor_id)

    def _unregister(self, actor: Actor) -> None:
        keys = [key for key, registered in self._actors.items() if registered is actor]
        for key in keys:
            del self._actors[key]
            self._metadata.pop(key, None)
        logger.info("Unregistered actor %s (%s)", actor.actor_id, ", ".join(keys))

    async def stop(self, actor_id: str) -> None:
        """Unregister and stop one actor."""
        actor = self._actors.get(actor_id)
        if actor is None:
            return
        self._unregister(actor)
        await actor.stop()

    async def terminate_all(self) -> None:
        """Stop every actor and the dispatch task."""
        actors = {id(actor): actor for actor in self._actors.values()}
        logger.info("Shutting down (%d actors)", len(actors))
        self._actors.clear()
        self._metadata.clear()

        for actor in actors.values():
            await actor.stop()

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._pending.cancel_all()

        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    # Delivery

    async def post(self, sender_id: Optional[str], message: Any) -> None:
        """Accept a message sent to the broker by an actor."""
        if isinstance(message, Mapping):
            message = decode(message)
        await self._inbox.put(Envelope(message=message, sender=sender_id))

    async def tell(self, target_id: str, message: Any) -> None:
        """
        Deliver a message to an actor without waiting for its reply.

        Raises:
            ActorNotFound: If nothing is registered under ``target_id``
        """
        if isinstance(message, Mapping):
            message = decode(message)
        actor = self._actors.get(target_id)
        if actor is None:
            raise ActorNotFound(target_id)
        await actor.deliver(message)

    async def ask(self, target_id: str, payload: Any, timeout: Optional[float] = None) -> Message:
        """
        Deliver ``payload`` tagged with a relay id and wait for the reply
        that echoes it.

        Raises:
            ActorNotFound: If nothing is registered under ``target_id``
            ForwardFailed: If the payload cannot carry a request id
            RequestTimeout: If the target does not reply in time
        """
        if isinstance(payload, Mapping):
            payload = decode(payload)
        actor = self._actors.get(target_id)
        if actor is None:
            raise ActorNotFound(target_id)
        if not is_dataclass(payload) or not hasattr(payload, "request_id"):
            raise ForwardFailed(f"Cannot relay {message_type(payload)} message")

        relay_id = new_request_id("relay")
        future = self._pending.expect(relay_id, timeout or self._config.forward_timeout)
        logger.debug("Relaying %s to %s as %s", message_type(payload), target_id, relay_id)
        await actor.deliver(replace(payload, request_id=relay_id))
        return await future

    async def forward(self, source_id: Optional[str], target_id: str, payload: Any, request_id: str,
                      source: Optional[Actor] = None) -> None:
        """Relay ``payload`` to ``target_id`` and send the reply back to the source."""
        try:
            resp = await self.ask(target_id, payload, self._config.forward_timeout)
            result = ForwardResult(request_id=request_id, resp=resp)
        except LedgerError as e:
            result = ForwardResult(request_id=request_id, error=str(e))
        await self._reply(source_id, result, source)

    async def _reply(self, requester_id: Optional[str], message: Message,
                     requester: Optional[Actor] = None) -> None:
        if requester is None:
            requester = self._actors.get(requester_id) if requester_id else None
        if requester is None:
            logger.warning("Dropping %s for unknown requester %s", message.type, requester_id)
            return
        await requester.deliver(message)

    # Broker protocol

    async def handle_create_actor_request(
        self,
        requester_id: Optional[str],
        new_actor_id: str,
        kind: Any,
        init_params: Optional[Mapping[str, Any]],
        request_id: str,
    ) -> None:
        """Create an actor on behalf of another actor and report the outcome."""
        try:
            await self.create_and_register(kind, new_actor_id, init_params)
            result = CreateActorResult(request_id=request_id, success=True, actor_id=new_actor_id)
        except (LedgerError, ValueError, TypeError) as e:
            logger.warning("Could not create actor %s for %s: %s", new_actor_id, requester_id, e)
            result = CreateActorResult(request_id=request_id, success=False, actor_id=new_actor_id, error=str(e))
        await self._reply(requester_id, result)

    async def handle_actor_info_request(self, requester_id: Optional[str], lookup_id: str, request_id: str) -> None:
        """Reply with the stored metadata for ``lookup_id``, or None."""
        info = self._metadata.get(lookup_id)
        await self._reply(requester_id, ActorInfo(request_id=request_id, actor_id=lookup_id, info=info))

    async def handle_delete_actor_request(self, requester_id: Optional[str], actor_id: str, request_id: str) -> None:
        """
        Unregister an actor, report the outcome, then tear the actor down.

        An actor deleting itself is given ``reap_timeout`` to finish the
        message it is handling before it is stopped.
        """
        requester = self._actors.get(requester_id) if requester_id else None
        actor = self._actors.get(actor_id)
        if actor is None:
            result = DeleteActorResult(request_id=request_id, success=False, error=str(ActorNotFound(actor_id)))
            await self._reply(requester_id, result, requester)
            return

        self._unregister(actor)
        await self._reply(requester_id, DeleteActorResult(request_id=request_id, success=True), requester)
        self._spawn_task(self._reap(actor, wait=actor is requester))

    async def _reap(self, actor: Actor, wait: bool) -> None:
        if wait and await actor.join(self._config.reap_timeout):
            return
        await actor.stop()

    # Dispatch

    def _spawn_task(self, coro) -> asyncio.Task:
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(self) -> None:
        """Broker loop."""
        while self._running:
            try:
                envelope = await self._inbox.get()
                await self._dispatch(envelope)
            except asyncio.CancelledError:
                break
            except Exception:
                logger.exception("Broker failed to dispatch a message")

    async def _dispatch(self, envelope: Envelope) -> None:
        message, sender_id = envelope.message, envelope.sender

        if isinstance(message, Forward):
            source = self._actors.get(sender_id) if sender_id else None
            self._spawn_task(self.forward(sender_id, message.target, message.payload, message.request_id, source))
        elif isinstance(message, CreateActor):
            params: Dict[str, Any] = {"account_id": message.actor_id}
            if _kind_name(message.kind) != ActorKind.TRANSFER.value:
                params["initial_balance"] = message.initial_balance
            await self.handle_create_actor_request(
                sender_id, message.actor_id, message.kind, params, message.request_id
            )
        elif isinstance(message, GetActorInfo):
            await self.handle_actor_info_request(sender_id, message.actor_id, message.request_id)
        elif isinstance(message, DeleteActor):
            await self.handle_delete_actor_request(sender_id, message.actor_id, message.request_id)
        elif isinstance(message, ActorReady):
            self._announce(sender_id, message)
        else:
            request_id = getattr(message, "request_id", None)
            if request_id is not None:
                self._pending.resolve(request_id, message)
            self._notify(sender_id, message)

    def _announce(self, sender_id: Optional[str], message: ActorReady) -> None:
        actor = self._actors.get(sender_id) if sender_id else None
        if actor is None:
            return
        metadata = ActorMetadata(account_id=message.account_id, kind=message.kind)
        for key, registered in self._actors.items():
            if registered is actor:
                self._metadata[key] = metadata
        self._publish("debug", sender_id, f"{message.kind} actor {message.account_id} is ready", message)

    def _notify(self, sender_id: Optional[str], message: Any) -> None:
        if isinstance(message, BalanceUpdate):
            self._publish("info", sender_id, f"New balance for {message.account_id} is {message.balance}", message)
        elif isinstance(message, BalanceInfo):
            self._publish("info", sender_id, f"Balance for {message.account_id} is {message.balance}", message)
        elif isinstance(message, Error):
            self._publish("error", sender_id, f"Error in {message.account_id}: {message.error}", message)
        elif isinstance(message, Info):
            self._publish("info", sender_id, message.message, message)
        elif isinstance(message, TransferResult):
            if message.success:
                text = f"Transfer from {message.from_id} to {message.to_id} succeeded"
                self._publish("info", sender_id, text, message)
            else:
                self._publish("warning", sender_id, f"Transfer failed: {message.error}", message)
        else:
            self._publish("info", sender_id, f"Unhandled {message_type(message)} message", message)

    def _publish(self, level: str, actor_id: Optional[str], text: str, message: Any) -> None:
        record = encode(message) if isinstance(message, Message) else {}
        self._events.publish(Event(level=level, actor_id=actor_id, message=text, record=record))
