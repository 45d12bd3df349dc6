"""Flat-record codec for messages.

Messages travel inside the process as dataclasses, but drivers and fixtures
speak the flat record format: a dict with a mandatory ``type`` string and
camelCase fields (``accountId``, ``requestId``, ``from``, ``to`` ...).
"""

import json
from abc import ABC, abstractmethod
from dataclasses import fields
from typing import Any, Dict, Mapping, Type

from .message import (
    ACCOUNT_COMMANDS,
    ACCOUNT_REPLIES,
    BROKER_REPLIES,
    BROKER_REQUESTS,
    ActorInfo,
    ActorMetadata,
    ActorReady,
    Forward,
    ForwardResult,
    Message,
    UnknownMessage,
)

MESSAGE_TYPES: Dict[str, Type[Message]] = {
    cls.type: cls
    for cls in ACCOUNT_COMMANDS + ACCOUNT_REPLIES + BROKER_REQUESTS + BROKER_REPLIES + (ActorReady,)
}

_WIRE_NAMES = {
    "from_id": "from",
    "to_id": "to",
    "kind": "actorType",
}

# Older record spellings accepted on decode
_ALIASES = {
    "amount": ("value",),
    "to_id": ("toId", "targetId", "savingsId"),
    "balance": ("newBalance",),
}

# Mature names its target ``toId`` rather than ``to``
_TYPE_WIRE_NAMES = {
    ("mature", "to_id"): "toId",
}


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _wire_name(type_name: str, attr: str) -> str:
    return _TYPE_WIRE_NAMES.get((type_name, attr)) or _WIRE_NAMES.get(attr) or _camel(attr)


def _encode_value(value: Any) -> Any:
    if isinstance(value, Message):
        return encode(value)
    if isinstance(value, ActorMetadata):
        return {"accountId": value.account_id, "actorType": value.kind}
    return value


def encode(message: Message) -> Dict[str, Any]:
    """Encode a message as a flat record."""
    if isinstance(message, UnknownMessage):
        record = {"type": message.type_name, **message.fields}
        if message.request_id is not None:
            record["requestId"] = message.request_id
        return record

    record: Dict[str, Any] = {"type": message.type}
    for f in fields(message):
        value = getattr(message, f.name)
        if value is None:
            continue
        record[_wire_name(message.type, f.name)] = _encode_value(value)
    return record


def _lookup(record: Mapping[str, Any], type_name: str, attr: str) -> Any:
    names = (_wire_name(type_name, attr), _camel(attr)) + _ALIASES.get(attr, ())
    for name in names:
        if name in record:
            return record[name]
    raise KeyError(attr)


def decode(record: Mapping[str, Any]) -> Message:
    """
    Decode a flat record into a message.

    Records with an unrecognized ``type`` decode to :class:`UnknownMessage`.

    Raises:
        ValueError: If the record has no type or lacks a required field
    """
    type_name = record.get("type")
    if not type_name:
        raise ValueError(f"Record has no type: {record!r}")

    cls = MESSAGE_TYPES.get(type_name)
    if cls is None:
        extra = {k: v for k, v in record.items() if k not in ("type", "requestId")}
        return UnknownMessage(type_name=type_name, fields=extra, request_id=record.get("requestId"))

    kwargs: Dict[str, Any] = {}
    for f in fields(cls):
        try:
            value = _lookup(record, type_name, f.name)
        except KeyError:
            continue
        kwargs[f.name] = value

    if cls is Forward and isinstance(kwargs.get("payload"), Mapping):
        kwargs["payload"] = decode(kwargs["payload"])
    elif cls is ForwardResult and isinstance(kwargs.get("resp"), Mapping):
        kwargs["resp"] = decode(kwargs["resp"])
    elif cls is ActorInfo and isinstance(kwargs.get("info"), Mapping):
        info = kwargs["info"]
        kwargs["info"] = ActorMetadata(account_id=info.get("accountId"), kind=info.get("actorType"))

    try:
        return cls(**kwargs)
    except TypeError as e:
        raise ValueError(f"Invalid {type_name} record: {e}") from e


class Serializer(ABC):
    """Base class for message serializers."""

    @abstractmethod
    def serialize(self, message: Message) -> bytes:
        """Serialize a message to bytes."""
        pass

    @abstractmethod
    def deserialize(self, data: bytes) -> Message:
        """Deserialize bytes to a message."""
        pass


class JSONSerializer(Serializer):
    """JSON encoding of the flat record format."""

    def serialize(self, message: Message) -> bytes:
        """Serialize to JSON bytes; decimals are written as strings."""
        return json.dumps(encode(message), default=str).encode("utf-8")

    def deserialize(self, data: bytes) -> Message:
        """Deserialize from JSON bytes."""
        return decode(json.loads(data.decode("utf-8")))
