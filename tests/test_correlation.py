"""Tests for request/reply correlation."""

import asyncio

import pytest

from ledger_actors.core.correlation import PendingRequests, new_request_id
from ledger_actors.errors import RequestTimeout


@pytest.mark.asyncio
async def test_resolve_completes_future():
    pending = PendingRequests()
    future = pending.expect("req-1", timeout=1.0)

    assert pending.resolve("req-1", "reply") is True
    assert await future == "reply"
    assert len(pending) == 0


@pytest.mark.asyncio
async def test_reject_fails_future():
    pending = PendingRequests()
    future = pending.expect("req-1", timeout=1.0)

    pending.reject("req-1", RuntimeError("nope"))

    with pytest.raises(RuntimeError, match="nope"):
        await future
    assert len(pending) == 0


@pytest.mark.asyncio
async def test_timeout_fails_with_request_timeout():
    pending = PendingRequests()
    future = pending.expect("req-1", timeout=0.05)

    with pytest.raises(RequestTimeout):
        await future
    assert len(pending) == 0


@pytest.mark.asyncio
async def test_request_timeout_is_a_timeout_error():
    pending = PendingRequests()

    with pytest.raises(TimeoutError):
        await pending.expect("req-1", timeout=0.01)


@pytest.mark.asyncio
async def test_late_reply_is_ignored():
    """A reply arriving after the deadline has no effect."""
    pending = PendingRequests()
    future = pending.expect("req-1", timeout=0.05)

    with pytest.raises(RequestTimeout):
        await future

    assert pending.resolve("req-1", "too late") is False
    assert pending.reject("req-1", RuntimeError("too late")) is False
    assert isinstance(future.exception(), RequestTimeout)


@pytest.mark.asyncio
async def test_completes_exactly_once():
    pending = PendingRequests()
    future = pending.expect("req-1", timeout=1.0)

    assert pending.resolve("req-1", "first") is True
    assert pending.resolve("req-1", "second") is False
    assert await future == "first"


@pytest.mark.asyncio
async def test_unknown_request_is_noop():
    pending = PendingRequests()

    assert pending.resolve("missing", "reply") is False
    assert pending.resolve(None, "reply") is False
    assert pending.reject("missing", RuntimeError()) is False


@pytest.mark.asyncio
async def test_duplicate_request_id_rejected():
    pending = PendingRequests()
    pending.expect("req-1", timeout=1.0)

    with pytest.raises(ValueError, match="already pending"):
        pending.expect("req-1", timeout=1.0)

    pending.cancel_all()


@pytest.mark.asyncio
async def test_cancel_all():
    pending = PendingRequests()
    first = pending.expect("req-1", timeout=1.0)
    second = pending.expect("req-2", timeout=1.0)

    pending.cancel_all()

    assert first.cancelled()
    assert second.cancelled()
    assert len(pending) == 0


def test_new_request_id_unique():
    ids = {new_request_id("fwd") for _ in range(1000)}

    assert len(ids) == 1000
    assert all(request_id.startswith("fwd-") for request_id in ids)
