"""Tests for the single-occupant handler slot."""

import asyncio

import pytest

from taskbin.core.slot import HandlerSlot, nop


def test_empty_slot_holds_noop():
    slot = HandlerSlot("change")
    assert slot.handler is nop
    assert slot.fire() is None


def test_fire_passes_arguments():
    received = []
    slot = HandlerSlot("fulfillment", received.append)
    slot.fire("value")
    assert received == ["value"]


def test_setting_none_restores_noop():
    slot = HandlerSlot("rejection", lambda err: None)
    slot.handler = None
    assert slot.handler is nop


@pytest.mark.asyncio
async def test_borrow_restores_then_calls_then_resolves():
    calls = []
    slot = HandlerSlot("fulfillment")

    def permanent(value):
        calls.append(("permanent", value, slot.handler is permanent, waiter.done()))

    slot.handler = permanent
    waiter = slot.borrow(asyncio.get_running_loop())
    assert slot.handler is not permanent

    slot.fire(3)
    assert calls == [("permanent", 3, True, False)]
    assert waiter.result() == 3
    assert slot.handler is permanent


@pytest.mark.asyncio
async def test_borrow_without_argument_resolves_none():
    slot = HandlerSlot("drained")
    waiter = slot.borrow(asyncio.get_running_loop())
    slot.fire()
    assert waiter.result() is None


@pytest.mark.asyncio
async def test_one_shot_fires_once():
    slot = HandlerSlot("change")
    waiter = slot.borrow(asyncio.get_running_loop())
    slot.fire()
    slot.fire()
    assert waiter.done()
    assert slot.handler is nop


@pytest.mark.asyncio
async def test_nested_borrows_chain():
    seen = []
    slot = HandlerSlot("fulfillment", seen.append)
    loop = asyncio.get_running_loop()
    older = slot.borrow(loop)
    newer = slot.borrow(loop)

    slot.fire("x")
    assert older.result() == "x"
    assert newer.result() == "x"
    assert seen == ["x"]
    assert slot.handler == seen.append


@pytest.mark.asyncio
async def test_failing_handler_fails_waiter_and_reraises():
    def boom():
        raise RuntimeError("boom")

    slot = HandlerSlot("change", boom)
    waiter = slot.borrow(asyncio.get_running_loop())
    with pytest.raises(RuntimeError):
        slot.fire()
    assert isinstance(waiter.exception(), RuntimeError)
    assert slot.handler is boom


@pytest.mark.asyncio
async def test_cancelled_waiter_still_restores():
    calls = []
    handler = lambda: calls.append(1)
    slot = HandlerSlot("change", handler)
    waiter = slot.borrow(asyncio.get_running_loop())
    waiter.cancel()
    slot.fire()
    assert calls == [1]
    assert slot.handler is handler
