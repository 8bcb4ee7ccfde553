"""Tests for the poll protocol: Poll values, Pin, leaf futures, coroutine bridge."""

from __future__ import annotations

import pytest

from cogwheel.foundation.errors import ContractViolation
from cogwheel.runtime.concurrency import (
    CoroutineFuture,
    Map,
    Pending,
    Pin,
    Ready,
    Waker,
    Context,
    block_on,
    current_context,
    into_future,
    pending,
    poll_fn,
    ready,
)
from cogwheel.runtime.concurrency.future import _PendingType


def noop_cx() -> Context:
    return Context(Waker.noop())


# ═════════════════════════════════════════════════════════════════════════════
# Poll
# ═════════════════════════════════════════════════════════════════════════════


def test_ready_and_pending_flags() -> None:
    assert Ready(1).is_ready() and not Ready(1).is_pending()
    assert Pending.is_pending() and not Pending.is_ready()


def test_pending_is_singleton() -> None:
    assert _PendingType() is Pending
    assert repr(Pending) == "Pending"


def test_poll_map() -> None:
    assert Ready(2).map(lambda x: x * 3) == Ready(6)
    assert Pending.map(lambda x: x * 3) is Pending


def test_ready_unwrap() -> None:
    assert Ready("v").unwrap() == "v"


# ═════════════════════════════════════════════════════════════════════════════
# Pin
# ═════════════════════════════════════════════════════════════════════════════


def test_pin_polls_to_ready() -> None:
    pinned = Pin(ready(5))

    assert not pinned.done
    assert pinned.poll(noop_cx()) == Ready(5)
    assert pinned.done


def test_poll_after_ready_is_contract_violation() -> None:
    pinned = Pin(ready(5))
    pinned.poll(noop_cx())

    with pytest.raises(ContractViolation, match="polled after completion"):
        pinned.poll(noop_cx())


def test_pinning_twice_is_contract_violation() -> None:
    fut = pending()
    Pin(fut)

    with pytest.raises(ContractViolation, match="already pinned"):
        Pin(fut)


def test_claim_outlives_the_pin(counter) -> None:
    fut = pending()
    pinned = Pin(fut)
    assert pinned.poll(counter.context()) is Pending
    del pinned

    with pytest.raises(ContractViolation, match="already pinned"):
        Pin(fut)


def test_pin_rejects_non_future() -> None:
    with pytest.raises(TypeError):
        Pin(42)  # type: ignore[type-var]


def test_contract_violation_code() -> None:
    err = ContractViolation("misuse")
    assert err.code == "MISUSE"


# ═════════════════════════════════════════════════════════════════════════════
# Leaf futures
# ═════════════════════════════════════════════════════════════════════════════


def test_pending_never_completes() -> None:
    pinned = Pin(pending())
    cx = noop_cx()

    assert all(pinned.poll(cx) is Pending for _ in range(100))


def test_poll_fn_ready_on_third_poll() -> None:
    polls = 0

    def step(cx: Context):
        nonlocal polls
        polls += 1
        return Ready("done") if polls == 3 else Pending

    pinned = Pin(poll_fn(step))
    cx = noop_cx()

    assert pinned.poll(cx) is Pending
    assert pinned.poll(cx) is Pending
    assert pinned.poll(cx) == Ready("done")


def test_map_applies_to_output() -> None:
    mapped = ready(20).map(lambda x: x + 1)

    assert isinstance(mapped, Map)
    assert Pin(mapped).poll(noop_cx()) == Ready(21)


def test_map_pins_inner() -> None:
    inner = ready(1)
    inner.map(str)

    with pytest.raises(ContractViolation):
        Pin(inner)


# ═════════════════════════════════════════════════════════════════════════════
# Coroutine bridge
# ═════════════════════════════════════════════════════════════════════════════


def test_into_future_passes_futures_through() -> None:
    fut = ready(1)
    assert into_future(fut) is fut


def test_into_future_wraps_coroutines() -> None:
    async def work() -> int:
        return 1

    coro = work()
    fut = into_future(coro)

    assert isinstance(fut, CoroutineFuture)
    assert block_on(fut) == 1


def test_into_future_rejects_other_objects() -> None:
    with pytest.raises(TypeError, match="expected a Future or coroutine"):
        into_future(42)  # type: ignore[arg-type]


def test_coroutine_awaits_futures() -> None:
    async def work() -> int:
        a = await ready(40)
        b = await ready(2)
        return a + b

    assert block_on(work()) == 42


def test_coroutine_sees_pending_then_ready() -> None:
    """Awaiting a pending future suspends the whole coroutine."""
    polls = 0

    def step(cx: Context):
        nonlocal polls
        polls += 1
        if polls < 2:
            cx.waker.wake()
            return Pending
        return Ready(polls)

    async def work() -> int:
        return await poll_fn(step)

    assert block_on(work()) == 2


def test_coroutine_exception_propagates() -> None:
    async def boom() -> int:
        raise ValueError("bad input")

    with pytest.raises(ValueError, match="bad input"):
        block_on(boom())


def test_foreign_awaitable_is_rejected() -> None:
    class Foreign:
        def __await__(self):
            yield "foreign-loop-token"

    async def work() -> None:
        await Foreign()

    with pytest.raises(ContractViolation, match="cannot drive"):
        block_on(work())


def test_current_context_outside_poll() -> None:
    with pytest.raises(ContractViolation, match="no poll in progress"):
        current_context()


def test_current_context_inside_poll() -> None:
    seen: list[Context] = []

    async def work() -> None:
        seen.append(current_context())

    block_on(work())
    assert len(seen) == 1
