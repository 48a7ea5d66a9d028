"""
Tests for the per-chain submission locks.
"""
import asyncio
import pytest

from speedrun_e2e.locks import ChainLockRegistry, LockHandle


@pytest.mark.asyncio
async def test_acquire_and_release_free_key():
    locks = ChainLockRegistry()

    handle = await locks.acquire(8453)
    assert locks.locked(8453)
    assert len(locks) == 1

    locks.release(handle)
    assert not locks.locked(8453)
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_same_chain_sections_never_overlap():
    locks = ChainLockRegistry()
    events = []

    async def section(name):
        async with locks.hold(8453):
            events.append(("enter", name))
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            events.append(("exit", name))

    await asyncio.gather(section("a"), section("b"), section("c"))

    assert events == [
        ("enter", "a"), ("exit", "a"),
        ("enter", "b"), ("exit", "b"),
        ("enter", "c"), ("exit", "c"),
    ]
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_different_chains_overlap():
    locks = ChainLockRegistry()
    both_inside = asyncio.Event()
    inside = set()

    async def section(key):
        async with locks.hold(key):
            inside.add(key)
            if len(inside) == 2:
                both_inside.set()
            await asyncio.wait_for(both_inside.wait(), timeout=1)

    await asyncio.gather(section(8453), section(42161))
    assert inside == {8453, 42161}


@pytest.mark.asyncio
async def test_waiters_are_served_in_arrival_order():
    locks = ChainLockRegistry()
    first = await locks.acquire("base")
    order = []

    async def waiter(name):
        handle = await locks.acquire("base")
        order.append(name)
        locks.release(handle)

    tasks = [asyncio.create_task(waiter(n)) for n in ("one", "two", "three")]
    await asyncio.sleep(0)
    assert locks.waiting("base") == 3

    locks.release(first)
    await asyncio.gather(*tasks)

    assert order == ["one", "two", "three"]
    assert not locks.locked("base")


@pytest.mark.asyncio
async def test_lock_released_when_section_raises():
    locks = ChainLockRegistry()

    async def failing():
        async with locks.hold(8453):
            await asyncio.sleep(0)
            raise RuntimeError("submission failed")

    async def queued():
        async with locks.hold(8453):
            return "acquired"

    failing_task = asyncio.create_task(failing())
    queued_task = asyncio.create_task(queued())

    with pytest.raises(RuntimeError, match="submission failed"):
        await failing_task
    assert await asyncio.wait_for(queued_task, timeout=1) == "acquired"
    assert not locks.locked(8453)


@pytest.mark.asyncio
async def test_release_with_foreign_handle():
    locks = ChainLockRegistry()
    await locks.acquire("base")

    with pytest.raises(RuntimeError):
        locks.release(LockHandle(key="base", token=999))

    with pytest.raises(RuntimeError):
        locks.release(LockHandle(key="arbitrum", token=1))


@pytest.mark.asyncio
async def test_cancelled_waiter_leaves_queue():
    locks = ChainLockRegistry()
    holder = await locks.acquire("base")

    cancelled = asyncio.create_task(locks.acquire("base"))
    await asyncio.sleep(0)
    assert locks.waiting("base") == 1

    cancelled.cancel()
    with pytest.raises(asyncio.CancelledError):
        await cancelled

    assert locks.waiting("base") == 0
    locks.release(holder)
    assert not locks.locked("base")
    assert len(locks) == 0


@pytest.mark.asyncio
async def test_waiter_cancelled_after_handoff_passes_lock_on():
    locks = ChainLockRegistry()
    holder = await locks.acquire("base")

    doomed = asyncio.create_task(locks.acquire("base"))
    await asyncio.sleep(0)
    survivor = asyncio.create_task(locks.acquire("base"))
    await asyncio.sleep(0)

    # Hand the lock to the first waiter, then cancel it before it resumes
    locks.release(holder)
    doomed.cancel()

    handle = await asyncio.wait_for(survivor, timeout=1)
    assert locks.locked("base")
    locks.release(handle)
    assert not locks.locked("base")
