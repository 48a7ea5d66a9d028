"""
Per-chain submission locks.

Transfers that share a source chain also share the wallet nonce and the
token allowance, so their submission phases must not interleave. Each
batch run owns one ``ChainLockRegistry``; waiters on a chain are served
in arrival order.
"""
import asyncio
import itertools
import logging
from collections import deque
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Deque, Dict, Hashable, Optional


@dataclass(frozen=True)
class LockHandle:
    """Proof of holding the lock for ``key``; pass it back to ``release``."""
    key: Hashable
    token: int


class ChainLockRegistry:
    """
    Mapping of chain key to the currently held lock and its queue of waiters.

    Entries appear on first acquisition and disappear when the last holder
    releases with nobody waiting.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self._held: Dict[Hashable, LockHandle] = {}
        self._waiters: Dict[Hashable, Deque[asyncio.Future]] = {}
        self._tokens = itertools.count(1)
        self.logger = logger or logging.getLogger(__name__)

    def locked(self, key: Hashable) -> bool:
        return key in self._held

    def waiting(self, key: Hashable) -> int:
        return sum(1 for fut in self._waiters.get(key, ()) if not fut.done())

    def __len__(self) -> int:
        return len(self._held)

    async def acquire(self, key: Hashable) -> LockHandle:
        """
        Wait until ``key`` is free and take it.

        Returns:
            Handle to pass to ``release``
        """
        if key not in self._held and not self._waiters.get(key):
            handle = self._grant(key)
            self.logger.debug(f"Lock for chain {key} acquired")
            return handle

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.setdefault(key, deque()).append(waiter)
        self.logger.debug(f"Waiting for lock on chain {key} ({self.waiting(key)} queued)")
        try:
            handle = await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Ownership was handed over just before cancellation; pass it on
                self.release(waiter.result())
            else:
                self._discard_waiter(key, waiter)
            raise
        self.logger.debug(f"Lock for chain {key} acquired after waiting")
        return handle

    def release(self, handle: LockHandle) -> None:
        """
        Release a held lock, handing it to the oldest live waiter if any.

        Raises:
            RuntimeError: If ``handle`` is not the current holder
        """
        if self._held.get(handle.key) != handle:
            raise RuntimeError(f"Lock for chain {handle.key} is not held by this handle")

        queue = self._waiters.get(handle.key)
        while queue:
            waiter = queue.popleft()
            if waiter.done():
                continue
            waiter.set_result(self._grant(handle.key))
            break
        else:
            del self._held[handle.key]

        if queue is not None and not queue:
            del self._waiters[handle.key]
        self.logger.debug(f"Lock for chain {handle.key} released")

    @asynccontextmanager
    async def hold(self, key: Hashable) -> AsyncIterator[LockHandle]:
        """Hold the lock for ``key`` for the duration of the block, releasing on any exit."""
        handle = await self.acquire(key)
        try:
            yield handle
        finally:
            self.release(handle)

    def _grant(self, key: Hashable) -> LockHandle:
        handle = LockHandle(key=key, token=next(self._tokens))
        self._held[key] = handle
        return handle

    def _discard_waiter(self, key: Hashable, waiter: asyncio.Future) -> None:
        queue = self._waiters.get(key)
        if queue is None:
            return
        if waiter in queue:
            queue.remove(waiter)
        if not queue:
            del self._waiters[key]
