"""
Concurrency Gate Module
Counting admission gate that caps the number of in-flight page requests.
"""

import asyncio
from collections import deque
from typing import Deque


class ConcurrencyGate:
    """
    FIFO counting semaphore for asyncio tasks.

    A released permit is handed directly to the oldest waiter, so a new
    caller can never overtake a task that is already queued.
    """

    def __init__(self, capacity: int):
        """
        Initialize the gate.

        Args:
            capacity: Maximum number of concurrent holders (must be >= 1)
        """
        if capacity < 1:
            raise ValueError(f"Gate capacity must be a positive integer, got {capacity}")

        self.capacity = capacity
        self._permits = capacity
        self._waiters: Deque[asyncio.Future] = deque()

    async def acquire(self) -> None:
        """Wait for a permit and reserve it."""
        if self._permits > 0 and not self._waiters:
            self._permits -= 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)

        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # Permit was already handed over; pass it on.
                self.release()
            elif waiter in self._waiters:
                self._waiters.remove(waiter)
            raise

    def release(self) -> None:
        """Return a permit, waking the oldest waiter if there is one."""
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return

        if self._permits >= self.capacity:
            raise ValueError("ConcurrencyGate released more times than acquired")
        self._permits += 1

    @property
    def available(self) -> int:
        return self._permits

    @property
    def waiting(self) -> int:
        return sum(1 for waiter in self._waiters if not waiter.done())

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.release()
