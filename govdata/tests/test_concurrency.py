"""
Tests for the Concurrency Gate module.
"""

import asyncio

import pytest

from govdata.src.concurrency import ConcurrencyGate


class TestConcurrencyGate:
    """Test suite for ConcurrencyGate class."""

    def test_rejects_non_positive_capacity(self):
        with pytest.raises(ValueError):
            ConcurrencyGate(0)

    def test_release_without_acquire_is_an_error(self):
        gate = ConcurrencyGate(2)
        with pytest.raises(ValueError):
            gate.release()

    @pytest.mark.asyncio
    async def test_never_exceeds_capacity(self):
        gate = ConcurrencyGate(3)
        holders = 0
        peak = 0

        async def worker(delay: float):
            nonlocal holders, peak
            async with gate:
                holders += 1
                peak = max(peak, holders)
                await asyncio.sleep(delay)
                holders -= 1

        await asyncio.gather(*(worker(0.001 * (i % 4)) for i in range(20)))

        assert peak == 3
        assert gate.available == 3
        assert gate.waiting == 0

    @pytest.mark.asyncio
    async def test_release_admits_exactly_one_waiter_fifo(self):
        gate = ConcurrencyGate(1)
        await gate.acquire()
        admitted = []

        async def waiter(name: str):
            await gate.acquire()
            admitted.append(name)

        tasks = [asyncio.ensure_future(waiter(name)) for name in ("first", "second", "third")]
        await asyncio.sleep(0)
        assert gate.waiting == 3
        assert gate.available == 0

        gate.release()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert admitted == ["first"]
        assert gate.waiting == 2

        gate.release()
        await asyncio.sleep(0)
        await asyncio.sleep(0)
        assert admitted == ["first", "second"]

        gate.release()
        await asyncio.gather(*tasks)
        assert admitted == ["first", "second", "third"]

        gate.release()
        assert gate.available == 1

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_queue(self):
        gate = ConcurrencyGate(1)
        await gate.acquire()

        cancelled = asyncio.ensure_future(gate.acquire())
        survivor = asyncio.ensure_future(gate.acquire())
        await asyncio.sleep(0)

        cancelled.cancel()
        with pytest.raises(asyncio.CancelledError):
            await cancelled
        assert gate.waiting == 1

        gate.release()
        await survivor
        gate.release()
        assert gate.available == 1

    @pytest.mark.asyncio
    async def test_cancelled_after_handoff_passes_permit_on(self):
        gate = ConcurrencyGate(1)
        await gate.acquire()

        handed = asyncio.ensure_future(gate.acquire())
        await asyncio.sleep(0)

        gate.release()
        handed.cancel()
        with pytest.raises(asyncio.CancelledError):
            await handed

        assert gate.available == 1
