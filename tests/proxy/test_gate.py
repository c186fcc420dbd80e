"""Tests for the one-shot readiness gate."""

import asyncio

import pytest

from recordproxy.proxy.gate import ReadinessGate


class TestReadinessGate:
    @pytest.mark.asyncio
    async def test_concurrent_waiters_share_one_initialization(self):
        calls = 0

        async def initialize():
            nonlocal calls
            await asyncio.sleep(0.01)
            calls += 1

        gate = ReadinessGate(initialize)
        assert not gate.is_ready
        await asyncio.gather(gate.wait(), gate.wait(), gate.wait())
        await gate.wait()

        assert calls == 1
        assert gate.is_ready

    @pytest.mark.asyncio
    async def test_failure_reaches_every_waiter(self):
        calls = 0

        async def initialize():
            nonlocal calls
            calls += 1
            raise RuntimeError("cannot open")

        gate = ReadinessGate(initialize)
        results = await asyncio.gather(gate.wait(), gate.wait(), return_exceptions=True)
        assert all(isinstance(r, RuntimeError) for r in results)

        with pytest.raises(RuntimeError):
            await gate.wait()
        assert calls == 1
        assert not gate.is_ready

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_initialization(self):
        done = asyncio.Event()

        async def initialize():
            await asyncio.sleep(0.01)
            done.set()

        gate = ReadinessGate(initialize)
        waiter = asyncio.ensure_future(gate.wait())
        await asyncio.sleep(0)
        waiter.cancel()

        await gate.wait()
        assert done.is_set()
        assert gate.is_ready

    @pytest.mark.asyncio
    async def test_settle_swallows_failure(self):
        async def initialize():
            raise RuntimeError("boom")

        gate = ReadinessGate(initialize)
        with pytest.raises(RuntimeError):
            await gate.wait()
        await gate.settle()

    @pytest.mark.asyncio
    async def test_settle_before_start(self):
        gate = ReadinessGate(asyncio.sleep)
        await gate.settle()
        assert not gate.is_ready
