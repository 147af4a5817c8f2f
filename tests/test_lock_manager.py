"""
Tests for LockManager

Tests cover:
- Path normalization
- Mutual exclusion under contention
- Timeout while waiting
- Safety auto-release only when the holder has not finished
"""

import asyncio

import pytest

from codeguard.core.errors import LockTimeoutError


class TestNormalization:

    def test_equivalent_paths_share_a_key(self, locks, tmp_path):
        assert locks.normalize(str(tmp_path / "a" / "..")) == locks.normalize(str(tmp_path))

    def test_keys_are_case_folded(self, locks):
        assert locks.normalize("/Projects/Demo") == locks.normalize("/projects/demo")


class TestLocking:

    @pytest.mark.asyncio
    async def test_acquire_and_release(self, locks, tmp_path):
        assert await locks.acquire(str(tmp_path), timeout=1.0)
        assert locks.is_locked(str(tmp_path))

        assert locks.release(str(tmp_path)) is True
        assert not locks.is_locked(str(tmp_path))
        assert locks.release(str(tmp_path)) is False

    @pytest.mark.asyncio
    async def test_with_lock_never_overlaps(self, locks, tmp_path):
        active = 0
        peak = 0

        async def operation():
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.02)
            active -= 1
            return "done"

        results = await asyncio.gather(*[
            locks.with_lock(str(tmp_path), operation, timeout=2.0) for _ in range(5)
        ])

        assert results == ["done"] * 5
        assert peak == 1
        assert not locks.is_locked(str(tmp_path))

    @pytest.mark.asyncio
    async def test_with_lock_releases_on_error(self, locks, tmp_path):
        async def failing():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await locks.with_lock(str(tmp_path), failing, timeout=1.0)
        assert not locks.is_locked(str(tmp_path))

    @pytest.mark.asyncio
    async def test_different_paths_do_not_block(self, locks, tmp_path):
        await locks.acquire(str(tmp_path / "one"), timeout=1.0)
        assert await locks.acquire(str(tmp_path / "two"), timeout=0.05)

    @pytest.mark.asyncio
    async def test_waiting_times_out(self, locks, tmp_path):
        await locks.acquire(str(tmp_path), timeout=5.0)

        with pytest.raises(LockTimeoutError) as exc_info:
            await locks.acquire(str(tmp_path), timeout=0.05)
        assert "Lock timeout" in str(exc_info.value)


class TestAutoRelease:

    @pytest.mark.asyncio
    async def test_stuck_holder_is_force_released(self, locks, tmp_path):
        await locks.acquire(str(tmp_path), timeout=0.05)
        first = locks._locks[locks.normalize(str(tmp_path))]

        # Second caller gets in once the safety timer fires
        assert await locks.acquire(str(tmp_path), timeout=1.0)
        assert first.auto_released is True

    @pytest.mark.asyncio
    async def test_completed_holder_is_not_force_released(self, locks, tmp_path):
        async def quick():
            return 1

        await locks.with_lock(str(tmp_path), quick, timeout=0.05)
        await locks.acquire(str(tmp_path), timeout=1.0)
        second = locks._locks[locks.normalize(str(tmp_path))]

        await asyncio.sleep(0.1)

        # The first lock's timer was cancelled; it must not evict the new holder
        assert locks._locks.get(locks.normalize(str(tmp_path))) is second

    @pytest.mark.asyncio
    async def test_late_finisher_does_not_release_new_holder(self, locks, tmp_path):
        started = asyncio.Event()

        async def slow():
            started.set()
            await asyncio.sleep(0.2)

        slow_task = asyncio.create_task(locks.with_lock(str(tmp_path), slow, timeout=0.05))
        await started.wait()

        await locks.acquire(str(tmp_path), timeout=1.0)
        second = locks._locks[locks.normalize(str(tmp_path))]
        await slow_task

        assert locks._locks.get(locks.normalize(str(tmp_path))) is second

    @pytest.mark.asyncio
    async def test_clear_all_wakes_waiters(self, locks, tmp_path):
        await locks.acquire(str(tmp_path), timeout=5.0)
        waiter = asyncio.create_task(locks.acquire(str(tmp_path), timeout=5.0))
        await asyncio.sleep(0.01)

        locks.clear_all()

        assert await waiter is True
