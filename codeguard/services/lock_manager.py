"""
LockManager Service

Serializes validation and auto-fix runs per project directory.
Prevents two pipeline runs from analysing (or rewriting) the same tree
while the code-generation agent is also editing it.

Design:
- Singleton pattern (module-level instance), guarded by the asyncio event loop.
- In-memory registry: normalized path -> Lock record, inserted on acquire,
  removed on release or safety auto-release.
- Keys are absolute, case-folded paths with forward slashes.
- Every acquired lock arms a safety timer. The timer only force-releases if
  the holder has not already signalled completion, and it logs loudly when
  it does: an auto-release means an operation overran its timeout and a
  second holder may now run concurrently with it.
"""

import asyncio
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, Optional, TypeVar

from codeguard.core.config import get_config
from codeguard.core.errors import LockTimeoutError
from codeguard.core.logger import get_logger

logger = get_logger("locks")

T = TypeVar("T")


@dataclass
class Lock:
    """A live lock on one normalized path."""
    normalized_path: str
    acquired_at: float
    release_signal: asyncio.Event = field(default_factory=asyncio.Event)
    timer: Optional[asyncio.TimerHandle] = None
    auto_released: bool = False


class LockManager:
    _instance = None

    def __init__(self):
        # Map of normalized path -> Lock
        self._locks: Dict[str, Lock] = {}

    @classmethod
    def get_instance(cls) -> "LockManager":
        if cls._instance is None:
            cls._instance = LockManager()
        return cls._instance

    @staticmethod
    def normalize(path: str) -> str:
        """normalize paths to create a unique key"""
        return str(Path(path).resolve()).lower().replace("\\", "/")

    def is_locked(self, path: str) -> bool:
        return self.normalize(path) in self._locks

    async def acquire(self, path: str, timeout: Optional[float] = None) -> bool:
        """
        Acquire the lock for a path, waiting for the current holder if needed.

        Args:
            path: Directory (or file) path to lock
            timeout: Seconds to wait for a holder to release; also the
                safety auto-release delay of the new lock

        Returns:
            True once acquired

        Raises:
            LockTimeoutError: if the path stayed locked for the whole timeout
        """
        timeout = timeout if timeout is not None else get_config().lock_timeout
        key = self.normalize(path)
        deadline = time.monotonic() + timeout

        while key in self._locks:
            current = self._locks[key]
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeoutError(key, timeout)
            logger.debug(f"[LOCKS] Waiting for {key} (held for {time.monotonic() - current.acquired_at:.1f}s)")
            try:
                await asyncio.wait_for(current.release_signal.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                logger.warning(f"[LOCKS] Timed out after {timeout}s waiting for {key}")
                raise LockTimeoutError(key, timeout)
            # Another waiter may have registered first; loop and re-check.

        lock = Lock(normalized_path=key, acquired_at=time.monotonic())
        loop = asyncio.get_running_loop()
        lock.timer = loop.call_later(timeout, self._auto_release, lock, timeout)
        self._locks[key] = lock
        logger.debug(f"[LOCKS] Acquired {key}")
        return True

    def _auto_release(self, lock: Lock, timeout: float) -> None:
        """Safety valve: fires only if the holder has not released yet."""
        if lock.release_signal.is_set():
            return
        if self._locks.get(lock.normalized_path) is not lock:
            return
        lock.auto_released = True
        logger.error(
            f"[LOCKS] Force-releasing {lock.normalized_path} after {timeout}s - "
            f"holder is still running and may overlap with the next holder"
        )
        self._drop(lock)

    def _drop(self, lock: Lock) -> None:
        if lock.timer is not None:
            lock.timer.cancel()
        if self._locks.get(lock.normalized_path) is lock:
            del self._locks[lock.normalized_path]
        lock.release_signal.set()

    def release(self, path: str) -> bool:
        """
        Release whatever lock is held on a path.

        Returns:
            True if a lock was released, False if the path was not locked
        """
        key = self.normalize(path)
        lock = self._locks.get(key)
        if lock is None:
            return False
        self._drop(lock)
        logger.debug(f"[LOCKS] Released {key}")
        return True

    async def with_lock(
        self,
        path: str,
        operation: Callable[[], Awaitable[T]],
        timeout: Optional[float] = None,
    ) -> T:
        """
        Run operation while holding the lock for path.

        The lock is released on every exit path. If the safety timer already
        released it and someone else now holds the path, their lock is left
        alone.
        """
        await self.acquire(path, timeout)
        lock = self._locks[self.normalize(path)]
        try:
            return await operation()
        finally:
            if lock.auto_released:
                logger.warning(f"[LOCKS] Operation on {lock.normalized_path} finished after its lock was auto-released")
            self._drop(lock)

    def clear_all(self) -> None:
        """Emergency cleanup: release every lock and wake all waiters."""
        count = len(self._locks)
        for lock in list(self._locks.values()):
            self._drop(lock)
        if count:
            logger.info(f"[LOCKS] Cleared {count} locks")


# Global instance
lock_manager = LockManager.get_instance()
