# src/duelrank/store/locks.py

"""Per-key asyncio locks with ordered acquisition and a shared deadline."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from duelrank.exceptions import LockTimeoutError

logger = logging.getLogger(__name__)


@dataclass
class _KeyLock:
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)
    # Holders plus waiters; the entry is dropped when this reaches zero
    users: int = 0


class KeyedLockManager:
    """Lazily creates one ``asyncio.Lock`` per player ID.

    Keys are always acquired in ascending order so two leases over
    overlapping ID sets can never deadlock. Leases over disjoint sets
    never wait on each other. A key's lock only exists while some lease
    holds or waits on it.
    """

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._locks: dict[int, _KeyLock] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def _checkout(self, key: int) -> asyncio.Lock:
        entry = self._locks.get(key)
        if entry is None:
            entry = self._locks[key] = _KeyLock()
        entry.users += 1
        return entry.lock

    def _checkin(self, key: int) -> None:
        entry = self._locks[key]
        entry.users -= 1
        if entry.users == 0:
            del self._locks[key]

    def locked(self, key: int) -> bool:
        entry = self._locks.get(key)
        return entry is not None and entry.lock.locked()

    @asynccontextmanager
    async def acquire(
        self, keys: Iterable[int], timeout: float | None = None
    ) -> AsyncIterator[list[int]]:
        """Hold every lock in ``keys`` for the duration of the block.

        Raises:
            LockTimeoutError: If all locks are not held within ``timeout``
                seconds. Locks taken so far are released before raising.
        """
        ordered = sorted(set(keys))
        timeout = self.timeout if timeout is None else timeout
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        checked_out: list[int] = []
        held: list[asyncio.Lock] = []

        try:
            for key in ordered:
                remaining = deadline - loop.time()
                if remaining <= 0:
                    raise LockTimeoutError(ordered, timeout)
                lock = self._checkout(key)
                checked_out.append(key)
                try:
                    await asyncio.wait_for(lock.acquire(), remaining)
                except asyncio.TimeoutError:
                    logger.warning(
                        "Lease acquisition timed out",
                        extra={"player_ids": ordered, "waiting_on": key},
                    )
                    raise LockTimeoutError(ordered, timeout) from None
                held.append(lock)

            yield ordered
        finally:
            for lock in reversed(held):
                lock.release()
            for key in checked_out:
                self._checkin(key)
