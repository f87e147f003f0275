"""In-memory per-thread checkpoint store and per-thread locking."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone

from langchain_core.messages import BaseMessage
from loguru import logger


@dataclass(frozen=True)
class ThreadCheckpoint:
    """Last committed conversation state for a thread."""

    thread_id: str
    messages: tuple[BaseMessage, ...]
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class CheckpointStore:
    """
    Volatile thread_id → ThreadCheckpoint mapping.

    Last write wins. When ``max_threads`` is set, the least recently used
    thread is evicted once the limit is exceeded. Contents are lost on restart.
    """

    def __init__(self, max_threads: int | None = None) -> None:
        self.max_threads = max_threads
        self._threads: OrderedDict[str, ThreadCheckpoint] = OrderedDict()

    def get(self, thread_id: str) -> list[BaseMessage]:
        """Return the thread's messages, or an empty list if unknown."""
        checkpoint = self.get_checkpoint(thread_id)
        return list(checkpoint.messages) if checkpoint else []

    def get_checkpoint(self, thread_id: str) -> ThreadCheckpoint | None:
        checkpoint = self._threads.get(thread_id)
        if checkpoint is not None:
            self._threads.move_to_end(thread_id)
        return checkpoint

    def put(self, thread_id: str, messages: Sequence[BaseMessage]) -> None:
        """Replace the thread's checkpoint."""
        self._threads[thread_id] = ThreadCheckpoint(thread_id, tuple(messages))
        self._threads.move_to_end(thread_id)

        if self.max_threads is not None:
            while len(self._threads) > self.max_threads:
                evicted, _ = self._threads.popitem(last=False)
                logger.debug(f"Checkpoint evicted: thread={evicted}")

    def delete(self, thread_id: str) -> bool:
        """Drop a thread's checkpoint. Returns False if it did not exist."""
        return self._threads.pop(thread_id, None) is not None

    def __contains__(self, thread_id: object) -> bool:
        return thread_id in self._threads

    def __len__(self) -> int:
        return len(self._threads)


class KeyedLock:
    """One asyncio.Lock per key, dropped when no holder or waiter remains."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
