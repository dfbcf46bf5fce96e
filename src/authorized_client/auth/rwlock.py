"""Reader/writer lock for asyncio tasks.

:mod:`asyncio` only ships an exclusive :class:`asyncio.Lock`. The credential
cache needs many concurrent readers with one occasional writer, so this
module provides :class:`ReadWriteLock` built on :class:`asyncio.Condition`.

The lock prefers writers: once a writer is waiting, new readers queue behind
it. A refresh therefore only waits for the readers that were already inside,
and every reader admitted afterwards observes the refreshed value.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator


class ReadWriteLock:
    """Writer-preferring shared/exclusive lock.

    Example::

        lock = ReadWriteLock()

        async with lock.read():
            value = shared_value

        async with lock.write():
            shared_value = await compute()
    """

    def __init__(self) -> None:
        self._cond = asyncio.Condition()
        self._readers = 0
        self._writer = False
        self._waiting_writers = 0

    @property
    def readers(self) -> int:
        """Number of readers currently holding the lock."""
        return self._readers

    @property
    def locked(self) -> bool:
        """Whether a writer currently holds the lock."""
        return self._writer

    @asynccontextmanager
    async def read(self) -> AsyncIterator[None]:
        """Hold shared access for the duration of the ``async with`` block."""
        async with self._cond:
            await self._cond.wait_for(
                lambda: not self._writer and not self._waiting_writers
            )
            self._readers += 1
        try:
            yield
        finally:
            async with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @asynccontextmanager
    async def write(self) -> AsyncIterator[None]:
        """Hold exclusive access for the duration of the ``async with`` block."""
        async with self._cond:
            self._waiting_writers += 1
            try:
                await self._cond.wait_for(
                    lambda: not self._writer and not self._readers
                )
            except BaseException:
                self._waiting_writers -= 1
                # Readers parked behind this writer must re-check.
                self._cond.notify_all()
                raise
            self._waiting_writers -= 1
            self._writer = True
        try:
            yield
        finally:
            async with self._cond:
                self._writer = False
                self._cond.notify_all()
