"""Deduplication of identical in-flight calls (single-flight).

Concurrent callers asking for the same key share one underlying call. The
registry relies on asyncio's cooperative scheduling: registration happens
without an intervening await, so at most one call per key is ever started.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RequestCoalescer(Generic[T]):
    """Share one in-flight call per key between concurrent callers."""

    def __init__(self, name: str = "coalescer") -> None:
        self._name = name
        self._pending: dict[str, asyncio.Task[T]] = {}
        self._started = 0
        self._joined = 0

    def in_flight(self) -> int:
        return len(self._pending)

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    def stats(self) -> dict[str, int | str]:
        return {
            "name": self._name,
            "in_flight": len(self._pending),
            "started": self._started,
            "joined": self._joined,
        }

    async def join(self, key: str, start_call: Callable[[], Awaitable[T]]) -> T:
        """Await the call registered for ``key``, starting it if needed.

        Args:
            key: Deduplication key.
            start_call: Zero-argument factory returning the awaitable to run.
                Only invoked when no call is pending for ``key``.

        Returns:
            The shared call's result.

        Raises:
            Exception: Whatever the shared call raised, for every joined caller.
        """
        task = self._pending.get(key)
        if task is None:
            task = asyncio.ensure_future(self._run(key, start_call))
            task.add_done_callback(_retrieve_exception)
            self._pending[key] = task
            self._started += 1
            logger.debug(
                "coalescer.started",
                extra={"coalescer": self._name, "cache_key": key[:16]},
            )
        else:
            self._joined += 1
            logger.debug(
                "coalescer.joined",
                extra={"coalescer": self._name, "cache_key": key[:16]},
            )

        # A cancelled caller must not cancel the call other callers share
        return await asyncio.shield(task)

    async def _run(self, key: str, start_call: Callable[[], Awaitable[T]]) -> T:
        try:
            return await start_call()
        finally:
            # Unregister before the outcome reaches any waiter
            if self._pending.get(key) is asyncio.current_task():
                del self._pending[key]


def _retrieve_exception(task: asyncio.Task) -> None:
    # Marks the exception as retrieved when every caller abandoned the call
    if not task.cancelled():
        task.exception()
