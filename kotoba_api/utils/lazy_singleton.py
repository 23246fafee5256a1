"""Lazy, concurrency-safe one-time construction of heavy objects."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Awaitable, Callable, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class AsyncLazySingleton(Generic[T]):
    """Build an instance on first demand and reuse it for the process lifetime.

    Callers arriving while construction is running await the same task.
    A failed construction is raised to every waiting caller and clears the
    in-progress marker so a later call can retry; a successful one is never
    repeated.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]], *, name: str = "singleton") -> None:
        self._factory = factory
        self._name = name
        self._instance: T | None = None
        self._built = False
        self._init_task: asyncio.Task[T] | None = None
        self._constructions = 0

    @property
    def is_initialized(self) -> bool:
        return self._built

    @property
    def constructions(self) -> int:
        """Number of construction attempts started so far."""
        return self._constructions

    async def get_instance(self) -> T:
        if self._built:
            return self._instance  # type: ignore[return-value]

        if self._init_task is None:
            self._constructions += 1
            self._init_task = asyncio.ensure_future(self._build())
            self._init_task.add_done_callback(
                lambda task: task.cancelled() or task.exception()
            )

        return await asyncio.shield(self._init_task)

    def reset(self) -> None:
        """Drop the cached instance so the next call constructs a new one.

        Used by tests; production code never discards a built instance.
        """
        self._instance = None
        self._built = False
        self._init_task = None

    async def _build(self) -> T:
        started = time.perf_counter()
        logger.info("singleton.init_started", extra={"singleton": self._name})
        try:
            instance = await self._factory()
        except Exception as exc:
            logger.error(
                "singleton.init_failed",
                extra={
                    "singleton": self._name,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise
        else:
            self._instance = instance
            self._built = True
            logger.info(
                "singleton.init_completed",
                extra={
                    "singleton": self._name,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                },
            )
            return instance
        finally:
            self._init_task = None
