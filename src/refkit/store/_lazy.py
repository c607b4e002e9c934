"""Shared one-time async initialization."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class LazyInit(Generic[T]):
    """Run an async factory once and share its in-flight result.

    The first caller starts the factory; every concurrent caller awaits the
    same future instead of starting a second one. A waiter being cancelled
    does not cancel the shared future. If the factory fails, the failure is
    raised to all current waiters and the next call starts over, even when
    no waiter was left to see the failure.
    """

    def __init__(self, factory: Callable[[], Awaitable[T]]) -> None:
        self._factory = factory
        self._future: asyncio.Future[T] | None = None

    @property
    def done(self) -> bool:
        """Whether initialization has completed successfully."""
        future = self._future
        return (
            future is not None
            and future.done()
            and not future.cancelled()
            and future.exception() is None
        )

    async def get(self) -> T:
        future = self._future
        if future is None:
            future = asyncio.ensure_future(self._factory())
            future.add_done_callback(self._forget_failure)
            self._future = future
        return await asyncio.shield(future)

    def _forget_failure(self, future: asyncio.Future[T]) -> None:
        # exception() also marks the failure as retrieved.
        if future.cancelled() or future.exception() is not None:
            if self._future is future:
                self._future = None

    def reset(self) -> None:
        """Forget the memoized result so the next call re-runs the factory."""
        self._future = None
