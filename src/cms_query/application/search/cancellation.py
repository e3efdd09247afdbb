"""Application search – CancellationToken.

A caller-owned signal that aborts an in-flight search. The search service
checks the token between stages and races each store call against it;
when the token fires first the store call's task is cancelled and
:class:`~cms_query.kernel.errors.SearchCancelledError` is raised instead
of a half-finished page.

Example::

    token = CancellationToken()
    token.cancel_after(2.0)
    result = await service.search(store, request, config, cancellation=token)
"""
from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, TypeVar

from cms_query.kernel.errors import SearchCancelledError

T = TypeVar("T")


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._timer: asyncio.TimerHandle | None = None

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def cancel_after(self, seconds: float) -> None:
        """Fire the token *seconds* from now (must be called inside a running loop)."""
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().call_later(seconds, self.cancel)

    def raise_if_cancelled(self, stage: str | None = None) -> None:
        if self.is_cancelled:
            raise SearchCancelledError(stage=stage)

    async def wait(self) -> None:
        await self._event.wait()

    async def run(self, awaitable: Awaitable[T], *, stage: str | None = None) -> T:
        """Await *awaitable* unless the token fires first.

        Raises :class:`SearchCancelledError` (after cancelling the pending
        work) when the token wins the race.
        """
        if self.is_cancelled:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise SearchCancelledError(stage=stage)

        task: asyncio.Future[T] = asyncio.ensure_future(awaitable)
        waiter: asyncio.Future[Any] = asyncio.ensure_future(self._event.wait())
        try:
            await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not task.done():
                task.cancel()
                await asyncio.wait({task})

        if task.cancelled():
            raise SearchCancelledError(stage=stage)
        return task.result()


__all__ = ["CancellationToken"]
