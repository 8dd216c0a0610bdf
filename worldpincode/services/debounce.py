"""Single-slot debouncer built on an owned :class:`asyncio.Task` handle."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import structlog

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class Debouncer:
    """Runs only the most recent callback of a burst.

    Each :meth:`schedule` call cancels whatever is pending and starts a
    new task that waits *delay_seconds* before awaiting the callback.  At
    most one task exists at any time.  :meth:`cancel` must be called when
    the owner is torn down so no callback touches discarded state.

    Parameters
    ----------
    delay_seconds:
        Quiet period that must elapse after the last :meth:`schedule`.
    """

    __slots__ = ("_delay", "_task")

    def __init__(self, delay_seconds: float) -> None:
        self._delay = delay_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def schedule(self, callback: Callable[[], Awaitable[None]]) -> None:
        """Replace the pending callback with *callback*."""
        self.cancel()
        self._task = asyncio.get_running_loop().create_task(self._run(callback))

    def cancel(self) -> bool:
        """Cancel the pending callback. Returns ``True`` if one was pending."""
        task, self._task = self._task, None
        if task is None or task.done():
            return False
        task.cancel()
        return True

    async def _run(self, callback: Callable[[], Awaitable[None]]) -> None:
        try:
            await asyncio.sleep(self._delay)
            await callback()
        except Exception:
            logger.warning("debounce.callback_failed", exc_info=True)
        finally:
            if self._task is asyncio.current_task():
                self._task = None
