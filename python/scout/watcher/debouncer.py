"""
Debounced trigger for watcher-driven index updates.

Bursts of file events (an editor save, a branch checkout) should produce one
update, not one per event. Every schedule_debounced() call restarts the
timer; the callback runs once the timer expires without being restarted.

The timer is created through an injectable ``call_later(delay, fn)`` so tests
can drive it without waiting on a real clock.
"""

import asyncio
import logging
from typing import Any, Callable, Optional

logger = logging.getLogger("scout.watcher")

CallLater = Callable[[float, Callable[[], None]], Any]


class DebouncedTrigger:
    """
    Runs callback once, ``delay`` seconds after the last schedule_debounced().

    Args:
        delay: Quiet period in seconds
        callback: Sync function or coroutine function to run
        call_later: Timer factory returning a handle with cancel()
            (default: the running loop's call_later)
    """

    def __init__(
        self,
        delay: float,
        callback: Callable[[], Any],
        call_later: Optional[CallLater] = None,
    ) -> None:
        if delay < 0:
            raise ValueError("delay must be non-negative")
        self.delay = delay
        self._callback = callback
        self._call_later = call_later
        self._handle = None
        self._tasks: set[asyncio.Task] = set()
        self.fire_count = 0

    @property
    def pending(self) -> bool:
        """True while a callback is scheduled and not yet run."""
        return self._handle is not None

    def schedule_debounced(self) -> None:
        """(Re)start the timer, replacing any pending run."""
        if self._handle is not None:
            self._handle.cancel()
        call_later = self._call_later or asyncio.get_running_loop().call_later
        self._handle = call_later(self.delay, self._fire)

    def cancel_pending(self) -> bool:
        """Cancel a scheduled run. Returns True if one was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def _fire(self) -> None:
        self._handle = None
        self.fire_count += 1
        try:
            result = self._callback()
        except Exception as e:
            logger.error(f"Debounced callback failed: {e}", exc_info=True)
            return

        if asyncio.iscoroutine(result):
            task = asyncio.ensure_future(result)
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Debounced callback failed: {error}", exc_info=error)

    async def wait_idle(self) -> None:
        """Wait for callbacks already started to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
