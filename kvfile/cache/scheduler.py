"""
Write-Back Scheduler Module

Debounces snapshot writes for a PersistentCache.

Every mutation calls schedule(). The first call arms a one-shot callback on
the running asyncio event loop; further calls while a write is owed do
nothing, so a burst of mutations collapses into a single save. The callback
reads the cache state when it runs, not when it was armed.

When no event loop is running in the calling thread there is no idle tick
to hook into. The scheduler then only records that a write is owed
(``pending``) and leaves the flush to the owner: an explicit save(), the
exit hook, or a later schedule() made while a loop is running.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class WriteScheduler:
    """
    One-shot deferred write-back.

    Usage:
        scheduler = WriteScheduler(cache.save, delay=0)
        scheduler.schedule()   # arms loop.call_soon(cache.save)
        scheduler.schedule()   # no-op, already armed
        scheduler.cancel()     # disarms, pending is False again

    Attributes:
        delay: Seconds to wait once armed (0 = next loop iteration)
    """

    def __init__(self, callback: Callable[[], None], delay: float = 0):
        self._callback = callback
        self.delay = delay

        self._handle: Optional[asyncio.Handle] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._dirty = False

    @property
    def pending(self) -> bool:
        """True while a write-back is owed."""
        return self._dirty

    @property
    def armed(self) -> bool:
        """True while a callback is waiting on an event loop."""
        return self._handle is not None

    def schedule(self) -> None:
        """Record that a write is owed and arm a callback if none is armed."""
        self._dirty = True

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to defer to; the owner flushes explicitly
            return

        if self._handle is not None:
            if self._loop is loop and not self._handle.cancelled():
                return
            # Armed on a loop that stopped before firing
            logger.debug("Dropping write-back armed on a stale event loop")
            self._handle.cancel()
            self._handle = None

        self._loop = loop
        if self.delay > 0:
            self._handle = loop.call_later(self.delay, self._fire)
        else:
            self._handle = loop.call_soon(self._fire)
        logger.debug(f"Armed write-back (delay={self.delay})")

    def mark_dirty(self) -> None:
        """Record that a write is owed without arming a callback."""
        self._dirty = True

    def cancel(self) -> None:
        """Disarm any pending callback and clear the pending state."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            self._loop = None
        self._dirty = False

    def _fire(self) -> None:
        self._handle = None
        self._loop = None
        self._callback()
