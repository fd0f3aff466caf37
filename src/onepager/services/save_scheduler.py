"""Debounced persistence.

``SaveScheduler`` owns a single outstanding timer. Each ``schedule()``
call restarts it, so a burst of mutations produces one write once the
quiescence window has elapsed. The write reads the document state at the
moment it fires. A write that has already started is not cancelled, and
writes never overlap: a write that fires while another is running waits
for it, so the last write to finish always carries the latest state.
"""

import asyncio
from typing import Awaitable, Callable, Optional

from onepager.utils.logging import get_logger


logger = get_logger(__name__)

SAVE_DELAY = 1.0


class SaveScheduler:
    """Coalesces save requests into one delayed write."""

    def __init__(self, save: Callable[[], Awaitable[None]], delay: float = SAVE_DELAY):
        """
        Args:
            save: Coroutine function performing the write
            delay: Quiescence window in seconds
        """
        self._save = save
        self.delay = delay
        self._timer: Optional[asyncio.TimerHandle] = None
        self._in_flight: set[asyncio.Task] = set()
        self._write_lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        """Whether a write is scheduled but has not fired yet."""
        return self._timer is not None

    @property
    def writing(self) -> bool:
        return bool(self._in_flight)

    def schedule(self) -> None:
        """(Re)start the quiescence timer. Must be called from a running loop."""
        loop = asyncio.get_running_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """Drop the scheduled write, if any."""
        if self._timer is None:
            return False
        self._timer.cancel()
        self._timer = None
        logger.debug("save_cancelled")
        return True

    def _fire(self) -> None:
        self._timer = None
        task = asyncio.get_running_loop().create_task(self._write())
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _write(self) -> None:
        async with self._write_lock:
            try:
                await self._save()
            except Exception as e:
                # Nobody awaits a debounced write, so failures end here
                logger.error("save_failed", error=str(e), error_type=type(e).__name__)

    async def flush(self) -> None:
        """Write now if a save is scheduled (after any write in flight), then drain."""
        if self.cancel():
            await self._write()
        await self.drain()

    async def drain(self) -> None:
        """Wait for writes that have already started."""
        if self._in_flight:
            await asyncio.gather(*list(self._in_flight))
