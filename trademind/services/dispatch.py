"""Request tokens and debouncing for async state updates."""
from __future__ import annotations
import asyncio
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class LatestRequestGuard:
    """
    Tags requests per state slot so only the newest result is applied.

    Each dispatch bumps the slot's generation counter; a result is current
    only if its token still equals the slot's latest generation.
    """

    def __init__(self):
        self._generations: Dict[str, int] = defaultdict(int)

    def dispatch(self, slot: str) -> int:
        """Start a new request for slot and return its token."""
        self._generations[slot] += 1
        return self._generations[slot]

    def is_current(self, slot: str, token: int) -> bool:
        return self._generations[slot] == token

    def invalidate(self, slot: str) -> None:
        """Make every in-flight request for slot stale."""
        self._generations[slot] += 1

    async def run(self, slot: str, coro: Awaitable[Any]) -> Tuple[bool, Any]:
        """
        Await coro as the newest request for slot.

        Returns:
            (applied, result); applied is False when a newer request was
            dispatched for the same slot while this one was in flight
        """
        token = self.dispatch(slot)
        result = await coro
        if not self.is_current(slot, token):
            logger.debug(f"Discarding stale result for slot '{slot}' (token {token})")
            return False, result
        return True, result


class Debouncer:
    """
    Delay a callback until its input has been stable for `delay` seconds.

    A new trigger cancels only the waiting timer; a callback that has
    already started keeps running (pair with LatestRequestGuard to drop
    its result). Must be used from within a running event loop.
    """

    def __init__(self, delay: float = 1.5):
        self.delay = delay
        self._timer: Optional[asyncio.Task] = None
        self._calls: Set[asyncio.Task] = set()

    def trigger(self, value: Any, callback: Callable[[Any], Awaitable[Any]]) -> asyncio.Task:
        """Restart the timer; callback(value) runs once it expires."""
        self.cancel()
        self._timer = asyncio.create_task(self._wait_then_call(value, callback))
        return self._timer

    async def _wait_then_call(self, value: Any, callback: Callable[[Any], Awaitable[Any]]) -> None:
        await asyncio.sleep(self.delay)
        task = asyncio.create_task(callback(value))
        self._calls.add(task)
        task.add_done_callback(self._call_done)

    def _call_done(self, task: asyncio.Task) -> None:
        self._calls.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Debounced callback failed: {error!r}")

    def cancel(self) -> None:
        """Drop the pending (not yet fired) call, if any."""
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    @property
    def pending(self) -> bool:
        return self._timer is not None and not self._timer.done()

    async def flush(self) -> None:
        """Wait for the pending timer and every callback already running."""
        timer = self._timer
        if timer is not None:
            try:
                await timer
            except asyncio.CancelledError:
                pass
        if self._calls:
            # Failures are logged by _call_done
            await asyncio.gather(*list(self._calls), return_exceptions=True)
