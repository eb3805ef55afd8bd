"""
Trailing-edge debounce on the asyncio event loop.

Every trigger() cancels the pending timer handle and schedules a new one, so a
burst of triggers produces exactly one callback, delay seconds after the last.
"""

import asyncio
from collections.abc import Callable

from promptcraft.logging_config import get_logger

logger = get_logger(__name__)


class TrailingDebouncer:
    """Collapse bursts of trigger() calls into a single delayed callback."""

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._handle: asyncio.TimerHandle | None = None
        # Set when triggered outside a running loop; only flush() can fire it then
        self._pending_without_loop = False

    @property
    def pending(self) -> bool:
        return self._handle is not None or self._pending_without_loop

    def trigger(self) -> None:
        """Schedule the callback, replacing any pending one."""
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._pending_without_loop = True
            return
        self._handle = loop.call_later(self.delay, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self._pending_without_loop = False
        self._callback()

    def flush(self) -> bool:
        """Run the pending callback now. Returns False if nothing was pending."""
        if not self.pending:
            return False
        self.cancel()
        self._fire()
        return True

    def cancel(self) -> None:
        """Drop the pending callback without running it."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._pending_without_loop = False
