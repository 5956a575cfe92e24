"""Periodic playback queue refresh while someone is listening.

The appliance pushes state snapshots, but only reliably after a playback queue
request. While at least one observer is interested in now-playing or
supported-command updates, a timer re-requests the queue every interval.
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Set

from .config import POLL_INTERVAL

_LOGGER = logging.getLogger(__name__)

# Events whose observers keep the poller running
POLLED_EVENTS = frozenset({"nowPlaying", "supportedCommands"})


class SubscriptionPoller:
    """Reference-counted repeating refresh.

    The timer exists exactly while the interest count is above zero and an
    event loop is available. It is started on the 0 -> 1 transition and
    stopped on 1 -> 0; other transitions leave it alone.

    Args:
        refresh: Coroutine function issuing one refresh request
        is_open: Returns True while the transport can send
        interval: Seconds between ticks
        loop: Event loop (uses the running loop if None). With no loop
            available, interest is recorded and the timer is armed by
            resume() once one runs.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable],
        is_open: Callable[[], bool],
        interval: float = POLL_INTERVAL,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ):
        self._refresh = refresh
        self._is_open = is_open
        self.interval = interval
        self._loop = loop
        self._interest_count = 0
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()

    def _get_loop(self) -> Optional[asyncio.AbstractEventLoop]:
        """Get event loop, or None outside a running loop."""
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            return None

    @property
    def interest_count(self) -> int:
        """Number of interested observers."""
        return self._interest_count

    @property
    def running(self) -> bool:
        """True while the timer is armed."""
        return self._timer is not None

    def add_interest(self) -> None:
        """Record one more interested observer."""
        self._interest_count += 1
        if self._interest_count == 1:
            self._start()

    def remove_interest(self, count: int = 1) -> None:
        """Record that observers went away."""
        if count <= 0 or self._interest_count == 0:
            return
        self._interest_count = max(0, self._interest_count - count)
        if self._interest_count == 0:
            self._stop()

    def resume(self) -> None:
        """Arm the timer if observers are waiting for a loop."""
        if self._interest_count > 0:
            self._start()

    def stop(self) -> None:
        """Stop the timer and forget all interest."""
        self._interest_count = 0
        self._stop()

    def _start(self) -> None:
        if self._timer is not None:
            return
        loop = self._get_loop()
        if loop is None:
            _LOGGER.debug("No running event loop, playback queue poll deferred")
            return
        _LOGGER.debug("Starting playback queue poll every %.1fs", self.interval)
        self._schedule(loop)

    def _stop(self) -> None:
        if self._timer is None:
            return
        _LOGGER.debug("Stopping playback queue poll")
        self._timer.cancel()
        self._timer = None

    def _schedule(self, loop: asyncio.AbstractEventLoop) -> None:
        self._timer = loop.call_later(self.interval, self._tick, loop)

    def _tick(self, loop: asyncio.AbstractEventLoop) -> None:
        if self._timer is None:
            return
        self._schedule(loop)

        if not self._is_open():
            _LOGGER.debug("Transport not open, skipping poll")
            return

        try:
            task = loop.create_task(self._refresh())
        except Exception as e:
            _LOGGER.debug("Poll refresh failed: %s", e)
            return
        self._tasks.add(task)
        task.add_done_callback(self._on_refresh_done)

    def _on_refresh_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            _LOGGER.debug("Poll refresh failed: %s", error)
