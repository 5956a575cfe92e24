"""Waiting for the next inbound message of a given type.

A wait registers a transient listener on an emitter's ``message`` event. The
first matching message resolves it, the deadline fails it, and either way the
listener is removed exactly once.
"""

import asyncio
import logging
from typing import Optional, Union

import pyee

from .config import DEFAULT_WAIT_TIMEOUT
from .exceptions import MessageTimeoutError
from .messages import MessageType, ProtocolMessage

_LOGGER = logging.getLogger(__name__)


class PendingWait:
    """One outstanding wait for a message type."""

    def __init__(
        self,
        emitter: pyee.EventEmitter,
        message_type: Union[MessageType, int],
        timeout: float,
        loop: asyncio.AbstractEventLoop,
    ):
        self.type = message_type
        self.timeout = timeout
        self.deadline = loop.time() + timeout
        self.future: asyncio.Future = loop.create_future()
        self.active = True

        self._emitter = emitter
        self._timer: Optional[asyncio.TimerHandle] = loop.call_later(timeout, self._expire)
        emitter.on("message", self._on_message)

    def _on_message(self, message: ProtocolMessage) -> None:
        if not self.active or message.type != self.type:
            return
        self._finish()
        if not self.future.done():
            self.future.set_result(message)

    def _expire(self) -> None:
        self._timer = None
        if not self.active:
            return
        _LOGGER.debug("Timed out waiting for message type %s after %.1fs", self.type, self.timeout)
        self._finish()
        if not self.future.done():
            self.future.set_exception(MessageTimeoutError(self.type, self.timeout))

    def cancel(self) -> None:
        """Abandon the wait without resolving it."""
        if self.active:
            self._finish()
        if not self.future.done():
            self.future.cancel()

    def _finish(self) -> None:
        self.active = False
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._emitter.remove_listener("message", self._on_message)


class MessageCorrelator:
    """Matches inbound messages to callers awaiting a message type.

    Args:
        emitter: Emitter of ``message`` events carrying ProtocolMessage objects
    """

    def __init__(self, emitter: pyee.EventEmitter):
        self._emitter = emitter

    async def wait_for(
        self,
        message_type: Union[MessageType, int],
        timeout: float = DEFAULT_WAIT_TIMEOUT,
    ) -> ProtocolMessage:
        """Wait for the next message of the given type.

        Args:
            message_type: Message type to match
            timeout: Seconds before giving up

        Returns:
            The first matching message

        Raises:
            MessageTimeoutError: if nothing matched before the deadline
        """
        loop = asyncio.get_running_loop()
        wait = PendingWait(self._emitter, message_type, timeout, loop)
        try:
            return await wait.future
        except asyncio.CancelledError:
            wait.cancel()
            raise
