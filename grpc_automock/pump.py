"""
Periodic push lifecycle for server-streaming calls.

Each streaming call owns two timed resources: a ticker task that pushes a
freshly synthesized message every ``interval`` seconds, and a one-shot
timeout that ends the call after ``timeout`` seconds. Both are created when
the call starts streaming and both are released when it terminates, whether
by timeout, client cancellation or a failed push.
"""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from google.protobuf.message import Message

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL = 1.0
DEFAULT_TIMEOUT = 10.0

Push = Callable[[Message], Awaitable[None]]


class CallState(Enum):
    """State of a streaming call."""

    IDLE = "idle"
    STREAMING = "streaming"
    TERMINATED = "terminated"


class StreamPump:
    """Pushes mock messages on a call at a fixed cadence until a timeout.

    A pump serves exactly one call. ``run`` returns normally when the timeout
    elapses; it re-raises if a push fails and propagates cancellation when
    the transport cancels the call.

    Example:
        >>> pump = StreamPump(lambda: factory().message, interval=1.0, timeout=10.0)
        >>> await pump.run(context.write)
    """

    def __init__(
        self,
        produce: Callable[[], Message],
        interval: float = DEFAULT_INTERVAL,
        timeout: float = DEFAULT_TIMEOUT,
        name: str = "stream",
    ):
        """Initialize the pump.

        Args:
            produce: Returns a fresh message for every push
            interval: Seconds between pushes
            timeout: Seconds after which the call ends
            name: Call name used in log messages
        """
        self.produce = produce
        self.interval = interval
        self.timeout = timeout
        self.name = name
        self.state = CallState.IDLE
        self.pushes = 0

        self._ticker: Optional[asyncio.Task] = None
        self._deadline: Optional[asyncio.TimerHandle] = None
        self._finished: Optional[asyncio.Event] = None

    async def run(self, push: Push) -> None:
        """Stream until the timeout elapses.

        Args:
            push: Coroutine function writing one message on the call
        """
        if self.state is not CallState.IDLE:
            raise RuntimeError(f"Stream '{self.name}' already started")

        loop = asyncio.get_running_loop()
        self._finished = asyncio.Event()
        self.state = CallState.STREAMING
        self._ticker = loop.create_task(self._tick(push))
        self._ticker.add_done_callback(self._on_ticker_done)
        self._deadline = loop.call_later(self.timeout, self._expire)
        logger.info(
            f"Streaming '{self.name}' every {self.interval}s for {self.timeout}s"
        )

        try:
            await self._finished.wait()
        finally:
            ticker = self._ticker
            self._release()
            logger.info(f"Stream '{self.name}' ended after {self.pushes} pushes")

        if ticker.done() and not ticker.cancelled():
            error = ticker.exception()
            if error is not None:
                raise error

    async def _tick(self, push: Push) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.state is not CallState.STREAMING:
                return
            await push(self.produce())
            self.pushes += 1
            logger.debug(f"Pushed message {self.pushes} on '{self.name}'")

    def _expire(self) -> None:
        self._deadline = None
        if self._ticker is not None:
            self._ticker.cancel()
        if self._finished is not None:
            self._finished.set()

    def _on_ticker_done(self, task: asyncio.Task) -> None:
        if self._finished is not None:
            self._finished.set()

    def _release(self) -> None:
        self.state = CallState.TERMINATED
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None
        if self._deadline is not None:
            self._deadline.cancel()
            self._deadline = None
