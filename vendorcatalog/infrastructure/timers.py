"""Cancellable timer handles for the event loop.

Each component owns its timers explicitly and cancels them on teardown.
Cancelling a timer only prevents work that has not started yet: once a
timer fires, its callback runs as a separate task that cancel() does
not touch.
"""

import asyncio
from typing import Any, Awaitable, Callable

import structlog

logger = structlog.get_logger()

TimerCallback = Callable[..., Awaitable[Any]]


class Debouncer:
    """Runs a callback after a quiet period.

    Every trigger() restarts the countdown and replaces the pending
    arguments, so only the last trigger in a burst reaches the callback.
    """

    def __init__(self, delay: float, callback: TimerCallback, name: str = "debounce") -> None:
        """Initialize the debouncer.

        Args:
            delay: Quiet period in seconds.
            callback: Coroutine function invoked with the last trigger's arguments.
            name: Name used in log events.
        """
        self.delay = delay
        self.name = name
        self._callback = callback
        self._timer: asyncio.Task[None] | None = None
        self._fired: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def pending(self) -> bool:
        """Whether a countdown is running."""
        return self._timer is not None and not self._timer.done()

    @property
    def closed(self) -> bool:
        return self._closed

    def trigger(self, *args: Any) -> None:
        """Start or restart the countdown with new arguments."""
        if self._closed:
            logger.debug("Ignoring trigger on closed timer", timer=self.name)
            return
        self.cancel()
        self._timer = asyncio.get_running_loop().create_task(
            self._countdown(args), name=f"{self.name}-timer"
        )

    def cancel(self) -> bool:
        """Cancel the pending countdown, if any.

        Returns:
            True if a countdown was cancelled.
        """
        if not self.pending:
            return False
        self._timer.cancel()
        self._timer = None
        return True

    def close(self) -> None:
        """Cancel the countdown and refuse further triggers."""
        self.cancel()
        self._closed = True

    async def drain(self) -> None:
        """Wait for callbacks that have already fired."""
        while self._fired:
            await asyncio.gather(*list(self._fired), return_exceptions=True)

    async def _countdown(self, args: tuple[Any, ...]) -> None:
        await asyncio.sleep(self.delay)
        self._timer = None
        task = asyncio.get_running_loop().create_task(
            self._run(args), name=f"{self.name}-callback"
        )
        self._fired.add(task)
        task.add_done_callback(self._fired.discard)

    async def _run(self, args: tuple[Any, ...]) -> None:
        try:
            await self._callback(*args)
        except Exception:
            logger.exception("Timer callback failed", timer=self.name)
