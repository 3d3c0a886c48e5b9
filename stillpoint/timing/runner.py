"""Asyncio host that schedules a controller's evaluations."""

import asyncio
import logging

from ..presets import Preset
from .events import SessionEvent, SessionFinished
from .session import SessionController

logger = logging.getLogger(__name__)


class SessionRunner:
    """Runs the 1 s tick and the 100 ms breathing evaluation as tasks.

    Both tasks are cancelled as soon as the run finishes, whether it
    completed or was stopped, so no stale callback touches a later run.
    """

    def __init__(
        self,
        controller: SessionController,
        tick_interval: float = 1.0,
        breathing_interval: float = 0.1,
    ):
        self.controller = controller
        self.tick_interval = tick_interval
        self.breathing_interval = breathing_interval

        self._tasks: list[asyncio.Task] = []
        self._done: asyncio.Event | None = None
        self._subscription = controller.subscribe(self._on_event)

    @property
    def running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    def start(self, preset: Preset) -> bool:
        """Start a run and its timers. Must be called inside the event loop."""
        self.cancel_timers()
        if not self.controller.start(preset):
            return False

        self._done = asyncio.Event()
        self._tasks = [
            asyncio.create_task(self._every(self.tick_interval, self.controller.tick)),
            asyncio.create_task(self._every(self.breathing_interval, self.controller.evaluate_breathing)),
        ]
        return True

    def pause_resume(self) -> None:
        self.controller.pause_resume()

    def stop(self) -> None:
        """Stop the run; timers are cancelled via the finish event."""
        self.controller.stop()
        self.cancel_timers()

    async def wait(self) -> None:
        """Wait until the current run finishes."""
        if self._done is not None:
            await self._done.wait()

    def cancel_timers(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []
        if self._done is not None:
            self._done.set()

    def close(self) -> None:
        self.cancel_timers()
        self._subscription.unsubscribe()

    def _on_event(self, event: SessionEvent) -> None:
        if isinstance(event, SessionFinished):
            self.cancel_timers()

    async def _every(self, interval: float, callback) -> None:
        while True:
            await asyncio.sleep(interval)
            try:
                callback()
            except Exception:
                logger.exception("Scheduled session callback failed")
